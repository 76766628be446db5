import json

import pytest

from meshsec.core import Env, IbcSendPacket, Validator
from meshsec.errors import (
    ContractError,
    IbcChannelAlreadyOpen,
    IbcOpenTryDisallowed,
    NotFound,
    VersionError,
)
from meshsec.ibc import (
    DEFAULT_REWARD_TIMEOUT,
    DEFAULT_VALIDATOR_TIMEOUT,
    MIN_IBC_PROTOCOL_VERSION,
    PROTOCOL_NAME,
    SUPPORTED_IBC_PROTOCOL_VERSION,
    AddValidator,
    ChannelOrder,
    IbcChannel,
    IbcState,
    ProtocolVersion,
    RemoveValidator,
    add_validators_msg,
    jail_validators_msg,
    packet_ack,
    packet_timeout,
    packet_timeout_rewards,
    packet_timeout_validator,
    tombstone_validators_msg,
)


@pytest.fixture
def env():
    return Env(block_height=77, block_time=5_000)


def _supported():
    return ProtocolVersion(PROTOCOL_NAME, SUPPORTED_IBC_PROTOCOL_VERSION).to_json()


def test_timeouts(env):
    assert packet_timeout_validator(env) - env.block_time == 24 * 60 * 60
    assert packet_timeout_rewards(env) - env.block_time == 60 * 60
    assert DEFAULT_VALIDATOR_TIMEOUT > DEFAULT_REWARD_TIMEOUT


def test_protocol_version_round_trip():
    version = ProtocolVersion(PROTOCOL_NAME, "0.11.0")
    assert ProtocolVersion.from_json(version.to_json()) == version


def test_protocol_version_rejects_garbage():
    with pytest.raises(ContractError):
        ProtocolVersion.from_json("not json")
    with pytest.raises(ContractError):
        ProtocolVersion.from_json('{"protocol": "x"}')


def test_build_response_picks_supported_when_higher():
    proposal = ProtocolVersion(PROTOCOL_NAME, "9.0.0")
    answer = proposal.build_response(SUPPORTED_IBC_PROTOCOL_VERSION, MIN_IBC_PROTOCOL_VERSION)
    assert answer == ProtocolVersion(PROTOCOL_NAME, SUPPORTED_IBC_PROTOCOL_VERSION)


def test_build_response_rejects_old_or_foreign():
    with pytest.raises(VersionError):
        ProtocolVersion(PROTOCOL_NAME, "0.1.0").build_response(
            SUPPORTED_IBC_PROTOCOL_VERSION, MIN_IBC_PROTOCOL_VERSION
        )
    with pytest.raises(VersionError):
        ProtocolVersion("other", SUPPORTED_IBC_PROTOCOL_VERSION).build_response(
            SUPPORTED_IBC_PROTOCOL_VERSION, MIN_IBC_PROTOCOL_VERSION
        )


def test_verify_compatibility_bounds():
    ok = ProtocolVersion(PROTOCOL_NAME, SUPPORTED_IBC_PROTOCOL_VERSION)
    assert ok.verify_compatibility(SUPPORTED_IBC_PROTOCOL_VERSION, MIN_IBC_PROTOCOL_VERSION) is None
    with pytest.raises(VersionError):
        ProtocolVersion(PROTOCOL_NAME, "9.0.0").verify_compatibility(
            SUPPORTED_IBC_PROTOCOL_VERSION, MIN_IBC_PROTOCOL_VERSION
        )
    with pytest.raises(VersionError):
        ProtocolVersion(PROTOCOL_NAME, "abc").verify_compatibility(
            SUPPORTED_IBC_PROTOCOL_VERSION, MIN_IBC_PROTOCOL_VERSION
        )


def test_channel_open_without_version_uses_supported():
    state = IbcState()
    result = state.channel_open(IbcChannel("channel-0"))
    assert ProtocolVersion.from_json(result) == ProtocolVersion(
        PROTOCOL_NAME, SUPPORTED_IBC_PROTOCOL_VERSION
    )


def test_channel_open_with_version_negotiates():
    state = IbcState()
    result = state.channel_open(IbcChannel("channel-0", version=_supported()))
    assert ProtocolVersion.from_json(result).version == SUPPORTED_IBC_PROTOCOL_VERSION


def test_channel_open_errors(env):
    state = IbcState()
    with pytest.raises(IbcOpenTryDisallowed):
        state.channel_open(IbcChannel("channel-0"), try_open=True)
    with pytest.raises(VersionError):
        state.channel_open(IbcChannel("channel-0", order=ChannelOrder.ORDERED))
    state.channel_connect(env, IbcChannel("channel-0"), _supported(), [])
    with pytest.raises(IbcChannelAlreadyOpen):
        state.channel_open(IbcChannel("channel-1"))


def test_require_channel_before_connect():
    with pytest.raises(NotFound):
        IbcState().require_channel()


def test_channel_connect_stores_and_syncs(env):
    state = IbcState()
    channel = IbcChannel("channel-7")
    resp = state.channel_connect(env, channel, _supported(), [Validator("val1"), Validator("val2")])
    assert state.require_channel() == channel
    (sub,) = resp.messages
    assert sub.msg.channel_id == "channel-7"
    data = json.loads(sub.msg.data)
    assert [v["valoper"] for v in data["add_validators"]] == ["val1", "val2"]
    with pytest.raises(IbcChannelAlreadyOpen):
        state.channel_connect(env, channel, _supported(), [])


def test_channel_connect_errors(env):
    state = IbcState()
    with pytest.raises(IbcOpenTryDisallowed):
        state.channel_connect(env, IbcChannel("channel-0"), _supported(), [], confirm=True)
    high = ProtocolVersion(PROTOCOL_NAME, "99.0.0").to_json()
    with pytest.raises(VersionError):
        state.channel_connect(env, IbcChannel("channel-0"), high, [])
    assert state.channel is None


def test_add_validators_msg_content(env):
    msg = add_validators_msg(env, IbcChannel("channel-3"), [Validator("val1")])
    (entry,) = json.loads(msg.data)["add_validators"]
    expected = AddValidator("val1", entry["pub_key"], env.block_height, env.block_time)
    assert AddValidator(**entry) == expected
    assert msg.timeout == packet_timeout_validator(env)


@pytest.mark.parametrize(
    "builder, key",
    [(jail_validators_msg, "jail_validators"), (tombstone_validators_msg, "tombstone_validators")],
)
def test_remove_validators_msgs(env, builder, key):
    msg = builder(env, IbcChannel("channel-3"), ["val1", "val2"])
    entries = json.loads(msg.data)[key]
    assert [RemoveValidator(**e) for e in entries] == [
        RemoveValidator("val1", env.block_height, env.block_time),
        RemoveValidator("val2", env.block_height, env.block_time),
    ]
    assert msg.channel_id == "channel-3"
    assert msg.timeout == packet_timeout_validator(env)


def test_packet_ack_success_has_no_events():
    resp = packet_ack(b'{"result":"e30="}', "channel-1", 4)
    assert resp.events == [] and resp.messages == []


def test_packet_ack_error_emits_event():
    resp = packet_ack(json.dumps({"error": "boom"}), "channel-1", 4)
    (event,) = resp.events
    assert event.name == "mesh_ibc_error"
    assert event.attributes == [("error", "boom"), ("channel", "channel-1"), ("sequence", "4")]


def test_packet_ack_rejects_unknown():
    with pytest.raises(ContractError):
        packet_ack(b'{"other": 1}', "channel-1", 1)
    with pytest.raises(ContractError):
        packet_ack(b"nope", "channel-1", 1)


def test_packet_timeout_resends(env):
    resp = packet_timeout(env, "channel-2", b"payload")
    (sub,) = resp.messages
    assert sub.msg == IbcSendPacket("channel-2", b"payload", packet_timeout_validator(env))