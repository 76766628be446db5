"""Channel handshake, packet construction and acknowledgement handling over IBC."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Iterable, Sequence

from .core import Env, Event, IbcSendPacket, Response, Validator
from .errors import (
    ContractError,
    IbcChannelAlreadyOpen,
    IbcOpenTryDisallowed,
    NotFound,
    VersionError,
)

PROTOCOL_NAME = "mesh-security"
# The highest version of the protocol that is supported.
SUPPORTED_IBC_PROTOCOL_VERSION = "0.11.0"
# The lowest version that is still compatible.
MIN_IBC_PROTOCOL_VERSION = "0.11.0"

# Validator syncs may take a day to arrive.
DEFAULT_VALIDATOR_TIMEOUT = 24 * 60 * 60
# Reward messages should go faster or time out.
DEFAULT_REWARD_TIMEOUT = 60 * 60

# Validator public keys are not available to contracts.
_UNKNOWN_PUB_KEY = ""


def _to_binary(value: Any) -> bytes:
    return json.dumps(value, separators=(",", ":")).encode()


def _parse_version(text: str) -> tuple[int, ...]:
    parts = text.split(".")
    if len(parts) != 3 or not all(part.isdigit() for part in parts):
        raise VersionError(f"Invalid version: {text}")
    return tuple(int(part) for part in parts)


class ChannelOrder(Enum):
    ORDERED = "ORDER_ORDERED"
    UNORDERED = "ORDER_UNORDERED"


@dataclass(frozen=True)
class IbcChannel:
    """An IBC channel as seen from this side."""

    channel_id: str
    order: ChannelOrder = ChannelOrder.UNORDERED
    version: str = ""
    port_id: str = ""
    counterparty_port_id: str = ""
    counterparty_channel_id: str = ""
    connection_id: str = ""


def validate_channel_order(order: ChannelOrder) -> None:
    """Only unordered channels are supported."""
    if order is not ChannelOrder.UNORDERED:
        raise VersionError("Only supports unordered channels")


@dataclass(frozen=True)
class ProtocolVersion:
    """The protocol name and version negotiated in the channel handshake."""

    protocol: str
    version: str

    @classmethod
    def from_json(cls, data: str | bytes) -> "ProtocolVersion":
        try:
            raw = json.loads(data)
        except (ValueError, UnicodeDecodeError) as exc:
            raise ContractError(f"Error parsing into type ProtocolVersion: {exc}") from exc
        if (
            not isinstance(raw, dict)
            or not isinstance(raw.get("protocol"), str)
            or not isinstance(raw.get("version"), str)
        ):
            raise ContractError("Error parsing into type ProtocolVersion: missing fields")
        return cls(raw["protocol"], raw["version"])

    def to_json(self) -> str:
        return json.dumps(
            {"protocol": self.protocol, "version": self.version},
            separators=(",", ":"),
        )

    def _check_protocol(self) -> None:
        if self.protocol != PROTOCOL_NAME:
            raise VersionError(
                f"Different protocol: {self.protocol}, expected {PROTOCOL_NAME}"
            )

    def build_response(self, supported: str, minimum: str) -> "ProtocolVersion":
        """Answer a proposal with the highest version both sides support."""
        self._check_protocol()
        proposed = _parse_version(self.version)
        if proposed < _parse_version(minimum):
            raise VersionError(
                f"Counterparty version {self.version} is below the minimum {minimum}"
            )
        chosen = self.version if proposed <= _parse_version(supported) else supported
        return ProtocolVersion(self.protocol, chosen)

    def verify_compatibility(self, supported: str, minimum: str) -> None:
        """Check a counterparty answer lies between ``minimum`` and ``supported``."""
        self._check_protocol()
        answered = _parse_version(self.version)
        if answered > _parse_version(supported):
            raise VersionError(
                f"Counterparty version {self.version} is higher than proposed {supported}"
            )
        if answered < _parse_version(minimum):
            raise VersionError(
                f"Counterparty version {self.version} is below the minimum {minimum}"
            )


@dataclass(frozen=True)
class AddValidator:
    valoper: str
    pub_key: str
    start_height: int
    start_time: int


@dataclass(frozen=True)
class RemoveValidator:
    valoper: str
    height: int
    time: int


def packet_timeout_validator(env: Env) -> int:
    """Timeout timestamp for validator sync packets: a day ahead."""
    return env.block_time + DEFAULT_VALIDATOR_TIMEOUT


def packet_timeout_rewards(env: Env) -> int:
    """Timeout timestamp for reward packets: an hour ahead."""
    return env.block_time + DEFAULT_REWARD_TIMEOUT


def add_validators_msg(
    env: Env, channel: IbcChannel, validators: Iterable[Validator]
) -> IbcSendPacket:
    """Announce validators, starting at the current block height and time."""
    updates = [
        asdict(AddValidator(v.address, _UNKNOWN_PUB_KEY, env.block_height, env.block_time))
        for v in validators
    ]
    return IbcSendPacket(
        channel.channel_id,
        _to_binary({"add_validators": updates}),
        packet_timeout_validator(env),
    )


def _remove_validators_msg(
    kind: str, env: Env, channel: IbcChannel, validators: Iterable[str]
) -> IbcSendPacket:
    removals = [
        asdict(RemoveValidator(v, env.block_height, env.block_time)) for v in validators
    ]
    return IbcSendPacket(
        channel.channel_id,
        _to_binary({kind: removals}),
        packet_timeout_validator(env),
    )


def jail_validators_msg(
    env: Env, channel: IbcChannel, validators: Iterable[str]
) -> IbcSendPacket:
    return _remove_validators_msg("jail_validators", env, channel, validators)


def tombstone_validators_msg(
    env: Env, channel: IbcChannel, validators: Iterable[str]
) -> IbcSendPacket:
    return _remove_validators_msg("tombstone_validators", env, channel, validators)


class IbcState:
    """The single channel this contract talks over, once it is established."""

    def __init__(self) -> None:
        self.channel: IbcChannel | None = None

    def channel_open(self, channel: IbcChannel, try_open: bool = False) -> str:
        """Accept an OpenInit handshake and return the version to use."""
        if self.channel is not None:
            raise IbcChannelAlreadyOpen()
        if try_open:
            raise IbcOpenTryDisallowed()
        validate_channel_order(channel.order)
        if not channel.version:
            version = ProtocolVersion(PROTOCOL_NAME, SUPPORTED_IBC_PROTOCOL_VERSION)
        else:
            version = ProtocolVersion.from_json(channel.version).build_response(
                SUPPORTED_IBC_PROTOCOL_VERSION, MIN_IBC_PROTOCOL_VERSION
            )
        return version.to_json()

    def channel_connect(
        self,
        env: Env,
        channel: IbcChannel,
        counterparty_version: str,
        validators: Sequence[Validator],
        confirm: bool = False,
    ) -> Response:
        """Store the channel on OpenAck and send the current validator set."""
        if self.channel is not None:
            raise IbcChannelAlreadyOpen()
        if confirm:
            raise IbcOpenTryDisallowed()
        ProtocolVersion.from_json(counterparty_version).verify_compatibility(
            SUPPORTED_IBC_PROTOCOL_VERSION, MIN_IBC_PROTOCOL_VERSION
        )
        self.channel = channel
        return Response().add_message(add_validators_msg(env, channel, validators))

    def require_channel(self) -> IbcChannel:
        if self.channel is None:
            raise NotFound("IbcChannel")
        return self.channel


def packet_ack(ack: str | bytes, channel_id: str, sequence: int) -> Response:
    """Handle an acknowledgement; error acks are reported as an event."""
    try:
        raw = json.loads(ack)
    except (ValueError, UnicodeDecodeError) as exc:
        raise ContractError(f"Error parsing into type AckWrapper: {exc}") from exc
    if not isinstance(raw, dict) or len(raw) != 1:
        raise ContractError("Error parsing into type AckWrapper: unknown variant")
    ((kind, value),) = raw.items()
    if kind == "result":
        return Response()
    if kind == "error":
        event = (
            Event("mesh_ibc_error")
            .add_attribute("error", value)
            .add_attribute("channel", channel_id)
            .add_attribute("sequence", sequence)
        )
        return Response().add_event(event)
    raise ContractError(f"Error parsing into type AckWrapper: unknown variant `{kind}`")


def packet_timeout(env: Env, channel_id: str, data: bytes) -> Response:
    """Resend a timed-out packet with a fresh timeout."""
    return Response().add_message(
        IbcSendPacket(channel_id, data, packet_timeout_validator(env))
    )