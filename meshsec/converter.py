"""Converter: turns foreign stake arriving over IBC into local virtual stake."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Iterable, Sequence

from .core import (
    BankSend,
    Coin,
    Env,
    Event,
    IbcSendPacket,
    MessageInfo,
    Response,
    SubMsg,
    Validator,
    WasmExecute,
    WasmInstantiate,
    mul_decimal,
    must_pay,
    nonpayable,
    validate_address,
)
from .errors import (
    ContractError,
    DistributeRewardsInvalidAmount,
    InvalidDenom,
    InvalidDiscount,
    InvalidReplyId,
    NotFound,
    Unauthorized,
    WrongDenom,
)
from .ibc import (
    IbcState,
    add_validators_msg,
    jail_validators_msg,
    packet_timeout_rewards,
    tombstone_validators_msg,
)
from .rewards import RewardInfo

REPLY_ID_INSTANTIATE = 1


def _to_binary(value: Any) -> bytes:
    return json.dumps(value, separators=(",", ":")).encode()


def _coin_json(coin: Coin) -> dict[str, str]:
    return {"denom": coin.denom, "amount": str(coin.amount)}


def _ack_success() -> bytes:
    """A success acknowledgement wrapping an empty JSON object."""
    payload = base64.b64encode(b"{}").decode()
    return _to_binary({"result": payload})


def _packet_error(detail: str) -> ContractError:
    return ContractError(f"Error parsing into type ProviderPacket: {detail}")


def _parse_coin(raw: Any) -> Coin:
    if not isinstance(raw, dict):
        raise _packet_error("invalid coin")
    denom, amount = raw.get("denom"), raw.get("amount")
    if not isinstance(denom, str) or not isinstance(amount, str) or not amount.isdigit():
        raise _packet_error("invalid coin")
    return Coin(denom, int(amount))


def _parse_field(body: dict, name: str) -> str:
    value = body.get(name)
    if not isinstance(value, str):
        raise _packet_error(f"missing field `{name}`")
    return value


@dataclass(frozen=True)
class ConverterConfig:
    """Stored settings of the converter.

    ``price_adjustment`` is one minus the discount: 0.4 means the foreign
    asset keeps 40% of its value after conversion.
    """

    price_adjustment: Decimal
    price_feed: str
    local_denom: str
    remote_denom: str


@dataclass(frozen=True)
class ConfigResponse:
    adjustment: Decimal
    price_feed: str
    virtual_staking: str


class Converter:
    """Converts remote stake into local stake and relays rewards and valset changes.

    ``price_querier`` maps a price feed address to its current price, the
    number of native tokens one foreign token buys. The test messages
    ``test_stake`` and ``test_unstake`` only work when
    ``allow_test_messages`` is set.
    """

    def __init__(
        self,
        price_querier: Callable[[str], Any],
        allow_test_messages: bool = False,
    ) -> None:
        self._query_price = price_querier
        self._allow_test_messages = allow_test_messages
        self._config: ConverterConfig | None = None
        self._virtual_stake: str | None = None
        self.ibc = IbcState()

    def _load(self) -> ConverterConfig:
        if self._config is None:
            raise NotFound("ConverterConfig")
        return self._config

    def _load_virtual_stake(self) -> str:
        if self._virtual_stake is None:
            raise NotFound("VirtualStake")
        return self._virtual_stake

    def instantiate(
        self,
        info: MessageInfo,
        price_feed: str,
        discount: Any,
        remote_denom: str,
        virtual_staking_code_id: int,
        admin: str | None,
        bonded_denom: str,
    ) -> Response:
        """Store the settings and instantiate the virtual staking contract.

        ``bonded_denom`` is the staking denom of this chain.
        """
        nonpayable(info)
        discount = Decimal(str(discount))
        if discount > 1 or discount < 0:
            raise InvalidDiscount()
        if not remote_denom:
            raise InvalidDenom(remote_denom)
        price_feed = validate_address(price_feed)
        if admin is not None:
            validate_address(admin)

        self._config = ConverterConfig(
            price_adjustment=Decimal(1) - discount,
            price_feed=price_feed,
            local_denom=bonded_denom,
            remote_denom=remote_denom,
        )
        init_msg = WasmInstantiate(
            admin=admin,
            code_id=virtual_staking_code_id,
            msg={},
            label=f"Virtual Staking: {remote_denom}",
        )
        return Response().add_submessage(
            SubMsg.reply_on_success(init_msg, REPLY_ID_INSTANTIATE)
        )

    def reply(self, reply_id: int, contract_address: str) -> Response:
        """Store the address of the freshly instantiated virtual staking contract."""
        if reply_id != REPLY_ID_INSTANTIATE:
            raise InvalidReplyId(reply_id)
        self._virtual_stake = contract_address
        return Response()

    def config(self) -> ConfigResponse:
        config = self._load()
        return ConfigResponse(
            adjustment=config.price_adjustment,
            price_feed=config.price_feed,
            virtual_staking=self._load_virtual_stake(),
        )

    def _normalize_price(self, amount: Coin) -> Coin:
        config = self._load()
        if amount.denom != config.remote_denom:
            raise WrongDenom(config.remote_denom, amount.denom)
        price = Decimal(str(self._query_price(config.price_feed)))
        converted = mul_decimal(mul_decimal(amount.amount, price), config.price_adjustment)
        return Coin(config.local_denom, converted)

    def _virtual_stake_call(
        self, action: str, event_name: str, validator: str, coin: Coin
    ) -> Response:
        amount = self._normalize_price(coin)
        event = (
            Event(event_name)
            .add_attribute("validator", validator)
            .add_attribute("amount", amount.amount)
        )
        msg = WasmExecute(
            self._load_virtual_stake(),
            {action: {"validator": validator, "amount": amount}},
        )
        return Response().add_message(msg).add_event(event)

    def stake(self, validator: str, stake: Coin) -> Response:
        """Bond the local value of remote ``stake`` on the virtual staking contract."""
        return self._virtual_stake_call("bond", "mesh-bond", validator, stake)

    def unstake(self, validator: str, unstake: Coin) -> Response:
        """Unbond the local value of remote ``unstake`` on the virtual staking contract."""
        return self._virtual_stake_call("unbond", "mesh-unbond", validator, unstake)

    def test_stake(self, info: MessageInfo, validator: str, stake: Coin) -> Response:
        if not self._allow_test_messages:
            raise Unauthorized()
        return self.stake(validator, stake)

    def test_unstake(self, info: MessageInfo, validator: str, unstake: Coin) -> Response:
        if not self._allow_test_messages:
            raise Unauthorized()
        return self.unstake(validator, unstake)

    def transfer_rewards(self, recipient: str, rewards: Coin) -> BankSend:
        """Send rewards in the local staking denom to ``recipient``."""
        recipient = validate_address(recipient)
        config = self._load()
        if rewards.denom != config.local_denom:
            raise WrongDenom(config.local_denom, rewards.denom)
        return BankSend(recipient, [rewards])

    def _ensure_authorized(self, info: MessageInfo) -> None:
        if info.sender != self._load_virtual_stake():
            raise Unauthorized()

    def _make_ibc_packet(self, env: Env, packet: dict) -> IbcSendPacket:
        channel = self.ibc.require_channel()
        return IbcSendPacket(
            channel.channel_id, _to_binary(packet), packet_timeout_rewards(env)
        )

    def distribute_reward(self, env: Env, info: MessageInfo, validator: str) -> Response:
        """Forward rewards sent along for one validator to the provider over IBC."""
        self._ensure_authorized(info)
        denom = self._load().local_denom
        must_pay(info, denom)
        rewards = info.funds[0]
        event = (
            Event("distribute_reward")
            .add_attribute("validator", validator)
            .add_attribute("amount", rewards.amount)
        )
        msg = self._make_ibc_packet(
            env,
            {"distribute": {"validator": validator, "rewards": _coin_json(rewards)}},
        )
        return Response().add_message(msg).add_event(event)

    def distribute_rewards(
        self, env: Env, info: MessageInfo, payments: Iterable[RewardInfo]
    ) -> Response:
        """Forward a batch of rewards; the funds sent must equal their sum."""
        self._ensure_authorized(info)
        denom = self._load().local_denom
        payments = list(payments)
        summed = sum(payment.reward for payment in payments)
        sent = must_pay(info, denom)
        if summed != sent:
            raise DistributeRewardsInvalidAmount(summed, sent)

        events = [
            Event("distribute_reward")
            .add_attribute("validator", payment.validator)
            .add_attribute("amount", payment.reward)
            for payment in payments
        ]
        packet = {
            "distribute_batch": {
                "rewards": [
                    {"validator": p.validator, "reward": str(p.reward)} for p in payments
                ],
                "denom": denom,
            }
        }
        msg = self._make_ibc_packet(env, packet)
        return Response().add_events(events).add_message(msg)

    def valset_update(
        self,
        env: Env,
        info: MessageInfo,
        additions: Sequence[Validator],
        tombstoned: Sequence[str],
        jailed: Sequence[str],
    ) -> Response:
        """Send validator additions, jailings and tombstonings over IBC."""
        self._ensure_authorized(info)
        channel = self.ibc.require_channel()

        resp = Response()
        event = Event("valset_update")
        if additions:
            resp.add_message(add_validators_msg(env, channel, additions))
            event.add_attribute("additions", ",".join(v.address for v in additions))
        if jailed:
            resp.add_message(jail_validators_msg(env, channel, jailed))
            event.add_attribute("jailed", ",".join(jailed))
        if tombstoned:
            resp.add_message(tombstone_validators_msg(env, channel, tombstoned))
            event.add_attribute("tombstoned", ",".join(tombstoned))
        return resp.add_event(event)

    def ibc_packet_receive(self, packet: str | bytes) -> tuple[bytes, Response]:
        """Handle a packet from the provider; returns the acknowledgement and response."""
        try:
            raw = json.loads(packet)
        except (ValueError, UnicodeDecodeError) as exc:
            raise _packet_error(str(exc)) from exc
        if not isinstance(raw, dict) or len(raw) != 1:
            raise _packet_error("expected a single variant")
        ((kind, body),) = raw.items()
        if not isinstance(body, dict):
            raise _packet_error(f"invalid body of `{kind}`")

        if kind == "stake":
            response = self.stake(_parse_field(body, "validator"), _parse_coin(body.get("stake")))
        elif kind == "unstake":
            response = self.unstake(
                _parse_field(body, "validator"), _parse_coin(body.get("unstake"))
            )
        elif kind == "transfer_rewards":
            msg = self.transfer_rewards(
                _parse_field(body, "recipient"), _parse_coin(body.get("rewards"))
            )
            response = Response().add_message(msg)
        else:
            raise _packet_error(f"unknown variant `{kind}`")
        return _ack_success(), response