"""Shared building blocks: coins, messages, responses and payment checks."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import Any, Iterable

from .errors import ContractError, PaymentError

_MIN_ADDRESS_LENGTH = 3
_MAX_ADDRESS_LENGTH = 54


@dataclass(frozen=True)
class Coin:
    """An amount of a single token denomination."""

    denom: str
    amount: int

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("coin amount must not be negative")

    def __str__(self) -> str:
        return f"{self.amount}{self.denom}"


@dataclass
class Event:
    """A named event with ordered key/value attributes."""

    name: str
    attributes: list[tuple[str, str]] = field(default_factory=list)

    def add_attribute(self, key: str, value: Any) -> "Event":
        self.attributes.append((key, str(value)))
        return self


class ReplyOn(Enum):
    NEVER = "never"
    SUCCESS = "success"
    ERROR = "error"
    ALWAYS = "always"


@dataclass
class SubMsg:
    """A message dispatched by a contract, optionally with a reply."""

    msg: Any
    id: int = 0
    reply_on: ReplyOn = ReplyOn.NEVER

    @classmethod
    def reply_on_success(cls, msg: Any, reply_id: int) -> "SubMsg":
        return cls(msg, reply_id, ReplyOn.SUCCESS)

    @classmethod
    def reply_always(cls, msg: Any, reply_id: int) -> "SubMsg":
        return cls(msg, reply_id, ReplyOn.ALWAYS)


@dataclass
class Response:
    """The outcome of a contract call: messages to send and events emitted."""

    messages: list[SubMsg] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)
    attributes: list[tuple[str, str]] = field(default_factory=list)

    def add_message(self, msg: Any) -> "Response":
        self.messages.append(SubMsg(msg))
        return self

    def add_messages(self, msgs: Iterable[Any]) -> "Response":
        for msg in msgs:
            self.add_message(msg)
        return self

    def add_submessage(self, sub: SubMsg) -> "Response":
        self.messages.append(sub)
        return self

    def add_submessages(self, subs: Iterable[SubMsg]) -> "Response":
        self.messages.extend(subs)
        return self

    def add_event(self, event: Event) -> "Response":
        self.events.append(event)
        return self

    def add_events(self, events: Iterable[Event]) -> "Response":
        self.events.extend(events)
        return self

    def add_attribute(self, key: str, value: Any) -> "Response":
        self.attributes.append((key, str(value)))
        return self


@dataclass(frozen=True)
class Env:
    """Block and contract information a call runs with; time is in seconds."""

    block_height: int = 12_345
    block_time: int = 1_571_797_419
    contract_address: str = "cosmos2contract"


@dataclass
class MessageInfo:
    """Who sent a message and which funds came with it."""

    sender: str
    funds: tuple[Coin, ...] = ()

    def __post_init__(self) -> None:
        self.funds = tuple(self.funds)


@dataclass(frozen=True)
class Validator:
    address: str
    commission: Decimal = Decimal(0)
    max_commission: Decimal = Decimal(0)
    max_change_rate: Decimal = Decimal(0)


@dataclass
class WasmExecute:
    contract_addr: str
    msg: dict
    funds: list[Coin] = field(default_factory=list)


@dataclass
class WasmInstantiate:
    admin: str | None
    code_id: int
    msg: dict
    label: str
    funds: list[Coin] = field(default_factory=list)


@dataclass
class BankSend:
    to_address: str
    amount: list[Coin]


@dataclass
class IbcSendPacket:
    channel_id: str
    data: bytes
    timeout: int


@dataclass(frozen=True)
class WithdrawDelegatorReward:
    validator: str


@dataclass(frozen=True)
class VirtualBond:
    validator: str
    amount: Coin


@dataclass(frozen=True)
class VirtualUnbond:
    validator: str
    amount: Coin


def mul_decimal(amount: int, ratio: Any) -> int:
    """Multiply a token amount by a decimal ratio, rounding down."""
    if amount < 0:
        raise ValueError("amount must not be negative")
    factor = Fraction(ratio)
    if factor < 0:
        raise ValueError("ratio must not be negative")
    return math.floor(amount * factor)


def nonpayable(info: MessageInfo) -> None:
    """Reject a message that came with any funds."""
    if info.funds:
        raise PaymentError.non_payable()


def must_pay(info: MessageInfo, denom: str) -> int:
    """Return the amount of the single non-zero coin sent, which must be of ``denom``."""
    if not info.funds:
        raise PaymentError.no_funds()
    if len(info.funds) > 1:
        raise PaymentError.multiple_denoms()
    (sent,) = info.funds
    if sent.amount == 0:
        raise PaymentError.no_funds()
    if sent.denom != denom:
        raise PaymentError.missing_denom(denom)
    return sent.amount


def validate_address(address: str) -> str:
    """Check that an address is well formed and return it."""
    if len(address) < _MIN_ADDRESS_LENGTH:
        raise ContractError("Invalid input: human address too short")
    if len(address) > _MAX_ADDRESS_LENGTH:
        raise ContractError("Invalid input: human address too long")
    if address != address.lower():
        raise ContractError("Invalid input: address not normalized")
    return address