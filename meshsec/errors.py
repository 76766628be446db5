"""Errors reported by the consumer-side contracts."""

from __future__ import annotations


class ContractError(Exception):
    """Base class of every error a contract reports.

    Two errors compare equal when they are of the same class and carry the
    same arguments, so callers can match an expected failure by value.
    """

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ContractError):
            return NotImplemented
        return type(self) is type(other) and self.args == other.args

    def __hash__(self) -> int:
        return hash((type(self), self.args))


class PaymentError(ContractError):
    """The funds sent along with a message are not what it requires."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message

    @classmethod
    def no_funds(cls) -> "PaymentError":
        return cls("No funds sent")

    @classmethod
    def missing_denom(cls, denom: str) -> "PaymentError":
        return cls(f"Must send reserve token '{denom}'")

    @classmethod
    def multiple_denoms(cls) -> "PaymentError":
        return cls("Sent more than one denomination")

    @classmethod
    def non_payable(cls) -> "PaymentError":
        return cls("This message does not accept funds")


class NotFound(ContractError):
    """A stored value that was required is missing."""

    def __init__(self, kind: str) -> None:
        super().__init__(kind)
        self.kind = kind

    def __str__(self) -> str:
        return f"{self.kind} not found"


class Unauthorized(ContractError):
    """The sender may not perform this action."""

    def __init__(self) -> None:
        super().__init__()

    def __str__(self) -> str:
        return "Unauthorized"


class IbcChannelAlreadyOpen(ContractError):
    def __init__(self) -> None:
        super().__init__()

    def __str__(self) -> str:
        return "Contract already has an open IBC channel"


class IbcOpenTryDisallowed(ContractError):
    def __init__(self) -> None:
        super().__init__()

    def __str__(self) -> str:
        return (
            "You must start the channel handshake on this side, "
            "it doesn't support OpenTry"
        )


class WrongDenom(ContractError):
    """A coin of the wrong denomination was sent.

    ``sent`` is known when the error comes from a packet; the staking
    contracts only report the denomination they expected.
    """

    def __init__(self, expected: str, sent: str | None = None) -> None:
        super().__init__(expected, sent)
        self.expected = expected
        self.sent = sent

    def __str__(self) -> str:
        if self.sent is None:
            return f"Wrong denom. Cannot stake {self.expected}"
        return f"Sent wrong denom over IBC: {self.sent}, expected {self.expected}"


class InvalidReplyId(ContractError):
    def __init__(self, reply_id: int) -> None:
        super().__init__(reply_id)
        self.reply_id = reply_id

    def __str__(self) -> str:
        return f"Invalid reply id: {self.reply_id}"


class InvalidDiscount(ContractError):
    def __init__(self) -> None:
        super().__init__()

    def __str__(self) -> str:
        return "Invalid discount, must be between 0.0 and 1.0"


class InvalidDenom(ContractError):
    def __init__(self, denom: str) -> None:
        super().__init__(denom)
        self.denom = denom

    def __str__(self) -> str:
        return f"Invalid denom: {self.denom}"


class DistributeRewardsInvalidAmount(ContractError):
    def __init__(self, sum: int, sent: int) -> None:  # noqa: A002
        super().__init__(sum, sent)
        self.sum = sum
        self.sent = sent

    def __str__(self) -> str:
        return f"Sum of rewards ({self.sum}) doesn't match funds sent ({self.sent})"


class InsufficientBond(ContractError):
    def __init__(self, validator: str, amount: int) -> None:
        super().__init__(validator, amount)
        self.validator = validator
        self.amount = amount

    def __str__(self) -> str:
        return (
            f"Cannot unbond {self.amount} tokens from validator "
            f"{self.validator}, not enough staked"
        )


class VersionError(ContractError):
    """The counterparty speaks an incompatible protocol version."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message