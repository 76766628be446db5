"""A stand-in virtual staking contract that books stakes immediately."""

from __future__ import annotations

from dataclasses import dataclass

from .core import Coin, MessageInfo, Response, nonpayable
from .errors import ContractError, NotFound, Unauthorized, WrongDenom


@dataclass(frozen=True)
class MockConfig:
    """The accepted denom and the converter allowed to bond and unbond."""

    denom: str
    converter: str


class VirtualStakingMock:
    """Tracks stake per validator as bond and unbond requests arrive."""

    def __init__(self) -> None:
        self._config: MockConfig | None = None
        self._stakes: dict[str, int] = {}

    def _load(self) -> MockConfig:
        if self._config is None:
            raise NotFound("MockConfig")
        return self._config

    def _authorize(self, info: MessageInfo, amount: Coin) -> None:
        nonpayable(info)
        cfg = self._load()
        if info.sender != cfg.converter:
            raise Unauthorized()
        if amount.denom != cfg.denom:
            raise WrongDenom(cfg.denom)

    def instantiate(self, info: MessageInfo, denom: str) -> Response:
        """The caller becomes the converter; ``denom`` is the chain's bonded denom."""
        nonpayable(info)
        self._config = MockConfig(denom, info.sender)
        return Response()

    def config(self) -> MockConfig:
        return self._load()

    def stake(self, validator: str) -> int:
        return self._stakes.get(validator, 0)

    def all_stake(self) -> list[tuple[str, int]]:
        """All stakes in ascending order of validator address."""
        return sorted(self._stakes.items(), key=lambda item: item[0].encode())

    def bond(self, info: MessageInfo, validator: str, amount: Coin) -> Response:
        self._authorize(info, amount)
        self._stakes[validator] = self.stake(validator) + amount.amount
        return Response()

    def unbond(self, info: MessageInfo, validator: str, amount: Coin) -> Response:
        self._authorize(info, amount)
        old = self.stake(validator)
        if amount.amount > old:
            raise ContractError(f"Cannot Sub with {old} and {amount.amount}")
        self._stakes[validator] = old - amount.amount
        return Response()