"""A price feed whose owner sets the price of the foreign token by hand."""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any

from .core import MessageInfo, Response, nonpayable, validate_address
from .errors import NotFound, Unauthorized


def _as_price(value: Any) -> Decimal:
    price = Decimal(str(value))
    if price < 0:
        raise ValueError("price must not be negative")
    return price


@dataclass(frozen=True)
class PriceFeedConfig:
    """Owner who can update the price, and the current price."""

    owner: str
    native_per_foreign: Decimal


class SimplePriceFeed:
    """Stores how many native tokens buy one foreign token."""

    def __init__(self) -> None:
        self._config: PriceFeedConfig | None = None

    def _load(self) -> PriceFeedConfig:
        if self._config is None:
            raise NotFound("PriceFeedConfig")
        return self._config

    def instantiate(
        self, info: MessageInfo, native_per_foreign: Any, owner: str | None = None
    ) -> Response:
        """Set the initial price; the owner defaults to the sender."""
        nonpayable(info)
        owner = validate_address(owner) if owner is not None else info.sender
        self._config = PriceFeedConfig(owner, _as_price(native_per_foreign))
        return Response()

    def update_price(self, info: MessageInfo, native_per_foreign: Any) -> Response:
        nonpayable(info)
        config = self._load()
        if info.sender != config.owner:
            raise Unauthorized()
        self._config = replace(config, native_per_foreign=_as_price(native_per_foreign))
        return Response()

    def config(self) -> PriceFeedConfig:
        return self._load()

    def price(self) -> Decimal:
        """How many native tokens are needed to buy one foreign token."""
        return self._load().native_per_foreign