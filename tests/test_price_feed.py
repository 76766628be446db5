from decimal import Decimal

import pytest

from meshsec.core import Coin, MessageInfo
from meshsec.errors import ContractError, NotFound, PaymentError, Unauthorized
from meshsec.price_feed import PriceFeedConfig, SimplePriceFeed


def make_feed(owner=None):
    feed = SimplePriceFeed()
    feed.instantiate(MessageInfo("sunny"), Decimal("0.5"), owner)
    return feed


def test_owner_defaults_to_sender():
    feed = make_feed()
    assert feed.config() == PriceFeedConfig("sunny", Decimal("0.5"))
    assert feed.price() == Decimal("0.5")


def test_explicit_owner():
    feed = make_feed(owner="theman")
    assert feed.config().owner == "theman"


def test_invalid_owner_rejected():
    with pytest.raises(ContractError):
        make_feed(owner="X")


def test_instantiate_rejects_funds():
    feed = SimplePriceFeed()
    with pytest.raises(PaymentError):
        feed.instantiate(MessageInfo("sunny", [Coin("ujuno", 5)]), Decimal("0.5"))


def test_owner_updates_price():
    feed = make_feed()
    feed.update_price(MessageInfo("sunny"), Decimal("0.4"))
    assert feed.price() == Decimal("0.4")
    assert feed.config().native_per_foreign == Decimal("0.4")


def test_other_sender_cannot_update():
    feed = make_feed()
    with pytest.raises(Unauthorized):
        feed.update_price(MessageInfo("mallory"), Decimal("9"))
    assert feed.price() == Decimal("0.5")


def test_update_rejects_funds():
    feed = make_feed()
    with pytest.raises(PaymentError):
        feed.update_price(MessageInfo("sunny", [Coin("ujuno", 1)]), Decimal("1"))


def test_queries_before_instantiate_fail():
    feed = SimplePriceFeed()
    with pytest.raises(NotFound):
        feed.price()
    with pytest.raises(NotFound):
        feed.config()


def test_negative_price_rejected():
    with pytest.raises(ValueError):
        SimplePriceFeed().instantiate(MessageInfo("sunny"), Decimal("-1"))