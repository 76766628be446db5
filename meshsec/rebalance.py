"""Epoch arithmetic for virtual staking: capping, slashing and rebalancing."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Union

from .core import Coin, VirtualBond, VirtualUnbond, mul_decimal

Holding = tuple[str, int]
RebalanceMsg = Union[VirtualBond, VirtualUnbond]


def calculate_rebalance(
    current: Iterable[Holding],
    desired: Iterable[Holding] | Mapping[str, int],
    denom: str,
) -> list[RebalanceMsg]:
    """Messages that move the ``current`` bonding to the ``desired`` one.

    Validators already bonded are adjusted in the order given; validators
    that only appear in ``desired`` are bonded afterwards in ascending order.
    """
    remaining = dict(desired.items() if isinstance(desired, Mapping) else desired)
    msgs: list[RebalanceMsg] = []

    for validator, prev in current:
        target = remaining.pop(validator, 0)
        if target < prev:
            msgs.append(VirtualUnbond(validator, Coin(denom, prev - target)))
        elif target > prev:
            msgs.append(VirtualBond(validator, Coin(denom, target - prev)))

    msgs.extend(
        VirtualBond(validator, Coin(denom, amount))
        for validator, amount in sorted(remaining.items())
    )
    return msgs


def apply_cap(requests: Iterable[Holding], max_cap: int) -> list[Holding]:
    """Scale requests down proportionally so their sum does not exceed ``max_cap``.

    Each scaled amount is rounded down. Requests whose sum is within the cap
    are returned unchanged.
    """
    requests = list(requests)
    total = sum(amount for _, amount in requests)
    if total <= max_cap:
        return requests
    return [(validator, amount * max_cap // total) for validator, amount in requests]


def adjust_slashings(
    current: Iterable[Holding],
    bond_requests: Mapping[str, int],
    tombstones: Iterable[str],
    jailing: Iterable[str],
    slash_ratio_tombstoning: Any,
    slash_ratio_jailing: Any,
) -> tuple[list[Holding], dict[str, int]]:
    """Apply slashing to the bonded amounts and to the pending bond requests.

    Tombstoning takes precedence over jailing. The slashed amount is removed
    from the bonded amount and from the request (never below zero), so that
    the slash does not turn into an unbond later. Returns the new bonded list
    and the new requests; the inputs are left untouched.
    """
    tombstoned = set(tombstones)
    jailed = set(jailing)
    requests = dict(bond_requests)
    adjusted: list[Holding] = []

    for validator, prev in current:
        if validator in tombstoned:
            ratio = slash_ratio_tombstoning
        elif validator in jailed:
            ratio = slash_ratio_jailing
        else:
            adjusted.append((validator, prev))
            continue
        slash_amount = mul_decimal(prev, ratio)
        adjusted.append((validator, prev - slash_amount))
        requests[validator] = max(requests.get(validator, 0) - slash_amount, 0)

    return adjusted, requests