"""Bookkeeping for withdrawing staking rewards and batching them per validator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .core import SubMsg, WithdrawDelegatorReward
from .errors import NotFound

REPLY_REWARDS_ID = 1


@dataclass(frozen=True, order=True)
class RewardInfo:
    """A reward amount earned by one validator."""

    validator: str
    reward: int


@dataclass
class RewardsBatch:
    """Rewards collected so far in one withdrawal round, and their total."""

    rewards: list[RewardInfo] = field(default_factory=list)
    total: int = 0

    def wipe(self) -> None:
        """Empty the batch."""
        self.rewards = []
        self.total = 0


class RewardTargets:
    """Queue of validators whose withdrawal replies are still expected.

    The queue is stored reversed, so the next target is taken off the end.
    """

    def __init__(self) -> None:
        self._targets: list[str] | None = None

    def set(self, targets: Iterable[str]) -> None:
        self._targets = list(targets)

    def pop(self) -> tuple[str, bool]:
        """Take the next target; the flag tells whether the queue is now empty."""
        if not self._targets:
            raise NotFound("RewardTargets")
        target = self._targets.pop()
        return target, not self._targets

    def __len__(self) -> int:
        return len(self._targets or [])


def withdraw_reward_msgs(
    targets: RewardTargets, bonded: Iterable[tuple[str, int]]
) -> list[SubMsg]:
    """Withdraw messages for every bonded validator, queueing each as a reply target."""
    validators = [validator for validator, _ in bonded]
    targets.set(reversed(validators))
    return [
        SubMsg.reply_always(WithdrawDelegatorReward(validator), REPLY_REWARDS_ID)
        for validator in validators
    ]