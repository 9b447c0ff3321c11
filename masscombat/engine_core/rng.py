"""
Dice sources for combat rolls.

Every roll is derived from battle data (seed, round, side, card instance)
rather than from a shared generator, so resolving the same state twice
gives the same rolls and a replayed action log reproduces a battle.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Iterable
import hashlib
import random


def roll_key(seed: int, round_number: int, side_id: str, instance_id: str, salt: str = "") -> str:
    """Build the string a roll is derived from."""
    key = f"{seed}:{round_number}:{side_id}:{instance_id}"
    return f"{key}:{salt}" if salt else key


def _key_to_int(key: str) -> int:
    digest = hashlib.sha256(key.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big", signed=False)


class DiceSource(ABC):
    """Source of integer rolls in an inclusive range."""

    @abstractmethod
    def roll(self, low: int, high: int, key: str) -> int:
        """Roll an integer in [low, high] for the given key."""


class SeededDice(DiceSource):
    """Derives each roll from SHA-256 of its key. Stateless."""

    def roll(self, low: int, high: int, key: str) -> int:
        if low > high:
            raise ValueError(f"Invalid roll range [{low}, {high}]")
        return random.Random(_key_to_int(key)).randint(low, high)


class FixedDice(DiceSource):
    """
    Returns queued values, then a fallback. For tests.

    Values outside [low, high] are clamped into the range.
    """

    def __init__(self, values: Iterable[int] = (), default: int | None = None):
        self._values = list(values)
        self.default = default
        self.rolled: list[tuple[str, int]] = []

    def roll(self, low: int, high: int, key: str) -> int:
        if self._values:
            value = self._values.pop(0)
        elif self.default is not None:
            value = self.default
        else:
            value = low
        value = max(low, min(high, value))
        self.rolled.append((key, value))
        return value
