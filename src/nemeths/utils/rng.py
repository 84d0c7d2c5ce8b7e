"""Deterministic random number generation for Nemeths simulations.

Every source of randomness in a generation flows through one
:class:`SeededRandom` instance that is passed explicitly to the map
generator, combat resolution, agents and the scheduler.  Seeding the
instance with the same integer and issuing the same sequence of calls
reproduces the same generation exactly, which is what balance testing
across thousands of generations relies on.

Examples:
    >>> rng = SeededRandom(12345)
    >>> rng.randint(1, 6)  # doctest: +SKIP
    4
    >>> rng.weighted_d20()  # doctest: +SKIP
    WeightedRoll(roll=11, modifier=100)

    >>> derive_seed(12345, "generation", 3)  # doctest: +SKIP
    1572207328195487521
"""

from __future__ import annotations

import hashlib
import random
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")

# Face -> effectiveness percentage applied to a side's strength.
D20_WEIGHTED_MODIFIERS: dict[int, int] = {
    1: 50,
    2: 70,
    3: 70,
    4: 70,
    5: 85,
    6: 85,
    7: 85,
    8: 85,
    9: 100,
    10: 100,
    11: 100,
    12: 100,
    13: 110,
    14: 110,
    15: 110,
    16: 110,
    17: 125,
    18: 125,
    19: 125,
    20: 150,
}

# Probability of each face on the weighted die; sums to 1.0.
D20_FACE_WEIGHTS: tuple[float, ...] = (
    0.05,
    0.025,
    0.025,
    0.025,
    0.0375,
    0.0375,
    0.0375,
    0.0375,
    0.10,
    0.10,
    0.10,
    0.10,
    0.05,
    0.05,
    0.05,
    0.05,
    0.025,
    0.025,
    0.025,
    0.05,
)

_D20_FACES: tuple[int, ...] = tuple(range(1, 21))


@dataclass(frozen=True, slots=True)
class WeightedRoll:
    """Raw face of a weighted d20 and the percentage modifier it maps to."""

    roll: int
    modifier: int

    @property
    def is_critical(self) -> bool:
        return self.roll == 20

    @property
    def is_fumble(self) -> bool:
        return self.roll == 1


def _seed_to_int(seed: str) -> int:
    """Convert a seed string to a stable 64-bit integer.

    Args:
        seed: Seed string

    Returns:
        64-bit integer derived from SHA-256(seed)
    """
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big", signed=False)


def derive_seed(seed: int, *parts: object) -> int:
    """Derive an independent 64-bit seed from a base seed and context parts.

    Used to give each generation of a batch, and each noise layer of a map,
    its own stream without sharing state between them.

    Args:
        seed: Base integer seed
        *parts: Context values appended to the seed (e.g. "generation", 7)

    Returns:
        Stable 64-bit integer

    Examples:
        >>> derive_seed(1, "generation", 0) == derive_seed(1, "generation", 0)
        True
        >>> derive_seed(1, "generation", 0) == derive_seed(1, "generation", 1)
        False
    """
    key = ":".join(str(part) for part in (seed, *parts))
    return _seed_to_int(key)


def d20_modifier(roll: int) -> int:
    """Return the effectiveness percentage for a weighted d20 face.

    Raises:
        ValueError: If roll is not between 1 and 20
    """
    try:
        return D20_WEIGHTED_MODIFIERS[roll]
    except KeyError:
        raise ValueError(f"d20 roll must be between 1 and 20, got {roll}") from None


class SeededRandom:
    """Seeded pseudo-random source shared by one generation."""

    def __init__(self, seed: int) -> None:
        self.seed = seed
        self._random = random.Random(seed)

    def random(self) -> float:
        """Uniform float in [0, 1)."""

        return self._random.random()

    def randint(self, min_value: int, max_value: int) -> int:
        """Uniform integer in [min_value, max_value].

        Raises:
            ValueError: If min_value is greater than max_value
        """
        if min_value > max_value:
            raise ValueError(f"min_value {min_value} exceeds max_value {max_value}")
        return min_value + int(self._random.random() * (max_value - min_value + 1))

    def pick(self, items: Sequence[T]) -> T:
        """Fair pick from a non-empty sequence.

        Raises:
            ValueError: If items is empty
        """
        if not items:
            raise ValueError("Cannot pick from an empty sequence")
        return items[self.randint(0, len(items) - 1)]

    def weighted_pick(self, items: Sequence[T], weights: Sequence[float]) -> T:
        """Pick an item with probability proportional to its weight.

        Args:
            items: Candidate items
            weights: Non-negative weights, parallel to items

        Returns:
            The selected item

        Raises:
            ValueError: If the sequences are empty or differ in length, a weight
                is negative, or every weight is zero
        """
        if not items:
            raise ValueError("Cannot pick from an empty sequence")
        if len(items) != len(weights):
            raise ValueError(
                f"items and weights differ in length ({len(items)} != {len(weights)})"
            )
        if any(weight < 0 for weight in weights):
            raise ValueError(f"Weights must be non-negative, got {list(weights)}")
        total = sum(weights)
        if total <= 0:
            raise ValueError("At least one weight must be positive")

        remaining = self._random.random() * total
        for item, weight in zip(items, weights):
            if weight == 0:
                continue
            remaining -= weight
            if remaining <= 0:
                return item
        # Floating point drift can leave a sliver; fall back to the last
        # item that actually carries weight.
        for item, weight in zip(reversed(items), reversed(weights)):
            if weight > 0:
                return item
        raise AssertionError("unreachable")  # pragma: no cover

    def chance(self, probability: float) -> bool:
        """Return True with the given probability."""

        return self._random.random() < probability

    def d20(self) -> int:
        """Conventional fair 1-20 die."""

        return self.randint(1, 20)

    def weighted_d20(self) -> WeightedRoll:
        """Roll the weighted combat die and look up its modifier."""

        roll = self.weighted_pick(_D20_FACES, D20_FACE_WEIGHTS)
        return WeightedRoll(roll=roll, modifier=D20_WEIGHTED_MODIFIERS[roll])

    def shuffle(self, items: Sequence[T]) -> list[T]:
        """Return a shuffled copy using a Fisher-Yates pass from the end."""

        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = self.randint(0, i)
            result[i], result[j] = result[j], result[i]
        return result
