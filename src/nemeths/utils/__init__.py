"""Utility helpers for the Nemeths simulator."""

from nemeths.utils.grid import chebyshev_distance, manhattan_distance, neighbors4, neighbors8
from nemeths.utils.rng import SeededRandom, WeightedRoll, derive_seed

__all__ = [
    "SeededRandom",
    "WeightedRoll",
    "chebyshev_distance",
    "derive_seed",
    "manhattan_distance",
    "neighbors4",
    "neighbors8",
]
