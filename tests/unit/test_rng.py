"""Tests for the deterministic RNG.

Tests cover:
- Determinism (same seed -> same sequence)
- Seed derivation
- Weighted picks and their validation
- The weighted combat die
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from nemeths.utils.rng import (
    D20_FACE_WEIGHTS,
    D20_WEIGHTED_MODIFIERS,
    SeededRandom,
    d20_modifier,
    derive_seed,
)


class TestDeriveSeed:
    def test_stable(self):
        assert derive_seed(12345, "generation", 3) == derive_seed(12345, "generation", 3)

    def test_parts_change_the_seed(self):
        seeds = {derive_seed(12345, "generation", index) for index in range(50)}
        assert len(seeds) == 50

    def test_fits_in_64_bits(self):
        assert 0 <= derive_seed(1, "terrain", "plains") < 2**64


class TestSeededRandom:
    def test_same_seed_same_sequence(self):
        first = SeededRandom(42)
        second = SeededRandom(42)
        assert [first.random() for _ in range(20)] == [second.random() for _ in range(20)]

    def test_different_seeds_differ(self):
        assert [SeededRandom(1).random() for _ in range(5)] != [
            SeededRandom(2).random() for _ in range(5)
        ]

    @given(seed=st.integers(min_value=0, max_value=2**32), low=st.integers(-50, 50))
    def test_randint_inclusive_bounds(self, seed, low):
        rng = SeededRandom(seed)
        for _ in range(20):
            assert low <= rng.randint(low, low + 3) <= low + 3

    def test_randint_single_value(self):
        assert SeededRandom(7).randint(5, 5) == 5

    def test_randint_rejects_reversed_bounds(self):
        with pytest.raises(ValueError):
            SeededRandom(1).randint(6, 1)

    def test_pick_empty_raises(self):
        with pytest.raises(ValueError):
            SeededRandom(1).pick([])

    def test_chance_extremes(self):
        rng = SeededRandom(3)
        assert not any(rng.chance(0.0) for _ in range(100))
        assert all(rng.chance(1.0) for _ in range(100))

    def test_shuffle_is_permutation(self):
        items = list(range(30))
        shuffled = SeededRandom(9).shuffle(items)
        assert sorted(shuffled) == items
        assert items == list(range(30))
        assert shuffled == SeededRandom(9).shuffle(items)


class TestWeightedPick:
    @pytest.mark.parametrize(
        ("items", "weights"),
        [
            ([], []),
            (["a", "b"], [1.0]),
            (["a", "b"], [1.0, -0.5]),
            (["a", "b"], [0.0, 0.0]),
        ],
    )
    def test_invalid_input_raises(self, items, weights):
        with pytest.raises(ValueError):
            SeededRandom(1).weighted_pick(items, weights)

    @given(seed=st.integers(min_value=0, max_value=2**32))
    def test_zero_weight_never_chosen(self, seed):
        rng = SeededRandom(seed)
        for _ in range(25):
            assert rng.weighted_pick(["a", "b", "c"], [0.0, 1.0, 2.0]) != "a"

    @pytest.mark.parametrize("draw", [0.0, 0.999999])
    def test_zero_weight_skipped_at_draw_extremes(self, monkeypatch, draw):
        rng = SeededRandom(1)
        monkeypatch.setattr(rng._random, "random", lambda: draw)
        assert rng.weighted_pick(["zero", "one"], [0.0, 1.0]) == "one"
        assert rng.weighted_pick(["one", "zero"], [1.0, 0.0]) == "one"

    def test_distribution_follows_weights(self):
        rng = SeededRandom(2024)
        picks = [rng.weighted_pick(["rare", "common"], [1, 9]) for _ in range(5000)]
        share = picks.count("common") / len(picks)
        assert 0.87 < share < 0.93


class TestWeightedD20:
    def test_face_weights_sum_to_one(self):
        assert sum(D20_FACE_WEIGHTS) == pytest.approx(1.0)

    def test_roll_matches_modifier_table(self):
        rng = SeededRandom(77)
        for _ in range(200):
            roll = rng.weighted_d20()
            assert 1 <= roll.roll <= 20
            assert roll.modifier == D20_WEIGHTED_MODIFIERS[roll.roll]
            assert roll.is_critical == (roll.roll == 20)
            assert roll.is_fumble == (roll.roll == 1)

    @pytest.mark.parametrize(("roll", "modifier"), [(1, 50), (9, 100), (17, 125), (20, 150)])
    def test_modifier_lookup(self, roll, modifier):
        assert d20_modifier(roll) == modifier

    @pytest.mark.parametrize("roll", [0, 21, -3])
    def test_modifier_out_of_range(self, roll):
        with pytest.raises(ValueError):
            d20_modifier(roll)
