"""Tests for engine.selector (RandomSelector, Selector.choose)."""

from collections import Counter

import pytest

from revassign.engine import RandomSelector


class TestRandomSelectorSample:
    """sample() returns distinct elements without replacement."""

    def test_returns_all_when_pool_not_larger_than_k(self) -> None:
        """Pools of size <= k are returned whole, in order."""
        selector = RandomSelector(seed=1)
        assert selector.sample(["u2", "u3"], 2) == ["u2", "u3"]
        assert selector.sample(["u2"], 2) == ["u2"]
        assert selector.sample([], 2) == []

    def test_takes_exactly_k_distinct(self) -> None:
        """Larger pools yield exactly k distinct members of the pool."""
        selector = RandomSelector(seed="abc")
        pool = ["u1", "u2", "u3", "u4", "u5"]
        for _ in range(50):
            picked = selector.sample(pool, 2)
            assert len(picked) == 2
            assert len(set(picked)) == 2
            assert set(picked) <= set(pool)

    def test_does_not_mutate_input(self) -> None:
        """The caller's list is left untouched."""
        pool = ["a", "b", "c", "d"]
        RandomSelector(seed=3).sample(pool, 2)
        assert pool == ["a", "b", "c", "d"]

    def test_same_seed_same_result(self) -> None:
        """Seeded selectors are reproducible."""
        pool = [f"u{i}" for i in range(10)]
        assert RandomSelector(seed=42).sample(pool, 2) == RandomSelector(seed=42).sample(pool, 2)

    def test_negative_k_rejected(self) -> None:
        """Negative k is a ValueError."""
        with pytest.raises(ValueError):
            RandomSelector().sample(["a"], -1)

    def test_every_candidate_can_be_picked(self) -> None:
        """Over many draws each candidate appears; no fixed ordering preference."""
        selector = RandomSelector(seed=7)
        counts: Counter[str] = Counter()
        for _ in range(600):
            counts.update(selector.sample(["u2", "u3", "u4"], 2))
        assert set(counts) == {"u2", "u3", "u4"}
        # 400 picks each in expectation
        assert all(300 < c < 500 for c in counts.values())

    def test_system_random_by_default(self) -> None:
        """Without a seed the OS CSPRNG is used."""
        import random

        assert isinstance(RandomSelector()._rng, random.SystemRandom)


class TestChoose:
    """choose() picks one element."""

    def test_choose_returns_member(self) -> None:
        """choose() returns an element of the pool."""
        assert RandomSelector(seed=5).choose(["x", "y", "z"]) in {"x", "y", "z"}

    def test_choose_single(self) -> None:
        """A single candidate is always chosen."""
        assert RandomSelector().choose(["only"]) == "only"

    def test_choose_empty_raises(self) -> None:
        """choose() on an empty pool is a ValueError."""
        with pytest.raises(ValueError, match="no candidates"):
            RandomSelector().choose([])
