"""Random selection of reviewers from a candidate list.

The randomness source is pluggable: production uses the operating system's
CSPRNG (random.SystemRandom), tests pass a seed for a reproducible PRNG or
substitute their own Selector.
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from typing import Sequence


class Selector(ABC):
    """Picks elements uniformly at random from a candidate list."""

    @abstractmethod
    def sample(self, candidates: Sequence[str], k: int) -> list[str]:
        """Return min(k, len(candidates)) distinct elements, without replacement."""

    def choose(self, candidates: Sequence[str]) -> str:
        """Return one element. Raises ValueError on an empty list."""
        if not candidates:
            raise ValueError("no candidates to choose from")
        return self.sample(candidates, 1)[0]


class RandomSelector(Selector):
    """Unbiased selection via a partial Fisher-Yates shuffle.

    Usage:
        selector = RandomSelector()              # system entropy
        selector = RandomSelector(seed="test")   # deterministic
        selector.sample(["u2", "u3", "u4"], 2)
    """

    def __init__(self, seed: int | str | None = None) -> None:
        if seed is None:
            self._rng: random.Random = random.SystemRandom()
        else:
            self._rng = random.Random(seed)

    def sample(self, candidates: Sequence[str], k: int) -> list[str]:
        if k < 0:
            raise ValueError(f"k must be non-negative, got {k}")
        pool = list(candidates)
        if len(pool) <= k:
            return pool
        # Only the first k positions need to be settled.
        for i in range(k):
            j = self._rng.randrange(i, len(pool))
            pool[i], pool[j] = pool[j], pool[i]
        return pool[:k]
