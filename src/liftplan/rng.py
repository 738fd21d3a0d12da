"""
Deterministic random source threaded through every weighted choice.

Each generation call builds its own SeededRandom; nothing is shared between calls.
"""

import random
from typing import Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")


class SeededRandom:
    """Thin wrapper over random.Random that remembers its seed."""

    def __init__(self, seed: int):
        self.seed = seed
        self._random = random.Random(seed)

    def random(self) -> float:
        return self._random.random()

    def weighted_pick(self, items: Sequence[Tuple[T, float]]) -> Optional[T]:
        """
        Pick one item with probability proportional to its weight.

        Args:
            items: Ordered (item, weight) pairs

        Returns:
            The picked item, or None for an empty sequence. When every weight is
            non-positive the first item wins.
        """
        if not items:
            return None

        total = sum(weight for _, weight in items)
        if total <= 0:
            return items[0][0]

        roll = self.random() * total
        for item, weight in items:
            roll -= weight
            if roll <= 0:
                return item
        return items[-1][0]


def create_rng(seed: Optional[int] = None) -> SeededRandom:
    """Build a SeededRandom, drawing a fresh seed from the OS when none is given."""
    if seed is None:
        seed = random.SystemRandom().randrange(2 ** 31)
    return SeededRandom(seed)
