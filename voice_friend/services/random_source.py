"""
Uniform index selection, injectable so callers can make choices repeatable.
"""

import random
from typing import Optional, Protocol


class RandomSource(Protocol):
    def pick(self, n: int) -> int:
        """Return an index in ``range(n)``. ``n`` is always positive."""
        ...


class SystemRandomSource:
    """Default source backed by :class:`random.Random`."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def pick(self, n: int) -> int:
        return self._rng.randrange(n)
