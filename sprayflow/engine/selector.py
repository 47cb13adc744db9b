"""
Uniform random movement selection restricted to enabled categories.

Every eligible movement is equally likely on every call. Selections are
independent, so back-to-back repeats are allowed on purpose; the climber
should not be able to predict the next cue from the previous one.
"""

from __future__ import annotations

import random
from typing import Iterable, Optional

from ..catalog import MOVEMENTS, Movement, MovementCategory, movements_in


def pick(
    catalog: Iterable[Movement],
    enabled_categories: Iterable[MovementCategory],
    rng: Optional[random.Random] = None,
) -> Optional[Movement]:
    """
    Pick one movement uniformly among those in *enabled_categories*.

    Args:
        catalog: Movements to choose from
        enabled_categories: Categories currently switched on
        rng: Randomness source (module-level ``random`` when omitted)

    Returns:
        The chosen movement, or None when no movement is eligible
    """
    eligible = movements_in(enabled_categories, catalog)
    if not eligible:
        return None
    source = rng if rng is not None else random
    return eligible[source.randrange(len(eligible))]


class MovementSelector:
    """
    Seedable wrapper around :func:`pick`.

    Example:
        selector = MovementSelector(seed=42)  # Reproducible
        movement = selector.pick({MovementCategory.FOOTWORK})

    Args:
        catalog: Movements to choose from (default: full catalog)
        seed: Seed for a private ``random.Random`` (random seed when omitted)
        rng: Pre-built generator; takes precedence over ``seed``
    """

    def __init__(
        self,
        catalog: Iterable[Movement] = MOVEMENTS,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ):
        self.catalog: tuple[Movement, ...] = tuple(catalog)
        if rng is not None:
            self._seed: Optional[int] = seed
            self._random = rng
        else:
            self._seed = seed if seed is not None else random.randint(0, 2**32 - 1)
            self._random = random.Random(self._seed)
        self.pick_count = 0

    @property
    def seed(self) -> Optional[int]:
        return self._seed

    def reseed(self, seed: Optional[int] = None) -> int:
        self._seed = seed if seed is not None else random.randint(0, 2**32 - 1)
        self._random.seed(self._seed)
        self.pick_count = 0
        return self._seed

    def pick(self, enabled_categories: Iterable[MovementCategory]) -> Optional[Movement]:
        movement = pick(self.catalog, enabled_categories, self._random)
        if movement is not None:
            self.pick_count += 1
        return movement

    def __repr__(self) -> str:
        return (
            f"MovementSelector(catalog_size={len(self.catalog)}, "
            f"seed={self._seed}, pick_count={self.pick_count})"
        )
