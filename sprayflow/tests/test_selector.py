"""Tests for uniform movement selection."""

import random
from collections import Counter

from ..catalog import MOVEMENTS, Movement, MovementCategory
from ..engine.selector import MovementSelector, pick


def test_pick_only_returns_enabled_categories():
    enabled = {MovementCategory.FOOTWORK, MovementCategory.BALANCE}
    rng = random.Random(3)
    for _ in range(500):
        movement = pick(MOVEMENTS, enabled, rng)
        assert movement is not None
        assert movement.category in enabled


def test_pick_returns_none_when_nothing_eligible():
    assert pick(MOVEMENTS, set()) is None
    assert pick((), {MovementCategory.FOOTWORK}) is None


def test_pick_single_eligible_movement_always_returned():
    only = Movement("x", "Heel hook", MovementCategory.FOOTWORK)
    catalog = (only, Movement("y", "Crimp", MovementCategory.HAND_POSITIONS))
    rng = random.Random(0)
    assert all(pick(catalog, {MovementCategory.FOOTWORK}, rng) is only for _ in range(20))


def test_pick_is_uniform_over_movements_not_categories():
    # Balance has 6 movements, footwork has 8: each movement should be ~1/14
    enabled = {MovementCategory.FOOTWORK, MovementCategory.BALANCE}
    rng = random.Random(1234)
    draws = 14000
    counts = Counter(pick(MOVEMENTS, enabled, rng).id for _ in range(draws))
    assert len(counts) == 14
    expected = draws / 14
    for count in counts.values():
        assert abs(count - expected) < expected * 0.15

    balance_share = sum(c for mid, c in counts.items() if int(mid) >= 33) / draws
    assert abs(balance_share - 6 / 14) < 0.03


def test_selector_seed_is_reproducible():
    enabled = set(MovementCategory)
    a = MovementSelector(seed=42)
    b = MovementSelector(seed=42)
    assert [a.pick(enabled) for _ in range(25)] == [b.pick(enabled) for _ in range(25)]
    assert a.pick_count == 25


def test_selector_reseed_restarts_sequence():
    enabled = set(MovementCategory)
    selector = MovementSelector(seed=7)
    first = [selector.pick(enabled) for _ in range(10)]
    assert selector.reseed(7) == 7
    assert selector.pick_count == 0
    assert [selector.pick(enabled) for _ in range(10)] == first


def test_selector_generates_seed_when_missing():
    selector = MovementSelector()
    assert isinstance(selector.seed, int)
    assert "seed=" in repr(selector)


def test_selector_empty_pick_does_not_count():
    selector = MovementSelector(seed=1)
    assert selector.pick(set()) is None
    assert selector.pick_count == 0
