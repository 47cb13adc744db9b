"""Tests for the static movement catalog."""

import pytest

from ..catalog import (
    CATEGORY_LABELS,
    MOVEMENT_CATEGORIES,
    MOVEMENTS,
    Movement,
    MovementCategory,
    all_movements,
    categories,
    get_movement,
    movements_in,
    parse_category,
)


def test_catalog_size_and_unique_ids():
    assert len(MOVEMENTS) == 38
    ids = [m.id for m in MOVEMENTS]
    assert len(set(ids)) == len(ids)
    assert all_movements() is MOVEMENTS


def test_every_category_is_populated():
    counts = {c: sum(1 for m in MOVEMENTS if m.category is c) for c in MOVEMENT_CATEGORIES}
    assert counts == {
        MovementCategory.BODY_POSITIONS: 8,
        MovementCategory.FOOTWORK: 8,
        MovementCategory.HAND_POSITIONS: 8,
        MovementCategory.TRANSITIONS: 8,
        MovementCategory.BALANCE: 6,
    }
    assert categories() == frozenset(MovementCategory)
    assert set(CATEGORY_LABELS) == set(MovementCategory)


def test_same_name_in_two_categories_is_two_movements():
    mantles = [m for m in MOVEMENTS if m.name == "Mantle"]
    assert {m.category for m in mantles} == {MovementCategory.BODY_POSITIONS, MovementCategory.HAND_POSITIONS}
    assert mantles[0] != mantles[1]


def test_movements_in_filters_by_category():
    footwork = movements_in({MovementCategory.FOOTWORK})
    assert len(footwork) == 8
    assert all(m.category is MovementCategory.FOOTWORK for m in footwork)
    assert movements_in(set()) == ()


def test_get_movement():
    assert get_movement("1").name == "Drop-knee"
    assert get_movement("38").category is MovementCategory.BALANCE
    with pytest.raises(KeyError):
        get_movement("999")


def test_movement_dict_roundtrip():
    m = get_movement("17")
    data = m.to_dict()
    assert data == {"id": "17", "name": "Crimp", "category": "hand-positions"}
    assert Movement.from_dict(data) == m


@pytest.mark.parametrize("text", ["hand-positions", "Hand Positions", "HAND_POSITIONS", "  hand_positions "])
def test_parse_category_accepts_value_label_and_name(text):
    assert parse_category(text) is MovementCategory.HAND_POSITIONS


def test_parse_category_rejects_unknown():
    with pytest.raises(ValueError, match="Unknown category"):
        parse_category("campusing")
