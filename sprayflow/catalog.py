"""
Movement Catalog - Static training cues for spray wall warmups.

Every movement belongs to exactly one category. Categories double as the
filter key for cue selection and as the bucket key for session statistics.
The catalog is fixed at import time and never mutated.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable


class MovementCategory(str, Enum):
    """Closed set of movement groupings."""
    BODY_POSITIONS = "body-positions"
    FOOTWORK = "footwork"
    HAND_POSITIONS = "hand-positions"
    TRANSITIONS = "transitions"
    BALANCE = "balance"


# Display order used by summaries and the settings screen
MOVEMENT_CATEGORIES: tuple[MovementCategory, ...] = (
    MovementCategory.BODY_POSITIONS,
    MovementCategory.FOOTWORK,
    MovementCategory.HAND_POSITIONS,
    MovementCategory.TRANSITIONS,
    MovementCategory.BALANCE,
)

CATEGORY_LABELS: dict[MovementCategory, str] = {
    MovementCategory.BODY_POSITIONS: "Body Positions",
    MovementCategory.FOOTWORK: "Footwork",
    MovementCategory.HAND_POSITIONS: "Hand Positions",
    MovementCategory.TRANSITIONS: "Transitions",
    MovementCategory.BALANCE: "Balance",
}


@dataclass(frozen=True)
class Movement:
    """
    A single training cue.

    Attributes:
        id: Opaque identifier (unique within the catalog)
        name: Text shown and spoken to the climber
        category: Grouping used for filtering and statistics
    """
    id: str
    name: str
    category: MovementCategory

    def to_dict(self) -> dict[str, str]:
        """Serialize to JSON-compatible dict."""
        return {"id": self.id, "name": self.name, "category": self.category.value}

    @classmethod
    def from_dict(cls, data: dict[str, str]) -> Movement:
        """Deserialize from dict."""
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            category=MovementCategory(data["category"]),
        )


def _group(category: MovementCategory, first_id: int, names: Iterable[str]) -> list[Movement]:
    return [
        Movement(id=str(first_id + offset), name=name, category=category)
        for offset, name in enumerate(names)
    ]


MOVEMENTS: tuple[Movement, ...] = tuple(
    _group(MovementCategory.BODY_POSITIONS, 1, [
        "Drop-knee", "Backflag", "High-step", "Side-pull",
        "Gastón", "Mantle", "Undercling", "Layback",
    ])
    + _group(MovementCategory.FOOTWORK, 9, [
        "Toe hook", "Heel hook", "Knee bar", "Smear",
        "Pogo", "Flag", "Drop-knee foot", "Outside edge",
    ])
    + _group(MovementCategory.HAND_POSITIONS, 17, [
        "Crimp", "Open hand", "Pinch", "Sloper",
        "Mono", "Sidepull", "Gaston", "Mantle",
    ])
    + _group(MovementCategory.TRANSITIONS, 25, [
        "Cross-through", "Match", "Bump", "Deadpoint",
        "Dyno", "Cut loose", "Rock over", "Drop knee transition",
    ])
    + _group(MovementCategory.BALANCE, 33, [
        "Static balance", "Slow movement", "Controlled reach",
        "Precision foot", "Body tension", "Core engagement",
    ])
)

_BY_ID: dict[str, Movement] = {m.id: m for m in MOVEMENTS}


def all_movements() -> tuple[Movement, ...]:
    """Return the full catalog in definition order."""
    return MOVEMENTS


def categories() -> frozenset[MovementCategory]:
    """Return every category (always all five)."""
    return frozenset(MOVEMENT_CATEGORIES)


def movements_in(
    enabled: Iterable[MovementCategory],
    catalog: Iterable[Movement] = MOVEMENTS,
) -> tuple[Movement, ...]:
    """Filter *catalog* down to movements whose category is enabled."""
    wanted = frozenset(enabled)
    return tuple(m for m in catalog if m.category in wanted)


def get_movement(movement_id: str) -> Movement:
    """
    Look up a movement by id.

    Raises:
        KeyError: If no movement has that id
    """
    try:
        return _BY_ID[str(movement_id)]
    except KeyError:
        raise KeyError(f"Unknown movement id: {movement_id!r}") from None


def parse_category(text: str | MovementCategory) -> MovementCategory:
    """
    Resolve user input to a category.

    Accepts the wire value ("hand-positions"), the display label
    ("Hand Positions") or the enum name ("HAND_POSITIONS"), case-insensitive.

    Raises:
        ValueError: If the text does not name a category
    """
    if isinstance(text, MovementCategory):
        return text
    needle = str(text).strip().lower()
    for category in MOVEMENT_CATEGORIES:
        candidates = {
            category.value,
            category.name.lower(),
            CATEGORY_LABELS[category].lower(),
            category.name.lower().replace("_", "-"),
        }
        if needle in candidates:
            return category
    valid = ", ".join(c.value for c in MOVEMENT_CATEGORIES)
    raise ValueError(f"Unknown category {text!r} (expected one of: {valid})")
