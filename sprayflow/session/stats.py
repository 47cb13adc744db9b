"""
Session statistics - per-category cue counts for the summary screen.

Stats are immutable snapshots. ``record_cue`` returns a new instance, so a
reference handed to the presentation layer never changes underneath it.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple

from ..catalog import CATEGORY_LABELS, MOVEMENT_CATEGORIES, Movement, MovementCategory


def _zero_counts() -> Mapping[MovementCategory, int]:
    return MappingProxyType({category: 0 for category in MOVEMENT_CATEGORIES})


@dataclass(frozen=True)
class SessionStats:
    """
    Cue totals for one session.

    Attributes:
        total_cues: Number of cues emitted so far
        category_counts: Read-only cue count per category (all five always present)
        movements: Emitted movements, oldest first
    """
    total_cues: int = 0
    category_counts: Mapping[MovementCategory, int] = field(default_factory=_zero_counts)
    movements: Tuple[Movement, ...] = ()

    def __post_init__(self):
        # Private copy behind a read-only view: callers cannot alter the counts
        object.__setattr__(self, "category_counts", MappingProxyType(dict(self.category_counts)))

    @classmethod
    def empty(cls) -> SessionStats:
        return cls()

    def is_consistent(self) -> bool:
        """True when total, per-category sum and movement list agree."""
        return self.total_cues == sum(self.category_counts.values()) == len(self.movements)

    def category_share(self, category: MovementCategory) -> float:
        """Fraction of cues that fell in *category* (0.0 for an empty session)."""
        if self.total_cues == 0:
            return 0.0
        return self.category_counts.get(category, 0) / self.total_cues

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "totalCues": self.total_cues,
            "categoryCounts": {c.value: self.category_counts.get(c, 0) for c in MOVEMENT_CATEGORIES},
            "movements": [m.to_dict() for m in self.movements],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SessionStats:
        """Deserialize from dict, rebuilding counts from the movement list."""
        stats = cls.empty()
        for entry in data.get("movements", []):
            stats = record_cue(stats, Movement.from_dict(entry))
        if stats.total_cues != int(data.get("totalCues", stats.total_cues)):
            raise ValueError(
                f"totalCues={data.get('totalCues')} does not match "
                f"{stats.total_cues} recorded movements"
            )
        return stats

    def format_summary(self) -> list[str]:
        """Return human-readable summary lines."""
        lines = [f"{self.total_cues} cues completed", "", "By Category:"]
        width = max(len(label) for label in CATEGORY_LABELS.values())
        for category in MOVEMENT_CATEGORIES:
            count = self.category_counts.get(category, 0)
            share = self.category_share(category) * 100.0
            lines.append(f"  {CATEGORY_LABELS[category]:<{width}}  {count:>3}  ({share:4.1f}%)")
        return lines


def record_cue(stats: SessionStats, movement: Movement) -> SessionStats:
    """Return *stats* with one more cue for *movement*."""
    counts = dict(stats.category_counts)
    counts[movement.category] = counts.get(movement.category, 0) + 1
    return SessionStats(
        total_cues=stats.total_cues + 1,
        category_counts=counts,
        movements=stats.movements + (movement,),
    )


def format_time(seconds: int) -> str:
    """Format a countdown as ``m:ss``."""
    seconds = max(0, int(seconds))
    mins, secs = divmod(seconds, 60)
    return f"{mins}:{secs:02d}"
