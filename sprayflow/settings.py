"""Settings model and persistence for SprayFlow.

Settings are a flat record stored as JSON under a single storage key:

    {"sprayflow-settings": {"interval": 5, "duration": 300,
                            "enabledCategories": [...],
                            "useVoice": true, "useBeep": false}}

``interval`` and ``duration`` are both whole seconds. The store is loaded once
at process start and rewritten on every change.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from .catalog import MOVEMENT_CATEGORIES, MovementCategory
from .platform_paths import ensure_dir, get_settings_path

logger = logging.getLogger(__name__)

STORAGE_KEY = "sprayflow-settings"

DEFAULT_INTERVAL_S = 5
DEFAULT_DURATION_S = 5 * 60

# Ranges offered by the controls; the core itself only requires positive values
INTERVAL_RANGE_S = (1, 10)
DURATION_RANGE_MIN = (1, 20)


class SettingsError(ValueError):
    """Settings cannot be used to start a session."""


def _ordered_categories(values: Iterable[MovementCategory]) -> tuple[MovementCategory, ...]:
    wanted = set(values)
    return tuple(c for c in MOVEMENT_CATEGORIES if c in wanted)


@dataclass(frozen=True)
class Settings:
    """
    User-facing session configuration.

    Attributes:
        interval: Seconds between cues
        duration: Session length in seconds
        enabled_categories: Categories cues are drawn from
        use_voice: Speak each movement name
        use_beep: Play a short tone with each cue
    """
    interval: int = DEFAULT_INTERVAL_S
    duration: int = DEFAULT_DURATION_S
    enabled_categories: tuple[MovementCategory, ...] = field(default=MOVEMENT_CATEGORIES)
    use_voice: bool = True
    use_beep: bool = False

    def __post_init__(self):
        try:
            categories = [MovementCategory(c) for c in self.enabled_categories]
        except ValueError as exc:
            raise SettingsError(f"unknown movement category: {exc}") from None
        # Normalize to catalog order without duplicates
        object.__setattr__(self, "enabled_categories", _ordered_categories(categories))

    @property
    def duration_minutes(self) -> float:
        return self.duration / 60.0

    def validate(self) -> tuple[bool, str]:
        """
        Check the settings can start a session.

        Returns:
            (is_valid, error_message)
        """
        if isinstance(self.interval, bool) or not isinstance(self.interval, int) or self.interval <= 0:
            return False, f"interval must be a positive whole number of seconds, got {self.interval!r}"
        if isinstance(self.duration, bool) or not isinstance(self.duration, int) or self.duration <= 0:
            return False, f"duration must be a positive whole number of seconds, got {self.duration!r}"
        if not self.enabled_categories:
            return False, "at least one movement category must be enabled"
        return True, ""

    def require_valid(self) -> None:
        """Raise :class:`SettingsError` unless :meth:`validate` passes."""
        is_valid, error = self.validate()
        if not is_valid:
            raise SettingsError(error)

    def with_category(self, category: MovementCategory, enabled: bool) -> Settings:
        current = set(self.enabled_categories)
        if enabled:
            current.add(category)
        else:
            current.discard(category)
        return replace(self, enabled_categories=_ordered_categories(current))

    def toggle_category(self, category: MovementCategory) -> Settings:
        return self.with_category(category, category not in self.enabled_categories)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the persisted record shape."""
        return {
            "interval": self.interval,
            "duration": self.duration,
            "enabledCategories": [c.value for c in self.enabled_categories],
            "useVoice": self.use_voice,
            "useBeep": self.use_beep,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Settings:
        """Deserialize a persisted record.

        Missing keys take defaults and unknown category names are dropped.
        """
        defaults = cls()
        stored = data.get("enabledCategories", [c.value for c in defaults.enabled_categories])
        if not isinstance(stored, (list, tuple)):
            logger.warning(f"[settings] enabledCategories must be a list, got {type(stored).__name__}; using defaults")
            stored = [c.value for c in defaults.enabled_categories]
        categories = []
        for raw in stored:
            try:
                categories.append(MovementCategory(raw))
            except ValueError:
                logger.warning(f"[settings] Ignoring unknown category: {raw!r}")
        return cls(
            interval=int(data.get("interval", defaults.interval)),
            duration=int(data.get("duration", defaults.duration)),
            enabled_categories=tuple(categories),
            use_voice=bool(data.get("useVoice", defaults.use_voice)),
            use_beep=bool(data.get("useBeep", defaults.use_beep)),
        )


class SettingsStore:
    """Loads and saves the persisted settings record.

    Args:
        path: JSON file to use. Defaults to ``settings.json`` in the per-user
            data directory.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else get_settings_path()
        self.current: Settings = Settings()

    def load(self) -> Settings:
        """Load settings, falling back to defaults when the file is unusable."""
        if not self.path.exists():
            logger.info(f"[settings] No saved settings at {self.path}, using defaults")
            self.current = Settings()
            return self.current

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document = json.load(f)
            record = document[STORAGE_KEY]
            if not isinstance(record, dict):
                raise TypeError(f"{STORAGE_KEY} must be an object")
            self.current = Settings.from_dict(record)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning(f"[settings] Could not read {self.path} ({exc}); using defaults")
            self.current = Settings()
            return self.current

        logger.info(f"[settings] Loaded settings from {self.path}")
        return self.current

    def save(self, settings: Optional[Settings] = None) -> Path:
        """Overwrite the stored record.

        Raises:
            OSError: If the file cannot be written
        """
        if settings is not None:
            self.current = settings
        ensure_dir(self.path.parent)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({STORAGE_KEY: self.current.to_dict()}, f, indent=2)
        logger.debug(f"[settings] Saved settings to {self.path}")
        return self.path

    def update(self, **changes: Any) -> Settings:
        """Apply field changes and persist immediately."""
        self.current = replace(self.current, **changes)
        self.save()
        return self.current

    def reset(self) -> Settings:
        self.current = Settings()
        self.save()
        return self.current
