"""Platform-specific paths.

Keeps user data (settings, logs) in a persistent per-user folder.
``SPRAYFLOW_DATA_DIR`` overrides the location (tests point it at a temp dir).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

APP_NAME = "SprayFlow"
DATA_DIR_ENV = "SPRAYFLOW_DATA_DIR"


def is_windows() -> bool:
    return os.name == "nt"


def get_user_data_dir(app_name: str = APP_NAME) -> Path:
    """Return a persistent per-user data directory.

    Windows: %APPDATA%\\SprayFlow
    Other: ~/.sprayflow
    """
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override).expanduser()

    if is_windows():
        base = os.getenv("APPDATA")
        if base:
            return Path(base) / app_name
        return Path.home() / "AppData" / "Roaming" / app_name

    return Path.home() / f".{app_name.lower()}"


def get_settings_path(app_name: str = APP_NAME) -> Path:
    return get_user_data_dir(app_name) / "settings.json"


def ensure_dir(path: Path) -> Path:
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path
