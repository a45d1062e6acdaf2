"""Utility functions for reading the cnysa configuration files."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from cnysa.config.logging_config import get_logger

log = get_logger(__name__)

# Constants
SETTINGS_FILE = "settings.yaml"
LOCAL_CONFIG_FILES = ("cnysa.yaml", "cnysa.yml", "cnysa.json")


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def get_system_file_path(filename: str) -> Path:
    """Return the path to the configuration file for the current OS."""
    import platform

    os_name = platform.system()
    if os_name in {"Linux", "Darwin"}:
        return Path.home() / ".config" / "cnysa" / filename
    elif os_name == "Windows":
        appdata = os.getenv("APPDATA")
        if appdata is not None:
            return Path(appdata) / "cnysa" / filename
        return Path("data") / filename
    return Path("data") / filename


def find_local_config(cwd: Optional[Path] = None) -> Optional[Path]:
    """Return the first cnysa config file present in ``cwd``."""
    base = Path.cwd() if cwd is None else Path(cwd)
    for name in LOCAL_CONFIG_FILES:
        candidate = base / name
        if candidate.is_file():
            return candidate
    return None


# ---------------------------------------------------------------------------
# Settings helpers
# ---------------------------------------------------------------------------


def read_config_file(path: Path) -> Dict[str, Any]:
    """Parse one YAML (or JSON) config file.

    A missing, unreadable or malformed file yields an empty mapping; a broken
    config file must never stop the traced program.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        log.debug("Ignoring config file %s: %s", path, e)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        log.debug("Ignoring config file %s: expected a mapping, got %s", path, type(data).__name__)
        return {}
    return data


def load_settings(cwd: Optional[Path] = None, include_user: bool = True) -> Dict[str, Any]:
    """Load option defaults from the user settings file and the working directory.

    Values from the working directory config win over the user-level file.
    """
    settings: Dict[str, Any] = {}

    if include_user:
        user_file = get_system_file_path(SETTINGS_FILE)
        if user_file.is_file():
            settings.update(read_config_file(user_file))

    local_file = find_local_config(cwd)
    if local_file is not None:
        log.debug("Loading config from %s", local_file)
        settings.update(read_config_file(local_file))

    return settings
