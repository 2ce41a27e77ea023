"""Config file location."""

from __future__ import annotations

import os
import sys
from pathlib import Path

APP_DIR_NAME = "releasehook"


def get_config_dir() -> Path:
    """Directory holding ``config.yaml``; ``RELEASEHOOK_CONFIG_DIR`` wins."""
    override = os.environ.get("RELEASEHOOK_CONFIG_DIR")
    if override:
        return Path(override)

    if sys.platform == "win32":
        return Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming")) / APP_DIR_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIR_NAME
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / APP_DIR_NAME
