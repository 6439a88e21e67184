"""Global configuration and constants for the BaseProject shell."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Final

APP_NAME: Final = "BaseProject"
APP_DISPLAY_NAME: Final = "D4MetaManager"
APP_VERSION: Final = "0.1.0"
DOCS_URL: Final = "https://github.com/baseproject/baseshell#readme"


def _default_config_dir() -> str:
    # XDG on POSIX, APPDATA on Windows; keeps the lowercase folder name of the desktop app
    if os.name == "nt":
        base = os.environ.get("APPDATA") or str(Path.home() / "AppData" / "Roaming")
    else:
        base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return os.path.join(base, "baseproject")


CONFIG_DIR: Final = os.environ.get("BASESHELL_CONFIG_DIR", _default_config_dir())
CONFIG_FILENAME: Final = "BaseProject.config"

# Logging
LOG_FILENAME: Final = "baseproject.log"
LOG_MAX_BYTES: Final = 4_000_000
LOG_BACKUP_COUNT: Final = 5
LOG_LEVEL: Final = os.environ.get("BASESHELL_LOG_LEVEL", "DEBUG")
LOG_FORMAT: Final = "[%(asctime)s]:[%(levelname)s]: %(message)s"
LOG_DATEFMT: Final = "%Y-%m-%d %H:%M:%S"

# Layout persistence
LAYOUT_PERSIST_DELAY_MS: Final = 200
LAYOUT_SUM_TOLERANCE: Final = 1.0  # percentage points accepted on load

# Status bar
STATUS_CLOCK_INTERVAL_MS: Final = 1000

# Global shortcut bound to the "exit" action
EXIT_SHORTCUT: Final = "Ctrl+Q"
