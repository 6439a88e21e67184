"""Application layer: bootstrap and typed configuration.

Public exports include application bootstrap, context objects and the typed
sections of the application document.
"""

from .bootstrap import create_app, create_application, AppContext  # noqa: F401
from .config_store import (  # noqa: F401
    AppConfig,
    ProjectConfig,
    WindowConfig,
    WindowState,
    load_config,
    initialize_defaults,
    save_project,
    save_window_state,
)

__all__ = [
    "create_app",
    "create_application",
    "AppContext",
    "AppConfig",
    "ProjectConfig",
    "WindowConfig",
    "WindowState",
    "load_config",
    "initialize_defaults",
    "save_project",
    "save_window_state",
]
