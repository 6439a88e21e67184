"""Typed views over the application document.

``BaseProject.config`` holds one top-level object per concern::

    project_config  -> ProjectConfig  (name, filepath, remarks)
    window_config   -> WindowConfig   (title, min/max size)
    window_state    -> WindowState    (size, position, fullscreen, theme)
    layout          -> owned by LayoutController (see services.layout_store)

Design principles:
- Pure logic (no direct Qt import) so it can be unit-tested headless.
- Graceful fallback: missing, wrongly typed or unknown fields produce defaults
  instead of raising. Each field is merged independently.
- Small surface: ``load_config`` / ``save_project`` / ``save_window_state`` /
  ``initialize_defaults`` plus dataclasses.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Mapping, Type, TypeVar

from config import settings

from baseshell.services.store_manager import StoreManager

__all__ = [
    "ProjectConfig",
    "WindowConfig",
    "WindowState",
    "AppConfig",
    "load_config",
    "save_project",
    "save_window_state",
    "initialize_defaults",
    "PROJECT_KEY",
    "WINDOW_CONFIG_KEY",
    "WINDOW_STATE_KEY",
]

logger = logging.getLogger(__name__)

PROJECT_KEY = "project_config"
WINDOW_CONFIG_KEY = "window_config"
WINDOW_STATE_KEY = "window_state"

T = TypeVar("T")


def _merge(cls: Type[T], data: Any) -> T:
    """Build ``cls`` from ``data`` keeping defaults for absent or mistyped fields."""
    default = cls()
    if not isinstance(data, Mapping):
        if data is not None:
            logger.warning("%s: expected an object, got %s; using defaults", cls.__name__, type(data).__name__)
        return default
    values: Dict[str, Any] = {}
    for f in fields(cls):  # type: ignore[arg-type]
        if f.name not in data:
            continue
        fallback = getattr(default, f.name)
        raw = data[f.name]
        if isinstance(fallback, bool):
            ok = isinstance(raw, bool)
        elif isinstance(fallback, int):
            ok = isinstance(raw, int) and not isinstance(raw, bool)
        else:
            ok = isinstance(raw, type(fallback))
        if ok:
            values[f.name] = raw
        else:
            logger.warning("%s.%s has invalid value %r; using default", cls.__name__, f.name, raw)
    return cls(**values)


@dataclass(slots=True)
class ProjectConfig:
    name: str = ""
    filepath: str = ""
    remarks: str = ""

    @property
    def is_blank(self) -> bool:
        return not self.name.strip()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> "ProjectConfig":
        return _merge(cls, data)


@dataclass(slots=True)
class WindowConfig:
    title: str = settings.APP_DISPLAY_NAME
    min_width: int = 800
    min_height: int = 600
    max_width: int = 16777215
    max_height: int = 16777215

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> "WindowConfig":
        cfg = _merge(cls, data)
        if cfg.max_width < cfg.min_width or cfg.max_height < cfg.min_height:
            logger.warning("window_config max size below min size; ignoring max size")
            cfg.max_width = max(cfg.max_width, cfg.min_width)
            cfg.max_height = max(cfg.max_height, cfg.min_height)
        return cfg


@dataclass(slots=True)
class WindowState:
    width: int = 1280
    height: int = 800
    x: int = 100
    y: int = 100
    fullscreen: bool = False
    theme: str = "auto"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> "WindowState":
        return _merge(cls, data)


@dataclass(slots=True)
class AppConfig:
    """Snapshot of the typed sections loaded at startup."""

    project: ProjectConfig = field(default_factory=ProjectConfig)
    window: WindowConfig = field(default_factory=WindowConfig)
    state: WindowState = field(default_factory=WindowState)


def initialize_defaults(store: StoreManager) -> List[str]:
    """Write default sections for missing top-level keys; returns the keys written."""
    written: List[str] = []
    for key, cls in (
        (PROJECT_KEY, ProjectConfig),
        (WINDOW_CONFIG_KEY, WindowConfig),
        (WINDOW_STATE_KEY, WindowState),
    ):
        if not store.has(key):
            store.set(key, cls().to_dict())
            written.append(key)
    if written:
        logger.info("Initialized default config sections: %s", ", ".join(written))
        store.save()
    return written


def load_config(store: StoreManager) -> AppConfig:
    return AppConfig(
        project=ProjectConfig.from_dict(store.get(PROJECT_KEY)),
        window=WindowConfig.from_dict(store.get(WINDOW_CONFIG_KEY)),
        state=WindowState.from_dict(store.get(WINDOW_STATE_KEY)),
    )


def save_project(store: StoreManager, project: ProjectConfig) -> None:
    store.set(PROJECT_KEY, project.to_dict())
    store.save()


def save_window_state(store: StoreManager, state: WindowState) -> None:
    store.set(WINDOW_STATE_KEY, state.to_dict())
    store.save()
