"""Application bootstrap utilities for the shell.

Responsibilities:
 - Optional headless bootstrap (tests run without a QApplication)
 - Logging configuration and global error hooks
 - Opening the application document and initializing missing sections
 - Registering core services in the service locator
 - Single-instance guard (PID lock file, stale locks reclaimed via psutil)

Services are registered under ``ServiceKey`` names. ``SHORTCUTS`` is registered
by the main window because its facility needs a parent widget. The async store
and the error hooks carry shutdown hooks, run by ``services.shutdown()`` on exit.
"""

from __future__ import annotations

import logging
import os
import sys
import tempfile
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Optional

import psutil
from PyQt6.QtWidgets import QApplication

from config import settings

from baseshell.app.config_store import (
    AppConfig,
    WINDOW_STATE_KEY,
    initialize_defaults,
    load_config,
)
from baseshell.services.action_registry import ActionRegistry
from baseshell.services.error_handling_service import ErrorHandlingService
from baseshell.services.errors import PersistenceReadError
from baseshell.services.event_bus import EventBus
from baseshell.services.logging_service import configure_logging, get_logging_service
from baseshell.services.service_locator import ServiceKey, ServiceLocator, services
from baseshell.services.store_manager import AsyncStore, StoreManager
from baseshell.services.theme_service import ThemeService

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Container with references created during bootstrap.

    Attributes
    ----------
    qt_app: The underlying QApplication instance (None if headless)
    headless: Whether headless bootstrap was used
    config_dir: Directory holding the application document and log file
    store: Synchronous application document
    async_store: UI-facing asynchronous wrapper around ``store``
    app_config: Typed sections loaded at startup
    services: Global service locator (post-initialization state)
    started_at: Monotonic timestamp when bootstrap started
    duration_s: Total elapsed seconds for bootstrap
    metadata: Free-form dict (single-instance result, initialized sections)
    """

    qt_app: Optional[Any]
    headless: bool
    config_dir: Path
    store: StoreManager
    async_store: AsyncStore
    app_config: AppConfig
    services: ServiceLocator
    started_at: float
    duration_s: float
    metadata: dict[str, Any] = field(default_factory=dict)


def create_app(
    *,
    headless: bool = False,
    config_dir: str | os.PathLike | None = None,
    configure_log: bool = True,
) -> AppContext:
    """Create and initialize the application context.

    Parameters
    ----------
    headless: Skip QApplication creation (unit tests, tooling).
    config_dir: Directory for ``BaseProject.config`` and the log file.
    configure_log: Install stdout + rotating file handlers on the root logger.
    """
    started = time.perf_counter()
    cfg_dir = Path(config_dir) if config_dir else Path(settings.CONFIG_DIR)

    qt_app = None
    if not headless:
        qt_app = QApplication.instance() or QApplication(sys.argv[:1])
        qt_app.setApplicationName(settings.APP_NAME)
        qt_app.setApplicationDisplayName(settings.APP_DISPLAY_NAME)
        qt_app.setApplicationVersion(settings.APP_VERSION)

    if configure_log:
        configure_logging(str(cfg_dir))
    logger.info("Starting %s %s", settings.APP_DISPLAY_NAME, settings.APP_VERSION)

    bus = EventBus()
    # Always provide a fresh EventBus each bootstrap (test isolation)
    services.register(ServiceKey.EVENT_BUS, bus, allow_override=True)

    log_svc = get_logging_service()
    log_svc.attach_root()
    error_svc = ErrorHandlingService(event_bus=bus)
    error_svc.install()

    store = StoreManager(cfg_dir / settings.CONFIG_FILENAME)
    try:
        store.reload()
    except PersistenceReadError as exc:
        logger.warning("Config document unreadable, starting with defaults: %s", exc)
    initialized = []
    try:
        initialized = initialize_defaults(store)
    except Exception as exc:  # noqa: BLE001 - persistence is best-effort
        logger.warning("Default config sections could not be saved: %s", exc)
    app_config = load_config(store)
    async_store = AsyncStore(store, parent=qt_app)

    def _persist_theme(variant: str) -> None:
        async_store.set(f"{WINDOW_STATE_KEY}.theme", variant)

    theme = ThemeService(variant=app_config.state.theme, persist=_persist_theme)

    def _drain_store() -> None:
        if not async_store.shutdown(2000):
            logger.warning("Pending store writes did not finish before exit")

    for key, value, hook in [
        (ServiceKey.STORE, store, None),
        (ServiceKey.ASYNC_STORE, async_store, _drain_store),
        (ServiceKey.APP_CONFIG, app_config, None),
        (ServiceKey.LOGGING, log_svc, None),
        (ServiceKey.ERRORS, error_svc, error_svc.uninstall),
        (ServiceKey.ACTIONS, ActionRegistry(event_bus=bus), None),
        (ServiceKey.THEME, theme, None),
    ]:
        services.register(key, value, allow_override=True, origin="bootstrap", on_shutdown=hook)

    if qt_app is not None:
        theme.apply(qt_app)

    duration = time.perf_counter() - started
    logger.debug("Bootstrap finished in %.1f ms", duration * 1000.0)
    return AppContext(
        qt_app=qt_app,
        headless=headless,
        config_dir=cfg_dir,
        store=store,
        async_store=async_store,
        app_config=app_config,
        services=services,
        started_at=started,
        duration_s=duration,
        metadata={"initialized_sections": initialized},
    )


# --------------------------------------------------------------------------------------
# Single-instance guard (file lock) utilities
# --------------------------------------------------------------------------------------

_LOCK_NAME = "baseproject.lock"
_LOCK_FD: int | None = None
_LOCK_PATH: str | None = None


def _default_lock_path(name: str = _LOCK_NAME) -> str:
    return os.path.join(tempfile.gettempdir(), name)


def _pid_alive(pid: int) -> bool:
    try:
        return psutil.pid_exists(pid)
    except (psutil.Error, OSError):  # pragma: no cover - best effort
        return True


def acquire_single_instance(
    lock_name: str = _LOCK_NAME, *, force_reclaim_stale: bool = True
) -> bool:
    """Attempt to acquire a coarse single-instance file lock.

    Returns True if this process acquired the lock, False if another live
    instance holds it. A lock whose PID no longer exists is reclaimed.
    """
    global _LOCK_FD, _LOCK_PATH
    if _LOCK_FD is not None:
        return True
    path = _default_lock_path(lock_name)
    flags = os.O_CREAT | os.O_EXCL | os.O_RDWR
    try:
        fd = os.open(path, flags, 0o644)
    except FileExistsError:
        try:
            with open(path, "r", encoding="utf-8") as f:
                contents = f.read().strip()
            stale_pid = int(contents) if contents.isdigit() else None
        except OSError:
            stale_pid = None
        if stale_pid is None or _pid_alive(stale_pid) or not force_reclaim_stale:
            return False
        logger.info("Reclaiming stale instance lock of pid %s", stale_pid)
        try:
            os.unlink(path)
            fd = os.open(path, flags, 0o644)
        except OSError:  # pragma: no cover - race or permission
            return False
    except OSError as exc:  # pragma: no cover - do not block startup on odd filesystems
        logger.warning("Instance lock unavailable (%s); continuing", exc)
        return True
    os.write(fd, str(os.getpid()).encode("utf-8"))
    _LOCK_FD = fd
    _LOCK_PATH = path
    return True


def release_single_instance() -> None:
    global _LOCK_FD, _LOCK_PATH
    if _LOCK_FD is None:
        return
    try:
        os.close(_LOCK_FD)
        if _LOCK_PATH and os.path.exists(_LOCK_PATH):
            os.unlink(_LOCK_PATH)
    except OSError as exc:  # pragma: no cover
        logger.debug("Instance lock cleanup failed: %s", exc)
    finally:
        _LOCK_FD = None
        _LOCK_PATH = None


@contextmanager
def single_instance(lock_name: str = _LOCK_NAME) -> Iterator[bool]:
    """Yields True if the lock was acquired; releases it on exit."""
    acquired = acquire_single_instance(lock_name)
    try:
        yield acquired
    finally:
        if acquired:
            release_single_instance()


def create_application(*, config_dir: str | os.PathLike | None = None) -> AppContext:
    """High-level wrapper for GUI launches.

    Creates the (non-headless) context and records in
    ``metadata["single_instance_acquired"]`` whether this is the only
    running instance.
    """
    ctx = create_app(headless=False, config_dir=config_dir)
    acquired = acquire_single_instance()
    ctx.metadata["single_instance_acquired"] = acquired
    if not acquired:
        logger.warning("Another %s instance is already running", settings.APP_DISPLAY_NAME)
    return ctx


__all__ = [
    "AppContext",
    "create_app",
    "create_application",
    "single_instance",
    "acquire_single_instance",
    "release_single_instance",
]
