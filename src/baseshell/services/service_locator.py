"""Process-wide service registry for the shell.

The shell's singletons are registered during bootstrap under the names in
``ServiceKey`` and looked up by the widgets and controllers created later.
Plain string keys still work for anything outside that set.

A service may carry an ``on_shutdown`` hook. ``shutdown()`` runs the hooks
newest first, so the main window's registrations go down before the store
that they write through. Every hook runs once even if an earlier one fails.

Usage pattern:
    from baseshell.services.service_locator import ServiceKey, services
    services.register(ServiceKey.ASYNC_STORE, store, on_shutdown=store.shutdown)
    bus = services.get(ServiceKey.EVENT_BUS)

In tests:
    with services.override_context(event_bus=FakeBus()):
        ...
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from threading import RLock
from typing import Any, Callable, Dict, Generator, Iterable, List, Type, TypeVar, Union

T = TypeVar("T")

__all__ = [
    "ServiceKey",
    "ServiceLocator",
    "services",
    "ServiceAlreadyRegisteredError",
    "ServiceNotFoundError",
]

logger = logging.getLogger(__name__)


class ServiceKey(str, Enum):
    EVENT_BUS = "event_bus"
    STORE = "store"
    ASYNC_STORE = "async_store"
    APP_CONFIG = "app_config"
    LOGGING = "logging_service"
    ERRORS = "error_service"
    ACTIONS = "action_registry"
    THEME = "theme_service"
    SHORTCUTS = "shortcut_registry"


Key = Union[str, ServiceKey]


def _name(key: Key) -> str:
    return key.value if isinstance(key, ServiceKey) else key


class ServiceAlreadyRegisteredError(RuntimeError):
    """Raised when a key is registered twice without allow_override."""


class ServiceNotFoundError(KeyError):
    """Raised when a requested service key is not present."""


@dataclass
class ServiceRecord:
    key: str
    value: Any
    origin: str | None = None
    on_shutdown: Callable[[], Any] | None = None


class ServiceLocator:
    """Thread-safe key -> service mapping with ordered shutdown hooks."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._services: Dict[str, ServiceRecord] = {}

    def register(
        self,
        key: Key,
        value: Any,
        *,
        allow_override: bool = False,
        origin: str | None = None,
        on_shutdown: Callable[[], Any] | None = None,
    ) -> None:
        name = _name(key)
        with self._lock:
            if name in self._services and not allow_override:
                raise ServiceAlreadyRegisteredError(f"Service '{name}' already registered")
            # Re-registering moves the service to the newest shutdown slot
            self._services.pop(name, None)
            self._services[name] = ServiceRecord(
                key=name, value=value, origin=origin, on_shutdown=on_shutdown
            )

    def get(self, key: Key) -> Any:
        with self._lock:
            record = self._services.get(_name(key))
            if record is None:
                raise ServiceNotFoundError(_name(key))
            return record.value

    def get_typed(self, key: Key, expected_type: Type[T]) -> T:
        value = self.get(key)
        if not isinstance(value, expected_type):
            raise TypeError(
                f"Service '{_name(key)}' expected type {expected_type!r} but got {type(value)!r}"
            )
        return value

    def try_get(self, key: Key, default: Any = None) -> Any:
        with self._lock:
            record = self._services.get(_name(key))
            return record.value if record else default

    def origin_of(self, key: Key) -> str | None:
        with self._lock:
            record = self._services.get(_name(key))
            return record.origin if record else None

    @contextmanager
    def override_context(self, **overrides: Any) -> Generator[None, None, None]:
        """Temporarily replace (or add) services; previous values are restored on exit."""
        previous: Dict[str, ServiceRecord | None] = {}
        with self._lock:
            for key, value in overrides.items():
                previous[key] = self._services.get(key)
                self._services[key] = ServiceRecord(key=key, value=value, origin="override")
        try:
            yield
        finally:
            with self._lock:
                for key, prior in previous.items():
                    if prior is None:
                        self._services.pop(key, None)
                    else:
                        self._services[key] = prior

    def unregister(self, key: Key) -> None:
        with self._lock:
            self._services.pop(_name(key), None)

    def list_keys(self) -> Iterable[str]:
        with self._lock:
            return list(self._services.keys())

    def shutdown(self) -> List[str]:
        """Run pending shutdown hooks newest first; returns the keys whose hook raised."""
        with self._lock:
            pending = [r for r in reversed(list(self._services.values())) if r.on_shutdown]
            hooks = [(r.key, r.on_shutdown) for r in pending]
            for record in pending:
                record.on_shutdown = None
        failed: List[str] = []
        for key, hook in hooks:
            try:
                hook()
            except Exception:  # noqa: BLE001 - remaining services still shut down
                logger.exception("Shutdown of service '%s' failed", key)
                failed.append(key)
            else:
                logger.debug("Service '%s' shut down", key)
        return failed

    def clear(self) -> None:
        with self._lock:
            self._services.clear()


services = ServiceLocator()
