"""Service layer exports.

Responsibilities:
 - Dependency/service locator (`services`)
 - EventBus publish/subscribe core
 - Error taxonomy of the coordination core

Shell services are keyed by ``ServiceKey``; see ``app.bootstrap`` for
the registrations and their shutdown hooks.
"""

from .service_locator import services, ServiceKey, ServiceLocator  # noqa: F401
from .event_bus import EventBus, ShellEvent  # noqa: F401
from .errors import (  # noqa: F401
    ShellCoreError,
    PersistenceReadError,
    PersistenceWriteError,
    ShortcutRegistrationError,
)

__all__ = [
    "services",
    "ServiceKey",
    "ServiceLocator",
    "EventBus",
    "ShellEvent",
    "ShellCoreError",
    "PersistenceReadError",
    "PersistenceWriteError",
    "ShortcutRegistrationError",
]
