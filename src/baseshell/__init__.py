"""BaseShell public API.

Curated, intentionally small surface for the launcher and tests.

Design Principles:
- Keep exports minimal & stable; prefer namespaced access (``baseshell.menu``,
  ``baseshell.services.layout_controller``).
- Avoid side-effect heavy imports (no implicit QApplication creation).
"""

from __future__ import annotations

from .services.service_locator import (  # noqa: F401
    services,
    ServiceLocator,
    ServiceAlreadyRegisteredError,
    ServiceNotFoundError,
)
from .services.event_bus import EventBus, ShellEvent, Event  # noqa: F401

__all__ = [
    "services",
    "ServiceLocator",
    "ServiceAlreadyRegisteredError",
    "ServiceNotFoundError",
    "EventBus",
    "ShellEvent",
    "Event",
]
