"""Shortcut Registry Service

Owns every keyboard binding of the shell and the catalog shown by the
shortcut cheat sheet.

Bindings go through a host ``ShortcutFacility`` (``QtShortcutFacility`` in the
running app: application-wide ``QShortcut`` objects). Registration is
idempotent: an existing binding for the same combo is removed first, so a
re-initialised window never fails with "already registered". A facility
failure is logged and reported as ``False``; the shell keeps running without
that binding.

Design Notes:
 - Key sequences stored as plain Qt-compatible strings ('Ctrl+Q', 'Ctrl+Shift+O')
 - One registry per process, registered in the service locator as ``shortcut_registry``
 - ``teardown()`` must run before the window goes away
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol

from PyQt6.QtCore import QObject, Qt
from PyQt6.QtGui import QKeySequence, QShortcut

from .errors import ShortcutRegistrationError
from .event_bus import EventBus, ShellEvent

__all__ = [
    "ShortcutEntry",
    "ShortcutFacility",
    "ShortcutRegistry",
    "QtShortcutFacility",
    "normalize_combo",
]

logger = logging.getLogger(__name__)


def normalize_combo(combo: str) -> str:
    """Canonical form used as registry key ('ctrl+q' -> 'Ctrl+Q')."""
    seq = QKeySequence(combo.strip())
    text = seq.toString(QKeySequence.SequenceFormat.PortableText)
    return text or combo.strip()


@dataclass(frozen=True)
class ShortcutEntry:
    sequence: str
    description: str
    category: str = "General"


class ShortcutFacility(Protocol):
    """Host binding mechanism. Both calls may raise ``ShortcutRegistrationError``."""

    def register(self, combo: str, handler: Callable[[], None]) -> None: ...  # pragma: no cover

    def unregister(self, combo: str) -> None: ...  # pragma: no cover


class QtShortcutFacility:
    """Application-wide ``QShortcut`` bindings parented to one widget."""

    def __init__(self, parent: QObject) -> None:
        self._parent = parent
        self._shortcuts: Dict[str, QShortcut] = {}

    def register(self, combo: str, handler: Callable[[], None]) -> None:
        seq = QKeySequence(combo)
        if seq.isEmpty():
            raise ShortcutRegistrationError(combo, "unparsable key sequence")
        if combo in self._shortcuts:
            raise ShortcutRegistrationError(combo, "already registered")
        sc = QShortcut(seq, self._parent)
        sc.setContext(Qt.ShortcutContext.ApplicationShortcut)
        sc.activated.connect(handler)  # type: ignore
        self._shortcuts[combo] = sc

    def unregister(self, combo: str) -> None:
        sc = self._shortcuts.pop(combo, None)
        if sc is None:
            raise ShortcutRegistrationError(combo, "not registered")
        try:
            sc.setEnabled(False)
            sc.activated.disconnect()
            sc.deleteLater()
        except (RuntimeError, TypeError):  # parent already destroyed or no connections
            pass

    def is_registered(self, combo: str) -> bool:
        return combo in self._shortcuts


class ShortcutRegistry:
    def __init__(self, facility: ShortcutFacility, *, event_bus: EventBus | None = None) -> None:
        self._facility = facility
        self._bus = event_bus
        self._entries: Dict[str, ShortcutEntry] = {}

    @property
    def facility(self) -> ShortcutFacility:
        return self._facility

    def register(
        self,
        combo: str,
        handler: Callable[[], None],
        *,
        description: str = "",
        category: str = "General",
    ) -> bool:
        """Bind ``combo`` to ``handler``, replacing any existing binding.

        Returns False (after logging) if the facility rejects the combo.
        """
        key = normalize_combo(combo)
        try:
            self._facility.unregister(key)
        except ShortcutRegistrationError:
            pass  # nothing bound yet
        except Exception as exc:  # noqa: BLE001
            logger.debug("Pre-unregister of %s failed: %s", key, exc)
        self._entries.pop(key, None)
        try:
            self._facility.register(key, self._wrap(key, handler))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Shortcut %s could not be registered: %s", key, exc)
            return False
        self._entries[key] = ShortcutEntry(key, description, category)
        logger.debug("Shortcut registered: %s (%s)", key, description or "no description")
        return True

    def unregister(self, combo: str) -> None:
        key = normalize_combo(combo)
        if self._entries.pop(key, None) is None:
            return
        try:
            self._facility.unregister(key)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Shortcut %s could not be unregistered: %s", key, exc)

    def teardown(self) -> None:
        """Unregister every binding; safe to call more than once."""
        for key in list(self._entries):
            self.unregister(key)

    def is_registered(self, combo: str) -> bool:
        return normalize_combo(combo) in self._entries

    def get(self, combo: str) -> Optional[ShortcutEntry]:
        return self._entries.get(normalize_combo(combo))

    def entries(self) -> List[ShortcutEntry]:
        return list(self._entries.values())

    def by_category(self) -> Dict[str, List[ShortcutEntry]]:
        buckets: Dict[str, List[ShortcutEntry]] = {}
        for e in self._entries.values():
            buckets.setdefault(e.category, []).append(e)
        for lst in buckets.values():
            lst.sort(key=lambda x: x.sequence)
        return buckets

    def _wrap(self, key: str, handler: Callable[[], None]) -> Callable[[], None]:
        def _fire() -> None:
            logger.debug("Shortcut triggered: %s", key)
            if self._bus is not None:
                self._bus.publish(ShellEvent.SHORTCUT_TRIGGERED, key)
            handler()

        return _fire
