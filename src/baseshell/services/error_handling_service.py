"""Global uncaught-exception capture.

Installs ``sys.excepthook`` (and ``threading.excepthook``) so an exception
escaping a Qt slot or a worker thread is logged, kept in a short history and
published as ``ShellEvent.UNCAUGHT_EXCEPTION`` instead of silently killing
the event loop. Nothing here terminates the application.
"""

from __future__ import annotations

import logging
import sys
import threading
import traceback
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Deque, List, Optional

from .event_bus import ShellEvent

__all__ = ["ErrorRecord", "ErrorHandlingService"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ErrorRecord:
    exc_type: type
    exc_value: BaseException
    traceback_str: str
    iso_time: str
    thread_name: str

    def summary(self, max_len: int = 120) -> str:
        msg = f"{self.exc_type.__name__}: {self.exc_value}"
        return msg if len(msg) <= max_len else msg[: max_len - 3] + "..."


class ErrorHandlingService:
    """Installable global error hook manager.

    Usage
    -----
    svc = ErrorHandlingService(event_bus=bus)
    svc.install()
    ... run application ...
    svc.uninstall()
    """

    def __init__(self, *, capacity: int = 20, event_bus: Any | None = None) -> None:
        self._errors: Deque[ErrorRecord] = deque(maxlen=max(1, capacity))
        self._installed = False
        self._prev_sys_hook = None
        self._prev_threading_hook = None
        self._event_bus = event_bus

    # ------------------------------------------------------------------
    # Installation / Removal
    # ------------------------------------------------------------------
    def install(self) -> None:
        if self._installed:
            return
        self._prev_sys_hook = sys.excepthook
        sys.excepthook = self._sys_hook
        self._prev_threading_hook = threading.excepthook
        threading.excepthook = self._thread_hook
        self._installed = True

    def uninstall(self) -> None:
        if not self._installed:
            return
        if self._prev_sys_hook is not None:
            sys.excepthook = self._prev_sys_hook
        if self._prev_threading_hook is not None:
            threading.excepthook = self._prev_threading_hook
        self._installed = False

    @property
    def installed(self) -> bool:
        return self._installed

    def _sys_hook(self, exc_type, exc_value, tb):  # pragma: no cover - delegate
        self.handle_exception(exc_type, exc_value, tb)

    def _thread_hook(self, args):  # pragma: no cover - delegate
        self.handle_exception(args.exc_type, args.exc_value, args.exc_traceback, thread=args.thread)

    # ------------------------------------------------------------------
    # Core logic
    # ------------------------------------------------------------------
    def handle_exception(
        self, exc_type, exc_value, tb, *, thread: Optional[threading.Thread] = None
    ) -> ErrorRecord:
        """Record, log and publish an uncaught exception."""
        record = ErrorRecord(
            exc_type=exc_type,
            exc_value=exc_value,
            traceback_str="".join(traceback.format_exception(exc_type, exc_value, tb)),
            iso_time=datetime.now(timezone.utc).isoformat(),
            thread_name=(thread.name if thread else threading.current_thread().name),
        )
        self._errors.append(record)
        logger.error(
            "Uncaught exception (%s) %s\n%s",
            record.thread_name,
            record.summary(),
            record.traceback_str,
        )
        if self._event_bus is not None:
            self._event_bus.publish(
                ShellEvent.UNCAUGHT_EXCEPTION,
                {
                    "type": exc_type.__name__,
                    "message": str(exc_value),
                    "thread": record.thread_name,
                    "iso_time": record.iso_time,
                },
            )
        return record

    def recent_errors(self) -> List[ErrorRecord]:
        return list(self._errors)

    def clear(self) -> None:
        self._errors.clear()
