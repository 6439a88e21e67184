"""Log pane shown under the main content.

Seeds itself from ``LoggingService.recent()`` and then follows
``ShellEvent.LOG_RECORD_ADDED``. Records may be published from store worker
threads, so they are forwarded through a Qt signal and appended on the UI
thread.
"""

from __future__ import annotations

import html
from datetime import datetime
from typing import Optional

from PyQt6.QtCore import pyqtSignal
from PyQt6.QtWidgets import QPlainTextEdit, QVBoxLayout, QWidget

from baseshell.services.event_bus import Event, EventBus, ShellEvent, Subscription
from baseshell.services.logging_service import LogEntry, LoggingService

__all__ = ["LogPanel", "LEVEL_COLORS", "format_entry"]

LEVEL_COLORS = {
    "DEBUG": "#8A8A8A",
    "INFO": "#4FA3E0",
    "WARNING": "#E0A030",
    "ERROR": "#E05050",
    "CRITICAL": "#FF2D55",
}


def format_entry(entry: LogEntry) -> str:
    stamp = datetime.fromtimestamp(entry.created).strftime("%H:%M:%S")
    color = LEVEL_COLORS.get(entry.level, "#A0A0A0")
    return (
        f'<span style="color:#808080">[{stamp}]</span> '
        f'<span style="color:{color}">[{entry.level}]</span> '
        f"{html.escape(entry.message)}"
    )


class LogPanel(QWidget):
    entry_received = pyqtSignal(object)  # LogEntry

    def __init__(
        self,
        parent: QWidget | None = None,
        *,
        logging_service: LoggingService | None = None,
        event_bus: EventBus | None = None,
        max_lines: int = 1000,
    ) -> None:
        super().__init__(parent)
        self.setObjectName("logPanel")
        lay = QVBoxLayout(self)
        lay.setContentsMargins(0, 0, 0, 0)
        self.view = QPlainTextEdit(self)
        self.view.setObjectName("logPane")
        self.view.setReadOnly(True)
        self.view.setMaximumBlockCount(max_lines)
        lay.addWidget(self.view)

        self.entry_received.connect(self.append_entry)  # type: ignore
        if logging_service is not None:
            for entry in logging_service.recent(max_lines):
                self.append_entry(entry)
        self._bus = event_bus
        self._sub: Optional[Subscription] = None
        if event_bus is not None:
            self._sub = event_bus.subscribe(ShellEvent.LOG_RECORD_ADDED, self._on_event)

    def _on_event(self, evt: Event) -> None:
        if isinstance(evt.payload, LogEntry):
            self.entry_received.emit(evt.payload)

    def append_entry(self, entry: LogEntry) -> None:
        self.view.appendHtml(format_entry(entry))

    def line_count(self) -> int:
        return self.view.blockCount() if self.view.toPlainText() else 0

    def teardown(self) -> None:
        if self._bus is not None and self._sub is not None:
            self._bus.unsubscribe(self._sub)
            self._sub = None
