"""Status bar component.

Segments:
 - Primary message (left aligned, optional auto-clear timeout)
 - Clock: time ``HH:MM:SS`` and date ``YYYY/MM/DD``, refreshed every second

The clock timer is owned by the widget and stopped in ``teardown()``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Tuple

from PyQt6.QtCore import Qt, QTimer
from PyQt6.QtWidgets import QHBoxLayout, QLabel, QSizePolicy, QWidget

from config import settings

__all__ = ["StatusBarWidget", "format_clock"]


def format_clock(now: datetime) -> Tuple[str, str]:
    """Return ``(HH:MM:SS, YYYY/MM/DD)`` for ``now``."""
    return now.strftime("%H:%M:%S"), now.strftime("%Y/%m/%d")


class StatusBarWidget(QWidget):
    """Composite status bar with message and clock labels.

    Methods:
        update_message(text, timeout_ms=0)
        refresh_clock()
        teardown()
    """

    def __init__(
        self,
        parent: QWidget | None = None,
        *,
        clock: Callable[[], datetime] = datetime.now,
        interval_ms: int = settings.STATUS_CLOCK_INTERVAL_MS,
    ) -> None:
        super().__init__(parent)
        self.setObjectName("statusBar")
        self._clock = clock
        lay = QHBoxLayout(self)
        lay.setContentsMargins(8, 2, 8, 2)
        lay.setSpacing(16)

        self.lbl_message = QLabel("Ready")
        self.lbl_message.setObjectName("statusMessageLabel")
        self.lbl_message.setAlignment(Qt.AlignmentFlag.AlignVCenter | Qt.AlignmentFlag.AlignLeft)
        self.lbl_message.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Preferred)
        lay.addWidget(self.lbl_message, 10)

        self.lbl_time = QLabel("")
        self.lbl_time.setObjectName("statusClockTime")
        lay.addWidget(self.lbl_time, 0)

        self.lbl_date = QLabel("")
        self.lbl_date.setObjectName("statusClockDate")
        lay.addWidget(self.lbl_date, 0)

        self._message_timer = QTimer(self)
        self._message_timer.setSingleShot(True)
        self._message_timer.timeout.connect(lambda: self.lbl_message.setText("Ready"))  # type: ignore

        self._clock_timer = QTimer(self)
        self._clock_timer.setInterval(interval_ms)
        self._clock_timer.timeout.connect(self.refresh_clock)  # type: ignore
        self.refresh_clock()
        self._clock_timer.start()

    # Public API --------------------------------------------------
    def update_message(self, text: str, timeout_ms: int = 0) -> None:
        self.lbl_message.setText(text)
        if timeout_ms > 0:
            self._message_timer.start(timeout_ms)
        else:
            self._message_timer.stop()

    def refresh_clock(self) -> None:
        time_text, date_text = format_clock(self._clock())
        self.lbl_time.setText(time_text)
        self.lbl_date.setText(date_text)

    @property
    def clock_running(self) -> bool:
        return self._clock_timer.isActive()

    def teardown(self) -> None:
        self._clock_timer.stop()
        self._message_timer.stop()
