"""ChromeDialog: frameless dialog with a draggable custom title bar.

Matches the main window chrome without minimize/maximize. Subclasses fill
``content_layout()``.

Usage:
    class MyDialog(ChromeDialog):
        def __init__(self, parent=None):
            super().__init__(parent, title="Example")
            self.content_layout().addWidget(QLabel("Hello"))
"""

from __future__ import annotations

from PyQt6.QtCore import QPoint, Qt
from PyQt6.QtGui import QMouseEvent
from PyQt6.QtWidgets import QDialog, QHBoxLayout, QLabel, QToolButton, QVBoxLayout, QWidget

__all__ = ["ChromeDialog"]


class ChromeDialog(QDialog):
    def __init__(self, parent: QWidget | None = None, title: str = "") -> None:
        super().__init__(parent, flags=Qt.WindowType.FramelessWindowHint | Qt.WindowType.Dialog)
        self.setObjectName("chromeDialog")
        if title:
            self.setWindowTitle(title)
        outer = QVBoxLayout(self)
        outer.setContentsMargins(0, 0, 0, 0)
        outer.setSpacing(0)

        self._title_bar = QWidget(self)
        self._title_bar.setObjectName("chromeTitleBar")
        tb = QHBoxLayout(self._title_bar)
        tb.setContentsMargins(12, 4, 8, 4)
        tb.setSpacing(8)
        self.title_label = QLabel(title)
        self.title_label.setObjectName("chromeTitleLabel")
        self.title_label.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents, True)
        tb.addWidget(self.title_label, 1)
        self.btn_close = QToolButton()
        self.btn_close.setObjectName("chromeBtnClose")
        self.btn_close.setText("✕")
        self.btn_close.setToolTip("Close")
        self.btn_close.setAccessibleName("Close dialog")
        self.btn_close.clicked.connect(self.reject)  # type: ignore
        tb.addWidget(self.btn_close)
        outer.addWidget(self._title_bar, 0)

        self._content = QWidget(self)
        self._content.setObjectName("chromeContentHost")
        self._content_layout = QVBoxLayout(self._content)
        self._content_layout.setContentsMargins(12, 10, 12, 12)
        self._content_layout.setSpacing(8)
        outer.addWidget(self._content, 1)

        self._drag_pos: QPoint | None = None
        self.windowTitleChanged.connect(self.title_label.setText)  # type: ignore

    # API ----------------------------------------------------------
    def content_widget(self) -> QWidget:
        return self._content

    def content_layout(self) -> QVBoxLayout:
        return self._content_layout

    # Drag events --------------------------------------------------
    def _in_title_bar(self, pos: QPoint) -> bool:
        return self._title_bar.geometry().contains(pos)

    def mousePressEvent(self, e: QMouseEvent):  # type: ignore[override]
        if e.button() == Qt.MouseButton.LeftButton and self._in_title_bar(e.position().toPoint()):
            self._drag_pos = e.globalPosition().toPoint() - self.frameGeometry().topLeft()
        super().mousePressEvent(e)

    def mouseMoveEvent(self, e: QMouseEvent):  # type: ignore[override]
        if self._drag_pos is not None and e.buttons() & Qt.MouseButton.LeftButton:
            self.move(e.globalPosition().toPoint() - self._drag_pos)
            e.accept()
            return
        super().mouseMoveEvent(e)

    def mouseReleaseEvent(self, e: QMouseEvent):  # type: ignore[override]
        self._drag_pos = None
        super().mouseReleaseEvent(e)
