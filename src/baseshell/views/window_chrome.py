"""Custom window chrome for the frameless main window.

Title bar contents, left to right:
 - App icon (optional) and title label
 - The application menu bar (``MenuBarWidget``)
 - Minimize / Maximize-Restore / Close buttons

Dragging the bar moves the window and double-click toggles maximize. Both
dragging and edge resizing are delegated to the window manager
(``QWindow.startSystemMove`` / ``startSystemResize``).
"""

from __future__ import annotations

from PyQt6.QtCore import QEvent, QObject, QPoint, Qt
from PyQt6.QtGui import QMouseEvent, QPixmap
from PyQt6.QtWidgets import QHBoxLayout, QLabel, QMainWindow, QToolButton, QWidget

__all__ = ["ChromeTitleBar", "EdgeResizeFilter", "install_custom_chrome"]


class ChromeTitleBar(QWidget):
    """Title bar widget inserted via ``setMenuWidget``."""

    def __init__(self, window: QMainWindow, menu_bar: QWidget | None = None, icon_path: str | None = None):
        super().__init__(window)
        self._window = window
        self.setObjectName("chromeTitleBar")
        lay = QHBoxLayout(self)
        lay.setContentsMargins(8, 2, 4, 2)
        lay.setSpacing(8)
        pm = QPixmap(icon_path) if icon_path else QPixmap()
        if not pm.isNull():
            icon_lbl = QLabel()
            icon_lbl.setObjectName("chromeWindowIcon")
            icon_lbl.setPixmap(
                pm.scaled(16, 16, Qt.AspectRatioMode.KeepAspectRatio, Qt.TransformationMode.SmoothTransformation)
            )
            lay.addWidget(icon_lbl, 0)
        self.title_label = QLabel(window.windowTitle())
        self.title_label.setObjectName("chromeTitleLabel")
        self.title_label.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents, True)
        lay.addWidget(self.title_label, 0)
        if menu_bar is not None:
            menu_bar.setParent(self)
            lay.addWidget(menu_bar, 0)
        lay.addStretch(1)

        self.btn_min = self._button("chromeBtnMin", "–", "Minimize window", window.showMinimized)
        self.btn_max = self._button("chromeBtnMax", "□", "Maximize or restore window", self.toggle_max_restore)
        self.btn_close = self._button("chromeBtnClose", "✕", "Close window", window.close)
        for btn in (self.btn_min, self.btn_max, self.btn_close):
            lay.addWidget(btn)
        window.windowTitleChanged.connect(self.title_label.setText)  # type: ignore

    def _button(self, name: str, glyph: str, accessible: str, slot) -> QToolButton:
        btn = QToolButton(self)
        btn.setObjectName(name)
        btn.setText(glyph)
        btn.setToolTip(accessible)
        btn.setAccessibleName(accessible)
        btn.clicked.connect(slot)  # type: ignore
        return btn

    def toggle_max_restore(self) -> None:
        if self._window.isMaximized():
            self._window.showNormal()
            self.btn_max.setText("□")
        else:
            self._window.showMaximized()
            self.btn_max.setText("❐")

    def mousePressEvent(self, e: QMouseEvent):  # type: ignore[override]
        handle = self._window.windowHandle()
        if e.button() == Qt.MouseButton.LeftButton and handle is not None:
            if handle.startSystemMove():
                e.accept()
                return
        super().mousePressEvent(e)

    def mouseDoubleClickEvent(self, e: QMouseEvent):  # type: ignore[override]
        self.toggle_max_restore()
        super().mouseDoubleClickEvent(e)


class EdgeResizeFilter(QObject):
    """Starts a system resize when the pointer is pressed near a window edge."""

    def __init__(self, window: QMainWindow, margin: int = 6):
        super().__init__(window)
        self._w = window
        self._margin = margin

    def edges_at(self, pos: QPoint) -> Qt.Edge:
        m = self._margin
        edges = Qt.Edge(0)
        if pos.x() <= m:
            edges |= Qt.Edge.LeftEdge
        if pos.x() >= self._w.width() - m:
            edges |= Qt.Edge.RightEdge
        if pos.y() <= m:
            edges |= Qt.Edge.TopEdge
        if pos.y() >= self._w.height() - m:
            edges |= Qt.Edge.BottomEdge
        return edges

    def eventFilter(self, _obj, ev):  # type: ignore[override]
        if ev.type() != QEvent.Type.MouseButtonPress or ev.button() != Qt.MouseButton.LeftButton:
            return False
        try:
            if self._w.isMaximized():
                return False
            edges = self.edges_at(ev.position().toPoint())
            handle = self._w.windowHandle()
        except RuntimeError:  # window already deleted during shutdown
            return False
        if edges and handle is not None:
            return bool(handle.startSystemResize(edges))
        return False


def install_custom_chrome(
    window: QMainWindow, menu_bar: QWidget | None = None, icon_path: str | None = None
) -> ChromeTitleBar:
    """Make ``window`` frameless and install the custom title bar (idempotent)."""
    existing = window.menuWidget()
    if isinstance(existing, ChromeTitleBar):
        return existing
    window.setWindowFlag(Qt.WindowType.FramelessWindowHint, True)
    bar = ChromeTitleBar(window, menu_bar=menu_bar, icon_path=icon_path)
    window.setMenuWidget(bar)
    resizer = EdgeResizeFilter(window)
    window._edge_resizer = resizer  # type: ignore[attr-defined]
    window.installEventFilter(resizer)
    return bar
