"""Main content area: three resizable columns, the centre split into content + log.

``MainContent`` is the pane surface of the ``LayoutController``: it accepts
per-pane size commands in percent (``set_pane_size``) and reports user drags
through ``resized(axis, sizes)``. Panes are addressed by ``PaneId`` only.

QSplitter does not emit ``splitterMoved`` for programmatic ``setSizes``
calls, so applying the authoritative layout never feeds back into the
controller.
"""

from __future__ import annotations

from typing import Dict, List

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtWidgets import QFrame, QLabel, QSplitter, QVBoxLayout, QWidget

from baseshell.services.layout_controller import AXIS_PANES, Axis, PaneId

__all__ = ["MainContent", "PANE_TITLES"]

PANE_TITLES: Dict[PaneId, str] = {
    PaneId.LEFT: "Left Sidebar",
    PaneId.CENTER: "Center",
    PaneId.RIGHT: "Right Sidebar",
    PaneId.CENTER_TOP: "Content",
    PaneId.LOG: "Log",
}

# Splitters accept any integer scale; sizes are redistributed to the real extent.
_SCALE = 100


def _pane_frame(pane: PaneId) -> tuple[QFrame, QLabel]:
    frame = QFrame()
    frame.setObjectName(f"pane_{pane.value}")
    frame.setFrameShape(QFrame.Shape.StyledPanel)
    lay = QVBoxLayout(frame)
    lay.setContentsMargins(6, 4, 6, 4)
    label = QLabel("")
    label.setObjectName("paneSizeLabel")
    label.setAlignment(Qt.AlignmentFlag.AlignTop | Qt.AlignmentFlag.AlignLeft)
    lay.addWidget(label)
    return frame, label


class MainContent(QWidget):
    resized = pyqtSignal(str, list)  # axis value, pane sizes in pixels

    def __init__(self, log_widget: QWidget | None = None, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setObjectName("mainContent")
        self.pane_widgets: Dict[PaneId, QWidget] = {}
        self.pane_labels: Dict[PaneId, QLabel] = {}
        self._targets: Dict[PaneId, float] = {}

        outer = QVBoxLayout(self)
        outer.setContentsMargins(0, 0, 0, 0)

        self.h_splitter = QSplitter(Qt.Orientation.Horizontal, self)
        self.h_splitter.setObjectName("horizontalSplitter")
        self.v_splitter = QSplitter(Qt.Orientation.Vertical)
        self.v_splitter.setObjectName("verticalSplitter")

        for pane in (PaneId.LEFT, PaneId.CENTER, PaneId.RIGHT):
            frame, label = _pane_frame(pane)
            if pane is PaneId.CENTER:
                frame.layout().addWidget(self.v_splitter, 1)
            self.h_splitter.addWidget(frame)
            self.pane_widgets[pane] = frame
            self.pane_labels[pane] = label

        top, top_label = _pane_frame(PaneId.CENTER_TOP)
        self.v_splitter.addWidget(top)
        self.pane_widgets[PaneId.CENTER_TOP] = top
        self.pane_labels[PaneId.CENTER_TOP] = top_label

        log_frame, log_label = _pane_frame(PaneId.LOG)
        if log_widget is not None:
            log_frame.layout().addWidget(log_widget, 1)
        self.v_splitter.addWidget(log_frame)
        self.pane_widgets[PaneId.LOG] = log_frame
        self.pane_labels[PaneId.LOG] = log_label

        outer.addWidget(self.h_splitter)
        self.h_splitter.splitterMoved.connect(lambda *_: self._emit_resized(Axis.HORIZONTAL))  # type: ignore
        self.v_splitter.splitterMoved.connect(lambda *_: self._emit_resized(Axis.VERTICAL))  # type: ignore

    # Pane surface -------------------------------------------------------
    def set_pane_size(self, pane: PaneId, percent: float) -> None:
        self._targets[pane] = float(percent)
        self.pane_labels[pane].setText(f"{PANE_TITLES[pane]}: {percent:.0f}%")
        axis = Axis.HORIZONTAL if pane in AXIS_PANES[Axis.HORIZONTAL] else Axis.VERTICAL
        panes = AXIS_PANES[axis]
        if all(p in self._targets for p in panes):
            self._apply_axis(axis, [self._targets[p] for p in panes])

    def _splitter(self, axis: Axis) -> QSplitter:
        return self.h_splitter if axis is Axis.HORIZONTAL else self.v_splitter

    def _apply_axis(self, axis: Axis, percents: List[float]) -> None:
        splitter = self._splitter(axis)
        current = splitter.sizes()
        total = sum(current)
        if total <= 0:
            splitter.setSizes([round(p * _SCALE) for p in percents])
            return
        wanted = [round(total * p / 100.0) for p in percents]
        if all(abs(a - b) <= 1 for a, b in zip(current, wanted)):
            return
        splitter.setSizes(wanted)

    def size_percentages(self, axis: Axis | str) -> List[float]:
        """Current on-screen proportions of ``axis`` in percent (empty if not laid out)."""
        sizes = self._splitter(Axis(axis)).sizes()
        total = sum(sizes)
        if total <= 0:
            return []
        return [s * 100.0 / total for s in sizes]

    def label_text(self, pane: PaneId) -> str:
        return self.pane_labels[pane].text()

    def _emit_resized(self, axis: Axis) -> None:
        sizes = self._splitter(axis).sizes()
        if sum(sizes) <= 0:
            return
        self.resized.emit(axis.value, sizes)
