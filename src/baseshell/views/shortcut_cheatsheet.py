"""Shortcut Cheat Sheet Dialog

Filterable, categorized list of the shortcuts bound in the
``ShortcutRegistry``. Opened from Help > Keyboard Shortcuts.
"""

from __future__ import annotations

from PyQt6.QtWidgets import QHBoxLayout, QLineEdit, QPushButton, QTreeWidget, QTreeWidgetItem, QWidget

from baseshell.components.chrome_dialog import ChromeDialog
from baseshell.services.shortcut_registry import ShortcutRegistry

__all__ = ["ShortcutCheatSheetDialog"]


class ShortcutCheatSheetDialog(ChromeDialog):
    def __init__(self, registry: ShortcutRegistry, parent: QWidget | None = None):
        super().__init__(parent, title="Keyboard Shortcuts")
        self._registry = registry
        self.resize(520, 360)
        layout = self.content_layout()
        self.filter_edit = QLineEdit(self)
        self.filter_edit.setPlaceholderText("Filter shortcuts…")
        self.filter_edit.setObjectName("shortcutFilterEdit")
        self.filter_edit.textChanged.connect(self._refresh)  # type: ignore
        layout.addWidget(self.filter_edit)

        self.tree = QTreeWidget(self)
        self.tree.setObjectName("shortcutTree")
        self.tree.setColumnCount(2)
        self.tree.setHeaderLabels(["Shortcut", "Description"])
        layout.addWidget(self.tree)

        btn_row = QHBoxLayout()
        close_btn = QPushButton("Close", self)
        close_btn.setObjectName("shortcutCloseButton")
        close_btn.clicked.connect(self.accept)  # type: ignore
        btn_row.addStretch(1)
        btn_row.addWidget(close_btn)
        layout.addLayout(btn_row)

        self._refresh()

    def _refresh(self) -> None:
        query = self.filter_edit.text().strip().lower()
        self.tree.clear()
        for category, entries in sorted(self._registry.by_category().items()):
            matches = [
                e
                for e in entries
                if not query or query in e.sequence.lower() or query in e.description.lower()
            ]
            if not matches:
                continue
            group = QTreeWidgetItem([category, ""])
            for e in matches:
                group.addChild(QTreeWidgetItem([e.sequence, e.description]))
            self.tree.addTopLevelItem(group)
            group.setExpanded(True)
        self.tree.resizeColumnToContents(0)

    def visible_sequences(self) -> list[str]:
        out: list[str] = []
        for i in range(self.tree.topLevelItemCount()):
            group = self.tree.topLevelItem(i)
            out.extend(group.child(j).text(0) for j in range(group.childCount()))
        return out
