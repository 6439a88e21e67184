"""Generic yes/no confirmation dialog."""

from __future__ import annotations

from PyQt6.QtWidgets import QHBoxLayout, QLabel, QPushButton, QWidget

from .chrome_dialog import ChromeDialog

__all__ = ["ConfirmDialog", "confirm"]


class ConfirmDialog(ChromeDialog):
    def __init__(
        self,
        parent: QWidget | None = None,
        *,
        title: str = "Confirm",
        message: str = "Are you sure?",
        confirm_text: str = "Yes",
        cancel_text: str = "No",
    ) -> None:
        super().__init__(parent, title=title)
        lay = self.content_layout()
        self.message_label = QLabel(message)
        self.message_label.setObjectName("confirmMessage")
        self.message_label.setWordWrap(True)
        lay.addWidget(self.message_label)

        row = QHBoxLayout()
        row.addStretch(1)
        self.btn_cancel = QPushButton(cancel_text, self)
        self.btn_cancel.setObjectName("confirmCancelButton")
        self.btn_cancel.clicked.connect(self.reject)  # type: ignore
        row.addWidget(self.btn_cancel)
        self.btn_confirm = QPushButton(confirm_text, self)
        self.btn_confirm.setObjectName("confirmOkButton")
        self.btn_confirm.setDefault(True)
        self.btn_confirm.clicked.connect(self.accept)  # type: ignore
        row.addWidget(self.btn_confirm)
        lay.addLayout(row)


def confirm(parent: QWidget | None, message: str, *, title: str = "Confirm") -> bool:  # pragma: no cover - modal
    dlg = ConfirmDialog(parent, title=title, message=message)
    return dlg.exec() == ConfirmDialog.DialogCode.Accepted
