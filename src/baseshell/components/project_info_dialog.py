"""Project information dialog.

Shown at startup when the stored project has no name, and from File > New.
Fields: name (required), file path, remarks. Saving writes
``project_config`` and publishes ``ShellEvent.PROJECT_CHANGED``.

In *required* mode (startup) cancelling asks for confirmation and, when
confirmed, requests application exit; otherwise the dialog stays open.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from PyQt6.QtWidgets import (
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPlainTextEdit,
    QPushButton,
    QWidget,
)

from baseshell.app.config_store import ProjectConfig, save_project
from baseshell.services.errors import PersistenceWriteError
from baseshell.services.event_bus import EventBus, ShellEvent
from baseshell.services.store_manager import StoreManager

from .chrome_dialog import ChromeDialog
from .confirm_dialog import confirm

__all__ = ["ProjectInfoDialog"]

logger = logging.getLogger(__name__)


class ProjectInfoDialog(ChromeDialog):
    def __init__(
        self,
        parent: QWidget | None = None,
        *,
        project: ProjectConfig | None = None,
        store: StoreManager | None = None,
        event_bus: EventBus | None = None,
        required: bool = False,
        confirm_cancel: Callable[[], bool] | None = None,
        on_exit: Callable[[], None] | None = None,
    ) -> None:
        super().__init__(parent, title="Project Information")
        self.setMinimumWidth(420)
        self._store = store
        self._bus = event_bus
        self._required = required
        self._confirm_cancel = confirm_cancel or (
            lambda: confirm(self, "No project was created. Exit the application?", title="Exit")
        )
        self._on_exit = on_exit
        self.saved_project: Optional[ProjectConfig] = None
        self.exit_requested = False
        project = project or ProjectConfig()

        form = QFormLayout()
        self.name_edit = QLineEdit(project.name)
        self.name_edit.setObjectName("projectNameEdit")
        self.name_edit.setPlaceholderText("Required")
        form.addRow("Name", self.name_edit)
        self.path_edit = QLineEdit(project.filepath)
        self.path_edit.setObjectName("projectPathEdit")
        form.addRow("File path", self.path_edit)
        self.remarks_edit = QPlainTextEdit(project.remarks)
        self.remarks_edit.setObjectName("projectRemarksEdit")
        self.remarks_edit.setFixedHeight(80)
        form.addRow("Remarks", self.remarks_edit)
        self.content_layout().addLayout(form)

        self.error_label = QLabel("")
        self.error_label.setObjectName("projectErrorLabel")
        self.error_label.setVisible(False)
        self.content_layout().addWidget(self.error_label)

        row = QHBoxLayout()
        row.addStretch(1)
        self.btn_cancel = QPushButton("Cancel", self)
        self.btn_cancel.setObjectName("projectCancelButton")
        self.btn_cancel.clicked.connect(self.reject)  # type: ignore
        row.addWidget(self.btn_cancel)
        self.btn_save = QPushButton("Save", self)
        self.btn_save.setObjectName("projectSaveButton")
        self.btn_save.setDefault(True)
        self.btn_save.clicked.connect(self.try_save)  # type: ignore
        row.addWidget(self.btn_save)
        self.content_layout().addLayout(row)

    def project(self) -> ProjectConfig:
        return ProjectConfig(
            name=self.name_edit.text().strip(),
            filepath=self.path_edit.text().strip(),
            remarks=self.remarks_edit.toPlainText().strip(),
        )

    def _show_error(self, text: str) -> None:
        self.error_label.setText(text)
        self.error_label.setVisible(True)

    def try_save(self) -> bool:
        project = self.project()
        if project.is_blank:
            self._show_error("Project name is required.")
            self.name_edit.setFocus()
            return False
        if self._store is not None:
            try:
                save_project(self._store, project)
            except PersistenceWriteError as exc:
                logger.warning("Project could not be saved: %s", exc)
                self._show_error("Project could not be saved.")
                return False
        logger.info("Project set: %s", project.name)
        self.saved_project = project
        if self._bus is not None:
            self._bus.publish(ShellEvent.PROJECT_CHANGED, project.to_dict())
        self.accept()
        return True

    def reject(self) -> None:  # type: ignore[override]
        if not self._required:
            super().reject()
            return
        if not self._confirm_cancel():
            return
        logger.info("Project creation cancelled; exiting")
        self.exit_requested = True
        super().reject()
        if self._on_exit is not None:
            self._on_exit()
