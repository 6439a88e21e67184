"""Shell view layer: main window, main content splitters, chrome and dialogs."""

from .main_window import MainWindow  # noqa: F401
from .main_content import MainContent  # noqa: F401

__all__ = ["MainWindow", "MainContent"]
