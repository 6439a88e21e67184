"""Reusable shell widgets: status bar, log pane and chrome dialogs."""
