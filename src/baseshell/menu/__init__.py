"""Application menu bar: static menu tree, interaction state machine, Qt widget."""

from .model import (  # noqa: F401
    DEFAULT_MENUS,
    Leaf,
    MenuDefinition,
    Separator,
    Submenu,
    find_node,
    iter_leaves,
    leaf_ids,
    render_tree,
)
from .state_machine import CLOSED, MenuInteractionState, MenuStateMachine  # noqa: F401

__all__ = [
    "DEFAULT_MENUS",
    "Leaf",
    "MenuDefinition",
    "Separator",
    "Submenu",
    "find_node",
    "iter_leaves",
    "leaf_ids",
    "render_tree",
    "CLOSED",
    "MenuInteractionState",
    "MenuStateMachine",
]
