"""Menu tree model.

The menu bar content is static data: an ordered mapping of top-level keys to
immutable trees of three node kinds:

    Leaf(id, label, shortcut_hint)     activatable item
    Separator(id)                      non-interactive divider
    Submenu(id, label, children)       nested popover

Renderers dispatch over the node kinds with ``render_tree``; any other object
in a tree is a programming error and raises ``TypeError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Iterator, List, Mapping, Optional, Tuple, Union

__all__ = [
    "Leaf",
    "Separator",
    "Submenu",
    "MenuNode",
    "MenuTree",
    "MenuDefinition",
    "DEFAULT_MENUS",
    "MenuVisitor",
    "render_tree",
    "iter_leaves",
    "hinted_leaves",
    "find_node",
    "leaf_ids",
    "validate_menus",
]


@dataclass(frozen=True)
class Leaf:
    id: str
    label: str
    shortcut_hint: Optional[str] = None


@dataclass(frozen=True)
class Separator:
    id: str = "sep"


@dataclass(frozen=True)
class Submenu:
    id: str
    label: str
    children: "MenuTree" = ()


MenuNode = Union[Leaf, Separator, Submenu]
MenuTree = Tuple[MenuNode, ...]


@dataclass(frozen=True)
class MenuDefinition:
    key: str
    label: str
    tree: MenuTree


def _menus(*defs: MenuDefinition) -> Mapping[str, MenuDefinition]:
    return MappingProxyType({d.key: d for d in defs})


DEFAULT_MENUS: Mapping[str, MenuDefinition] = _menus(
    MenuDefinition(
        "file",
        "File",
        (
            Leaf("new", "New Project", "Ctrl+N"),
            Leaf("open", "Open Project", "Ctrl+O"),
            Separator("sep-file-1"),
            Leaf("save", "Save", "Ctrl+S"),
            Submenu(
                "saveAs",
                "Save As",
                (
                    Leaf("saveAsSQL", "SQL"),
                    Leaf("saveAsVGS", "VGS"),
                ),
            ),
            Separator("sep-file-2"),
            Leaf("exit", "Exit", "Ctrl+Q"),
        ),
    ),
    MenuDefinition(
        "edit",
        "Edit",
        (
            Leaf("undo", "Undo"),
            Leaf("redo", "Redo"),
            Separator("sep-edit-1"),
            Leaf("cut", "Cut"),
            Leaf("copy", "Copy"),
            Leaf("paste", "Paste"),
        ),
    ),
    MenuDefinition(
        "view",
        "View",
        (
            Leaf("toggleTheme", "Toggle Theme"),
            Leaf("resetLayout", "Reset Layout"),
        ),
    ),
    MenuDefinition(
        "help",
        "Help",
        (
            Leaf("docs", "Documentation"),
            Leaf("shortcuts", "Keyboard Shortcuts"),
            Leaf("about", "About"),
        ),
    ),
)


@dataclass(frozen=True)
class MenuVisitor:
    """One callable per node kind; used by ``render_tree``."""

    leaf: Callable[[Leaf], Any]
    separator: Callable[[Separator], Any]
    submenu: Callable[[Submenu], Any]


def render_tree(tree: MenuTree, visitor: MenuVisitor) -> List:
    """Apply the matching visitor callable to every top-level node of ``tree``.

    Submenu callables decide themselves whether to recurse.
    """
    out = []
    for node in tree:
        if isinstance(node, Leaf):
            out.append(visitor.leaf(node))
        elif isinstance(node, Separator):
            out.append(visitor.separator(node))
        elif isinstance(node, Submenu):
            out.append(visitor.submenu(node))
        else:
            raise TypeError(f"Unknown menu node: {node!r}")
    return out


def iter_leaves(tree: MenuTree) -> Iterator[Leaf]:
    """Depth-first iteration over all leaves, including nested submenus."""
    for node in tree:
        if isinstance(node, Leaf):
            yield node
        elif isinstance(node, Submenu):
            yield from iter_leaves(node.children)
        elif not isinstance(node, Separator):
            raise TypeError(f"Unknown menu node: {node!r}")


def hinted_leaves(menus: Mapping[str, MenuDefinition]) -> Iterator[Tuple[MenuDefinition, Leaf]]:
    """Leaves that advertise a shortcut, with the menu they belong to."""
    for definition in menus.values():
        for leaf in iter_leaves(definition.tree):
            if leaf.shortcut_hint:
                yield definition, leaf


def find_node(tree: MenuTree, node_id: str) -> Optional[MenuNode]:
    for node in tree:
        if getattr(node, "id", None) == node_id and not isinstance(node, Separator):
            return node
        if isinstance(node, Submenu):
            found = find_node(node.children, node_id)
            if found is not None:
                return found
    return None


def leaf_ids(menus: Mapping[str, MenuDefinition] = DEFAULT_MENUS) -> List[str]:
    return [leaf.id for d in menus.values() for leaf in iter_leaves(d.tree)]


def validate_menus(menus: Mapping[str, MenuDefinition]) -> None:
    """Raise ValueError when leaf ids are not unique across all menus."""
    seen: set[str] = set()
    for lid in leaf_ids(menus):
        if lid in seen:
            raise ValueError(f"Duplicate menu leaf id: {lid}")
        seen.add(lid)
