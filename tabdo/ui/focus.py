"""
FILE: tabdo/ui/focus.py
PURPOSE: Widget tree with a single focused widget
EXPORTS:
  - WidgetKind (enum)
  - Widget (class)
  - FocusTree (class)
DEPENDENCIES:
  - enum (stdlib)
NOTES:
  - Each widget owns its children exclusively
  - Focus is always on a widget reachable from the root
  - Detaching a subtree holding the focus moves the focus out first
    (to the nearest sibling if asked, otherwise to the parent)
"""

from enum import Enum
from typing import Any, Iterator, List, Optional


class WidgetKind(Enum):
    ROOT = "root"
    TAB_BAR = "tab_bar"
    TASK_LIST = "task_list"
    EDITOR = "editor"
    DIALOG = "dialog"


class Widget:
    """A node in the focus tree. `payload` carries the kind-specific data."""

    def __init__(self, kind: WidgetKind, payload: Any = None):
        self.kind = kind
        self.payload = payload
        self.parent: Optional["Widget"] = None
        self.children: List["Widget"] = []

    def __repr__(self) -> str:
        return f"Widget({self.kind.value})"

    def walk(self) -> Iterator["Widget"]:
        """This widget and all its descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()


class FocusTree:
    """Owns the root widget and tracks which widget has the focus."""

    def __init__(self):
        self.root = Widget(WidgetKind.ROOT)
        self._focused = self.root

    @property
    def focused(self) -> Widget:
        return self._focused

    def is_reachable(self, widget: Widget) -> bool:
        node = widget
        while node is not None:
            if node is self.root:
                return True
            node = node.parent
        return False

    def contains(self, ancestor: Widget, widget: Widget) -> bool:
        node = widget
        while node is not None:
            if node is ancestor:
                return True
            node = node.parent
        return False

    def path(self) -> List[Widget]:
        """Widgets from the root down to the focused one."""
        nodes = []
        node = self._focused
        while node is not None:
            nodes.append(node)
            node = node.parent
        return list(reversed(nodes))

    def attach(self, parent: Widget, widget: Widget, index: Optional[int] = None) -> Widget:
        if not self.is_reachable(parent):
            raise ValueError(f"{parent!r} is not part of the tree")
        if widget.parent is not None:
            raise ValueError(f"{widget!r} already has a parent")
        widget.parent = parent
        if index is None:
            parent.children.append(widget)
        else:
            parent.children.insert(index, widget)
        return widget

    def focus(self, widget: Widget) -> None:
        if not self.is_reachable(widget):
            raise ValueError(f"Cannot focus detached {widget!r}")
        self._focused = widget

    def detach(self, widget: Widget, prefer_sibling: bool = False) -> None:
        """
        Remove `widget` and its subtree.

        If the focus lies inside the subtree it moves before the removal:
        to the next (or previous) sibling when prefer_sibling is set and one
        exists, otherwise to the parent.
        """
        if widget is self.root:
            raise ValueError("The root widget cannot be detached")
        parent = widget.parent
        if parent is None:
            return

        if self.contains(widget, self._focused):
            target = parent
            if prefer_sibling:
                siblings = parent.children
                index = siblings.index(widget)
                if index + 1 < len(siblings):
                    target = siblings[index + 1]
                elif index > 0:
                    target = siblings[index - 1]
            self._focused = target

        parent.children.remove(widget)
        widget.parent = None

    def find(self, kind: WidgetKind) -> List[Widget]:
        return [node for node in self.root.walk() if node.kind is kind]
