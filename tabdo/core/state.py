"""
FILE: tabdo/core/state.py
PURPOSE: The session context - one task list, its tabs and where they live
EXPORTS:
  - AppState (class)
DEPENDENCIES:
  - tabdo.core.storage (load/save)
  - tabdo.core.task_list, tabdo.core.tabs, tabdo.core.query
  - tabdo.core.undo (UndoHistory)
NOTES:
  - Passed explicitly to the UI controller and CLI commands; there is no
    module-level instance
  - Tab switching wraps around; removing the last tab is refused
  - `dirty` covers task changes and tab changes (names, queries, order)
"""

import logging
from pathlib import Path
from typing import List, Optional

from . import storage
from .exceptions import InvalidInputError
from .query import Query
from .tabs import Tab
from .task_list import TaskList
from .undo import UndoHistory

logger = logging.getLogger(__name__)


class AppState:
    """
    Everything one running instance owns.

    Attributes:
        task_list: The single authoritative TaskList
        tabs: Ordered tabs; never empty
        path: Storage document path
        autosave: Save after every mutating action
        undo: Session undo history
        warnings: Messages produced while loading (e.g. query fallbacks)
    """

    def __init__(self, task_list: Optional[TaskList] = None, tabs: Optional[List[Tab]] = None,
                 path=None, active_tab: int = 0, autosave: bool = False):
        self.task_list = task_list if task_list is not None else TaskList()
        self.tabs: List[Tab] = list(tabs) if tabs else storage.default_tabs()
        self.path: Path = storage.resolve_path(path)
        self.autosave = autosave
        self.undo = UndoHistory()
        self.warnings: List[str] = []
        self._active = active_tab if 0 <= active_tab < len(self.tabs) else 0
        self._tabs_dirty = False

    @classmethod
    def load(cls, path=None, autosave: bool = False) -> "AppState":
        """
        Restore state from storage.

        Raises:
            CorruptStateError: If the document is malformed
            StorageIOError: If it cannot be read
        """
        loaded = storage.load(path)
        state = cls(loaded.task_list, loaded.tabs, path=path,
                    active_tab=loaded.active_tab, autosave=autosave)
        state.warnings = list(loaded.warnings)
        return state

    def save(self) -> Path:
        """
        Persist tasks and tabs.

        Raises:
            StorageIOError: If the write fails (state stays dirty)
        """
        written = storage.save(self.path, self.task_list, self.tabs, self._active)
        self._tabs_dirty = False
        return written

    @property
    def dirty(self) -> bool:
        return self.task_list.dirty or self._tabs_dirty

    def mark_tabs_changed(self) -> None:
        self._tabs_dirty = True

    # --- Tabs ---

    @property
    def active_index(self) -> int:
        return self._active

    @property
    def active_tab(self) -> Tab:
        return self.tabs[self._active]

    def select_tab(self, index: int) -> bool:
        if not 0 <= index < len(self.tabs) or index == self._active:
            return False
        self._active = index
        return True

    def cycle_tab(self, step: int) -> bool:
        """Select the tab `step` places away, wrapping around."""
        if len(self.tabs) < 2:
            return False
        self._active = (self._active + step) % len(self.tabs)
        return True

    def find_tab(self, name: str) -> Optional[int]:
        for index, tab in enumerate(self.tabs):
            if tab.name == name:
                return index
        return None

    def add_tab(self, name: str, query: Optional[Query] = None) -> Tab:
        """Insert a tab right after the active one and activate it."""
        tab = Tab(name, query or Query.all())
        self._active += 1
        self.tabs.insert(self._active, tab)
        tab.resolve(self.task_list)
        self.mark_tabs_changed()
        logger.debug("Added tab %s", tab.name)
        return tab

    def remove_tab(self, index: int) -> Tab:
        """
        Remove a tab; the neighbour to its left becomes active if needed.

        Raises:
            InvalidInputError: If it is the only tab
        """
        if len(self.tabs) <= 1:
            raise InvalidInputError("Cannot delete the last tab")
        if not 0 <= index < len(self.tabs):
            raise InvalidInputError(f"No tab at position {index + 1}")

        tab = self.tabs.pop(index)
        if self._active > index or (self._active == index and index > 0):
            self._active -= 1
        self.mark_tabs_changed()
        return tab

    def move_tab(self, index: int, offset: int) -> bool:
        """Move a tab within the bar, clamped at both ends; it stays active."""
        target = max(0, min(len(self.tabs) - 1, index + offset))
        if target == index:
            return False
        tab = self.tabs.pop(index)
        self.tabs.insert(target, tab)
        if self._active == index:
            self._active = target
        elif index < self._active <= target:
            self._active -= 1
        elif target <= self._active < index:
            self._active += 1
        self.mark_tabs_changed()
        return True

    def resolve_all(self) -> None:
        """Re-anchor every tab's cursor against the current task list."""
        for tab in self.tabs:
            tab.resolve(self.task_list)
