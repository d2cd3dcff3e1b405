"""
FILE: tabdo/core/tabs.py
PURPOSE: Named views (tabs) with id-tracked selection and scroll state
EXPORTS:
  - Tab (class)
DEPENDENCIES:
  - tabdo.core.query (Query, Ordering)
  - tabdo.core.models (TagArena)
  - tabdo.core.exceptions (InvalidInputError)
NOTES:
  - Selection is tracked by task id, not by index, so it survives
    reordering and filter changes
  - resolve() is called before every read of the cursor; the stored index
    is only a fallback for when the selected task left the view
  - Cursor movement clamps at both ends (no wraparound)
"""

from typing import Optional

from .exceptions import InvalidInputError
from .models import Task, TagArena
from .query import Query, Ordering
from .task_list import TaskList


def validate_tab_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise InvalidInputError("Tab name cannot be empty")
    return name


class Tab:
    """A named query plus the UI-local cursor and scroll offset."""

    def __init__(self, name: str, query: Optional[Query] = None,
                 selected_id: Optional[int] = None, offset: int = 0):
        self.name = validate_tab_name(name)
        self.query = query if query is not None else Query.all()
        self.selected_id = selected_id
        self.offset = offset
        # Index of the selection at the last resolve(), used when the
        # selected task disappears from the view.
        self._index = 0

    def __repr__(self) -> str:
        return f"Tab({self.name!r}, {self.query!r}, selected={self.selected_id})"

    def view(self, task_list: TaskList):
        return self.query.view(task_list)

    # --- Cursor ---

    def resolve(self, task_list: TaskList) -> Optional[int]:
        """
        Re-run the query and re-anchor the cursor.

        Returns:
            Index of the selected task in the current view, or None if the
            view is empty.

        The previously selected id is kept if it still matches. Otherwise the
        element at the same numeric position is selected if there is one,
        else the last element.
        """
        ids = self.view(task_list).ids()
        if not ids:
            self.selected_id = None
            self._index = 0
            self.offset = 0
            return None

        if self.selected_id in ids:
            index = ids.index(self.selected_id)
        elif self._index < len(ids):
            index = self._index
        else:
            index = len(ids) - 1

        self.selected_id = ids[index]
        self._index = index
        return index

    def selected_task(self, task_list: TaskList) -> Optional[Task]:
        index = self.resolve(task_list)
        if index is None:
            return None
        return task_list.find(self.selected_id)

    def _select_index(self, task_list: TaskList, index: int) -> bool:
        ids = self.view(task_list).ids()
        if not ids:
            self.resolve(task_list)
            return False
        index = max(0, min(len(ids) - 1, index))
        changed = ids[index] != self.selected_id
        self.selected_id = ids[index]
        self._index = index
        return changed

    def select(self, task_list: TaskList, task_id: int) -> bool:
        """Select task_id if it is part of the view; returns whether it is."""
        index = self.view(task_list).index_of(task_id)
        if index is None:
            return False
        self.selected_id = task_id
        self._index = index
        return True

    def select_next(self, task_list: TaskList) -> bool:
        index = self.resolve(task_list)
        return index is not None and self._select_index(task_list, index + 1)

    def select_prev(self, task_list: TaskList) -> bool:
        index = self.resolve(task_list)
        return index is not None and self._select_index(task_list, index - 1)

    def select_first(self, task_list: TaskList) -> bool:
        return self._select_index(task_list, 0)

    def select_last(self, task_list: TaskList) -> bool:
        return self._select_index(task_list, len(self.view(task_list)) - 1)

    def scroll(self, height: int, index: Optional[int]) -> int:
        """
        Slide the scroll window so that `index` is visible.

        Returns:
            The first visible row
        """
        if index is None or height <= 0:
            self.offset = 0
            return 0
        if index <= self.offset:
            self.offset = index
        elif index > self.offset + (height - 1):
            self.offset = index - (height - 1)
        return self.offset

    # --- Query changes ---

    def set_query(self, query: Query) -> None:
        self.query = query

    def cycle_ordering(self) -> Ordering:
        self.query.ordering = self.query.ordering.next()
        return self.query.ordering

    def rename(self, name: str) -> None:
        self.name = validate_tab_name(name)

    # --- Persistence ---

    def to_record(self, arena: TagArena) -> dict:
        return {
            "name": self.name,
            "query": self.query.to_record(arena),
            "selected": self.selected_id,
        }

    @classmethod
    def from_record(cls, record: dict, arena: TagArena) -> "Tab":
        """
        Rebuild a tab.

        Raises:
            InvalidInputError: If the name is missing or empty
            InvalidQueryError: If the query cannot be rebuilt
        """
        name = record.get("name")
        if not isinstance(name, str):
            raise InvalidInputError("Tab name must be a string")
        selected = record.get("selected")
        if not isinstance(selected, int) or isinstance(selected, bool):
            selected = None
        tab = cls(name, selected_id=selected)
        tab.query = Query.from_record(record.get("query"), arena)
        return tab
