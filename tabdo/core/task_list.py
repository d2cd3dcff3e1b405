"""
FILE: tabdo/core/task_list.py
PURPOSE: The authoritative, ordered collection of tasks
EXPORTS:
  - TaskList (class)
DEPENDENCIES:
  - logging (stdlib)
  - tabdo.core.models (Task, TagArena)
  - tabdo.core.exceptions (TaskNotFoundError, InvalidInputError)
NOTES:
  - Exactly one TaskList exists per running instance; views read through it
  - List order is creation order unless the user reorders tasks
  - Every mutation bumps `generation` and sets `dirty`
  - remove() of an absent id is a no-op, update() of an absent id raises
"""

import logging
from typing import Callable, Iterable, Iterator, List, Optional

from .models import Task, TagArena, intern_all, validate_tag_name
from .exceptions import TaskNotFoundError, InvalidInputError

logger = logging.getLogger(__name__)


def _clean_summary(summary: str) -> str:
    summary = (summary or "").strip()
    if not summary:
        raise InvalidInputError("Task summary cannot be empty")
    if "\n" in summary or "\r" in summary:
        raise InvalidInputError("Task summary must be a single line")
    return summary


class TaskList:
    """
    Ordered tasks plus the tag arena they draw from.

    Mutations are atomic from the caller's point of view: update() works on
    a copy and only swaps it in once the mutation succeeded.
    """

    def __init__(self, arena: Optional[TagArena] = None):
        self.tags = arena if arena is not None else TagArena()
        self._tasks: List[Task] = []
        self._next_id = 1
        self.generation = 0
        self.dirty = False

    # --- Reading ---

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: int) -> bool:
        return self.position(task_id) is not None

    def iterate(self) -> Iterator[Task]:
        """The authoritative sequence, in list order."""
        return iter(self._tasks)

    def ids(self) -> List[int]:
        return [task.id for task in self._tasks]

    def get(self, task_id: int) -> Task:
        """
        Fetch a task by id.

        Raises:
            TaskNotFoundError: If the id is not in the list
        """
        index = self.position(task_id)
        if index is None:
            raise TaskNotFoundError(task_id)
        return self._tasks[index]

    def find(self, task_id: int) -> Optional[Task]:
        index = self.position(task_id)
        return self._tasks[index] if index is not None else None

    def position(self, task_id: int) -> Optional[int]:
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                return index
        return None

    # --- Mutation ---

    def _touch(self) -> None:
        self.generation += 1
        self.dirty = True

    def mark_clean(self) -> None:
        """Called by the storage layer after a successful save."""
        self.dirty = False

    def reserve_ids(self, max_id: int) -> None:
        """Make sure ids up to max_id are never handed out by add()."""
        if max_id >= self._next_id:
            self._next_id = max_id + 1

    def add(self, summary: str, tags: Iterable[str] = ()) -> int:
        """
        Append a new task.

        Args:
            summary: Single line of text (required, stripped)
            tags: Tag names; unknown names are interned

        Returns:
            The new task's id, usable immediately for update()/remove()

        Raises:
            InvalidInputError: If the summary or a tag name is invalid
        """
        summary = _clean_summary(summary)
        names = [validate_tag_name(name) for name in tags]
        tag_ids = intern_all(self.tags, names)

        task = Task(id=self._next_id, summary=summary, tags=tag_ids)
        self._next_id += 1
        self._tasks.append(task)
        self._touch()
        logger.debug("Added task %d: %s", task.id, summary)
        return task.id

    def insert(self, task: Task, position: Optional[int] = None) -> None:
        """
        Insert an existing task (loaded from storage or restored by undo).

        The task keeps its id. Position defaults to the end and is clamped.

        Raises:
            InvalidInputError: If a task with the same id is already present
        """
        if task.id in self:
            raise InvalidInputError(f"Task {task.id} already exists")
        _clean_summary(task.summary)

        if position is None or position > len(self._tasks):
            position = len(self._tasks)
        position = max(0, position)

        self._tasks.insert(position, task)
        self.reserve_ids(task.id)
        self._touch()

    def remove(self, task_id: int) -> Optional[Task]:
        """
        Remove a task.

        Returns:
            The removed Task, or None if the id was not present. Removing an
            already removed id is not an error.
        """
        index = self.position(task_id)
        if index is None:
            logger.debug("Ignoring removal of absent task %d", task_id)
            return None

        task = self._tasks.pop(index)
        self._touch()
        logger.debug("Removed task %d", task_id)
        return task

    def update(self, task_id: int, mutation: Callable[[Task], None]) -> Task:
        """
        Apply `mutation` to a task atomically.

        The mutation receives a private copy. If it raises, or leaves the
        summary invalid, the stored task is untouched.

        Returns:
            The updated task

        Raises:
            TaskNotFoundError: If the id is absent
            InvalidInputError: If the mutation leaves the summary empty
        """
        index = self.position(task_id)
        if index is None:
            raise TaskNotFoundError(task_id)

        draft = self._tasks[index].copy()
        mutation(draft)
        draft.summary = _clean_summary(draft.summary)
        if draft.id != task_id:
            raise InvalidInputError("Task ids cannot be changed")
        unknown = [tag_id for tag_id in draft.tags if tag_id not in self.tags]
        if unknown:
            raise InvalidInputError(f"Unknown tag id {unknown[0]}")

        self._tasks[index] = draft
        self._touch()
        return draft

    def set_tags(self, task_id: int, names: Iterable[str]) -> Task:
        """Replace a task's tags with the given names (interning new ones)."""
        # Validate every name before touching the arena
        names = [validate_tag_name(name) for name in names]
        if task_id not in self:
            raise TaskNotFoundError(task_id)
        tag_ids = intern_all(self.tags, names)

        def apply(task: Task) -> None:
            task.tags = set(tag_ids)

        return self.update(task_id, apply)

    def toggle_complete(self, task_id: int) -> Task:
        def apply(task: Task) -> None:
            task.complete = not task.complete

        return self.update(task_id, apply)

    def move(self, task_id: int, offset: int) -> bool:
        """
        Move a task `offset` places within list order, clamped at both ends.

        Returns:
            True if the task changed position

        Raises:
            TaskNotFoundError: If the id is absent
        """
        index = self.position(task_id)
        if index is None:
            raise TaskNotFoundError(task_id)

        target = max(0, min(len(self._tasks) - 1, index + offset))
        if target == index:
            return False

        task = self._tasks.pop(index)
        self._tasks.insert(target, task)
        self._touch()
        return True

    def rename_tag(self, tag_id: int, new_name: str) -> None:
        """Rename a tag for every task at once."""
        self.tags.rename(tag_id, new_name)
        self._touch()
