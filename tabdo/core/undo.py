"""
FILE: tabdo/core/undo.py
PURPOSE: Undo history tracking and reversal for task list mutations
EXPORTS:
  - UndoRecord (dataclass)
  - UndoHistory (class)
DEPENDENCIES:
  - dataclasses (stdlib)
  - logging (stdlib)
  - tabdo.core.task_list (TaskList)
  - tabdo.core.exceptions (TaskNotFoundError, TabdoError)
NOTES:
  - Session-scoped (not persisted), bounded by UNDO_DEPTH
  - Records refer to tasks by id; an id that went stale is dropped quietly
  - Supports: add, remove, update, move, rename_tag
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from .constants import UNDO_DEPTH
from .exceptions import TabdoError, TaskNotFoundError, TagNotFoundError
from .models import Task
from .task_list import TaskList

logger = logging.getLogger(__name__)


@dataclass
class UndoRecord:
    """
    A single reversible operation.

    Attributes:
        kind: 'add', 'remove', 'update', 'move' or 'rename_tag'
        task_id: Task involved (tag id for 'rename_tag')
        label: Short description used in the status message
        snapshot: Task state before the operation ('remove', 'update')
        position: List position before the operation ('remove', 'move')
        old_name: Tag name before a rename
        timestamp: When the operation happened
    """
    kind: str
    task_id: int
    label: str
    snapshot: Optional[Task] = None
    position: Optional[int] = None
    old_name: Optional[str] = None
    timestamp: str = ""


class UndoHistory:
    """Stack of reversible operations, newest last."""

    def __init__(self, depth: int = UNDO_DEPTH):
        self._records: List[UndoRecord] = []
        self._depth = depth

    def __len__(self) -> int:
        return len(self._records)

    def can_undo(self) -> bool:
        return bool(self._records)

    def clear(self) -> None:
        self._records.clear()

    def _push(self, record: UndoRecord) -> None:
        record.timestamp = datetime.now().isoformat()
        self._records.append(record)
        if len(self._records) > self._depth:
            del self._records[0]

    def record_add(self, task_id: int, summary: str) -> None:
        self._push(UndoRecord("add", task_id, f"added '{summary}'"))

    def record_remove(self, task: Task, position: int) -> None:
        self._push(UndoRecord("remove", task.id, f"deleted '{task.summary}'",
                              snapshot=task.copy(), position=position))

    def record_update(self, before: Task, what: str) -> None:
        self._push(UndoRecord("update", before.id, what, snapshot=before.copy()))

    def record_move(self, task_id: int, position: int, summary: str) -> None:
        self._push(UndoRecord("move", task_id, f"moved '{summary}'", position=position))

    def record_rename_tag(self, tag_id: int, old_name: str) -> None:
        self._push(UndoRecord("rename_tag", tag_id, f"renamed tag #{old_name}",
                              old_name=old_name))

    def undo(self, task_list: TaskList) -> str:
        """
        Revert the newest record.

        Returns:
            Human-readable message describing what was undone

        Records whose task no longer exists are discarded and the next one is
        tried, so stale ids never surface as errors.
        """
        while self._records:
            record = self._records.pop()
            try:
                self._revert(record, task_list)
            except (TaskNotFoundError, TagNotFoundError) as e:
                logger.warning("Skipping stale undo record %s: %s", record.kind, e)
                continue
            return f"Undid: {record.label}"
        return "Nothing to undo"

    def _revert(self, record: UndoRecord, task_list: TaskList) -> None:
        if record.kind == "add":
            if task_list.remove(record.task_id) is None:
                raise TaskNotFoundError(record.task_id)

        elif record.kind == "remove":
            if record.task_id in task_list:
                raise TabdoError(f"Task {record.task_id} is already present")
            task_list.insert(record.snapshot.copy(), record.position)

        elif record.kind == "update":
            snapshot = record.snapshot

            def restore(task: Task) -> None:
                task.summary = snapshot.summary
                task.tags = set(snapshot.tags)
                task.complete = snapshot.complete
                task.notes = snapshot.notes

            task_list.update(record.task_id, restore)

        elif record.kind == "move":
            current = task_list.position(record.task_id)
            if current is None:
                raise TaskNotFoundError(record.task_id)
            task_list.move(record.task_id, record.position - current)

        elif record.kind == "rename_tag":
            task_list.rename_tag(record.task_id, record.old_name)

        else:
            raise TabdoError(f"Cannot undo operation type: {record.kind}")
