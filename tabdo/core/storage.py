"""
FILE: tabdo/core/storage.py
PURPOSE: Persistence gateway - load and save the single state document
EXPORTS:
  - STATE_DIR, STATE_PATH: Default document location
  - LoadedState (dataclass)
  - load(path) -> LoadedState
  - save(path, task_list, tabs, active_tab) -> None
  - default_tabs() -> List[Tab]
DEPENDENCIES:
  - json (document format)
  - os, tempfile (atomic replace)
  - pathlib (stdlib)
  - logging (stdlib)
  - tabdo.core.task_list, tabdo.core.tabs, tabdo.core.query
NOTES:
  - Document stored at ~/.tabdo/tabdo.json unless a path is given
  - A missing file is not an error: it yields no tasks and one default tab
  - A malformed file raises CorruptStateError and is never overwritten
  - A tab whose query no longer parses falls back to "all" on its own
  - Saving writes a temp file next to the target and atomically replaces it
  - Unknown fields are ignored; absent optional fields take defaults
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .constants import SCHEMA_VERSION, DEFAULT_TAB_NAME
from .exceptions import (
    CorruptStateError,
    InvalidInputError,
    InvalidQueryError,
    StorageIOError,
)
from .models import Task, validate_tag_name
from .query import Query
from .tabs import Tab
from .task_list import TaskList

logger = logging.getLogger(__name__)


# Document location (cross-platform)
STATE_DIR = Path.home() / ".tabdo"
STATE_PATH = STATE_DIR / "tabdo.json"


@dataclass
class LoadedState:
    """Everything restored from one document."""

    task_list: TaskList
    tabs: List[Tab]
    active_tab: int = 0
    warnings: List[str] = field(default_factory=list)


def default_tabs() -> List[Tab]:
    """The tab set of a fresh installation: one tab showing every task."""
    return [Tab(DEFAULT_TAB_NAME, Query.all())]


def resolve_path(path=None) -> Path:
    """Explicit path if given, otherwise the module default."""
    return Path(path).expanduser() if path else STATE_PATH


# --- Loading ---


def _read_document(path: Path) -> dict:
    """
    Read and decode the raw JSON document.

    Raises:
        FileNotFoundError: If the file does not exist
        StorageIOError: On any other I/O error
        CorruptStateError: If the content is not a JSON object
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise
    except (ValueError, RecursionError) as e:
        # JSONDecodeError and UnicodeDecodeError are ValueErrors too
        raise CorruptStateError(path, f"invalid JSON ({e})") from e
    except OSError as e:
        raise StorageIOError(path, e.strerror or str(e)) from e

    if not isinstance(data, dict):
        raise CorruptStateError(path, "top level must be an object")
    return data


def _expect(condition: bool, path: Path, reason: str) -> None:
    if not condition:
        raise CorruptStateError(path, reason)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _load_tasks(data: dict, path: Path) -> TaskList:
    task_list = TaskList()

    tag_names = data.get("tags", [])
    _expect(isinstance(tag_names, list), path, "'tags' must be an array")
    try:
        for name in tag_names:
            _expect(isinstance(name, str), path, "tag names must be strings")
            task_list.tags.intern(name)
    except InvalidInputError as e:
        raise CorruptStateError(path, str(e)) from e

    records = data.get("tasks", [])
    _expect(isinstance(records, list), path, "'tasks' must be an array")

    for number, record in enumerate(records, 1):
        where = f"task #{number}"
        _expect(isinstance(record, dict), path, f"{where} must be an object")

        task_id = record.get("id")
        _expect(_is_int(task_id) and task_id > 0, path, f"{where} has an invalid id")
        _expect(task_id not in task_list, path, f"duplicate task id {task_id}")

        summary = record.get("summary")
        _expect(isinstance(summary, str) and summary.strip() != "", path,
                f"{where} has an empty or missing summary")

        names = record.get("tags", [])
        _expect(isinstance(names, list) and all(isinstance(n, str) for n in names),
                path, f"{where} has invalid tags")

        complete = record.get("complete", False)
        _expect(isinstance(complete, bool), path, f"{where} has a non-boolean 'complete'")

        notes = record.get("notes", "")
        _expect(isinstance(notes, str), path, f"{where} has non-text notes")

        try:
            tag_ids = {task_list.tags.intern(validate_tag_name(n)).id for n in names}
            task_list.insert(Task(
                id=task_id,
                summary=summary.strip(),
                tags=tag_ids,
                complete=complete,
                notes=notes,
            ))
        except InvalidInputError as e:
            raise CorruptStateError(path, f"{where}: {e}") from e

    return task_list


def _load_tabs(data: dict, path: Path, task_list: TaskList, warnings: List[str]) -> List[Tab]:
    records = data.get("tabs")
    if records is None:
        return default_tabs()
    _expect(isinstance(records, list), path, "'tabs' must be an array")

    tabs = []
    for number, record in enumerate(records, 1):
        _expect(isinstance(record, dict), path, f"tab #{number} must be an object")
        try:
            tab = Tab.from_record(record, task_list.tags)
        except InvalidQueryError as e:
            # Only this tab degrades; the rest of the document is fine
            name = record.get("name")
            message = f"Tab '{name}' has an invalid query ({e}); showing all tasks"
            logger.warning(message)
            warnings.append(message)
            selected = record.get("selected")
            tab = Tab(name, Query.all(), selected_id=selected if _is_int(selected) else None)
        except InvalidInputError as e:
            raise CorruptStateError(path, f"tab #{number}: {e}") from e
        tabs.append(tab)

    return tabs or default_tabs()


def load(path=None) -> LoadedState:
    """
    Load tasks and tabs from the state document.

    Args:
        path: Document path (defaults to STATE_PATH)

    Returns:
        LoadedState with a task list, at least one tab, and any warnings

    Raises:
        CorruptStateError: If the document exists but fails validation
        StorageIOError: If the document exists but cannot be read
    """
    path = resolve_path(path)
    try:
        data = _read_document(path)
    except FileNotFoundError:
        logger.info("No state at %s, starting empty", path)
        task_list = TaskList()
        task_list.mark_clean()
        return LoadedState(task_list=task_list, tabs=default_tabs())

    version = data.get("version", SCHEMA_VERSION)
    _expect(_is_int(version), path, "'version' must be an integer")
    _expect(version <= SCHEMA_VERSION, path,
            f"document version {version} is newer than supported ({SCHEMA_VERSION})")

    task_list = _load_tasks(data, path)
    warnings: List[str] = []
    tabs = _load_tabs(data, path, task_list, warnings)

    active = data.get("active_tab", 0)
    if not _is_int(active) or not 0 <= active < len(tabs):
        active = 0

    for tab in tabs:
        tab.resolve(task_list)

    task_list.mark_clean()
    logger.info("Loaded %d tasks and %d tabs from %s", len(task_list), len(tabs), path)
    return LoadedState(task_list=task_list, tabs=tabs, active_tab=active, warnings=warnings)


# --- Saving ---


def to_document(task_list: TaskList, tabs: Sequence[Tab], active_tab: int = 0) -> dict:
    """Build the JSON-ready document."""
    return {
        "version": SCHEMA_VERSION,
        "tags": task_list.tags.names(),
        "tasks": [task.to_record(task_list.tags) for task in task_list],
        "tabs": [tab.to_record(task_list.tags) for tab in tabs],
        "active_tab": active_tab,
    }


def save(path, task_list: TaskList, tabs: Sequence[Tab], active_tab: int = 0) -> Path:
    """
    Write the full state to `path` atomically.

    Creates the parent directory if needed. On success the task list is
    marked clean.

    Returns:
        The path written

    Raises:
        StorageIOError: If any part of the write fails; the previous
            document is left untouched
    """
    path = resolve_path(path)
    document = to_document(task_list, tabs, active_tab)
    serialized = json.dumps(document, indent=2, ensure_ascii=False)

    tmp_name: Optional[str] = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=path.parent, prefix=f".{path.name}.",
            suffix=".tmp", delete=False,
        ) as f:
            tmp_name = f.name
            f.write(serialized)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as e:
        raise StorageIOError(path, e.strerror or str(e)) from e
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                logger.debug("Could not remove temporary file %s", tmp_name)

    task_list.mark_clean()
    logger.info("Saved %d tasks and %d tabs to %s", len(task_list), len(tabs), path)
    return path
