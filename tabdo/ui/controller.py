"""
FILE: tabdo/ui/controller.py
PURPOSE: Routes key presses through the focus tree and applies actions
EXPORTS:
  - StatusKind (enum)
  - Status (dataclass)
  - Dialog (dataclass)
  - Controller (class)
DEPENDENCIES:
  - logging (stdlib)
  - tabdo.core.state (AppState)
  - tabdo.core.query (Query, required_tags)
  - tabdo.ui.focus, tabdo.ui.editor, tabdo.ui.keymaps
NOTES:
  - One key is processed to completion before the next is read
  - Keys go to the focused widget's table only (see keymaps.py)
  - TabdoError is caught at handle_key() and becomes a status message;
    stale task ids (TaskNotFoundError) are logged and ignored
  - A redraw is requested once per key that changed anything visible
  - Quitting saves first; a failed save (w or quit) asks whether to retry
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from ..core.exceptions import (
    InvalidInputError,
    StorageIOError,
    TabdoError,
    TagNotFoundError,
    TaskNotFoundError,
)
from ..core.models import validate_tag_name
from ..core.query import Ordering, Query, required_tags
from ..core.state import AppState
from ..core.tabs import Tab
from .editor import EditPurpose, EditorState, InPlaceEditor
from .focus import FocusTree, Widget, WidgetKind
from .keymaps import HELP_TEXT, action_for

logger = logging.getLogger(__name__)


class StatusKind(Enum):
    CLEAR = "clear"
    INFO = "info"
    SAVED = "saved"
    ERROR = "error"
    INPUT = "input"


@dataclass(frozen=True)
class Status:
    """What the bottom line shows."""
    kind: StatusKind = StatusKind.CLEAR
    text: str = ""


@dataclass
class Dialog:
    """
    Modal question attached below the widget that asked it.

    Attributes:
        message: Text shown to the user
        on_confirm: Run on y/enter (None just closes)
        on_deny: Run on n (None just closes)
        detail: Longer text shown in place of the task list
    """
    message: str
    on_confirm: Optional[Callable[[], None]] = None
    on_deny: Optional[Callable[[], None]] = None
    detail: str = ""


class Controller:
    """
    Event loop core: owns the focus tree and the session state.

    Attributes:
        state: The AppState being edited
        tree: Focus tree (root -> tab bar -> one task list per tab)
        status: Current status line
        search_term: Last committed search, used by n/N
        running: False once the program should exit
        exit_code: 0 normally, 1 if the final save failed and was abandoned
        redraws: Number of redraw requests not yet taken by the front-end
    """

    def __init__(self, state: AppState):
        self.state = state
        self.tree = FocusTree()
        self.tab_bar = self.tree.attach(self.tree.root, Widget(WidgetKind.TAB_BAR))
        self._views: Dict[Tab, Widget] = {}
        self.status = Status()
        self.search_term: Optional[str] = None
        self.running = True
        self.exit_code = 0
        self.redraws = 0

        self._sync_views()
        self.state.resolve_all()
        self.tree.focus(self._active_view())
        if state.warnings:
            self.status = Status(StatusKind.ERROR, "; ".join(state.warnings))

        self._handlers: Dict[str, Callable[[str], None]] = {
            # task list
            "next": self._select_next,
            "prev": self._select_prev,
            "first": self._select_first,
            "last": self._select_last,
            "add_task": self._add_task,
            "edit_summary": self._edit_summary,
            "edit_tags": self._edit_tags,
            "edit_notes": self._edit_notes,
            "toggle_complete": self._toggle_complete,
            "delete_task": self._delete_task,
            "move_down": self._move_down,
            "move_up": self._move_up,
            "search": self._search,
            "search_next": self._search_next,
            "search_prev": self._search_prev,
            "focus_tab_bar": self._focus_tab_bar,
            # tab bar
            "focus_task_list": self._focus_task_list,
            "jump_tab": self._jump_tab,
            "move_tab_left": self._move_tab_left,
            "move_tab_right": self._move_tab_right,
            "add_tab": self._add_tab,
            "rename_tab": self._rename_tab,
            "delete_tab": self._delete_tab,
            "rename_tag": self._rename_tag,
            # both
            "prev_tab": self._prev_tab,
            "next_tab": self._next_tab,
            "edit_filter": self._edit_filter,
            "cycle_ordering": self._cycle_ordering,
            "undo": self._undo,
            "save": self._save,
            "quit": self._quit,
            "help": self._help,
        }

    # --- Read access for the renderer ---

    @property
    def focused(self) -> Widget:
        return self.tree.focused

    @property
    def editor(self) -> Optional[InPlaceEditor]:
        for widget in self.tree.find(WidgetKind.EDITOR):
            return widget.payload
        return None

    @property
    def dialog(self) -> Optional[Dialog]:
        for widget in self.tree.find(WidgetKind.DIALOG):
            return widget.payload
        return None

    def take_redraw(self) -> bool:
        """True (once) if anything changed since the last call."""
        if self.redraws:
            self.redraws = 0
            return True
        return False

    # --- Event entry points ---

    def handle_key(self, key: str) -> bool:
        """
        Process one key press.

        Returns:
            False once the program should exit
        """
        if not self.running:
            return False

        before = self._fingerprint()
        widget = self.tree.focused
        try:
            if widget.kind is WidgetKind.EDITOR:
                self._editor_key(widget, key)
            elif widget.kind is WidgetKind.DIALOG:
                self._dialog_key(widget, key)
            else:
                action = action_for(widget.kind, key)
                if action is not None:
                    logger.debug("Key %r -> %s", key, action)
                    self._handlers[action](key)
        except TaskNotFoundError as e:
            logger.warning("Ignoring stale reference: %s", e)
        except TabdoError as e:
            logger.info("Action failed: %s", e)
            self.status = Status(StatusKind.ERROR, str(e))

        self.state.resolve_all()
        if self.running and self.state.autosave and self.state.dirty:
            self._autosave()

        if self._fingerprint() != before:
            self.redraws += 1
        return self.running

    def handle_paste(self, text: str) -> None:
        """Pasted text goes into an open editor and is ignored elsewhere."""
        editor = self.editor
        if editor is not None and self.tree.focused.payload is editor:
            before = self._fingerprint()
            editor.insert(text)
            if self._fingerprint() != before:
                self.redraws += 1

    def _fingerprint(self) -> tuple:
        editor = self.editor
        return (
            self.state.task_list.generation,
            id(self.tree.focused),
            self.state.active_index,
            tuple((id(tab), tab.name, tab.selected_id, tab.query.revision, id(tab.query))
                  for tab in self.state.tabs),
            self.status,
            (editor.text, editor.cursor) if editor else None,
            self.search_term,
            self.running,
        )

    # --- Focus helpers ---

    def _sync_views(self) -> None:
        """Give every tab exactly one task list widget under the tab bar."""
        current = set(self.state.tabs)
        for tab in list(self._views):
            if tab not in current:
                self.tree.detach(self._views.pop(tab))
        for tab in self.state.tabs:
            if tab not in self._views:
                widget = Widget(WidgetKind.TASK_LIST, tab)
                self._views[tab] = self.tree.attach(self.tab_bar, widget)

    def _active_view(self) -> Widget:
        return self._views[self.state.active_tab]

    def _tab_changed(self) -> None:
        """Follow the active tab if the task list had the focus."""
        self._sync_views()
        if self.tree.focused.kind is WidgetKind.TASK_LIST:
            self.tree.focus(self._active_view())

    def _open(self, kind: WidgetKind, payload) -> Widget:
        widget = self.tree.attach(self.tree.focused, Widget(kind, payload))
        self.tree.focus(widget)
        return widget

    def _open_editor(self, purpose: EditPurpose, text: str = "", target: Optional[int] = None,
                     prompt: str = "") -> InPlaceEditor:
        editor = InPlaceEditor(purpose, text, target, prompt)
        self._open(WidgetKind.EDITOR, editor)
        self.status = Status(StatusKind.INPUT, editor.prompt)
        return editor

    def _confirm(self, message: str, on_confirm: Callable[[], None],
                 on_deny: Optional[Callable[[], None]] = None) -> None:
        self._open(WidgetKind.DIALOG, Dialog(message, on_confirm, on_deny))
        self.status = Status(StatusKind.INPUT, message)

    # --- Editors and dialogs ---

    def _editor_key(self, widget: Widget, key: str) -> None:
        editor: InPlaceEditor = widget.payload
        if not editor.handle_key(key) or editor.active:
            return

        self.tree.detach(widget)
        self.status = Status()
        if editor.state is EditorState.COMMITTED:
            self._commit(editor)

    def _dialog_key(self, widget: Widget, key: str) -> None:
        action = action_for(WidgetKind.DIALOG, key)
        if action is None:
            return
        dialog: Dialog = widget.payload
        self.tree.detach(widget)
        self.status = Status()
        if action == "confirm" and dialog.on_confirm is not None:
            dialog.on_confirm()
        elif action == "deny" and dialog.on_deny is not None:
            dialog.on_deny()

    def _commit(self, editor: InPlaceEditor) -> None:
        """Apply the committed text according to the editor's purpose."""
        purpose = editor.purpose
        text = editor.text.strip()
        task_list = self.state.task_list

        if purpose is EditPurpose.ADD_TASK:
            if text:
                self._create_task(text)

        elif purpose is EditPurpose.EDIT_SUMMARY:
            before = task_list.get(editor.target).copy()

            def apply(task):
                task.summary = text

            updated = task_list.update(editor.target, apply)
            if updated.summary != before.summary:
                self.state.undo.record_update(before, f"edited '{before.summary}'")

        elif purpose is EditPurpose.EDIT_TAGS:
            before = task_list.get(editor.target).copy()
            names = text.replace(",", " ").split()
            updated = task_list.set_tags(editor.target, names)
            if updated.tags != before.tags:
                self.state.undo.record_update(before, f"retagged '{before.summary}'")

        elif purpose is EditPurpose.EDIT_NOTES:
            before = task_list.get(editor.target).copy()

            def apply(task):
                task.notes = editor.text

            task_list.update(editor.target, apply)
            if editor.text != before.notes:
                self.state.undo.record_update(before, f"edited notes of '{before.summary}'")

        elif purpose is EditPurpose.ADD_TAB:
            tab = self.state.add_tab(text)
            self._tab_changed()
            self.status = Status(StatusKind.INFO, f"Added tab '{tab.name}' (f sets its filter)")

        elif purpose is EditPurpose.RENAME_TAB:
            self.state.tabs[editor.target].rename(text)
            self.state.mark_tabs_changed()

        elif purpose is EditPurpose.EDIT_QUERY:
            tab = self.state.tabs[editor.target]
            query = Query.parse(text, task_list.tags, tab.query.ordering)
            if query != tab.query:
                tab.set_query(query)
                self.state.mark_tabs_changed()
            self.status = Status(StatusKind.INFO, f"Filter: {query.describe(task_list.tags)}")

        elif purpose is EditPurpose.SEARCH:
            self.search_term = text or None
            if self.search_term:
                self._search_step(1, include_current=True)

        elif purpose is EditPurpose.RENAME_TAG:
            self._apply_tag_rename(text)

    # --- Task list actions ---

    def _tab(self) -> Tab:
        return self.state.active_tab

    def _selected(self):
        return self._tab().selected_task(self.state.task_list)

    def _select_next(self, key: str) -> None:
        self._tab().select_next(self.state.task_list)

    def _select_prev(self, key: str) -> None:
        self._tab().select_prev(self.state.task_list)

    def _select_first(self, key: str) -> None:
        self._tab().select_first(self.state.task_list)

    def _select_last(self, key: str) -> None:
        self._tab().select_last(self.state.task_list)

    def _add_task(self, key: str) -> None:
        self._open_editor(EditPurpose.ADD_TASK, prompt="new task")

    def _create_task(self, summary: str) -> None:
        """Add a task carrying the tags the active filter requires."""
        task_list = self.state.task_list
        tab = self._tab()
        tags = sorted(task_list.tags.name_of(tag_id)
                      for tag_id in required_tags(tab.query.predicate))
        task_id = task_list.add(summary, tags)
        self.state.undo.record_add(task_id, summary)

        if tab.select(task_list, task_id):
            self.status = Status(StatusKind.INFO, f"Added '{summary}'")
        else:
            self.status = Status(
                StatusKind.INFO, f"Added '{summary}' (hidden by the filter of '{tab.name}')"
            )

    def _edit_summary(self, key: str) -> None:
        task = self._selected()
        if task is not None:
            self._open_editor(EditPurpose.EDIT_SUMMARY, task.summary, task.id, "edit")

    def _edit_tags(self, key: str) -> None:
        task = self._selected()
        if task is not None:
            names = " ".join(task.tag_names(self.state.task_list.tags))
            self._open_editor(EditPurpose.EDIT_TAGS, names, task.id, "tags")

    def _edit_notes(self, key: str) -> None:
        task = self._selected()
        if task is not None:
            self._open_editor(EditPurpose.EDIT_NOTES, task.notes, task.id, "notes")

    def _toggle_complete(self, key: str) -> None:
        task = self._selected()
        if task is None:
            return
        before = task.copy()
        updated = self.state.task_list.toggle_complete(task.id)
        verb = "completed" if updated.complete else "reopened"
        self.state.undo.record_update(before, f"{verb} '{before.summary}'")
        self.status = Status(StatusKind.INFO, f"{verb.capitalize()} '{updated.summary}'")

    def _delete_task(self, key: str) -> None:
        task = self._selected()
        if task is None:
            return
        task_id = task.id
        self._confirm(f"Delete '{task.summary}'? (y/n)", lambda: self._remove_task(task_id))

    def _remove_task(self, task_id: int) -> None:
        task_list = self.state.task_list
        position = task_list.position(task_id)
        removed = task_list.remove(task_id)
        if removed is None:
            logger.warning("Task %d was already gone", task_id)
            return
        self.state.undo.record_remove(removed, position)
        self.status = Status(StatusKind.INFO, f"Deleted '{removed.summary}'")

    def _move(self, offset: int) -> None:
        task = self._selected()
        if task is None:
            return
        task_list = self.state.task_list
        position = task_list.position(task.id)
        if task_list.move(task.id, offset):
            self.state.undo.record_move(task.id, position, task.summary)
            if self._tab().query.ordering is not Ordering.LIST:
                self.status = Status(StatusKind.INFO, "Moved (only visible in list ordering)")

    def _move_down(self, key: str) -> None:
        self._move(1)

    def _move_up(self, key: str) -> None:
        self._move(-1)

    # --- Search ---

    def _search(self, key: str) -> None:
        self._open_editor(EditPurpose.SEARCH, self.search_term or "", prompt="search")

    def _search_step(self, step: int, include_current: bool = False) -> None:
        if not self.search_term:
            raise InvalidInputError("Nothing to search for (press / first)")

        task_list = self.state.task_list
        tab = self._tab()
        tasks = list(tab.view(task_list))
        term = self.search_term.casefold()
        matches = [index for index, task in enumerate(tasks) if term in task.summary.casefold()]
        if not matches:
            raise InvalidInputError(f"No match for '{self.search_term}'")

        current = tab.resolve(task_list)
        current = -1 if current is None else current
        if step > 0:
            later = [i for i in matches if i > current or (include_current and i == current)]
            index = later[0] if later else matches[0]
        else:
            earlier = [i for i in matches if i < current]
            index = earlier[-1] if earlier else matches[-1]

        tab.select(task_list, tasks[index].id)
        number = matches.index(index) + 1
        self.status = Status(StatusKind.INFO, f"/{self.search_term} ({number}/{len(matches)})")

    def _search_next(self, key: str) -> None:
        self._search_step(1)

    def _search_prev(self, key: str) -> None:
        self._search_step(-1)

    # --- Tabs ---

    def _focus_tab_bar(self, key: str) -> None:
        self.tree.focus(self.tab_bar)

    def _focus_task_list(self, key: str) -> None:
        self.tree.focus(self._active_view())

    def _prev_tab(self, key: str) -> None:
        if self.state.cycle_tab(-1):
            self._tab_changed()

    def _next_tab(self, key: str) -> None:
        if self.state.cycle_tab(1):
            self._tab_changed()

    def _jump_tab(self, key: str) -> None:
        if self.state.select_tab(int(key) - 1):
            self._tab_changed()

    def _move_tab_left(self, key: str) -> None:
        self.state.move_tab(self.state.active_index, -1)

    def _move_tab_right(self, key: str) -> None:
        self.state.move_tab(self.state.active_index, 1)

    def _add_tab(self, key: str) -> None:
        self._open_editor(EditPurpose.ADD_TAB, prompt="tab name")

    def _rename_tab(self, key: str) -> None:
        index = self.state.active_index
        self._open_editor(EditPurpose.RENAME_TAB, self._tab().name, index, "rename tab")

    def _delete_tab(self, key: str) -> None:
        if len(self.state.tabs) <= 1:
            raise InvalidInputError("Cannot delete the last tab")
        tab = self._tab()
        self._confirm(f"Delete tab '{tab.name}'? (y/n)", lambda: self._remove_tab(tab))

    def _remove_tab(self, tab: Tab) -> None:
        index = self.state.tabs.index(tab)
        self.state.remove_tab(index)
        self._tab_changed()
        self.status = Status(StatusKind.INFO, f"Deleted tab '{tab.name}'")

    def _edit_filter(self, key: str) -> None:
        tab = self._tab()
        text = tab.query.describe(self.state.task_list.tags)
        self._open_editor(EditPurpose.EDIT_QUERY, text, self.state.active_index, "filter")

    def _cycle_ordering(self, key: str) -> None:
        ordering = self._tab().cycle_ordering()
        self.state.mark_tabs_changed()
        self.status = Status(StatusKind.INFO, f"Ordering: {ordering.value}")

    def _rename_tag(self, key: str) -> None:
        self._open_editor(EditPurpose.RENAME_TAG, prompt="rename tag (old new)")

    def _apply_tag_rename(self, text: str) -> None:
        parts = text.split()
        if len(parts) != 2:
            raise InvalidInputError("Usage: <old tag> <new tag>")
        old, new = validate_tag_name(parts[0]), validate_tag_name(parts[1])
        tag = self.state.task_list.tags.find(old)
        if tag is None:
            raise TagNotFoundError(old)
        self.state.task_list.rename_tag(tag.id, new)
        self.state.undo.record_rename_tag(tag.id, old)
        self.state.mark_tabs_changed()
        self.status = Status(StatusKind.INFO, f"Renamed #{old} to #{new}")

    # --- Global actions ---

    def _undo(self, key: str) -> None:
        message = self.state.undo.undo(self.state.task_list)
        self.status = Status(StatusKind.INFO, message)

    def _save(self, key: str = "w") -> None:
        try:
            path = self.state.save()
        except StorageIOError as e:
            logger.error("Save failed: %s", e)
            self._ask_retry(e, self._save, self._keep_unsaved, "n: keep editing")
            return
        self.status = Status(StatusKind.SAVED, f"Saved to {path}")

    def _keep_unsaved(self) -> None:
        self.status = Status(StatusKind.INFO, "Changes not saved (w saves)")

    def _ask_retry(self, error: StorageIOError, retry: Callable[[], None],
                   give_up: Callable[[], None], give_up_label: str) -> None:
        """Dialog for a failed save: y retries, n gives up, escape goes back."""
        question = f"Retry? (y: retry, {give_up_label}, esc: back)"
        self._open(WidgetKind.DIALOG, Dialog(f"{error}. {question}", retry, give_up))
        self.status = Status(StatusKind.ERROR, f"Save failed: {error.reason}. {question}")

    def _autosave(self) -> None:
        try:
            self.state.save()
        except StorageIOError as e:
            logger.error("Autosave failed: %s", e)
            self.status = Status(StatusKind.ERROR, f"Autosave failed: {e}")

    def _quit(self, key: str = "q") -> None:
        try:
            self.state.save()
        except StorageIOError as e:
            logger.error("Save on quit failed: %s", e)
            self._ask_retry(e, self._quit, self._abandon, "n: quit without saving")
            return
        self.running = False
        self.exit_code = 0

    def _abandon(self) -> None:
        logger.warning("Quitting without saving")
        self.running = False
        self.exit_code = 1

    def _help(self, key: str) -> None:
        self._open(WidgetKind.DIALOG, Dialog("Help (enter or escape closes)", detail=HELP_TEXT))
        self.status = Status(StatusKind.INFO, "Help (enter or escape closes)")

    def visible_tasks(self) -> List:
        """Tasks of the active tab, in view order."""
        return list(self._tab().view(self.state.task_list))
