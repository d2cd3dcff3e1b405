"""
FILE: tabdo/ui/render.py
PURPOSE: Turn controller state into prompt_toolkit formatted text
EXPORTS:
  - STYLE (prompt_toolkit Style)
  - render_tab_bar(controller) -> FormattedText
  - render_tasks(controller, height) -> FormattedText
  - render_status(controller) -> FormattedText
DEPENDENCIES:
  - prompt_toolkit.formatted_text (FormattedText)
  - prompt_toolkit.styles (Style)
NOTES:
  - Pure functions of the current state: drawing twice gives the same
    output, nothing is diffed incrementally
  - The only write is the tab's scroll offset, which follows the cursor
"""

from typing import List, Tuple

from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.styles import Style

from ..core.constants import COMPLETE_MARK, INCOMPLETE_MARK, TAB_SEPARATOR
from .controller import Controller, StatusKind
from .editor import EditPurpose, ROW_PURPOSES, InPlaceEditor
from .focus import WidgetKind


PALETTE = {
    "": "#d7dfe6",
    "tab": "#97a0a9",
    "tab.active": "#ffb347 bold",
    "tab.focused": "bg:#3b3b3b #ffb347 bold underline",
    "tab.separator": "#4b525a",
    "task": "#d7dfe6",
    "task.done": "#6d717a",
    "task.selected": "bg:#3b3b3b #d7dfe6 bold",
    "task.tags": "#61afef",
    "task.empty": "#6d717a italic",
    "cursor": "reverse",
    "status.info": "#97a0a9",
    "status.saved": "#9ad974 bold",
    "status.error": "#e06c75 bold",
    "status.input": "#e5c07b",
    "detail": "#d7dfe6",
}

STYLE = Style.from_dict(PALETTE)

Fragments = List[Tuple[str, str]]


def _editor_fragments(editor: InPlaceEditor, style: str) -> Fragments:
    """Editor text with the cursor cell highlighted."""
    text, cursor = editor.text, editor.cursor
    under = text[cursor] if cursor < len(text) else " "
    return [
        (style, text[:cursor]),
        ("class:cursor", under),
        (style, text[cursor + 1:]),
    ]


def render_tab_bar(controller: Controller) -> FormattedText:
    state = controller.state
    bar_focused = controller.focused.kind is WidgetKind.TAB_BAR
    fragments: Fragments = []
    for index, tab in enumerate(state.tabs):
        if index:
            fragments.append(("class:tab.separator", TAB_SEPARATOR))
        if index == state.active_index:
            style = "class:tab.focused" if bar_focused else "class:tab.active"
        else:
            style = "class:tab"
        fragments.append((style, f"{index + 1}:{tab.name}"))
    return FormattedText(fragments)


def _task_line(task, arena, style: str) -> Fragments:
    mark = COMPLETE_MARK if task.complete else INCOMPLETE_MARK
    line: Fragments = [(style, f"{mark} {task.summary}")]
    names = task.tag_names(arena)
    if names:
        line.append(("class:task.tags", "  " + " ".join("#" + name for name in names)))
    return line


def render_tasks(controller: Controller, height: int) -> FormattedText:
    """
    The visible slice of the active tab.

    An editor adding or editing a task is drawn in place of (or below) the
    row it belongs to.
    """
    dialog = controller.dialog
    if dialog is not None and dialog.detail:
        return FormattedText([("class:detail", dialog.detail)])

    state = controller.state
    tab = state.active_tab
    arena = state.task_list.tags
    tasks = list(tab.view(state.task_list))
    selected = tab.resolve(state.task_list)

    editor = controller.editor
    if editor is not None and editor.purpose not in ROW_PURPOSES:
        editor = None

    rows: List[Fragments] = []
    for index, task in enumerate(tasks):
        if editor is not None and editor.purpose is EditPurpose.EDIT_SUMMARY \
                and editor.target == task.id:
            mark = COMPLETE_MARK if task.complete else INCOMPLETE_MARK
            rows.append([("class:task.selected", f"{mark} ")]
                        + _editor_fragments(editor, "class:task.selected"))
            continue
        if index == selected and editor is None:
            style = "class:task.selected"
        elif task.complete:
            style = "class:task.done"
        else:
            style = "class:task"
        rows.append(_task_line(task, arena, style))

    cursor_row = selected
    if editor is not None and editor.purpose is EditPurpose.ADD_TASK:
        rows.append([("class:task.selected", f"{INCOMPLETE_MARK} ")]
                    + _editor_fragments(editor, "class:task.selected"))
        cursor_row = len(rows) - 1

    if not rows:
        return FormattedText([("class:task.empty", "(no tasks, press a to add one)")])

    first = tab.scroll(height, cursor_row)
    fragments: Fragments = []
    for row in rows[first:first + max(height, 1)]:
        fragments.extend(row)
        fragments.append(("", "\n"))
    return FormattedText(fragments[:-1])


def render_status(controller: Controller) -> FormattedText:
    status = controller.status
    editor = controller.editor
    if editor is not None and editor.purpose not in ROW_PURPOSES:
        return FormattedText(
            [("class:status.input", f"{editor.prompt}: ")]
            + _editor_fragments(editor, "class:status.input")
        )
    if status.kind is StatusKind.CLEAR:
        return FormattedText([])
    return FormattedText([(f"class:status.{status.kind.value}", status.text)])
