"""
FILE: tabdo/ui/keymaps.py
PURPOSE: Key name -> action tables, one per focusable widget kind
EXPORTS:
  - TASK_LIST_KEYS, TAB_BAR_KEYS, DIALOG_KEYS (dicts)
  - KEYMAPS (dict: WidgetKind -> table)
  - action_for(kind, key) -> Optional[str]
  - HELP_TEXT (str)
DEPENDENCIES:
  - tabdo.ui.focus (WidgetKind)
NOTES:
  - Unhandled keys are NOT passed up to the parent widget; every table lists
    its own global keys (quit, save, undo, help)
  - Editors have no table, they take raw key names (see editor.py)
"""

from typing import Dict, Optional

from .focus import WidgetKind


# Keys every browsing widget understands
_GLOBAL_KEYS = {
    "u": "undo",
    "w": "save",
    "q": "quit",
    "c-c": "quit",
    "?": "help",
}

TASK_LIST_KEYS: Dict[str, str] = {
    "j": "next",
    "down": "next",
    "k": "prev",
    "up": "prev",
    "g": "first",
    "home": "first",
    "G": "last",
    "end": "last",
    "a": "add_task",
    "e": "edit_summary",
    "enter": "edit_summary",
    "t": "edit_tags",
    "i": "edit_notes",
    "space": "toggle_complete",
    "x": "toggle_complete",
    "d": "delete_task",
    "delete": "delete_task",
    "J": "move_down",
    "K": "move_up",
    "/": "search",
    "n": "search_next",
    "N": "search_prev",
    "h": "prev_tab",
    "l": "next_tab",
    "tab": "focus_tab_bar",
    "f": "edit_filter",
    "s": "cycle_ordering",
    **_GLOBAL_KEYS,
}

TAB_BAR_KEYS: Dict[str, str] = {
    "h": "prev_tab",
    "left": "prev_tab",
    "l": "next_tab",
    "right": "next_tab",
    "H": "move_tab_left",
    "L": "move_tab_right",
    "a": "add_tab",
    "r": "rename_tab",
    "f": "edit_filter",
    "s": "cycle_ordering",
    "D": "delete_tab",
    "R": "rename_tag",
    "tab": "focus_task_list",
    "enter": "focus_task_list",
    "j": "focus_task_list",
    "down": "focus_task_list",
    **{str(digit): "jump_tab" for digit in range(1, 10)},
    **_GLOBAL_KEYS,
}

DIALOG_KEYS: Dict[str, str] = {
    "y": "confirm",
    "enter": "confirm",
    "n": "deny",
    "escape": "cancel",
}

KEYMAPS = {
    WidgetKind.TASK_LIST: TASK_LIST_KEYS,
    WidgetKind.TAB_BAR: TAB_BAR_KEYS,
    WidgetKind.DIALOG: DIALOG_KEYS,
}


def action_for(kind: WidgetKind, key: str) -> Optional[str]:
    """Look up `key` in the table of the given widget kind only."""
    return KEYMAPS.get(kind, {}).get(key)


HELP_TEXT = """\
Tasks:  j/k move  g/G first/last  a add  e edit  t tags  i notes
        space done  d delete  J/K reorder  / search  n/N next/prev match
Tabs:   h/l switch  tab tab bar  f filter  s ordering
Bar:    a add  r rename  D delete  H/L move  1-9 jump  R rename tag
Global: u undo  w save  q quit  ? help
Filter: #tag  done  todo  all  !x  x & y  x | y  (x)"""
