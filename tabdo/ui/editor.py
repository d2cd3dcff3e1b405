"""
FILE: tabdo/ui/editor.py
PURPOSE: Single-line in-place editor on top of prompt_toolkit's Buffer
EXPORTS:
  - EditPurpose (enum)
  - EditorState (enum)
  - InPlaceEditor (class)
DEPENDENCIES:
  - prompt_toolkit.buffer.Buffer (line editing)
  - prompt_toolkit.document.Document
NOTES:
  - The editor only knows text; what a commit means is decided by the
    controller based on `purpose` and `target`
  - enter commits, escape cancels; either ends the editor for good
"""

from enum import Enum
from typing import Optional

from prompt_toolkit.buffer import Buffer
from prompt_toolkit.document import Document


class EditPurpose(Enum):
    ADD_TASK = "add task"
    EDIT_SUMMARY = "edit summary"
    EDIT_TAGS = "edit tags"
    EDIT_NOTES = "edit notes"
    ADD_TAB = "add tab"
    RENAME_TAB = "rename tab"
    EDIT_QUERY = "filter"
    SEARCH = "search"
    RENAME_TAG = "rename tag"


# Editors shown in place of a task row; the others use the status line
ROW_PURPOSES = (EditPurpose.ADD_TASK, EditPurpose.EDIT_SUMMARY)


class EditorState(Enum):
    ACTIVE = "active"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


class InPlaceEditor:
    """
    Text field bound to one editing purpose.

    Attributes:
        purpose: What the committed text will be used for
        target: Task id, tab index or tag id the edit applies to (if any)
        prompt: Label shown in front of the text
    """

    def __init__(self, purpose: EditPurpose, text: str = "", target: Optional[int] = None,
                 prompt: str = ""):
        self.purpose = purpose
        self.target = target
        self.prompt = prompt or purpose.value
        self.state = EditorState.ACTIVE
        self.buffer = Buffer(multiline=False)
        self.buffer.set_document(Document(text, len(text)), bypass_readonly=True)

    @property
    def text(self) -> str:
        return self.buffer.text

    @property
    def cursor(self) -> int:
        return self.buffer.cursor_position

    @property
    def active(self) -> bool:
        return self.state is EditorState.ACTIVE

    def _move_to(self, position: int) -> None:
        self.buffer.cursor_position = max(0, min(len(self.buffer.text), position))

    def handle_key(self, key: str) -> bool:
        """
        Feed one key name.

        Returns:
            True if the key was consumed
        """
        if not self.active:
            return False

        if key == "enter":
            self.state = EditorState.COMMITTED
        elif key == "escape":
            self.state = EditorState.CANCELLED
        elif key == "backspace":
            self.buffer.delete_before_cursor(1)
        elif key == "delete":
            self.buffer.delete(1)
        elif key == "left":
            self._move_to(self.cursor - 1)
        elif key == "right":
            self._move_to(self.cursor + 1)
        elif key in ("home", "c-a"):
            self._move_to(0)
        elif key in ("end", "c-e"):
            self._move_to(len(self.text))
        elif key == "c-u":
            self.buffer.delete_before_cursor(self.cursor)
        elif key == "c-w":
            start = self.buffer.document.find_start_of_previous_word()
            if start:
                self.buffer.delete_before_cursor(-start)
        elif key == "space":
            self.buffer.insert_text(" ")
        elif len(key) == 1 and key.isprintable():
            self.buffer.insert_text(key)
        else:
            return False
        return True

    def insert(self, text: str) -> None:
        """Insert pasted text; line breaks become spaces."""
        if self.active and text:
            self.buffer.insert_text(" ".join(text.splitlines()))
