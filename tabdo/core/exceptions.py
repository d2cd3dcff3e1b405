"""
FILE: tabdo/core/exceptions.py
PURPOSE: Custom exception classes for error handling
EXPORTS:
  - TabdoError (base exception)
  - TaskNotFoundError
  - TagNotFoundError
  - InvalidInputError
  - InvalidQueryError
  - CorruptStateError
  - StorageIOError
DEPENDENCIES:
  - None (stdlib only)
NOTES:
  - All exceptions inherit from TabdoError for easy catching
  - Exceptions include context (IDs, paths) for helpful error messages
  - Core raises these, the UI controller and CLI commands catch and display
"""


class TabdoError(Exception):
    """Base exception for all tabdo errors."""
    pass


class TaskNotFoundError(TabdoError):
    """Task with given ID doesn't exist (any more)."""

    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class TagNotFoundError(TabdoError):
    """Tag with given ID or name doesn't exist."""

    def __init__(self, tag):
        self.tag = tag
        super().__init__(f"Tag {tag!r} not found")


class InvalidInputError(TabdoError):
    """Input validation failed."""

    def __init__(self, message: str):
        super().__init__(message)


class InvalidQueryError(TabdoError):
    """A filter expression or ordering could not be understood."""

    def __init__(self, message: str, text: str = ""):
        self.text = text
        super().__init__(message)


class CorruptStateError(TabdoError):
    """The persisted state document failed validation."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"State file {path} is corrupt: {reason}")


class StorageIOError(TabdoError):
    """Reading or writing the state document failed."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not access {path}: {reason}")
