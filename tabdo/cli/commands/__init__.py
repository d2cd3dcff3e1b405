"""
FILE: tabdo/cli/commands/__init__.py
PURPOSE: CLI command modules
"""

# Export all command handlers for easy importing
from .tasks import (
    ls,
    add,
    tabs,
)
from .system import (
    version,
    help,
)

__all__ = [
    "ls",
    "add",
    "tabs",
    "version",
    "help",
]
