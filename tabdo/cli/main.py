"""
FILE: tabdo/cli/main.py
PURPOSE: Typer-based CLI: launches the UI or runs one-shot commands
EXPORTS:
  - app (Typer application)
  - main() (entry point)
  - load_state(ctx) -> AppState
  - version() - Show version
  - help() - Show command list and keys
  - ls() - List the tasks of a tab
  - add() - Create a task
  - tabs() - List tabs
DEPENDENCIES:
  - typer (CLI framework)
  - rich (formatted output)
  - tabdo.core.state (AppState)
  - tabdo.core.exceptions (error handling)
  - tabdo.log (file logging)
  - tabdo.ui.app (interactive mode)
NOTES:
  - Error messages go to stderr
  - Exit codes: 0=success, 1=error (unreadable state, bad input, failed save)
  - Global options come before the command: tabdo --path x.json ls
"""

import sys
from pathlib import Path
from typing import Optional

# Fix Windows console encoding for Unicode characters
if sys.platform == "win32":
    import io
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8')
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8')

import typer
from rich.console import Console

from ..core.exceptions import CorruptStateError, StorageIOError
from ..core.state import AppState
from ..log import configure_logging

# Typer app setup
app = typer.Typer(
    name="tabdo",
    help="Keyboard-driven terminal task manager with tag-filtered tabs",
    add_completion=False,
)

# Rich console for formatted output
console = Console()
error_console = Console(stderr=True)

# Version
__version__ = "0.1.0"


def load_state(ctx: typer.Context) -> AppState:
    """
    Load the state selected by the global options.

    Exits with code 1 if the document is corrupt or unreadable; it is never
    overwritten in that case.
    """
    options = ctx.obj or {}
    try:
        state = AppState.load(options.get("path"), autosave=options.get("autosave", False))
    except CorruptStateError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        error_console.print("[dim]Fix or move the file away; it will not be overwritten.[/dim]")
        raise typer.Exit(1)
    except StorageIOError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    for warning in state.warnings:
        error_console.print(f"[yellow]Warning:[/yellow] {warning}")
    return state


@app.callback(invoke_without_command=True)
def default_command(
    ctx: typer.Context,
    path: Optional[Path] = typer.Option(
        None, "--path", "-p", envvar="TABDO_PATH", help="State file (default: ~/.tabdo/tabdo.json)"
    ),
    autosave: bool = typer.Option(False, "--autosave/--no-autosave", help="Save after every change"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Log file (default: ~/.tabdo/tabdo.log)"),
    debug: bool = typer.Option(False, "--debug", help="Verbose logging"),
):
    """
    Default callback - launches the UI when no command is specified.

    If a subcommand is invoked, this only records the global options.
    """
    try:
        configure_logging(log_file, debug)
    except StorageIOError as e:
        error_console.print(f"[yellow]Warning:[/yellow] logging disabled: {e}")

    ctx.obj = {"path": path, "autosave": autosave}

    if ctx.invoked_subcommand is None:
        state = load_state(ctx)
        # Import here to avoid loading the UI for one-shot commands
        from ..ui.app import run_app
        raise typer.Exit(run_app(state))


# Import command modules to register commands with app
# Commands are decorated with @app.command() in their modules
if __name__ == "__main__":
    # Under `python -m tabdo.cli.main`, let `..main` resolve to this module
    sys.modules.setdefault("tabdo.cli.main", sys.modules[__name__])
from .commands import (
    # System commands
    version,
    help,
    # Task commands
    ls,
    add,
    tabs,
)


def main():
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
