"""
FILE: tabdo/cli/commands/system.py
PURPOSE: System commands (version, help)
"""

# Import shared objects from main module
# These will be available after main.py imports this module
from ..main import app, console, __version__
from ...ui.keymaps import HELP_TEXT


@app.command()
def version():
    """Show tabdo version."""
    console.print(f"tabdo v{__version__}")


@app.command()
def help():
    """Show available commands and keys."""
    console.print("\n[bold cyan]tabdo[/bold cyan] - Keyboard-driven terminal task manager\n")
    console.print(f"[dim]Version {__version__}[/dim]\n")

    console.print("[bold]Usage:[/bold]")
    console.print("  tabdo [options] [command]")
    console.print("  tabdo                     [dim]# Launch the full-screen UI (default)[/dim]\n")

    console.print("[bold]Commands:[/bold]")

    commands = [
        ("ls", "List the tasks of a tab", "tabdo ls [--tab NAME] [--json]"),
        ("add", "Create a task", 'tabdo add "Task summary" [--tag home]'),
        ("tabs", "List tabs and their filters", "tabdo tabs"),
        ("version", "Show version", "tabdo version"),
        ("help", "Show this help message", "tabdo help"),
    ]

    for cmd, desc, example in commands:
        console.print(f"  [green]{cmd:8}[/green] {desc}")
        console.print(f"           [dim]{example}[/dim]\n")

    console.print("[bold]Global Options:[/bold]")
    console.print("  [yellow]--path, -p[/yellow]    State file (or $TABDO_PATH)")
    console.print("  [yellow]--autosave[/yellow]    Save after every change")
    console.print("  [yellow]--log-file[/yellow]    Where to write the log")
    console.print("  [yellow]--debug[/yellow]       Verbose logging\n")

    console.print("[bold]Keys:[/bold]")
    for line in HELP_TEXT.splitlines():
        console.print(f"  {line}", markup=False, highlight=False)
    console.print()
