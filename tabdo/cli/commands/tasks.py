"""
FILE: tabdo/cli/commands/tasks.py
PURPOSE: One-shot task and tab commands (ls, add, tabs)
"""

import json
from typing import List, Optional

import typer
from rich.markup import escape
from rich.table import Table

from ..main import app, console, error_console, load_state
from ...core.exceptions import TabdoError, InvalidInputError, StorageIOError


@app.command()
def ls(
    ctx: typer.Context,
    tab_name: Optional[str] = typer.Option(None, "--tab", "-t", help="Tab to list (default: active tab)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    List the tasks a tab shows, in the tab's order.

    Example:
        tabdo ls
        tabdo ls --tab work
        tabdo ls --json
    """
    state = load_state(ctx)
    arena = state.task_list.tags

    if tab_name is None:
        tab = state.active_tab
    else:
        index = state.find_tab(tab_name)
        if index is None:
            error_console.print(f"[red]Error:[/red] No tab named '{tab_name}'")
            raise typer.Exit(1)
        tab = state.tabs[index]

    tasks = list(tab.view(state.task_list))

    if json_output:
        console.print(json.dumps([task.to_record(arena) for task in tasks], indent=2),
                      soft_wrap=True, highlight=False, markup=False)
        return

    if not tasks:
        console.print(f"[dim]No tasks in '{tab.name}'[/dim]")
        return

    table = Table(title=escape(f"{tab.name} ({tab.query.describe(arena)})"))
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Done", style="magenta")
    table.add_column("Summary", style="white")
    table.add_column("Tags", style="blue")

    for task in tasks:
        status_display = "✓" if task.complete else "○"
        status_style = "green" if task.complete else "yellow"
        table.add_row(
            str(task.id),
            f"[{status_style}]{status_display}[/{status_style}]",
            escape(task.summary),
            " ".join("#" + name for name in task.tag_names(arena)),
        )

    console.print(table)
    console.print(f"\n[dim]Total: {len(tasks)} task(s)[/dim]")


@app.command()
def add(
    ctx: typer.Context,
    summary: str = typer.Argument(..., help="Task summary"),
    tags: List[str] = typer.Option([], "--tag", "-t", help="Tag (repeatable)"),
):
    """
    Create a new task and save it.

    Example:
        tabdo add "Buy milk" --tag home
    """
    state = load_state(ctx)
    try:
        task_id = state.task_list.add(summary, tags)
        state.save()
    except InvalidInputError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except StorageIOError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except TabdoError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)

    task = state.task_list.get(task_id)
    console.print(f"[green]✓ Created task [bold]#{task.id}[/bold]:[/green] {escape(task.summary)}")


@app.command()
def tabs(ctx: typer.Context):
    """
    List tabs with their filters and task counts.

    Example:
        tabdo tabs
    """
    state = load_state(ctx)
    arena = state.task_list.tags

    table = Table(title="Tabs")
    table.add_column("#", style="cyan", no_wrap=True)
    table.add_column("Name", style="white")
    table.add_column("Filter", style="blue")
    table.add_column("Order", style="magenta")
    table.add_column("Tasks", justify="right")

    for index, tab in enumerate(state.tabs):
        marker = "*" if index == state.active_index else ""
        table.add_row(
            f"{index + 1}{marker}",
            escape(tab.name),
            escape(tab.query.describe(arena)),
            tab.query.ordering.value,
            str(len(tab.view(state.task_list))),
        )

    console.print(table)
