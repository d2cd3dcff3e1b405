"""
Tests for the one-shot CLI commands.
"""

import json
import subprocess
import sys
from pathlib import Path

from typer.testing import CliRunner

from tabdo.cli.main import app, __version__

runner = CliRunner()


def invoke(*args, **kwargs):
    return runner.invoke(app, list(args), **kwargs)


def test_version():
    result = invoke("version")
    assert result.exit_code == 0
    assert f"tabdo v{__version__}" in result.output


def test_help_lists_commands_and_keys():
    result = invoke("help")
    assert result.exit_code == 0
    assert "ls" in result.output
    assert "Keys:" in result.output


def test_add_then_ls_json(temp_state):
    result = invoke("add", "Buy milk", "--tag", "home", "--tag", "errands")
    assert result.exit_code == 0
    assert "Created task" in result.output
    assert temp_state.exists()

    result = invoke("ls", "--json")
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data == [{
        "id": 1,
        "summary": "Buy milk",
        "tags": ["errands", "home"],
        "complete": False,
        "notes": "",
    }]


def test_ls_table_and_empty_tab():
    result = invoke("ls")
    assert result.exit_code == 0
    assert "No tasks" in result.output

    invoke("add", "Write report")
    result = invoke("ls")
    assert result.exit_code == 0
    assert "Write report" in result.output
    assert "Total: 1 task(s)" in result.output


def test_add_rejects_bad_input(temp_state):
    result = invoke("add", "Bad tag", "--tag", "a|b")
    assert result.exit_code == 1
    assert "Error" in result.output
    assert not temp_state.exists()


def test_ls_unknown_tab():
    result = invoke("ls", "--tab", "nowhere")
    assert result.exit_code == 1
    assert "nowhere" in result.output


def test_ls_named_tab(temp_state):
    temp_state.write_text(json.dumps({
        "version": 1,
        "tags": ["home", "work"],
        "tasks": [
            {"id": 1, "summary": "Mow lawn", "tags": ["home"]},
            {"id": 2, "summary": "Send invoice", "tags": ["work"]},
        ],
        "tabs": [
            {"name": "all", "query": {"filter": "all", "order": "list"}},
            {"name": "work", "query": {"filter": "#work", "order": "list"}},
        ],
    }), encoding="utf-8")

    result = invoke("ls", "--tab", "work", "--json")
    assert result.exit_code == 0
    assert [task["summary"] for task in json.loads(result.output)] == ["Send invoice"]

    result = invoke("tabs")
    assert result.exit_code == 0
    assert "work" in result.output
    assert "#work" in result.output


def test_corrupt_state_is_fatal_and_untouched(temp_state):
    temp_state.write_text("{broken", encoding="utf-8")
    result = invoke("add", "Anything")
    assert result.exit_code == 1
    assert "corrupt" in result.output
    assert temp_state.read_text(encoding="utf-8") == "{broken"


def test_path_option_and_env_var(tmp_path):
    custom = tmp_path / "elsewhere" / "todo.json"
    result = invoke("--path", str(custom), "add", "Custom location")
    assert result.exit_code == 0
    assert custom.exists()

    result = invoke("ls", "--json", env={"TABDO_PATH": str(custom)})
    assert result.exit_code == 0
    assert json.loads(result.output)[0]["summary"] == "Custom location"


def test_log_file_option(tmp_path):
    log_file = tmp_path / "logs" / "run.log"
    result = invoke("--log-file", str(log_file), "--debug", "add", "Logged")
    assert result.exit_code == 0
    assert log_file.exists()


def test_module_entry_point(tmp_path):
    """The CLI runs as a module, like the installed console script."""
    result = subprocess.run(
        [sys.executable, "-m", "tabdo.cli.main", "--log-file", str(tmp_path / "tabdo.log"),
         "--path", str(tmp_path / "tabdo.json"), "version"],
        capture_output=True,
        text=True,
        encoding='utf-8',
        errors='replace',
        cwd=Path(__file__).parent.parent,
    )

    assert "tabdo v" in result.stdout, f"Expected version output, got: {result.stdout}"
    assert result.returncode == 0, f"Expected exit code 0, got: {result.returncode}"
