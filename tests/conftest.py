"""Shared pytest configuration and fixtures for tests."""

import sys
import io
from pathlib import Path

import pytest

# Fix Windows console encoding
if sys.platform == "win32":
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8')
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8')

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tabdo.core import storage  # noqa: E402
from tabdo import log  # noqa: E402


@pytest.fixture(autouse=True)
def temp_state(monkeypatch, tmp_path):
    """Keep the state document and the log inside a temporary directory."""
    state_path = tmp_path / "tabdo.json"
    monkeypatch.setattr(storage, "STATE_PATH", state_path)
    monkeypatch.setattr(storage, "STATE_DIR", tmp_path)
    monkeypatch.setattr(log, "LOG_PATH", tmp_path / "tabdo.log")
    monkeypatch.delenv("TABDO_PATH", raising=False)
    yield state_path
