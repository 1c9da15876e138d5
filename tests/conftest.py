"""Shared pytest fixtures for lockkeeper tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from structlog.testing import capture_logs

from lockkeeper.core.config import GlobalConfig
from lockkeeper.core.fs import LocalFileSystem


def _write_json(path: Path, data: Any) -> str:
    text = json.dumps(data, indent=4) + "\n"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return text


@pytest.fixture(autouse=True)
def log_events():
    """Capture structlog events instead of printing them to stdout."""
    with capture_logs() as events:
        yield events


@pytest.fixture
def write_json():
    """Write data as pretty JSON to a path and return the text written."""
    return _write_json


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    root = tmp_path / "repo"
    root.mkdir()
    return root


@pytest.fixture
def fs(repo: Path, tmp_path: Path) -> LocalFileSystem:
    return LocalFileSystem(repo, tmp_path / "cache")


@pytest.fixture
def global_config(repo: Path, tmp_path: Path) -> GlobalConfig:
    return GlobalConfig(local_dir=str(repo), cache_dir=str(tmp_path / "cache"))
