"""Pytest fixtures for memocap tests."""

import json
from pathlib import Path

import pytest

from memocap.store import RecordStore


@pytest.fixture(autouse=True)
def isolated_app_data(tmp_path, monkeypatch):
    """Point the application data dir at a temp folder for every test.

    Returns:
        Path to the temporary application data directory
    """
    data_dir = tmp_path / "appdata"
    monkeypatch.setenv("MEMOCAP_DATA_DIR", str(data_dir))
    monkeypatch.delenv("MEMOCAP_SAVE_PATH", raising=False)
    monkeypatch.delenv("MEMOCAP_LOG_LEVEL", raising=False)
    return data_dir


@pytest.fixture
def captures_root(tmp_path):
    """Create an empty storage root.

    Args:
        tmp_path: pytest's built-in temporary directory fixture

    Returns:
        Path to the storage root
    """
    root = tmp_path / "captures"
    root.mkdir()
    return root


@pytest.fixture
def store(captures_root):
    """RecordStore bound to the temporary storage root."""
    return RecordStore(captures_root)


@pytest.fixture
def write_raw(captures_root):
    """Write a metadata file with arbitrary content into the root.

    Returns:
        Callable(name, data) -> Path; dicts are JSON-encoded, strings written as-is
    """

    def _write(name: str, data) -> Path:
        path = captures_root / name
        if isinstance(data, str):
            path.write_text(data, encoding="utf-8")
        else:
            path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def png_bytes():
    """Smallest useful stand-in for encoded image data."""
    return b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
