"""Shared fixtures: every test gets its own empty data directory."""

import pytest

from feynlearn.storage import files


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    root = tmp_path / "data"
    root.mkdir()
    monkeypatch.setattr(files, "get_data_dir", lambda: root)
    return root
