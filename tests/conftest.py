"""Shared fixtures: isolate every test from the user's XDG directories."""

import os

import pytest


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point XDG directories into tmp_path and drop QAI_* variables."""
    for name in list(os.environ):
        if name.startswith("QAI_"):
            monkeypatch.delenv(name, raising=False)

    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    # ./qai.yml is a config candidate; keep the test's cwd empty
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    return tmp_path


@pytest.fixture
def history_dir(tmp_path):
    return tmp_path / "history"
