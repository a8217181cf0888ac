"""Shared fixtures for treedigest tests."""

import os

import pytest


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Keep ConfigLoader away from the developer's real config files and environment."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(
        "treedigest.common.config.platformdirs.user_config_dir",
        lambda *args, **kwargs: str(home / "user-config"),
    )
    for key in list(os.environ):
        if key.startswith("TREEDIGEST_"):
            monkeypatch.delenv(key)
    return home
