"""Test configuration and shared fixtures."""

import os

import pytest

from heirloom.config import TaggingConfig, set_config


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Give every test a fresh global config with storage under tmp_path.

    HEIRLOOM_* variables from the developer's shell must not leak into tests,
    and nothing may touch ~/.heirloom.
    """
    for key in list(os.environ):
        if key.upper().startswith("HEIRLOOM_"):
            monkeypatch.delenv(key, raising=False)

    config = TaggingConfig(
        sqlite_path=str(tmp_path / "items.db"),
        snapshot_path=str(tmp_path / "tags.json"),
    )
    set_config(config)
    yield config
    set_config(None)
