"""Fixtures for CLI tests against the fake site."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from cmadmin.config.manager import ConfigManager


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path):
    """Point every command at a throwaway config file."""
    mgr = ConfigManager(config_path=tmp_path / "config.toml")
    with patch("cmadmin.commands._common.ConfigManager", return_value=mgr), \
            patch("cmadmin.commands.config_cmd._get_manager", return_value=mgr):
        yield mgr


@pytest.fixture
def no_settle(monkeypatch: pytest.MonkeyPatch) -> None:
    """Skip the read-back delay of --pass-thru."""
    monkeypatch.setattr("cmadmin.operations.base.time.sleep", lambda _: None)
