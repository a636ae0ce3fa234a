"""Shared fixtures: keep the host's config and env out of every test."""

from pathlib import Path

import pytest

_ENV_VARS = (
    "ADMIN_PASSWORD",
    "ADJACENT_STORE_BACKEND",
    "ADJACENT_DATA_DIR",
    "ADJACENT_UPLOADS_DIR",
    "ADJACENT_UPLOADS_URL",
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "ADJACENT_HOST",
    "ADJACENT_PORT",
    "ADJACENT_DEBUG",
)


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch, tmp_path: Path):
    """Remove env overrides and point the global config at a missing file."""
    for key in _ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr("adjacent.config.GLOBAL_CONFIG_PATH", tmp_path / "no-global.toml")
