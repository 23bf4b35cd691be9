"""Shared fixtures: keep every test away from the user's real settings."""

import time

import pytest

from wagecalc.sdk.taxes import clear_rules_cache


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point config at an empty temp directory and use bundled tables."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    monkeypatch.setenv("WAGE_CALC_CONFIG_PATH", str(config_dir))
    monkeypatch.delenv("WAGE_CALC_TAX_RULES_DIR", raising=False)
    clear_rules_cache()
    yield config_dir
    clear_rules_cache()


@pytest.fixture
def local_tokyo(monkeypatch):
    """Run with JST (UTC+9, no DST) as the machine's local zone."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset not available")
    monkeypatch.setenv("TZ", "JST-9")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()
