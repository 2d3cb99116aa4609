from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from volt_engine.config import default_volt_path, load_config
from volt_engine.errors import ConfigError


def test_default_volt_path_prefers_voltpath(tmp_path: Path) -> None:
    assert default_volt_path({"VOLTPATH": str(tmp_path / "v")}) == tmp_path / "v"


def test_default_volt_path_falls_back_to_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("USERPROFILE", str(tmp_path))
    assert default_volt_path({}) == tmp_path / "volt"


def test_load_config_override_wins_over_environment(tmp_path: Path) -> None:
    config = load_config(volt_path=tmp_path / "cli", environ={"VOLTPATH": str(tmp_path / "env")})
    assert config.volt_path == tmp_path / "cli"
    assert config.lock_json_path == tmp_path / "cli" / "lock.json"
    assert config.trx_lock_path == tmp_path / "cli" / "trx.lock"
    assert config.lock_stale_after is None


def test_load_config_reads_stale_threshold(tmp_path: Path) -> None:
    config = load_config(environ={"VOLTPATH": str(tmp_path), "VOLT_LOCK_STALE_SECONDS": "600"})
    assert config.lock_stale_after == timedelta(minutes=10)


@pytest.mark.parametrize("raw", ["soon", "0", "-5"])
def test_load_config_rejects_bad_stale_threshold(tmp_path: Path, raw: str) -> None:
    with pytest.raises(ConfigError):
        load_config(environ={"VOLTPATH": str(tmp_path), "VOLT_LOCK_STALE_SECONDS": raw})
