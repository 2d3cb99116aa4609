from __future__ import annotations

import json
from pathlib import Path

import pytest

import volt.cli as cli_module
from volt_engine.errors import StateIOError


def _run(volt_path: Path, *argv: str) -> int:
    return cli_module.main(["--volt-path", str(volt_path), "profile", *argv])


def test_profile_without_subcommand_prints_active_profile(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    rc = _run(tmp_path)
    assert rc == 0
    assert capsys.readouterr().out.strip() == "default"


def test_missing_argument_shows_usage_and_exits_0(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    rc = _run(tmp_path, "set")
    out = capsys.readouterr().out
    assert rc == 0
    assert "Usage" in out
    assert "[ERROR] 'volt profile set' receives profile name." in out
    assert not (tmp_path / "lock.json").exists()


def test_unknown_profile_exits_1(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc = _run(tmp_path, "show", "ghost")
    out = capsys.readouterr().out
    assert rc == 1
    assert "[ERROR] profile 'ghost' does not exist" in out


def test_undecodable_state_file_exits_1(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (tmp_path / "lock.json").write_bytes(b"\xff\xfe{}")

    rc = _run(tmp_path, "get")
    out = capsys.readouterr().out
    assert rc == 1
    assert out.startswith("[ERROR] failed to read lock.json")


def test_unknown_subcommand_is_argparse_error(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["profile", "explode"])
    assert excinfo.value.code == 2
    assert "invalid choice" in capsys.readouterr().err


def test_held_lock_exits_1(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (tmp_path / "trx.lock").write_text("not json\n", encoding="utf-8")

    rc = _run(tmp_path, "new", "work")
    out = capsys.readouterr().out
    assert rc == 1
    assert out.startswith("[ERROR] transaction lock exists but could not be read")
    assert not (tmp_path / "lock.json").exists()


def test_write_failure_exits_1(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    def _boom(_self: object, _document: object) -> None:
        raise StateIOError("failed to write lock.json: nope")

    monkeypatch.setattr("volt_engine.state_store.JsonStateStore.write", _boom)

    rc = _run(tmp_path, "new", "work")
    out = capsys.readouterr().out
    assert rc == 1
    assert "[ERROR] failed to write lock.json: nope" in out
    assert not (tmp_path / "trx.lock").exists()


def test_invalid_stale_threshold_exits_1(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("VOLT_LOCK_STALE_SECONDS", "soon")
    rc = _run(tmp_path, "get")
    assert rc == 1
    assert "[ERROR] VOLT_LOCK_STALE_SECONDS" in capsys.readouterr().out


def test_force_breaks_lock_of_dead_process(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr("volt_engine.transaction.platform.node", lambda: "HOST")
    monkeypatch.setattr("volt_engine.transaction.is_pid_running", lambda _pid: False)
    stale = {
        "schema_version": "volt_trx_lock_v1",
        "owner_id": "gone",
        "created_at_utc": "2026-01-01T00:00:00Z",
        "hostname": "HOST",
        "pid": 4242,
        "command": "profile add",
    }
    (tmp_path / "trx.lock").write_text(json.dumps(stale), encoding="utf-8")

    assert _run(tmp_path, "new", "work") == 1
    assert "--force" in capsys.readouterr().out

    assert _run(tmp_path, "new", "work", "--force") == 0
    assert "[INFO] Created new profile 'work'" in capsys.readouterr().out
    assert not (tmp_path / "trx.lock").exists()


@pytest.mark.parametrize(
    "argv",
    [
        ("add", "default", "a/b", "--force", "c/d"),
        ("add", "default", "--force", "a/b", "c/d"),
        ("--force", "add", "default", "a/b", "c/d"),
        ("add", "default", "a/b", "c/d", "--force"),
    ],
)
def test_force_may_appear_among_repositories(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], argv: tuple[str, ...]
) -> None:
    assert _run(tmp_path, *argv) == 0
    state = json.loads((tmp_path / "lock.json").read_text(encoding="utf-8"))
    assert state["profiles"][0]["repos_path"] == ["github.com/a/b", "github.com/c/d"]
    capsys.readouterr()


def test_unknown_option_is_still_rejected(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["profile", "add", "default", "a/b", "--bogus"])
    assert excinfo.value.code == 2
    assert "unrecognized arguments: --bogus" in capsys.readouterr().err


def test_voltpath_environment_is_used(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("VOLTPATH", str(tmp_path))
    rc = cli_module.main(["profile", "new", "work"])
    assert rc == 0
    assert (tmp_path / "lock.json").exists()
    capsys.readouterr()
