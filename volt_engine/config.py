"""
Configuration and filesystem layout for volt.

This module is the single place that consults the environment. Everything
downstream receives a resolved VoltConfig and explicit paths.

- The volt root comes from ``--volt-path``, then ``$VOLTPATH``, then ``~/volt``.
- ``lock.json`` (state document) and ``trx.lock`` (transaction marker) live
  directly under the root.
- ``$VOLT_LOCK_STALE_SECONDS`` optionally enables an age threshold after which
  a held transaction marker is considered stale.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Mapping

from .errors import ConfigError

VOLTPATH_ENV = "VOLTPATH"
LOCK_STALE_SECONDS_ENV = "VOLT_LOCK_STALE_SECONDS"

LOCK_JSON_NAME = "lock.json"
TRX_LOCK_NAME = "trx.lock"


@dataclass(frozen=True, slots=True)
class VoltConfig:
    """
    Resolved runtime configuration.

    Attributes
    ----------
    volt_path:
        Root directory holding volt's state.
    lock_stale_after:
        Age after which a held transaction marker counts as stale, or None to
        rely only on PID liveness.
    """

    volt_path: Path
    lock_stale_after: timedelta | None = None

    @property
    def lock_json_path(self) -> Path:
        """Path of the state document."""
        return self.volt_path / LOCK_JSON_NAME

    @property
    def trx_lock_path(self) -> Path:
        """Path of the transaction marker."""
        return self.volt_path / TRX_LOCK_NAME


def default_volt_path(environ: Mapping[str, str] | None = None) -> Path:
    """
    Resolve the default volt root.

    Preference order:
    1) $VOLTPATH if set and non-empty
    2) ~/volt
    """
    env = os.environ if environ is None else environ
    configured = env.get(VOLTPATH_ENV, "").strip()
    if configured:
        return Path(configured).expanduser()
    return Path.home() / "volt"


def parse_stale_seconds(raw: str | None) -> timedelta | None:
    """
    Parse the staleness threshold.

    Parameters
    ----------
    raw:
        Value of $VOLT_LOCK_STALE_SECONDS, or None when unset.

    Returns
    -------
    timedelta | None
        Threshold, or None when unset or empty.

    Raises
    ------
    ConfigError
        If the value is not a positive integer.
    """
    if raw is None or not raw.strip():
        return None
    try:
        seconds = int(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"{LOCK_STALE_SECONDS_ENV} must be an integer, got {raw!r}") from exc
    if seconds <= 0:
        raise ConfigError(f"{LOCK_STALE_SECONDS_ENV} must be positive, got {seconds}")
    return timedelta(seconds=seconds)


def load_config(
    volt_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> VoltConfig:
    """
    Build a VoltConfig from an optional override and the environment.

    Parameters
    ----------
    volt_path:
        Explicit root (``--volt-path``). Wins over the environment.
    environ:
        Environment mapping; defaults to os.environ.

    Returns
    -------
    VoltConfig
        Resolved configuration.
    """
    env = os.environ if environ is None else environ
    root = Path(volt_path).expanduser() if volt_path is not None else default_volt_path(env)
    return VoltConfig(
        volt_path=root,
        lock_stale_after=parse_stale_seconds(env.get(LOCK_STALE_SECONDS_ENV)),
    )
