"""
Transaction guard for volt.

Mutating commands must not interleave their read-modify-write of
``lock.json``. This module provides a process-external exclusivity marker
(``trx.lock``) acquired by exclusive file creation.

Design goals
------------
- Test-and-set: acquisition either succeeds immediately or fails with
  TransactionLockedError. There is no blocking, retry, or backoff.
- Scoped: the guard is a context manager, so the marker is removed on every
  exit path of the guarded block.
- Inspectable: the marker is a small JSON document naming its owner.
- Conservative stale handling: a held marker is broken only with ``force`` and
  only when it is provably stale (dead PID on this host, or older than the
  configured threshold).
"""

from __future__ import annotations

import json
import logging
import os
import platform
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from pathlib import Path
from types import TracebackType
from typing import Mapping

from .clock import Clock, SystemClock, format_utc, parse_utc
from .errors import TransactionError, TransactionLockedError

logger = logging.getLogger(__name__)

LOCK_SCHEMA_VERSION = "volt_trx_lock_v1"


@dataclass(frozen=True, slots=True)
class TransactionLockInfo:
    """
    Metadata recorded in the transaction marker.

    Attributes
    ----------
    schema_version:
        Schema identifier for the marker JSON.
    owner_id:
        Random token identifying the acquiring guard instance.
    created_at_utc:
        Acquisition time in UTC (ISO 8601 with 'Z').
    hostname:
        Host where the marker was created.
    pid:
        Process ID of the creating process.
    command:
        Command that acquired the marker, e.g. "profile add".
    """

    schema_version: str
    owner_id: str
    created_at_utc: str
    hostname: str
    pid: int
    command: str


class TransactionGuard:
    """
    Exclusivity marker serializing mutating volt invocations.

    Parameters
    ----------
    lock_path:
        Filesystem path of the marker file.
    command:
        Command name recorded in the marker for inspection.
    clock:
        Time source for stamping and aging the marker.
    stale_after:
        Optional age after which a held marker counts as stale.
    force:
        If True, break a provably stale marker instead of failing.

    Notes
    -----
    Use as a context manager::

        with TransactionGuard(path, command="profile new"):
            ...
    """

    def __init__(
        self,
        lock_path: Path,
        *,
        command: str = "profile",
        clock: Clock | None = None,
        stale_after: timedelta | None = None,
        force: bool = False,
    ) -> None:
        self._lock_path = lock_path.expanduser()
        self._command = command
        self._clock = clock or SystemClock()
        self._stale_after = stale_after
        self._force = force
        self._info: TransactionLockInfo | None = None

    @property
    def path(self) -> Path:
        """Return the marker path."""
        return self._lock_path

    @property
    def held(self) -> bool:
        """Return True while this guard owns the marker."""
        return self._info is not None

    def create(self) -> None:
        """
        Acquire the marker.

        Raises
        ------
        TransactionLockedError
            If the marker is held and cannot be broken under the current flags.
        TransactionError
            If this guard already holds the marker, or the marker cannot be
            written or broken.
        """
        if self._info is not None:
            raise TransactionError(f"transaction already held by this process: {self._lock_path}")

        try:
            self._lock_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise TransactionError(f"failed to create {self._lock_path.parent} ({exc})") from exc
        info = self._build_info()

        try:
            _write_lock_exclusive(self._lock_path, info)
        except FileExistsError:
            self._break_if_allowed()
            try:
                _write_lock_exclusive(self._lock_path, info)
            except FileExistsError:
                # Someone else acquired between unlink and create.
                raise TransactionLockedError(
                    f"transaction lock is held by another process: {self._lock_path}"
                ) from None

        self._info = info
        logger.debug("acquired transaction lock %s (%s)", self._lock_path, self._command)

    def remove(self) -> None:
        """
        Release the marker if this guard holds it.

        Calling remove() when the marker is not held is a no-op. A marker that
        now belongs to another owner (after being broken) is left in place.

        Raises
        ------
        TransactionError
            If the marker file cannot be removed.
        """
        info = self._info
        if info is None:
            return
        self._info = None

        existing = _try_read_lock(self._lock_path)
        if existing is not None and existing.get("owner_id") != info.owner_id:
            logger.warning("transaction lock %s was taken over; leaving it in place", self._lock_path)
            return
        try:
            self._lock_path.unlink(missing_ok=True)
        except OSError as exc:
            raise TransactionError(f"failed to remove transaction lock: {self._lock_path} ({exc})") from exc
        logger.debug("released transaction lock %s", self._lock_path)

    def __enter__(self) -> TransactionGuard:
        self.create()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc is None:
            self.remove()
            return
        # The block's own error wins over a failed release.
        try:
            self.remove()
        except TransactionError as release_exc:
            logger.warning("%s", release_exc)

    def _build_info(self) -> TransactionLockInfo:
        return TransactionLockInfo(
            schema_version=LOCK_SCHEMA_VERSION,
            owner_id=uuid.uuid4().hex,
            created_at_utc=format_utc(self._clock.now()),
            hostname=platform.node(),
            pid=os.getpid(),
            command=self._command,
        )

    def _break_if_allowed(self) -> None:
        existing = _try_read_lock(self._lock_path)
        details = _format_lock_details(existing)

        if existing is None:
            raise TransactionLockedError(
                "transaction lock exists but could not be read. Another volt command may be "
                f"running; if not, remove {self._lock_path} manually.\n" + details
            )

        reason = self._stale_reason(existing)
        if reason is None:
            raise TransactionLockedError(
                "another volt command is running (transaction lock is held).\n" + details
            )
        if not self._force:
            raise TransactionLockedError(
                f"transaction lock appears to be stale ({reason}). Re-run with --force to break it.\n"
                + details
            )

        logger.warning("breaking stale transaction lock %s (%s)", self._lock_path, reason)
        try:
            self._lock_path.unlink(missing_ok=True)
        except OSError as exc:
            raise TransactionError(
                f"failed to remove stale transaction lock: {self._lock_path} ({exc})"
            ) from exc

    def _stale_reason(self, existing: Mapping[str, object]) -> str | None:
        host = existing.get("hostname")
        pid = existing.get("pid")
        if isinstance(host, str) and isinstance(pid, int) and host.lower() == platform.node().lower():
            if is_pid_running(pid) is False:
                return f"process {pid} is not running"

        if self._stale_after is not None:
            created = _parse_created_at(existing)
            if created is not None:
                age = self._clock.now() - created
                if age > self._stale_after:
                    return f"created {int(age.total_seconds())}s ago"
        return None


def _write_lock_exclusive(lock_path: Path, info: TransactionLockInfo) -> None:
    payload = json.dumps(asdict(info), sort_keys=True) + "\n"
    try:
        with lock_path.open("x", encoding="utf-8", newline="\n") as f:
            f.write(payload)
    except FileExistsError:
        raise
    except OSError as exc:
        raise TransactionError(f"failed to create transaction lock: {lock_path} ({exc})") from exc


def _try_read_lock(lock_path: Path) -> Mapping[str, object] | None:
    try:
        raw = lock_path.read_text(encoding="utf-8")
    except OSError:
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    return data


def _parse_created_at(existing: Mapping[str, object]) -> datetime | None:
    value = existing.get("created_at_utc")
    if not isinstance(value, str):
        return None
    try:
        return parse_utc(value)
    except ValueError:
        return None


def _format_lock_details(existing: Mapping[str, object] | None) -> str:
    if not existing:
        return ""
    fields = ["command", "created_at_utc", "hostname", "pid"]
    parts = [f"{name}={existing.get(name)!r}" for name in fields if name in existing]
    return "lock details: " + ", ".join(parts) if parts else ""


def is_pid_running(pid: int) -> bool | None:
    """
    Determine whether a process is running.

    Parameters
    ----------
    pid:
        Process ID to check.

    Returns
    -------
    bool | None
        True if running, False if not running, None if indeterminate or unsupported.
    """
    if pid <= 0 or os.name == "nt":
        return None
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists, owned by another user.
        return True
    except OSError:
        return None
    return True
