"""
State document I/O.

The state document (``lock.json``) is the source of truth for profiles. This
module provides the read/write surface used by the command dispatcher.

Design constraints
------------------
- Writes are atomic (temp file + replace). Readers observe either the previous
  or the new document, never a partial one.
- A missing state file reads as the initial document; it is not written until
  a mutating command commits.
- Serialization is deterministic for a given in-memory document.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Protocol

from .data_models import StateDocument
from .errors import StateIOError, StateParseError

logger = logging.getLogger(__name__)


class StateStore(Protocol):
    """Persistence surface for the state document."""

    def read(self) -> StateDocument:
        """
        Load the current state document.

        Raises
        ------
        StateIOError
            If the file exists but cannot be read.
        StateParseError
            If the content is not valid JSON or violates document invariants.
        """
        ...

    def write(self, document: StateDocument) -> None:
        """
        Persist a state document atomically.

        Raises
        ------
        StateIOError
            If the document cannot be written.
        """
        ...


@dataclass(frozen=True, slots=True)
class JsonWriteOptions:
    """Options controlling state document serialization."""

    indent: int = 2
    sort_keys: bool = False
    ensure_ascii: bool = False


def write_json_atomic(
    json_path: Path,
    payload: Mapping[str, Any],
    *,
    options: JsonWriteOptions | None = None,
) -> None:
    """
    Write JSON atomically to disk.

    Raises
    ------
    TypeError
        If the payload is not JSON-serializable. Nothing is written.
    StateIOError
        If the temporary file cannot be written or moved into place.
    """
    opts = options or JsonWriteOptions()
    json_path = json_path.expanduser()
    text = json.dumps(
        payload,
        indent=opts.indent,
        sort_keys=opts.sort_keys,
        ensure_ascii=opts.ensure_ascii,
    )

    temp_path = json_path.with_suffix(json_path.suffix + f".{os.getpid()}.tmp")

    try:
        json_path.parent.mkdir(parents=True, exist_ok=True)
        with temp_path.open("w", encoding="utf-8", newline="\n") as handle:
            handle.write(text + "\n")
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, json_path)
    except OSError as exc:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError:
            logger.warning("could not remove temporary file %s", temp_path)
        raise StateIOError(f"failed to write {json_path}: {exc!s}") from exc


@dataclass(frozen=True, slots=True)
class JsonStateStore:
    """
    StateStore backed by a JSON file.

    Parameters
    ----------
    path:
        Location of ``lock.json``.
    """

    path: Path

    def read(self) -> StateDocument:
        """See StateStore.read."""
        if not self.path.exists():
            logger.debug("state file %s absent; using initial document", self.path)
            return StateDocument.initial()

        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StateIOError(f"failed to read lock.json: {self.path} ({exc!s})") from exc
        except UnicodeDecodeError as exc:
            raise StateParseError(f"failed to read lock.json: {self.path} is not valid UTF-8 ({exc})") from exc

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise StateParseError(f"failed to read lock.json: invalid JSON in {self.path} ({exc})") from exc

        try:
            document = StateDocument.from_dict(payload)
        except ValueError as exc:
            raise StateParseError(f"failed to read lock.json: {exc}") from exc

        logger.debug("read %d profile(s) from %s", len(document.profiles), self.path)
        return document

    def write(self, document: StateDocument) -> None:
        """See StateStore.write."""
        write_json_atomic(self.path, document.to_dict())
        logger.debug("wrote %d profile(s) to %s", len(document.profiles), self.path)
