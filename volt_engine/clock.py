"""
Clock abstractions for deterministic behavior.

Notes
-----
The transaction guard stamps and ages its marker through a Clock so that
staleness checks can be tested without sleeping.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol

ISO_8601_UTC_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class Clock(Protocol):
    """A source of time for deterministic behavior."""

    def now(self) -> datetime:
        """
        Return the current time.

        Returns
        -------
        datetime
            A timezone-aware datetime.
        """
        ...


@dataclass(frozen=True, slots=True)
class SystemClock:
    """Clock that returns the current system time in UTC."""

    def now(self) -> datetime:
        """
        Return the wall-clock time used to stamp transaction markers.

        Returns
        -------
        datetime
            Current time as a timezone-aware datetime in UTC.
        """
        return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class FixedClock:
    """
    Clock frozen at a single instant.

    Attributes
    ----------
    fixed_time:
        Instant to report. A naive value is interpreted as UTC.
    """

    fixed_time: datetime

    def now(self) -> datetime:
        """
        Return the frozen instant.

        Returns
        -------
        datetime
            ``fixed_time``, with UTC attached when it was naive.
        """
        if self.fixed_time.tzinfo is None:
            return self.fixed_time.replace(tzinfo=timezone.utc)
        return self.fixed_time


def format_utc(dt: datetime) -> str:
    """
    Serialize an aware datetime as ``YYYY-MM-DDTHH:MM:SSZ``.

    Raises
    ------
    ValueError
        If ``dt`` is naive.
    """
    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return dt.astimezone(timezone.utc).strftime(ISO_8601_UTC_FORMAT)


def parse_utc(value: str) -> datetime:
    """Parse a timestamp written by :func:`format_utc`."""
    return datetime.strptime(value, ISO_8601_UTC_FORMAT).replace(tzinfo=timezone.utc)
