"""
Domain exceptions for volt.

Notes
-----
Engine code does not raise generic exceptions for expected failure modes.
Every expected failure maps to a subclass of VoltError whose message is
user-facing and printed without a stack trace.
"""

from __future__ import annotations


class VoltError(RuntimeError):
    """Base exception for all volt domain failures."""


class UsageError(VoltError):
    """Raised when a subcommand is missing required arguments."""


class ConfigError(VoltError):
    """Raised when environment or command-line configuration is invalid."""


class ProfileError(VoltError):
    """Base class for profile registry failures."""


class ProfileNotFoundError(ProfileError):
    """Raised when a named profile does not exist."""

    def __init__(self, name: str) -> None:
        super().__init__(f"profile '{name}' does not exist")
        self.name = name


class ProfileExistsError(ProfileError):
    """Raised when creating or renaming onto a name that is already taken."""

    def __init__(self, name: str) -> None:
        super().__init__(f"profile '{name}' already exists")
        self.name = name


class ActiveProfileError(ProfileError):
    """Raised when destroying the profile that is currently active."""

    def __init__(self, name: str) -> None:
        super().__init__(f"cannot destroy active profile '{name}'")
        self.name = name


class InvalidProfileNameError(ProfileError):
    """Raised when a profile name is empty or otherwise unusable."""


class InvalidRepositoryError(VoltError):
    """Raised when a repository string cannot be normalized."""


class StateError(VoltError):
    """Base class for state document (lock.json) failures."""


class StateIOError(StateError):
    """Raised when the state document cannot be read or written."""


class StateParseError(StateError):
    """Raised when the state document is not valid JSON or violates invariants."""


class TransactionError(VoltError):
    """Raised when the transaction marker cannot be created, read, or removed."""


class TransactionLockedError(TransactionError):
    """
    Raised when another invocation already holds the transaction marker.

    The message explains whether the marker looks stale and how to proceed
    (for example, re-running with --force).
    """
