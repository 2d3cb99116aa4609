"""Data models for volt.

This module defines the typed representation of the state document
(``lock.json``): the profile list, the active profile, and the repository
records owned by other volt commands.

Models are frozen dataclasses. Registry operations never mutate a document in
place; they build a new one with ``dataclasses.replace``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Self

STATE_SCHEMA_VERSION = 1

_PROFILE_KEYS = frozenset({"name", "repos_path", "load_init"})
_STATE_KEYS = frozenset({"version", "active_profile", "repos", "profiles"})
DEFAULT_PROFILE_NAME = "default"


def _require_keys(payload: Mapping[str, Any], keys: set[str], *, context: str) -> None:
    missing = keys.difference(payload.keys())
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ValueError(f"Missing required keys in {context}: {missing_str}")


def _require_type(value: Any, expected: type, *, context: str) -> None:
    if not isinstance(value, expected):
        raise ValueError(f"{context} must be {expected.__name__}, got {type(value).__name__}")


@dataclass(frozen=True, slots=True)
class Profile:
    """
    A named, ordered, duplicate-free list of repositories.

    Attributes
    ----------
    name:
        Unique, non-empty profile name.
    repos_path:
        Normalized repository identifiers in load order.
    load_init:
        Whether the editor's init file is loaded when this profile is active.
    extra:
        Keys written by other volt commands, carried through unchanged.
    """

    name: str
    repos_path: tuple[str, ...] = ()
    load_init: bool = True
    extra: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Self:
        """Construct a :class:`Profile` from a mapping."""

        _require_type(payload, dict, context="profile")
        _require_keys(payload, {"name", "repos_path", "load_init"}, context="profile")
        name = payload["name"]
        repos_path = payload["repos_path"]
        load_init = payload["load_init"]
        _require_type(name, str, context="profile name")
        _require_type(repos_path, list, context=f"repos_path of profile {name!r}")
        _require_type(load_init, bool, context=f"load_init of profile {name!r}")
        if not name:
            raise ValueError("profile name must not be empty")
        for entry in repos_path:
            _require_type(entry, str, context=f"repos_path entry of profile {name!r}")
        if len(set(repos_path)) != len(repos_path):
            raise ValueError(f"repos_path of profile {name!r} contains duplicates")
        return cls(
            name=name,
            repos_path=tuple(repos_path),
            load_init=load_init,
            extra={k: v for k, v in payload.items() if k not in _PROFILE_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert this model to a JSON-serializable dict."""

        payload: dict[str, Any] = {
            "name": self.name,
            "repos_path": list(self.repos_path),
            "load_init": self.load_init,
        }
        for key, value in self.extra.items():
            payload.setdefault(key, value)
        return payload


@dataclass(frozen=True, slots=True)
class ProfileView:
    """Read-only projection of a profile, as shown by ``volt profile show``."""

    name: str
    load_init: bool
    repos_path: tuple[str, ...]

    def render(self) -> str:
        """Render the projection as indented text."""
        lines = [
            f"name: {self.name}",
            f"load_init: {'true' if self.load_init else 'false'}",
            "repos_path:",
        ]
        lines.extend(f"  {repos_path}" for repos_path in self.repos_path)
        return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class StateDocument:
    """
    The persisted state document.

    Attributes
    ----------
    active_profile:
        Name of the active profile. Always names an entry of ``profiles``.
    profiles:
        Profiles in creation order.
    repos:
        Repository records owned by other commands, preserved verbatim.
    version:
        Schema version of the document.
    extra:
        Top-level keys owned by other commands, preserved verbatim.
    """

    active_profile: str
    profiles: tuple[Profile, ...]
    repos: tuple[Mapping[str, Any], ...] = field(default_factory=tuple)
    version: int = STATE_SCHEMA_VERSION
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """
        Check document invariants.

        Raises
        ------
        ValueError
            If profile names are duplicated or the active profile is unknown.
        """
        names = [p.name for p in self.profiles]
        if len(set(names)) != len(names):
            raise ValueError("profile names must be unique")
        if self.active_profile not in names:
            raise ValueError(f"active profile {self.active_profile!r} is not a known profile")

    @classmethod
    def initial(cls) -> Self:
        """Return the document used when no state has been written yet."""

        return cls(
            active_profile=DEFAULT_PROFILE_NAME,
            profiles=(Profile(name=DEFAULT_PROFILE_NAME),),
        )

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Self:
        """Construct a :class:`StateDocument` from a mapping."""

        _require_type(payload, dict, context="state document")
        _require_keys(payload, {"active_profile", "profiles"}, context="state document")
        active = payload["active_profile"]
        profiles = payload["profiles"]
        repos = payload.get("repos", [])
        version = payload.get("version", STATE_SCHEMA_VERSION)
        _require_type(active, str, context="active_profile")
        _require_type(profiles, list, context="profiles")
        _require_type(repos, list, context="repos")
        _require_type(version, int, context="version")
        for record in repos:
            _require_type(record, dict, context="repos entry")
        return cls(
            active_profile=active,
            profiles=tuple(Profile.from_dict(p) for p in profiles),
            repos=tuple(repos),
            version=version,
            extra={k: v for k, v in payload.items() if k not in _STATE_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert this model to a JSON-serializable dict."""

        payload: dict[str, Any] = {
            "version": self.version,
            "active_profile": self.active_profile,
            "repos": [dict(r) for r in self.repos],
            "profiles": [p.to_dict() for p in self.profiles],
        }
        for key, value in self.extra.items():
            payload.setdefault(key, value)
        return payload

    def profile_index(self, name: str) -> int | None:
        """Return the index of the first profile named ``name``, or None."""

        for i, profile in enumerate(self.profiles):
            if profile.name == name:
                return i
        return None
