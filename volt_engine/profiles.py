"""
Profile registry operations.

Every operation takes a StateDocument and returns either a read-only value or
a ProfileChange describing the new document. Nothing here touches disk or the
transaction guard; the dispatcher wraps mutating operations in one guarded
read-modify-write cycle.

Invariants
----------
- Profile names are unique and non-empty.
- ``active_profile`` always names an existing profile.
- ``repos_path`` holds no duplicates and keeps insertion order.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence

from .data_models import Profile, ProfileView, StateDocument
from .errors import (
    ActiveProfileError,
    InvalidProfileNameError,
    ProfileExistsError,
    ProfileNotFoundError,
)


@dataclass(frozen=True, slots=True)
class ProfileChange:
    """
    Outcome of a registry operation.

    Attributes
    ----------
    document:
        Document after the operation. Identical to the input when unchanged.
    changed:
        True if ``document`` must be written.
    messages:
        Informational lines for the user, in order.
    warnings:
        Per-item problems that did not abort the operation.
    """

    document: StateDocument
    changed: bool
    messages: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


def _require_profile(document: StateDocument, name: str) -> int:
    index = document.profile_index(name)
    if index is None:
        raise ProfileNotFoundError(name)
    return index


def _replace_profile(document: StateDocument, index: int, profile: Profile) -> StateDocument:
    profiles = list(document.profiles)
    profiles[index] = profile
    return replace(document, profiles=tuple(profiles))


def _check_new_name(name: str) -> str:
    if not name.strip():
        raise InvalidProfileNameError("profile name must not be empty")
    return name


def get_active(document: StateDocument) -> str:
    """Return the active profile name."""
    return document.active_profile


def list_profiles(document: StateDocument) -> list[tuple[str, bool]]:
    """Return ``(name, is_active)`` pairs in document order."""
    return [(p.name, p.name == document.active_profile) for p in document.profiles]


def show_profile(document: StateDocument, name: str) -> ProfileView:
    """
    Project a profile for display.

    Raises
    ------
    ProfileNotFoundError
        If no profile is named ``name``.
    """
    profile = document.profiles[_require_profile(document, name)]
    return ProfileView(name=profile.name, load_init=profile.load_init, repos_path=profile.repos_path)


def set_active(document: StateDocument, name: str) -> ProfileChange:
    """
    Make ``name`` the active profile.

    Setting the already-active profile is a no-op with an informational message.

    Raises
    ------
    ProfileNotFoundError
        If no profile is named ``name``.
    """
    if document.active_profile == name:
        return ProfileChange(document, False, (f"Unchanged active profile '{name}'",))
    _require_profile(document, name)
    return ProfileChange(
        replace(document, active_profile=name),
        True,
        (f"Set active profile to '{name}'",),
    )


def new_profile(document: StateDocument, name: str) -> ProfileChange:
    """
    Append an empty profile that loads the init file.

    Raises
    ------
    InvalidProfileNameError
        If ``name`` is blank.
    ProfileExistsError
        If a profile named ``name`` already exists.
    """
    _check_new_name(name)
    if document.profile_index(name) is not None:
        raise ProfileExistsError(name)
    return ProfileChange(
        replace(document, profiles=(*document.profiles, Profile(name=name))),
        True,
        (f"Created new profile '{name}'",),
    )


def destroy_profile(document: StateDocument, name: str) -> ProfileChange:
    """
    Remove the first profile named ``name``.

    Raises
    ------
    ProfileNotFoundError
        If no profile is named ``name``.
    ActiveProfileError
        If ``name`` is the active profile.
    """
    index = _require_profile(document, name)
    if document.active_profile == name:
        raise ActiveProfileError(name)
    profiles = document.profiles[:index] + document.profiles[index + 1 :]
    return ProfileChange(
        replace(document, profiles=profiles),
        True,
        (f"Deleted profile '{name}'",),
    )


def rename_profile(document: StateDocument, old_name: str, new_name: str) -> ProfileChange:
    """
    Rename a profile in place; the active profile follows the rename.

    Raises
    ------
    ProfileNotFoundError
        If ``old_name`` does not exist.
    ProfileExistsError
        If ``new_name`` is already taken.
    """
    index = _require_profile(document, old_name)
    _check_new_name(new_name)
    if old_name == new_name:
        return ProfileChange(document, False, (f"Unchanged profile name '{old_name}'",))
    if document.profile_index(new_name) is not None:
        raise ProfileExistsError(new_name)

    profiles = list(document.profiles)
    profiles[index] = replace(profiles[index], name=new_name)
    active = new_name if document.active_profile == old_name else document.active_profile
    renamed = replace(document, active_profile=active, profiles=tuple(profiles))
    return ProfileChange(renamed, True, (f"Renamed profile '{old_name}' to '{new_name}'",))


def add_repositories(document: StateDocument, name: str, repos: Sequence[str]) -> ProfileChange:
    """
    Append normalized repositories to a profile, skipping duplicates.

    Parameters
    ----------
    document:
        Current state.
    name:
        Target profile.
    repos:
        Already-normalized repository identifiers, processed in order.

    Raises
    ------
    ProfileNotFoundError
        If no profile is named ``name``.
    """
    index = _require_profile(document, name)
    profile = document.profiles[index]

    repos_path = list(profile.repos_path)
    added: list[str] = []
    warnings: list[str] = []
    for repo in repos:
        if repo in repos_path:
            warnings.append(f"repository '{repo}' already exists")
            continue
        repos_path.append(repo)
        added.append(repo)

    if not added:
        return ProfileChange(document, False, (), tuple(warnings))
    updated = _replace_profile(document, index, replace(profile, repos_path=tuple(repos_path)))
    return ProfileChange(
        updated,
        True,
        tuple(f"Added repository '{repo}'" for repo in added),
        tuple(warnings),
    )


def remove_repositories(document: StateDocument, name: str, repos: Sequence[str]) -> ProfileChange:
    """
    Remove the first exact match of each repository from a profile.

    Identifiers not present produce a warning and are skipped. The relative
    order of the remaining entries is preserved.

    Raises
    ------
    ProfileNotFoundError
        If no profile is named ``name``.
    """
    index = _require_profile(document, name)
    profile = document.profiles[index]

    repos_path = list(profile.repos_path)
    removed: list[str] = []
    warnings: list[str] = []
    for repo in repos:
        if repo in repos_path:
            repos_path.remove(repo)
            removed.append(repo)
        else:
            warnings.append(f"repository '{repo}' does not exist")

    if not removed:
        return ProfileChange(document, False, (), tuple(warnings))
    updated = _replace_profile(document, index, replace(profile, repos_path=tuple(repos_path)))
    return ProfileChange(
        updated,
        True,
        tuple(f"Removed repository '{repo}'" for repo in removed),
        tuple(warnings),
    )
