"""
Repository identifier normalization.

Repository identifiers are stored as ``host/user/name`` strings. This module
turns the forms users type on the command line into that canonical shape. It
performs no network or filesystem access.

Accepted input
--------------
- ``user/name``                  -> ``github.com/user/name``
- ``host/user/name``             -> unchanged
- ``https://host/user/name.git`` -> ``host/user/name``
- Backslashes are treated as ``/``; a trailing ``.git`` is dropped.
"""

from __future__ import annotations

from typing import Callable, Sequence

from .errors import InvalidRepositoryError

DEFAULT_HOST = "github.com"
_URL_SCHEMES = ("https://", "http://", "git://")

RepositoryNormalizer = Callable[[str], str]


def normalize_repository(raw: str) -> str:
    """
    Normalize a raw repository string.

    Parameters
    ----------
    raw:
        Repository as typed by the user.

    Returns
    -------
    str
        Canonical ``host/user/name`` identifier.

    Raises
    ------
    InvalidRepositoryError
        If the string does not describe a repository.
    """
    cleaned = raw.strip().replace("\\", "/")
    is_url = False
    for scheme in _URL_SCHEMES:
        if cleaned.lower().startswith(scheme):
            cleaned = cleaned[len(scheme):]
            is_url = True
            break
    cleaned = cleaned.rstrip("/")
    if cleaned.endswith(".git"):
        cleaned = cleaned[: -len(".git")]

    parts = cleaned.split("/")
    # URLs always name their host.
    if len(parts) == 2 and not is_url:
        parts = [DEFAULT_HOST, *parts]
    if len(parts) != 3 or not all(parts) or any(p in {".", ".."} for p in parts):
        raise InvalidRepositoryError(f"invalid format of repository: {raw!r}")
    return "/".join(parts)


def normalize_all(
    raws: Sequence[str],
    normalizer: RepositoryNormalizer = normalize_repository,
) -> tuple[str, ...]:
    """
    Normalize every entry, failing on the first invalid one.

    The whole batch is normalized before callers mutate anything, so one bad
    entry leaves state untouched.
    """
    return tuple(normalizer(raw) for raw in raws)
