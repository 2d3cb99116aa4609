"""
Profile command orchestration for volt.

This module coordinates one ``volt profile`` invocation:
- subcommand lookup in an immutable handler table
- argument checks (missing arguments become a usage problem)
- repository normalization, before any state is touched
- the guarded read-modify-write cycle for mutating subcommands
- conversion of the outcome into a tagged CommandResult

Transaction protocol
--------------------
Mutating subcommands run ``guard.create() -> store.read() -> apply ->
store.write() -> guard.remove()``. The read happens inside the guard so the
whole cycle is serialized against other writers. The write is skipped when
the operation changed nothing. Read-only subcommands never take the guard.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Mapping, Sequence

from .clock import Clock
from .config import VoltConfig
from .data_models import StateDocument
from .errors import UsageError, VoltError
from .profiles import (
    ProfileChange,
    add_repositories,
    destroy_profile,
    get_active,
    list_profiles,
    new_profile,
    remove_repositories,
    rename_profile,
    set_active,
    show_profile,
)
from .repository import RepositoryNormalizer, normalize_all, normalize_repository
from .state_store import JsonStateStore, StateStore
from .transaction import TransactionGuard

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


@dataclass(frozen=True, slots=True)
class Ok:
    """Successful outcome with lines to print."""

    lines: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class UsageProblem:
    """Missing or malformed arguments; usage is shown and the process still succeeds."""

    message: str


@dataclass(frozen=True, slots=True)
class Fatal:
    """A domain failure that aborts the command."""

    error: VoltError


CommandResult = Ok | UsageProblem | Fatal


def exit_code_for(result: CommandResult) -> int:
    """
    Map a command result to a process exit code.

    Returns
    -------
    int
        0 for Ok and UsageProblem, EXIT_FAILURE for Fatal.
    """
    if isinstance(result, Fatal):
        return EXIT_FAILURE
    return EXIT_OK


GuardFactory = Callable[[str], TransactionGuard]


@dataclass(frozen=True, slots=True)
class ProfileContext:
    """
    Collaborators used by profile handlers.

    Attributes
    ----------
    store:
        State document persistence.
    guard_factory:
        Builds a fresh transaction guard for a command name.
    normalizer:
        Repository identifier normalizer.
    """

    store: StateStore
    guard_factory: GuardFactory
    normalizer: RepositoryNormalizer = normalize_repository


def make_guard_factory(config: VoltConfig, *, force: bool = False, clock: Clock | None = None) -> GuardFactory:
    """Return a factory producing guards on the configured marker path."""

    def _factory(command: str) -> TransactionGuard:
        return TransactionGuard(
            config.trx_lock_path,
            command=command,
            clock=clock,
            stale_after=config.lock_stale_after,
            force=force,
        )

    return _factory


def open_profile_context(config: VoltConfig, *, force: bool = False) -> ProfileContext:
    """Convenience constructor wiring the JSON store and file guard for ``config``."""
    return ProfileContext(
        store=JsonStateStore(path=config.lock_json_path),
        guard_factory=make_guard_factory(config, force=force),
    )


def _transact(
    ctx: ProfileContext,
    command: str,
    operation: Callable[[StateDocument], ProfileChange],
) -> ProfileChange:
    with ctx.guard_factory(command):
        document = ctx.store.read()
        change = operation(document)
        if change.changed:
            ctx.store.write(change.document)
        else:
            logger.debug("%s changed nothing; skipping write", command)
    return change


def _change_lines(change: ProfileChange) -> tuple[str, ...]:
    warnings = tuple(f"[WARN] {w}" for w in change.warnings)
    return warnings + tuple(f"[INFO] {m}" for m in change.messages)


def _require_name(subcommand: str, args: Sequence[str]) -> str:
    if not args:
        raise UsageError(f"'volt profile {subcommand}' receives profile name.")
    return args[0]


def _require_name_and_repos(subcommand: str, args: Sequence[str]) -> tuple[str, list[str]]:
    if len(args) < 2:
        raise UsageError(
            f"'volt profile {subcommand}' receives profile name and one or more repositories."
        )
    return args[0], list(args[1:])


def _do_get(ctx: ProfileContext, _args: Sequence[str]) -> Ok:
    return Ok((get_active(ctx.store.read()),))


def _do_list(ctx: ProfileContext, _args: Sequence[str]) -> Ok:
    return Ok(tuple(f"{'*' if active else ' '} {name}" for name, active in list_profiles(ctx.store.read())))


def _do_show(ctx: ProfileContext, args: Sequence[str]) -> Ok:
    name = _require_name("show", args)
    return Ok((show_profile(ctx.store.read(), name).render(),))


def _do_set(ctx: ProfileContext, args: Sequence[str]) -> Ok:
    name = _require_name("set", args)
    # Setting the active profile again needs no transaction.
    current = ctx.store.read()
    if current.active_profile == name:
        return Ok(_change_lines(set_active(current, name)))
    change = _transact(ctx, "profile set", lambda doc: set_active(doc, name))
    return Ok(_change_lines(change))


def _do_new(ctx: ProfileContext, args: Sequence[str]) -> Ok:
    name = _require_name("new", args)
    change = _transact(ctx, "profile new", lambda doc: new_profile(doc, name))
    return Ok(_change_lines(change))


def _do_destroy(ctx: ProfileContext, args: Sequence[str]) -> Ok:
    name = _require_name("destroy", args)
    change = _transact(ctx, "profile destroy", lambda doc: destroy_profile(doc, name))
    return Ok(_change_lines(change))


def _do_rename(ctx: ProfileContext, args: Sequence[str]) -> Ok:
    if len(args) < 2:
        raise UsageError("'volt profile rename' receives current and new profile names.")
    old_name, new_name = args[0], args[1]
    change = _transact(ctx, "profile rename", lambda doc: rename_profile(doc, old_name, new_name))
    return Ok(_change_lines(change))


def _do_add(ctx: ProfileContext, args: Sequence[str]) -> Ok:
    name, raw_repos = _require_name_and_repos("add", args)
    repos = normalize_all(raw_repos, ctx.normalizer)
    change = _transact(ctx, "profile add", lambda doc: add_repositories(doc, name, repos))
    return Ok(_change_lines(change))


def _do_rm(ctx: ProfileContext, args: Sequence[str]) -> Ok:
    name, raw_repos = _require_name_and_repos("rm", args)
    repos = normalize_all(raw_repos, ctx.normalizer)
    change = _transact(ctx, "profile rm", lambda doc: remove_repositories(doc, name, repos))
    return Ok(_change_lines(change))


Handler = Callable[[ProfileContext, Sequence[str]], Ok]


def build_profile_handlers() -> Mapping[str, Handler]:
    """
    Build the immutable subcommand table.

    Returns
    -------
    Mapping[str, Handler]
        Read-only mapping from subcommand name to handler, in usage order.
    """
    return MappingProxyType(
        {
            "get": _do_get,
            "set": _do_set,
            "show": _do_show,
            "list": _do_list,
            "new": _do_new,
            "destroy": _do_destroy,
            "rename": _do_rename,
            "add": _do_add,
            "rm": _do_rm,
        }
    )


def dispatch(
    handlers: Mapping[str, Handler],
    subcommand: str,
    args: Sequence[str],
    ctx: ProfileContext,
) -> CommandResult:
    """
    Run one profile subcommand and capture its outcome.

    Parameters
    ----------
    handlers:
        Table from :func:`build_profile_handlers`.
    subcommand:
        Subcommand name.
    args:
        Positional arguments following the subcommand.
    ctx:
        Collaborators for the handler.

    Returns
    -------
    CommandResult
        Ok, UsageProblem (missing arguments) or Fatal (any other VoltError).
        Exceptions that are not VoltError propagate.
    """
    handler = handlers.get(subcommand)
    if handler is None:
        return Fatal(VoltError(f"unknown subcommand: {subcommand}"))
    try:
        return handler(ctx, args)
    except UsageError as exc:
        return UsageProblem(str(exc))
    except VoltError as exc:
        logger.debug("profile %s failed", subcommand, exc_info=True)
        return Fatal(exc)
