"""
Command-line interface for volt.

Notes
-----
The CLI is intentionally thin. It parses arguments, resolves configuration,
and delegates to volt_engine.profile_service. All output goes to stdout with
``[INFO]``, ``[WARN]`` and ``[ERROR]`` prefixes.

Exit codes
----------
- 0: success, or usage shown for missing arguments
- 1: the command failed (unknown profile, held lock, unreadable state, ...)
- 2: argument parsing failed (argparse)
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from volt_engine.config import load_config
from volt_engine.errors import VoltError
from volt_engine.profile_service import (
    EXIT_FAILURE,
    CommandResult,
    Fatal,
    Ok,
    UsageProblem,
    build_profile_handlers,
    dispatch,
    exit_code_for,
    open_profile_context,
)

PROFILE_USAGE = """\
Usage
  profile [get]
    Get current profile name

  profile set {name}
    Set profile name

  profile show {name}
    Show profile info

  profile list
    List all profiles

  profile new {name}
    Create new profile

  profile destroy {name}
    Delete profile

  profile rename {old} {new}
    Rename profile

  profile add {name} {repository} [{repository2} ...]
    Add one or more repositories to profile

  profile rm {name} {repository} [{repository2} ...]
    Remove one or more repositories from profile

Description
  Subcommands about profile feature
"""


def build_parser(subcommands: list[str]) -> argparse.ArgumentParser:
    """
    Build and return the top-level argument parser.

    Parameters
    ----------
    subcommands:
        Valid ``volt profile`` subcommand names.

    Returns
    -------
    argparse.ArgumentParser
        Configured parser.
    """
    parser = argparse.ArgumentParser(
        prog="volt",
        description="Vim plugin profile manager",
    )
    parser.add_argument(
        "--volt-path",
        type=Path,
        default=None,
        help="Override the volt root. Defaults to $VOLTPATH, then ~/volt.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug details to stderr.",
    )
    sub = parser.add_subparsers(dest="command")

    profile_p = sub.add_parser(
        "profile",
        help="Get, set, and edit profiles",
        description=PROFILE_USAGE,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    profile_p.add_argument(
        "subcommand",
        nargs="?",
        default="get",
        choices=subcommands,
        help="Profile subcommand (default: get)",
    )
    profile_p.add_argument("args", nargs="*", help="Subcommand arguments")
    profile_p.add_argument(
        "--force",
        action="store_true",
        help="Break a transaction lock left behind by a process that is provably gone.",
    )

    return parser


def _parse_profile_args(parser: argparse.ArgumentParser, argv: list[str] | None) -> argparse.Namespace:
    """
    Parse argv, letting profile options sit anywhere among the positionals.

    argparse stops filling ``args`` at the first option, so bare words that
    follow an option (``add work a/b --force c/d``) come back unrecognized.
    They are appended to ``args`` in order; unknown options are still errors.
    """
    args, extras = parser.parse_known_args(argv)
    if extras:
        if args.command != "profile" or any(extra.startswith("-") for extra in extras):
            parser.error(f"unrecognized arguments: {' '.join(extras)}")
        args.args = [*args.args, *extras]
    return args


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def emit_result(result: CommandResult) -> None:
    """Print a command result to stdout."""
    if isinstance(result, Ok):
        for line in result.lines:
            print(line)
    elif isinstance(result, UsageProblem):
        print(PROFILE_USAGE)
        print(f"[ERROR] {result.message}")
    elif isinstance(result, Fatal):
        print(f"[ERROR] {result.error}")


def main(argv: list[str] | None = None) -> int:
    """
    CLI entry point.

    Parameters
    ----------
    argv:
        Optional argument vector. If None, argparse uses sys.argv.

    Returns
    -------
    int
        Process exit code.
    """
    handlers = build_profile_handlers()
    parser = build_parser(list(handlers))
    args = _parse_profile_args(parser, argv)
    _configure_logging(args.verbose)

    if args.command != "profile":
        parser.print_help()
        return 0

    try:
        config = load_config(volt_path=args.volt_path)
    except VoltError as exc:
        print(f"[ERROR] {exc}")
        return EXIT_FAILURE

    ctx = open_profile_context(config, force=args.force)
    result = dispatch(handlers, args.subcommand, args.args, ctx)
    emit_result(result)
    return exit_code_for(result)


if __name__ == "__main__":
    raise SystemExit(main())
