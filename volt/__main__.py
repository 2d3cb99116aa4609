"""
Module entrypoint for the volt CLI.

This file exists so that `python -m volt ...` works when the console-script
wrapper is not installed. It contains no business logic.
"""

from __future__ import annotations

from volt.cli import main


def _run() -> None:
    """
    Execute the volt command line interface.

    Raises
    ------
    SystemExit
        Always, carrying the CLI exit code.
    """
    raise SystemExit(main())


if __name__ == "__main__":
    _run()
