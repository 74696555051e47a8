"""Console I/O helpers for the process boundary."""

from __future__ import annotations

import sys
from typing import NoReturn


def say(message: str) -> None:
    """Print a machine-readable result line to stdout.

    Args:
        message: Text to print.

    Example:
        >>> say("https://github.com/acme/extensions/pull/1")
        https://github.com/acme/extensions/pull/1
    """
    print(message)


def die(message: str, code: int = 1, *, hint: str | None = None) -> NoReturn:
    """Print an error message (and optional hint) and exit.

    Args:
        message: Error message to display.
        code: Exit code to use.
        hint: Optional recovery hint printed on its own line.

    Returns:
        Never returns. Exits the process via ``sys.exit``.
    """
    print(f"error: {message}", file=sys.stderr)
    if hint:
        print(f"hint: {hint}", file=sys.stderr)
    sys.exit(code)
