"""zed-bump command-line entrypoint."""

from __future__ import annotations

from typing import Annotated

import typer

from . import __version__
from . import log as zed_log
from .io import die, say
from .release import run_release
from .services.errors import ServiceFailure

app = typer.Typer(
    add_completion=False,
    help=(
        "Bump a Zed extension in the extensions registry after a release. "
        "Reads GitHub Actions inputs (INPUT_*) and run context (GITHUB_*) "
        "from the environment and prints the created commit or pull request URL."
    ),
)


def _validate_log_level(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized not in zed_log.LOG_LEVEL_NAMES:
        allowed = ", ".join(zed_log.LOG_LEVEL_NAMES)
        raise typer.BadParameter(f"expected one of: {allowed}")
    return normalized


def _version_callback(value: bool) -> None:
    if value:
        say(f"zed-bump {__version__}")
        raise typer.Exit()


@app.command()
def main(
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            callback=_validate_log_level,
            help="Log verbosity (trace, debug, info, success, warning, error).",
        ),
    ] = None,
    no_color: Annotated[
        bool, typer.Option("--no-color", help="Disable colored log output.")
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run", help="Print the resolved edit as JSON without calling GitHub."
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show the version and exit.",
        ),
    ] = False,
) -> None:
    """Resolve the registry edit for the current release and apply it."""
    del version
    if log_level is not None:
        zed_log.set_level(log_level)
    if no_color:
        zed_log.set_no_color(True)

    try:
        result = run_release(dry_run=dry_run)
    except ServiceFailure as exc:
        die(str(exc), hint=exc.recovery_hint)
    say(result)


def run() -> None:
    app()
