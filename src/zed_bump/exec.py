"""Captured-output command execution for the ``gh`` boundary.

Runners are injectable so the GitHub client can be exercised without a
real ``gh`` binary.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from typing import Mapping, Protocol

TIMEOUT_RETURNCODE = 124


@dataclass(frozen=True)
class CommandRequest:
    """One command to run with text output captured."""

    argv: tuple[str, ...]
    env: Mapping[str, str] | None = None
    timeout_seconds: float | None = None


@dataclass(frozen=True)
class CommandResult:
    argv: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def output(self) -> str:
        """Stripped stderr, falling back to stdout."""
        return (self.stderr or self.stdout or "").strip()


class CommandRunner(Protocol):
    def run(self, request: CommandRequest) -> CommandResult | None: ...


def _text(value: object) -> str:
    return value if isinstance(value, str) else ""


class SubprocessCommandRunner:
    """Run requests with :func:`subprocess.run`.

    Returns ``None`` when the executable does not exist; a timeout becomes a
    result with ``timed_out`` set and return code 124.
    """

    def run(self, request: CommandRequest) -> CommandResult | None:
        try:
            completed = subprocess.run(
                list(request.argv),
                env=request.env,
                capture_output=True,
                text=True,
                timeout=request.timeout_seconds,
                check=False,
            )
        except FileNotFoundError:
            return None
        except subprocess.TimeoutExpired as exc:
            return CommandResult(
                argv=request.argv,
                returncode=TIMEOUT_RETURNCODE,
                stdout=_text(exc.stdout),
                stderr=_text(exc.stderr),
                timed_out=True,
            )
        return CommandResult(
            argv=request.argv,
            returncode=completed.returncode,
            stdout=_text(completed.stdout),
            stderr=_text(completed.stderr),
        )


_DEFAULT_RUNNER: CommandRunner = SubprocessCommandRunner()


def run_with_runner(
    request: CommandRequest, *, runner: CommandRunner | None = None
) -> CommandResult | None:
    return (runner or _DEFAULT_RUNNER).run(request)


def command_failure_detail(request: CommandRequest, result: CommandResult) -> str:
    """Describe a failed command, followed by its output when there is any."""
    summary = f"command failed: {' '.join(request.argv)}"
    return f"{summary}\n{result.output}" if result.output else summary
