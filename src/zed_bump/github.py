"""GitHub REST access through the ``gh`` CLI."""

from __future__ import annotations

import json
import os
import re
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from tempfile import NamedTemporaryFile

from . import exec as exec_util
from . import log
from .models import RepoRef
from .services.errors import ExternalCommandFailedError

_GH_TIMEOUT_SECONDS = 30.0
_GH_RETRY_ATTEMPTS = 2
_GH_RETRY_BACKOFF_SECONDS = 0.4
_GH_RETRY_ERROR_MARKERS = (
    "timed out",
    "timeout",
    "temporarily unavailable",
    "connection reset",
    "connection refused",
    "connection aborted",
    "network",
    "tls",
    "rate limit",
    "502",
    "503",
    "504",
)
_NOT_FOUND_PATTERN = re.compile(r"\bHTTP (404|422)\b|\bNot Found\b")


def _is_retryable_message(message: str) -> bool:
    normalized = message.strip().lower()
    if not normalized:
        return False
    return any(marker in normalized for marker in _GH_RETRY_ERROR_MARKERS)


@contextmanager
def _temporary_text_file(content: str) -> Iterator[Path]:
    with NamedTemporaryFile("w", encoding="utf-8", delete=False) as handle:
        handle.write(content)
        temp_path = Path(handle.name)
    try:
        yield temp_path
    finally:
        temp_path.unlink(missing_ok=True)


@dataclass(frozen=True)
class GithubClient:
    """Typed command-boundary adapter for GitHub API calls.

    Each client carries its own token so permission checks made with it are
    scoped to that credential. An empty token defers to the ambient ``gh``
    authentication.
    """

    token: str = field(default="", repr=False)
    timeout_seconds: float = _GH_TIMEOUT_SECONDS
    retry_attempts: int = _GH_RETRY_ATTEMPTS
    retry_backoff_seconds: float = _GH_RETRY_BACKOFF_SECONDS
    runner: exec_util.CommandRunner | None = field(default=None, compare=False)

    def _env(self) -> dict[str, str] | None:
        if not self.token:
            return None
        env = dict(os.environ)
        env["GH_TOKEN"] = self.token
        return env

    def run(self, args: list[str]) -> str:
        cmd = ["gh", *args]
        attempts = max(int(self.retry_attempts), 1)
        last_error: str | None = None
        for attempt in range(1, attempts + 1):
            request = exec_util.CommandRequest(
                argv=tuple(cmd),
                env=self._env(),
                timeout_seconds=self.timeout_seconds,
            )
            result = exec_util.run_with_runner(request, runner=self.runner)
            if result is None:
                raise ExternalCommandFailedError(
                    "missing required command: gh",
                    recovery_hint="Install the GitHub CLI (https://cli.github.com).",
                )
            if result.returncode == 0:
                return result.stdout
            last_error = exec_util.command_failure_detail(request, result)
            if attempt < attempts and _is_retryable_message(result.output):
                log.debug(f"retrying gh after transient failure ({attempt}/{attempts})")
                time.sleep(self.retry_backoff_seconds * attempt)
                continue
            raise ExternalCommandFailedError(last_error)
        raise ExternalCommandFailedError(last_error or f"command failed: {' '.join(cmd)}")

    def request(self, method: str, path: str, payload: dict | None = None) -> object:
        """Call a REST endpoint and return the decoded JSON response.

        Args:
            method: HTTP method (``GET``, ``POST``, ``PATCH``...).
            path: Endpoint path relative to the API root, e.g.
                ``repos/acme/extensions``.
            payload: Optional JSON body.

        Returns:
            Decoded JSON, or ``None`` for an empty response body.

        Raises:
            ExternalCommandFailedError: When ``gh`` fails or returns invalid JSON.
        """
        args = [
            "api",
            "-X",
            method.upper(),
            path,
            "-H",
            "Accept: application/vnd.github+json",
        ]
        log.trace(f"gh api {method.upper()} {path}")
        if payload is None:
            output = self.run(args)
        else:
            with _temporary_text_file(json.dumps(payload)) as payload_file:
                output = self.run([*args, "--input", str(payload_file)])
        if not output.strip():
            return None
        try:
            return json.loads(output)
        except json.JSONDecodeError as exc:
            raise ExternalCommandFailedError(
                f"failed to parse gh api output ({method.upper()} {path}): {exc}"
            ) from exc

    def request_optional(
        self, method: str, path: str, payload: dict | None = None
    ) -> object | None:
        """Like :meth:`request`, but return ``None`` when the resource is missing."""
        try:
            return self.request(method, path, payload)
        except ExternalCommandFailedError as exc:
            if _NOT_FOUND_PATTERN.search(str(exc)):
                return None
            raise

    def commit_exists(self, repo: RepoRef, sha: str) -> bool:
        """Return whether ``sha`` is a commit visible in ``repo``."""
        payload = self.request_optional("GET", f"repos/{repo.slug}/commits/{sha}")
        return isinstance(payload, dict)


def client_for_token(token: str) -> GithubClient:
    """Build an API client scoped to ``token``."""
    return GithubClient(token=token)
