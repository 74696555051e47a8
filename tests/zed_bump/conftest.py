from __future__ import annotations

from collections.abc import Callable, Mapping

import pytest

from zed_bump.models import RepoRef
from zed_bump.services.errors import ExternalCommandFailedError

Route = tuple[str, str]


class FakeGithubClient:
    """In-memory stand-in for ``GithubClient`` keyed by ``(method, path)``."""

    def __init__(self, responses: Mapping[Route, object] | None = None, *, token: str = "") -> None:
        self.token = token
        self.responses: dict[Route, object] = dict(responses or {})
        self.calls: list[tuple[str, str, object]] = []

    def request(self, method: str, path: str, payload: dict | None = None) -> object:
        self.calls.append((method, path, payload))
        key = (method, path)
        if key not in self.responses:
            raise ExternalCommandFailedError(f"command failed: gh api -X {method} {path}\ngh: Not Found (HTTP 404)")
        response = self.responses[key]
        if callable(response):
            return response(payload)
        return response

    def request_optional(self, method: str, path: str, payload: dict | None = None) -> object | None:
        try:
            return self.request(method, path, payload)
        except ExternalCommandFailedError:
            return None

    def commit_exists(self, repo: RepoRef, sha: str) -> bool:
        return self.request_optional("GET", f"repos/{repo.slug}/commits/{sha}") is not None

    def payloads(self, method: str, path: str) -> list[object]:
        return [payload for m, p, payload in self.calls if m == method and p == path]


@pytest.fixture
def fake_github() -> Callable[..., FakeGithubClient]:
    return FakeGithubClient


@pytest.fixture
def action_env() -> Callable[..., dict[str, str]]:
    """Build a GitHub Actions style environment for a tag push."""

    def build(**inputs: str) -> dict[str, str]:
        env = {
            "GITHUB_REF": "refs/tags/v1.2.3",
            "GITHUB_SHA": "abc123",
            "GITHUB_REPOSITORY": "octo/Demo-Ext",
            "INPUT_ZED-EXTENSIONS": "zed-industries/extensions",
            "INPUT_COMMIT-MESSAGE": "Update {{extensionName}} to {{version}}",
        }
        for name, value in inputs.items():
            env[f"INPUT_{name.replace('_', '-').upper()}"] = value
        return env

    return build
