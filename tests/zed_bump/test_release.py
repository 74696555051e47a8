from __future__ import annotations

import json

import pytest

from zed_bump.models import RepoRef, ResolvedEdit
from zed_bump.release import run_release
from zed_bump.services.errors import (
    InvalidReferenceError,
    MissingConfigurationError,
    UnexpectedStateError,
)

RELEASE_COMMIT = ("GET", "repos/octo/Demo-Ext/commits/abc123")


class ClientFactory:
    def __init__(self, fake_github, responses: dict) -> None:
        self.fake_github = fake_github
        self.responses = responses
        self.clients: list = []

    def __call__(self, token: str):
        client = self.fake_github(self.responses, token=token)
        self.clients.append(client)
        return client


class RecordingEditBlob:
    def __init__(self, url: str = "https://github.com/zed-industries/extensions/pull/9") -> None:
        self.url = url
        self.calls: list[tuple[ResolvedEdit, object]] = []

    def __call__(self, edit: ResolvedEdit, client: object) -> str:
        self.calls.append((edit, client))
        return self.url


def test_run_release_hands_edit_to_cross_repo_client(fake_github, action_env) -> None:
    env = action_env()
    env["GITHUB_TOKEN"] = "internal-token"
    env["COMMITTER_TOKEN"] = "committer-token"
    factory = ClientFactory(fake_github, {RELEASE_COMMIT: {"sha": "abc123"}})
    edit_blob = RecordingEditBlob()

    url = run_release(factory, env=env, edit_blob=edit_blob)

    assert url == "https://github.com/zed-industries/extensions/pull/9"
    same_repo, cross_repo = factory.clients
    assert same_repo.token == "internal-token"
    assert cross_repo.token == "committer-token"
    assert [call[:2] for call in same_repo.calls] == [RELEASE_COMMIT]
    [(edit, client)] = edit_blob.calls
    assert client is cross_repo
    assert edit.replace.extension_name == "demo-ext"
    assert edit.replace.version == "1.2.3"
    assert edit.commit_message == "Update demo-ext to 1.2.3"


def test_run_release_committer_token_falls_back_to_internal(fake_github, action_env) -> None:
    env = action_env()
    env["GITHUB_TOKEN"] = "internal-token"
    factory = ClientFactory(fake_github, {RELEASE_COMMIT: {"sha": "abc123"}})

    run_release(factory, env=env, edit_blob=RecordingEditBlob())

    assert [client.token for client in factory.clients] == ["internal-token", "internal-token"]


def test_run_release_requires_release_commit(fake_github, action_env) -> None:
    factory = ClientFactory(fake_github, {})
    edit_blob = RecordingEditBlob()

    with pytest.raises(UnexpectedStateError, match="commit abc123 not found in octo/Demo-Ext"):
        run_release(factory, env=action_env(), edit_blob=edit_blob)
    assert edit_blob.calls == []


def test_run_release_dry_run_skips_github(fake_github, action_env) -> None:
    factory = ClientFactory(fake_github, {})
    edit_blob = RecordingEditBlob()

    output = run_release(
        factory,
        env=action_env(zed_extensions="octo/demo-ext", create_pullrequest="false"),
        dry_run=True,
        edit_blob=edit_blob,
    )

    payload = json.loads(output)
    assert payload["owner"] == "octo"
    assert payload["repo"] == "demo-ext"
    assert payload["push_to"] == {"owner": "octo", "repo": "Demo-Ext"}
    assert payload["make_pr"] is False
    assert payload["replace"] == {"extension_name": "demo-ext", "version": "1.2.3"}
    assert factory.clients == []
    assert edit_blob.calls == []


def test_run_release_propagates_resolution_failures(fake_github, action_env) -> None:
    env = action_env()
    env["GITHUB_REF"] = "refs/heads/main"

    with pytest.raises(InvalidReferenceError):
        run_release(ClientFactory(fake_github, {}), env=env, edit_blob=RecordingEditBlob())


def test_run_release_requires_run_context(fake_github, action_env) -> None:
    env = action_env()
    del env["GITHUB_SHA"]

    with pytest.raises(MissingConfigurationError) as exc_info:
        run_release(ClientFactory(fake_github, {}), env=env, edit_blob=RecordingEditBlob())
    assert exc_info.value.name == "GITHUB_SHA"


def test_run_release_explicit_push_target(fake_github, action_env) -> None:
    factory = ClientFactory(fake_github, {RELEASE_COMMIT: {"sha": "abc123"}})
    edit_blob = RecordingEditBlob()

    run_release(factory, env=action_env(push_to="bot/extensions"), edit_blob=edit_blob)

    [(edit, _client)] = edit_blob.calls
    assert edit.push_to == RepoRef(owner="bot", repo="extensions")
