"""Apply a resolved edit to the registry repository through the GitHub API.

The flow mirrors what a contributor does by hand: look up the base branch,
pick a repository to push to (the registry itself, an explicit push target,
or a fork), write a single commit, then either move the branch or open a
pull request.
"""

from __future__ import annotations

import base64
import time
from dataclasses import dataclass
from urllib.parse import quote

from . import log
from .github import GithubClient
from .manifest import MANIFEST_PATH
from .models import RepoRef, ResolvedEdit
from .services.errors import (
    ExternalCommandFailedError,
    NothingToUpdateError,
    UnexpectedStateError,
)

_FILE_MODE = "100644"
_GITLINK_MODE = "160000"
_FORK_READY_ATTEMPTS = 10
_FORK_READY_DELAY_SECONDS = 2.0
_PULL_EXISTS_MARKER = "A pull request already exists"


@dataclass(frozen=True)
class BaseRevision:
    """Branch and commit the edit is written on top of."""

    branch: str
    commit_sha: str
    tree_sha: str


def _require_dict(payload: object, what: str) -> dict:
    if not isinstance(payload, dict):
        raise UnexpectedStateError(f"unexpected GitHub response for {what}")
    return payload


def _require_str(payload: dict, key: str, what: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise UnexpectedStateError(f"GitHub response for {what} is missing `{key}`")
    return value


def _contents_path(repo: RepoRef, path: str, branch: str) -> str:
    return f"repos/{repo.slug}/contents/{quote(path, safe='/')}?ref={quote(branch, safe='')}"


def resolve_base(client: GithubClient, target: RepoRef, branch: str, repo_info: dict) -> BaseRevision:
    """Resolve the base branch (explicit or default) to its head commit and tree."""
    base_branch = branch or repo_info.get("default_branch") or ""
    if not isinstance(base_branch, str) or not base_branch:
        raise UnexpectedStateError(f"cannot determine default branch of {target.slug}")
    ref = _require_dict(
        client.request("GET", f"repos/{target.slug}/git/ref/heads/{quote(base_branch, safe='/')}"),
        f"{target.slug}@{base_branch}",
    )
    ref_object = _require_dict(ref.get("object"), f"{target.slug}@{base_branch}")
    commit_sha = _require_str(ref_object, "sha", f"{target.slug}@{base_branch}")
    commit = _require_dict(
        client.request("GET", f"repos/{target.slug}/git/commits/{commit_sha}"),
        f"commit {commit_sha}",
    )
    tree = _require_dict(commit.get("tree"), f"commit {commit_sha}")
    return BaseRevision(
        branch=base_branch,
        commit_sha=commit_sha,
        tree_sha=_require_str(tree, "sha", f"commit {commit_sha}"),
    )


def resolve_head_repository(
    client: GithubClient, edit: ResolvedEdit, repo_info: dict
) -> RepoRef:
    """Pick where the commit is pushed.

    An explicit push target wins. Otherwise the registry itself is used when
    the client's credential can push to it, and a fork is created when it
    cannot.
    """
    if edit.push_to is not None:
        return edit.push_to
    permissions = repo_info.get("permissions")
    if isinstance(permissions, dict) and permissions.get("push"):
        return edit.target
    log.info(f"no push access to {edit.target.slug}; forking")
    fork = _require_dict(
        client.request("POST", f"repos/{edit.target.slug}/forks", {}),
        f"fork of {edit.target.slug}",
    )
    owner = _require_dict(fork.get("owner"), f"fork of {edit.target.slug}")
    head = RepoRef(
        owner=_require_str(owner, "login", f"fork of {edit.target.slug}"),
        repo=_require_str(fork, "name", f"fork of {edit.target.slug}"),
    )
    wait_for_repository(client, head)
    return head


def wait_for_repository(
    client: GithubClient,
    repo: RepoRef,
    *,
    attempts: int = _FORK_READY_ATTEMPTS,
    delay_seconds: float = _FORK_READY_DELAY_SECONDS,
) -> None:
    """Block until ``repo`` answers ``GET repos/{repo}``.

    Fork creation is asynchronous: GitHub accepts the request before the
    fork can take writes.

    Raises:
        UnexpectedStateError: When the repository is still missing after
            ``attempts`` polls.
    """
    for attempt in range(1, attempts + 1):
        if isinstance(client.request_optional("GET", f"repos/{repo.slug}"), dict):
            return
        if attempt < attempts:
            log.debug(f"waiting for {repo.slug} ({attempt}/{attempts})")
            time.sleep(delay_seconds)
    raise UnexpectedStateError(
        f"fork {repo.slug} is not available yet",
        recovery_hint="Re-run the job once the fork shows up on GitHub, or set `push-to`.",
    )


def _decode_content(entry: dict, path: str) -> str:
    raw = entry.get("content")
    if not isinstance(raw, str):
        raise UnexpectedStateError(f"{path} has no inline content")
    if entry.get("encoding", "base64") != "base64":
        return raw
    return base64.b64decode(raw).decode("utf-8")


def _fetch_entry(client: GithubClient, target: RepoRef, path: str, branch: str) -> dict:
    entry = client.request_optional("GET", _contents_path(target, path, branch))
    if entry is None:
        raise UnexpectedStateError(
            f"{path} not found in {target.slug}@{branch}",
            recovery_hint="Set `extension-path` to the extension's path in the registry.",
        )
    if isinstance(entry, list):
        raise UnexpectedStateError(f"{path} in {target.slug} is a directory")
    return _require_dict(entry, path)


def _blob_entry(path: str, content: str) -> dict[str, str]:
    return {"path": path, "mode": _FILE_MODE, "type": "blob", "content": content}


def build_tree_entries(
    client: GithubClient,
    edit: ResolvedEdit,
    base: BaseRevision,
    *,
    manifest_path: str = MANIFEST_PATH,
) -> list[dict[str, str]]:
    """Return the tree entries that change for this edit.

    A submodule at ``extension_path`` is moved to ``commit_sha`` and the
    manifest gets the content transform; a regular file at
    ``extension_path`` gets the transform itself.

    Raises:
        NothingToUpdateError: When the registry already matches the release.
    """
    target = edit.target
    entry = _fetch_entry(client, target, edit.extension_path, base.branch)
    entries: list[dict[str, str]] = []

    if entry.get("type") == "submodule":
        if entry.get("sha") != edit.commit_sha:
            entries.append(
                {
                    "path": edit.extension_path,
                    "mode": _GITLINK_MODE,
                    "type": "commit",
                    "sha": edit.commit_sha,
                }
            )
        manifest = _fetch_entry(client, target, manifest_path, base.branch)
        old_content = _decode_content(manifest, manifest_path)
        new_content = edit.replace(old_content)
        if new_content != old_content:
            entries.append(_blob_entry(manifest_path, new_content))
    else:
        old_content = _decode_content(entry, edit.extension_path)
        new_content = edit.replace(old_content)
        if new_content != old_content:
            entries.append(_blob_entry(edit.extension_path, new_content))

    if not entries:
        raise NothingToUpdateError(
            f"{target.slug}@{base.branch} already has {edit.replace.extension_name} "
            f"{edit.replace.version}"
        )
    return entries


def _create_commit(
    client: GithubClient,
    head: RepoRef,
    base: BaseRevision,
    entries: list[dict[str, str]],
    message: str,
) -> dict:
    tree = _require_dict(
        client.request(
            "POST",
            f"repos/{head.slug}/git/trees",
            {"base_tree": base.tree_sha, "tree": entries},
        ),
        "tree creation",
    )
    return _require_dict(
        client.request(
            "POST",
            f"repos/{head.slug}/git/commits",
            {
                "message": message,
                "tree": _require_str(tree, "sha", "tree creation"),
                "parents": [base.commit_sha],
            },
        ),
        "commit creation",
    )


def _point_branch(client: GithubClient, head: RepoRef, branch: str, sha: str, *, force: bool) -> None:
    quoted = quote(branch, safe="/")
    existing = client.request_optional("GET", f"repos/{head.slug}/git/ref/heads/{quoted}")
    if isinstance(existing, dict):
        client.request(
            "PATCH",
            f"repos/{head.slug}/git/refs/heads/{quoted}",
            {"sha": sha, "force": force},
        )
    else:
        client.request(
            "POST",
            f"repos/{head.slug}/git/refs",
            {"ref": f"refs/heads/{branch}", "sha": sha},
        )


def pull_request_branch(edit: ResolvedEdit) -> str:
    """Return the head branch name used for a bump pull request."""
    return f"update-{edit.replace.extension_name}-{edit.replace.version}"


def split_commit_message(message: str) -> tuple[str, str]:
    """Split a commit message into PR title and body."""
    title, _, body = message.strip().partition("\n")
    return title.strip(), body.strip()


def edit_github_blob(
    edit: ResolvedEdit,
    client: GithubClient,
    *,
    manifest_path: str = MANIFEST_PATH,
) -> str:
    """Commit the edit and return the URL of the commit or pull request.

    Args:
        edit: Resolved edit parameters.
        client: Cross-repository API client used for every call.
        manifest_path: Registry manifest receiving the content transform when
            ``extension_path`` is a submodule.

    Returns:
        The pull request URL when a PR was opened, otherwise the commit URL.
    """
    target = edit.target
    repo_info = _require_dict(client.request("GET", f"repos/{target.slug}"), target.slug)
    base = resolve_base(client, target, edit.branch, repo_info)
    head = resolve_head_repository(client, edit, repo_info)
    make_pr = edit.make_pr if edit.make_pr is not None else not head.matches(target)
    log.info(
        f"updating {edit.extension_path} in {target.slug}@{base.branch} via {head.slug}"
        + (" (pull request)" if make_pr else "")
    )

    entries = build_tree_entries(client, edit, base, manifest_path=manifest_path)
    commit = _create_commit(client, head, base, entries, edit.commit_message)
    commit_sha = _require_str(commit, "sha", "commit creation")

    if not make_pr:
        _point_branch(client, head, base.branch, commit_sha, force=False)
        log.success(f"pushed {commit_sha[:12]} to {head.slug}@{base.branch}")
        html_url = commit.get("html_url")
        if isinstance(html_url, str) and html_url:
            return html_url
        return f"https://github.com/{head.slug}/commit/{commit_sha}"

    pr_branch = pull_request_branch(edit)
    _point_branch(client, head, pr_branch, commit_sha, force=True)
    title, body = split_commit_message(edit.commit_message)
    try:
        pull = client.request(
            "POST",
            f"repos/{target.slug}/pulls",
            {
                "title": title,
                "body": body,
                "head": pr_branch if head.matches(target) else f"{head.owner}:{pr_branch}",
                "base": base.branch,
            },
        )
    except ExternalCommandFailedError as exc:
        if _PULL_EXISTS_MARKER not in str(exc):
            raise
        url = find_open_pull_request(client, target, head, pr_branch)
        if url is None:
            raise
        log.success(f"updated {url}")
        return url
    url = _require_str(
        _require_dict(pull, "pull request creation"), "html_url", "pull request creation"
    )
    log.success(f"opened {url}")
    return url


def find_open_pull_request(
    client: GithubClient, target: RepoRef, head: RepoRef, branch: str
) -> str | None:
    """Return the URL of the open pull request from ``head:branch``, if any."""
    query = quote(f"{head.owner}:{branch}", safe="")
    pulls = client.request("GET", f"repos/{target.slug}/pulls?head={query}&state=open")
    if not isinstance(pulls, list):
        return None
    for pull in pulls:
        if isinstance(pull, dict) and isinstance(pull.get("html_url"), str):
            return pull["html_url"]
    return None
