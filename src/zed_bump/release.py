"""Release entrypoint: resolve the edit and hand it to the blob editor."""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping

from . import log
from .edit_blob import edit_github_blob
from .github import GithubClient, client_for_token
from .inputs import load_release_inputs, load_run_context, resolve_tokens
from .models import ResolvedEdit
from .services.errors import UnexpectedStateError
from .services.resolve_edit import resolve_edit

ClientFactory = Callable[[str], GithubClient]
EditBlob = Callable[[ResolvedEdit, GithubClient], str]


def run_release(
    client_factory: ClientFactory = client_for_token,
    *,
    env: Mapping[str, str] | None = None,
    dry_run: bool = False,
    edit_blob: EditBlob = edit_github_blob,
) -> str:
    """Run one release bump.

    Args:
        client_factory: Maps a token to an API client; called once for the
            internal token and once for the committer token.
        env: Environment to read inputs and context from; defaults to
            ``os.environ``.
        dry_run: Stop after resolution and return the edit as JSON.
        edit_blob: Collaborator that performs the edit.

    Returns:
        URL of the created commit or pull request, or the resolved edit as
        JSON when ``dry_run`` is set.
    """
    context = load_run_context(env)
    inputs = load_release_inputs(env)
    edit = resolve_edit(context, inputs)
    log.info(
        f"bumping {edit.replace.extension_name} to {edit.replace.version} "
        f"in {edit.owner}/{edit.repo}"
    )
    if dry_run:
        return json.dumps(edit.to_dict(), indent=2, sort_keys=True)

    internal_token, committer_token = resolve_tokens(env)
    same_repo_client = client_factory(internal_token)
    cross_repo_client = client_factory(committer_token)

    if not same_repo_client.commit_exists(context.repo, context.sha):
        raise UnexpectedStateError(
            f"commit {context.sha} not found in {context.repo.slug}",
            recovery_hint="Push the tagged commit before running the release bump.",
        )
    return edit_blob(edit, cross_repo_client)
