"""Resolve release inputs and run context into a registry edit."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict

from .. import log
from ..commit_messages import placeholder_names, render_commit_message
from ..manifest import ManifestUpdate
from ..models import ReleaseInputs, RepoRef, ResolvedEdit, RunContext
from .base import BaseService
from .errors import InvalidReferenceError, MissingConfigurationError

TAG_REF_PREFIX = "refs/tags/"
EXTENSIONS_ROOT = "extensions"

_LEADING_V_BEFORE_DIGIT = re.compile(r"^v([0-9])")


def tag_from_ref(ref: str) -> str:
    """Return the tag name for a ``refs/tags/...`` reference.

    Raises:
        InvalidReferenceError: When ``ref`` is not a tag reference.

    Example:
        >>> tag_from_ref("refs/tags/v2.0.0")
        'v2.0.0'
    """
    if not ref.startswith(TAG_REF_PREFIX):
        raise InvalidReferenceError(ref)
    return ref[len(TAG_REF_PREFIX) :]


def version_from_tag(tag_name: str) -> str:
    """Strip a leading ``v`` only when a digit follows it.

    Example:
        >>> [version_from_tag(tag) for tag in ("v1.2.3", "version-9", "v9b")]
        ['1.2.3', 'version-9', '9b']
    """
    return _LEADING_V_BEFORE_DIGIT.sub(r"\1", tag_name, count=1)


def default_extension_path(extension_name: str) -> str:
    return f"{EXTENSIONS_ROOT}/{extension_name}"


class ResolveEditRequest(BaseModel):
    """Input contract for edit resolution.

    Attributes:
        context: Run metadata from the automation environment.
        inputs: User-supplied release options.
    """

    model_config = ConfigDict(frozen=True)

    context: RunContext
    inputs: ReleaseInputs


class ResolveEditService(BaseService[ResolveEditRequest, ResolvedEdit]):
    """Derive target, branch, path, message and push target for a release.

    Resolution is a pure computation: it reads the request only and never
    touches the network.
    """

    def _run(self, request: ResolveEditRequest) -> ResolvedEdit:
        context = request.context
        inputs = request.inputs

        tag_name = inputs.tag_name or tag_from_ref(context.ref)

        if not inputs.zed_extensions:
            raise MissingConfigurationError("zed-extensions")
        target = RepoRef.parse(inputs.zed_extensions, name="zed-extensions")

        push_to = self._push_target(target, context.repo, inputs.push_to)
        extension_name = inputs.extension_name or context.repo.repo.lower()
        branch = inputs.base_branch or ""
        extension_path = inputs.extension_path or default_extension_path(extension_name)
        version = version_from_tag(tag_name)

        if inputs.commit_message is None:
            raise MissingConfigurationError("commit-message")

        values = {
            "owner": context.repo.owner,
            "repo": context.repo.repo,
            "extensionName": extension_name,
            "version": version,
        }
        commit_message = render_commit_message(inputs.commit_message, values)
        unknown = [key for key in placeholder_names(inputs.commit_message) if key not in values]
        if unknown:
            log.warning(
                "commit-message placeholders left as is: "
                + ", ".join(dict.fromkeys(f"{{{{{key}}}}}" for key in unknown))
            )

        log.debug(f"tag: {tag_name} (version {version})")
        log.debug(f"target: {target.slug} branch: {branch or '<default>'}")
        log.debug(f"extension: {extension_name} at {extension_path}")
        if push_to is not None:
            log.debug(f"push to: {push_to.slug}")

        return ResolvedEdit(
            owner=target.owner,
            repo=target.repo,
            branch=branch,
            extension_path=extension_path,
            commit_message=commit_message,
            push_to=push_to,
            make_pr=inputs.create_pullrequest,
            commit_sha=context.sha,
            replace=ManifestUpdate(extension_name=extension_name, version=version),
        )

    @staticmethod
    def _push_target(
        target: RepoRef, trigger: RepoRef, push_to_spec: str | None
    ) -> RepoRef | None:
        if push_to_spec:
            return RepoRef.parse(push_to_spec, name="push-to")
        if target.matches(trigger):
            # A run-scoped token reports no push access to its own repository
            # in some setups; pinning the push target skips the fork attempt.
            return trigger
        return None


def resolve_edit(context: RunContext, inputs: ReleaseInputs) -> ResolvedEdit:
    """Resolve a registry edit for one release run."""
    return ResolveEditService()(ResolveEditRequest(context=context, inputs=inputs))
