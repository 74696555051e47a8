"""Typed models for release inputs, run context, and resolved edits."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, field_validator

from .manifest import ManifestUpdate
from .services.errors import InvalidRepositorySpecError


class RepoRef(BaseModel):
    """GitHub repository identity.

    Attributes:
        owner: Repository owner (user or organization).
        repo: Repository name.

    Example:
        >>> RepoRef.parse("zed-industries/extensions").slug
        'zed-industries/extensions'
    """

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str

    @classmethod
    def parse(cls, value: str, *, name: str = "repository") -> RepoRef:
        """Parse an ``owner/repo`` string.

        Args:
            value: Raw ``owner/repo`` value.
            name: Input name reported when the value is malformed.

        Returns:
            The parsed repository identity.

        Raises:
            InvalidRepositorySpecError: When the value does not contain
                exactly one ``/`` separating two non-empty parts.
        """
        parts = value.strip().split("/")
        if len(parts) != 2 or not all(part.strip() for part in parts):
            raise InvalidRepositorySpecError(name, value)
        owner, repo = (part.strip() for part in parts)
        return cls(owner=owner, repo=repo)

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"

    def matches(self, other: RepoRef) -> bool:
        """Return whether both refer to the same repository, ignoring case."""
        return (
            self.owner.lower() == other.owner.lower()
            and self.repo.lower() == other.repo.lower()
        )


class RunContext(BaseModel):
    """Run metadata supplied by the hosting automation environment.

    Attributes:
        ref: Reference that triggered the run (``refs/tags/v1.2.3``).
        sha: Commit identifier of the triggering commit.
        repo: Repository that triggered the run.
    """

    model_config = ConfigDict(frozen=True)

    ref: str
    sha: str
    repo: RepoRef


class ReleaseInputs(BaseModel):
    """User-supplied options for one release run.

    ``zed_extensions`` and ``commit_message`` are required; they are modeled
    as optional so the resolver can report exactly which one is missing.
    Every other field falls back to a derived default when ``None``.

    Attributes:
        tag_name: Explicit tag name; default derives from the run ref.
        zed_extensions: Registry repository as ``owner/repo``.
        push_to: Repository to push to instead of the registry (``owner/repo``).
        extension_name: Extension id; default is the triggering repo name,
            lower-cased.
        base_branch: Registry branch; default is the registry default branch.
        extension_path: Path of the extension entry; default
            ``extensions/<extension_name>``.
        commit_message: Commit message template with ``{{key}}`` placeholders.
        create_pullrequest: Force (``True``) or skip (``False``) a pull
            request; ``None`` lets the editor decide.

    Example:
        >>> ReleaseInputs(push_to="  ", base_branch="main").push_to is None
        True
    """

    model_config = ConfigDict(frozen=True)

    tag_name: str | None = None
    zed_extensions: str | None = None
    push_to: str | None = None
    extension_name: str | None = None
    base_branch: str | None = None
    extension_path: str | None = None
    commit_message: str | None = None
    create_pullrequest: bool | None = None

    @field_validator(
        "tag_name",
        "zed_extensions",
        "push_to",
        "extension_name",
        "base_branch",
        "extension_path",
        mode="before",
    )
    @classmethod
    def normalize_optional_strings(cls, value: object) -> object:
        if isinstance(value, str):
            normalized = value.strip()
            return normalized or None
        return value

    @field_validator("commit_message", mode="before")
    @classmethod
    def normalize_commit_message(cls, value: object) -> object:
        # Leading/trailing whitespace is meaningful in a message body; only
        # an all-blank template counts as missing.
        if isinstance(value, str) and not value.strip():
            return None
        return value


@dataclass(frozen=True)
class ResolvedEdit:
    """Fully resolved parameters for one registry edit.

    Args:
        owner: Registry repository owner.
        repo: Registry repository name.
        branch: Registry branch; empty means the repository default branch.
        extension_path: Path of the entry to edit within the registry.
        commit_message: Commit message with placeholders substituted.
        push_to: Repository to push to instead of ``owner/repo``.
        make_pr: Whether to open a pull request; ``None`` lets the editor
            decide.
        commit_sha: Commit of the triggering release.
        replace: Content transform applied to the current manifest text.
    """

    owner: str
    repo: str
    branch: str
    extension_path: str
    commit_message: str
    push_to: RepoRef | None
    make_pr: bool | None
    commit_sha: str
    replace: ManifestUpdate

    @property
    def target(self) -> RepoRef:
        return RepoRef(owner=self.owner, repo=self.repo)

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-safe view of the edit."""
        return {
            "owner": self.owner,
            "repo": self.repo,
            "branch": self.branch,
            "extension_path": self.extension_path,
            "commit_message": self.commit_message,
            "push_to": self.push_to.model_dump() if self.push_to else None,
            "make_pr": self.make_pr,
            "commit_sha": self.commit_sha,
            "replace": {
                "extension_name": self.replace.extension_name,
                "version": self.replace.version,
            },
        }
