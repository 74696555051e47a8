"""GitHub Actions input and run-context readers.

Action inputs arrive as ``INPUT_<NAME>`` environment variables, where the
name is upper-cased with spaces turned into underscores (hyphens are kept).
The run context comes from the ``GITHUB_*`` variables the runner sets.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from .models import ReleaseInputs, RepoRef, RunContext
from .services.errors import InvalidInputError, MissingConfigurationError

_TRUE_VALUES = ("true", "True", "TRUE")
_FALSE_VALUES = ("false", "False", "FALSE")


def _environ(env: Mapping[str, str] | None) -> Mapping[str, str]:
    return os.environ if env is None else env


def input_env_name(name: str) -> str:
    """Return the environment variable carrying an action input.

    Example:
        >>> input_env_name("create-pullrequest")
        'INPUT_CREATE-PULLREQUEST'
    """
    return f"INPUT_{name.replace(' ', '_').upper()}"


def get_input(
    name: str,
    *,
    required: bool = False,
    env: Mapping[str, str] | None = None,
) -> str:
    """Read an action input.

    Args:
        name: Input name as declared in ``action.yml``.
        required: Raise when the input is empty or absent.
        env: Environment to read; defaults to ``os.environ``.

    Returns:
        The input value with surrounding whitespace stripped, or ``""``.

    Raises:
        MissingConfigurationError: When ``required`` and the value is empty.
    """
    value = _environ(env).get(input_env_name(name), "").strip()
    if required and not value:
        raise MissingConfigurationError(name)
    return value


def get_boolean_input(name: str, *, env: Mapping[str, str] | None = None) -> bool:
    """Read an action input following the YAML 1.2 core-schema booleans.

    Raises:
        InvalidInputError: When the value is not one of the accepted spellings.
    """
    value = get_input(name, env=env)
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise InvalidInputError(
        f"Input does not meet YAML 1.2 \"Core Schema\" specification: {name}",
        recovery_hint="Support boolean input list: `true | True | TRUE | false | False | FALSE`",
    )


def load_release_inputs(env: Mapping[str, str] | None = None) -> ReleaseInputs:
    """Collect every action input into a typed options struct.

    Required inputs are left ``None`` when absent; the resolver reports them.
    """
    create_pullrequest: bool | None = None
    if get_input("create-pullrequest", env=env):
        create_pullrequest = get_boolean_input("create-pullrequest", env=env)

    return ReleaseInputs(
        tag_name=get_input("tag-name", env=env),
        zed_extensions=get_input("zed-extensions", env=env),
        push_to=get_input("push-to", env=env),
        extension_name=get_input("extension-name", env=env),
        base_branch=get_input("base-branch", env=env),
        extension_path=get_input("extension-path", env=env),
        commit_message=get_input("commit-message", env=env),
        create_pullrequest=create_pullrequest,
    )


def _require_env(env: Mapping[str, str], name: str) -> str:
    value = env.get(name, "").strip()
    if not value:
        raise MissingConfigurationError(
            name,
            f"environment variable {name} is not set",
            recovery_hint="Run inside GitHub Actions or export the GITHUB_* variables.",
        )
    return value


def load_run_context(env: Mapping[str, str] | None = None) -> RunContext:
    """Build the run context from ``GITHUB_REF``, ``GITHUB_SHA`` and ``GITHUB_REPOSITORY``."""
    source = _environ(env)
    return RunContext(
        ref=_require_env(source, "GITHUB_REF"),
        sha=_require_env(source, "GITHUB_SHA"),
        repo=RepoRef.parse(_require_env(source, "GITHUB_REPOSITORY"), name="GITHUB_REPOSITORY"),
    )


def resolve_tokens(env: Mapping[str, str] | None = None) -> tuple[str, str]:
    """Return ``(internal_token, committer_token)``.

    The internal token is ``GITHUB_TOKEN``, else ``COMMITTER_TOKEN``; the
    committer token is ``COMMITTER_TOKEN``, else the internal token.
    """
    source = _environ(env)
    committer = source.get("COMMITTER_TOKEN", "").strip()
    internal = source.get("GITHUB_TOKEN", "").strip() or committer
    return internal, committer or internal
