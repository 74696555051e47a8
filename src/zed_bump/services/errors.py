"""Service failure contracts.

Services return typed outcomes on success and raise ServiceFailure on expected
configuration, input, or runtime failures. Programmer bugs raise normal
exceptions. The CLI is the only place that turns a ServiceFailure into an
exit status.
"""

from __future__ import annotations

from typing import Literal

ServiceFailureCode = Literal[
    "invalid_reference",
    "missing_configuration",
    "invalid_input",
    "external_command_failed",
    "unexpected_state",
]


class ServiceFailure(Exception):
    """Expected failure: bad configuration, bad input, or a failed API call.

    Use ``raise ServiceFailure(...) from exc`` to chain a causing exception;
    it is available as ``__cause__``.
    """

    def __init__(
        self,
        code: ServiceFailureCode,
        message: str,
        *,
        recovery_hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.recovery_hint = recovery_hint


class InvalidReferenceError(ServiceFailure):
    """The run was not triggered by a tag and no tag name was configured."""

    def __init__(self, ref: str, *, recovery_hint: str | None = None) -> None:
        super().__init__(
            "invalid_reference",
            f"invalid ref: {ref}",
            recovery_hint=recovery_hint
            or "Run on a tag push or set the `tag-name` input explicitly.",
        )
        self.ref = ref


class MissingConfigurationError(ServiceFailure):
    """A required configuration value is absent or unusable."""

    def __init__(
        self,
        name: str,
        message: str | None = None,
        *,
        recovery_hint: str | None = None,
    ) -> None:
        super().__init__(
            "missing_configuration",
            message or f"Input required and not supplied: {name}",
            recovery_hint=recovery_hint,
        )
        self.name = name


class InvalidRepositorySpecError(MissingConfigurationError):
    """An ``owner/repo`` value is malformed."""

    def __init__(self, name: str, value: str) -> None:
        super().__init__(
            name,
            f"{name} must be in owner/repo format, got {value!r}",
            recovery_hint=f"Set `{name}` to a value like `zed-industries/extensions`.",
        )
        self.value = value


class InvalidInputError(ServiceFailure):
    """An input is present but does not parse."""

    def __init__(self, message: str, *, recovery_hint: str | None = None) -> None:
        super().__init__("invalid_input", message, recovery_hint=recovery_hint)


class ExternalCommandFailedError(ServiceFailure):
    """External command (gh) or GitHub API request failed."""

    def __init__(self, message: str, *, recovery_hint: str | None = None) -> None:
        super().__init__("external_command_failed", message, recovery_hint=recovery_hint)


class UnexpectedStateError(ServiceFailure):
    """Unexpected or inconsistent remote state."""

    def __init__(self, message: str, *, recovery_hint: str | None = None) -> None:
        super().__init__("unexpected_state", message, recovery_hint=recovery_hint)


class ManifestEntryMissingError(UnexpectedStateError):
    """The registry manifest has no table for the extension."""

    def __init__(self, extension_name: str) -> None:
        super().__init__(
            f"no [{extension_name}] entry found in the extensions manifest",
            recovery_hint="Add the extension to the registry once by hand, "
            "or set `extension-name` to the name used in the manifest.",
        )
        self.extension_name = extension_name


class NothingToUpdateError(UnexpectedStateError):
    """The edit would not change anything in the registry."""
