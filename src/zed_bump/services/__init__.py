from .base import BaseService
from .errors import (
    ExternalCommandFailedError,
    InvalidInputError,
    InvalidReferenceError,
    InvalidRepositorySpecError,
    ManifestEntryMissingError,
    MissingConfigurationError,
    NothingToUpdateError,
    ServiceFailure,
    UnexpectedStateError,
)

__all__ = [
    "BaseService",
    "ExternalCommandFailedError",
    "InvalidInputError",
    "InvalidReferenceError",
    "InvalidRepositorySpecError",
    "ManifestEntryMissingError",
    "MissingConfigurationError",
    "NothingToUpdateError",
    "ServiceFailure",
    "UnexpectedStateError",
]
