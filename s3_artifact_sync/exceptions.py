"""Custom exception definitions for the S3 artifact sync plugin."""

from typing import Optional


class S3ArtifactSyncError(Exception):
    """Base exception for the package."""


class ConfigurationError(S3ArtifactSyncError):
    """Raised when configuration loading or validation fails."""


class ValidationError(ConfigurationError):
    """Raised when input validation fails."""


class StripPrefixValidationError(ValidationError):
    """Raised when a wildcard strip prefix violates its constraints."""


class ResolutionError(S3ArtifactSyncError):
    """Raised when a local path cannot be turned into an upload."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class DirectoryWithoutGlobError(ResolutionError):
    """Raised when the source names a directory instead of a glob."""


class StripPrefixError(ResolutionError):
    """Raised when stripping a prefix would leave an empty object key."""


class TransferError(S3ArtifactSyncError):
    """Raised when moving data to or from the object store fails."""


class S3AccessError(TransferError):
    """Raised when accessing S3 resources fails."""


class BucketNotFoundError(S3AccessError):
    """Raised when the configured bucket is not visible to the credentials."""
