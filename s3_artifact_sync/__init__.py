"""Upload build artifacts to S3-compatible object stores from a CI pipeline."""

from .exceptions import S3ArtifactSyncError
from .main import S3ArtifactSync

__all__ = ["S3ArtifactSync", "S3ArtifactSyncError"]
