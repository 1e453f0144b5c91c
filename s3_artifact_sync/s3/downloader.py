"""Download orchestration: list keys under the source, fetch each one."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from ..config import UploadSpec
from ..exceptions import ResolutionError, TransferError
from ..resolve import normalize_path, resolve_source
from ..utils.progress import ProgressTracker
from .backend import StorageBackend

LOGGER = logging.getLogger(__name__)


@dataclass
class DownloadResult:
    """Summarises a download attempt."""

    total_files: int = 0
    downloaded: int = 0
    skipped: int = 0
    total_size_mb: float = 0.0
    duration_seconds: float = 0.0
    dry_run: bool = False
    files: List[Tuple[str, str]] = field(default_factory=list)


class FileDownloader:
    """Fetches objects listed under the source prefix into the target directory.

    The source is used as a key prefix (its leading slash dropped), and each
    key becomes ``target / resolve_source(source, key, strip_prefix)``.
    """

    def __init__(
        self,
        backend: Optional[StorageBackend],
        spec: UploadSpec,
        *,
        progress_tracker: Optional[ProgressTracker] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.backend = backend
        self.spec = spec
        self.progress_tracker = progress_tracker or ProgressTracker("Downloading", enabled=False)
        self.logger = logger or LOGGER

    def download(self) -> DownloadResult:
        """Download every object under the source prefix; stop at the first failure."""
        backend = self._require_backend()
        start_time = time.time()
        result = DownloadResult(dry_run=self.spec.dry_run)
        source_dir = normalize_path(self.spec.source)
        keys = backend.list_objects(source_dir)
        result.total_files = len(keys)
        self.logger.info(
            "Listed objects",
            extra={"fields": {"bucket": self.spec.bucket, "prefix": source_dir, "count": len(keys)}},
        )

        self.progress_tracker.start(len(keys))
        try:
            for key in keys:
                if key.endswith("/"):
                    # folder placeholder objects have no content to write
                    result.skipped += 1
                    self.progress_tracker.skip()
                    continue
                local_path = self.get_local_path(source_dir, key)
                result.files.append((key, str(local_path)))
                if self.spec.dry_run:
                    self.logger.info(
                        "Dry run: would download file",
                        extra={"fields": {"key": key, "destination": str(local_path)}},
                    )
                    result.skipped += 1
                    self.progress_tracker.skip()
                    continue
                try:
                    size = self.download_file(key, local_path)
                except TransferError:
                    self.progress_tracker.fail()
                    raise
                result.downloaded += 1
                result.total_size_mb += size / (1024 * 1024)
                self.progress_tracker.advance()
        finally:
            self.progress_tracker.finish()

        result.duration_seconds = time.time() - start_time
        return result

    def get_local_path(self, source_dir: str, key: str) -> Path:
        """Map a key under the target directory, refusing keys that escape it."""
        relative = resolve_source(source_dir, key, self.spec.strip_prefix.prefix)
        root = Path(self.spec.target or ".")
        destination = root / relative
        try:
            destination.resolve().relative_to(root.resolve())
        except ValueError:
            raise ResolutionError(
                f"Object key '{key}' resolves outside of target '{root}'", path=key
            ) from None
        return destination

    def download_file(self, key: str, destination: Path) -> int:
        """Write one object to disk and return its size in bytes."""
        backend = self._require_backend()
        self.logger.info(
            "Downloading file",
            extra={"fields": {"key": key, "bucket": self.spec.bucket, "destination": str(destination)}},
        )
        body = backend.get_object(key)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(body)
        except OSError as exc:
            raise TransferError(f"Unable to write {destination}: {exc}") from exc
        return len(body)

    def _require_backend(self) -> StorageBackend:
        if self.backend is None:
            raise TransferError("No storage backend configured")
        return self.backend
