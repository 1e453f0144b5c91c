"""Upload orchestration: resolve every matched file, then put it."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from ..config import UploadSpec
from ..exceptions import TransferError
from ..resolve import (
    FileSet,
    FileSetResolver,
    MatchRuleTable,
    MetadataResolver,
    PatternMatcher,
    ResolvedFile,
    resolve_key_with,
)
from ..utils.progress import ProgressTracker
from .backend import ObjectHeaders, StorageBackend

LOGGER = logging.getLogger(__name__)


@dataclass
class UploadResult:
    """Summarises an upload attempt."""

    total_files: int = 0
    uploaded: int = 0
    skipped: int = 0
    removed: int = 0
    duration_seconds: float = 0.0
    dry_run: bool = False
    files: List[ResolvedFile] = field(default_factory=list)
    skipped_directories: List[str] = field(default_factory=list)
    strip_matches: int = 0


class S3Uploader:
    """Drives the file set, key and metadata resolvers against a backend."""

    def __init__(
        self,
        backend: Optional[StorageBackend],
        spec: UploadSpec,
        *,
        file_resolver: Optional[FileSetResolver] = None,
        progress_tracker: Optional[ProgressTracker] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.backend = backend
        self.spec = spec
        self.matcher = PatternMatcher(spec.pattern_syntax)
        self.metadata_resolver = MetadataResolver(
            self.matcher,
            content_type=spec.content_type,
            content_encoding=spec.content_encoding,
            cache_control=spec.cache_control,
            metadata=spec.metadata,
        )
        self.file_resolver = file_resolver or FileSetResolver()
        self.progress_tracker = progress_tracker or ProgressTracker(enabled=False)
        self.logger = logger or LOGGER

    def upload(self) -> UploadResult:
        """Upload every file matched by the source glob; stop at the first failure."""
        spec = self.spec
        start_time = time.time()
        result = UploadResult(dry_run=spec.dry_run)

        if not spec.dry_run:
            self._require_backend().ensure_bucket()

        file_set = self.file_resolver.resolve(spec.source, spec.exclude)
        result.total_files = len(file_set)

        if spec.target_remove:
            result.removed = self.remove_targets()

        self.progress_tracker.start(result.total_files)
        try:
            for resolved in self.resolve_files(file_set):
                if resolved.is_directory_skipped:
                    result.skipped_directories.append(resolved.local_path)
                    continue
                result.files.append(resolved)
                if resolved.stripped_prefix is not None:
                    result.strip_matches += 1
                if spec.dry_run:
                    self._log_dry_run(resolved)
                    result.skipped += 1
                    self.progress_tracker.skip()
                    continue
                try:
                    self.upload_file(resolved)
                except TransferError:
                    self.progress_tracker.fail()
                    raise
                result.uploaded += 1
                self.progress_tracker.advance()
        finally:
            self.progress_tracker.finish()

        if spec.strip_prefix.is_wildcard and result.total_files and not result.strip_matches:
            self.logger.warning(
                "strip_prefix did not match any file",
                extra={"fields": {"strip_prefix": spec.strip_prefix.prefix, "files": result.total_files}},
            )

        result.duration_seconds = time.time() - start_time
        return result

    def resolve_files(self, file_set: FileSet) -> Iterator[ResolvedFile]:
        """Yield a ResolvedFile for each match, lazily and in order.

        Directories come back flagged as skipped, with no key or headers.
        """
        directories = set(file_set.directories)
        for path in file_set.matches:
            if path in directories:
                yield ResolvedFile(
                    local_path=path, remote_key="", content_type="", is_directory_skipped=True
                )
                continue
            yield self.resolve_file(path)

    def resolve_file(self, path: str) -> ResolvedFile:
        key, removed = resolve_key_with(self.spec.target, path, self.spec.strip_prefix)
        if self.spec.strip_prefix.is_wildcard and removed is None:
            self.logger.debug(
                "strip_prefix did not match",
                extra={"fields": {"name": path, "strip_prefix": self.spec.strip_prefix.prefix}},
            )
        metadata = self.metadata_resolver.resolve(path)
        return ResolvedFile(
            local_path=path,
            remote_key=key,
            content_type=metadata.content_type,
            content_encoding=metadata.content_encoding,
            cache_control=metadata.cache_control,
            metadata=metadata.metadata,
            stripped_prefix=removed,
        )

    def upload_file(self, resolved: ResolvedFile) -> None:
        backend = self._require_backend()
        self.logger.info(
            "Uploading file",
            extra={
                "fields": {
                    "name": resolved.local_path,
                    "bucket": self.spec.bucket,
                    "target": resolved.remote_key,
                    "content-type": resolved.content_type,
                }
            },
        )
        headers = ObjectHeaders(
            content_type=resolved.content_type,
            content_encoding=resolved.content_encoding,
            cache_control=resolved.cache_control,
            acl=self.spec.access,
            server_side_encryption=self.spec.encryption,
            storage_class=self.spec.storage_class,
            metadata=resolved.metadata,
        )
        try:
            with open(resolved.local_path, "rb") as body:
                backend.put_object(resolved.remote_key, body, headers)
        except OSError as exc:
            raise TransferError(f"Unable to read {resolved.local_path}: {exc}") from exc
        except TransferError as exc:
            self.logger.error(
                "Could not upload file",
                extra={
                    "fields": {
                        "name": resolved.local_path,
                        "bucket": self.spec.bucket,
                        "target": resolved.remote_key,
                        "error": exc,
                    }
                },
            )
            raise

    def remove_targets(self) -> int:
        """Delete every remote object whose key matches target_remove."""
        pattern = self.spec.target_remove
        if not pattern:
            return 0
        if self.spec.dry_run:
            self.logger.info(
                "Dry run: skipping removal of existing objects",
                extra={"fields": {"pattern": pattern}},
            )
            return 0

        backend = self._require_backend()
        table = MatchRuleTable.from_pairs([(pattern, "remove")])
        keys = [key for key in backend.list_objects() if self.matcher.match(key, table)]
        if not keys:
            self.logger.info("No existing objects matched removal pattern", extra={"fields": {"pattern": pattern}})
            return 0
        self.logger.info(
            "Removing existing objects",
            extra={"fields": {"pattern": pattern, "count": len(keys)}},
        )
        return backend.delete_objects(keys)

    def _log_dry_run(self, resolved: ResolvedFile) -> None:
        fields = {
            "name": resolved.local_path,
            "bucket": self.spec.bucket,
            "target": resolved.remote_key,
            "content-type": resolved.content_type,
        }
        if resolved.content_encoding:
            fields["content-encoding"] = resolved.content_encoding
        if resolved.cache_control:
            fields["cache-control"] = resolved.cache_control
        if self.spec.strip_prefix.is_wildcard:
            fields["stripped"] = resolved.stripped_prefix or ""
        self.logger.info("Dry run: would upload file", extra={"fields": fields})

    def _require_backend(self) -> StorageBackend:
        if self.backend is None:
            raise TransferError("No storage backend configured")
        return self.backend
