"""Core application entry point."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

from .config import ConfigManager, UploadSpec
from .s3 import (
    DownloadResult,
    FileDownloader,
    S3Uploader,
    StorageBackend,
    UploadResult,
    create_s3_client,
    create_session,
)
from .utils import ProgressTracker, configure_logging
from .utils.report import ReportGenerator

LOGGER = logging.getLogger(__name__)


class S3ArtifactSync:
    """Coordinates configuration, the storage backend and the orchestrators."""

    def __init__(
        self,
        config_path: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
        *,
        s3_client=None,
        show_progress: bool = True,
    ):
        self.config_path = config_path
        self.config = ConfigManager(config_path, overrides)
        self.config.load()

        configure_logging(self.config.get_logging_config())

        self.spec: UploadSpec = self.config.get_upload_spec()
        self.backend: Optional[StorageBackend] = None
        if s3_client is not None:
            self.backend = StorageBackend(s3_client, self.spec.bucket)
        elif self.spec.download or not self.spec.dry_run:
            # a download dry run still has to list the remote keys
            aws_config = self.config.get_aws_config()
            aws_config["path_style"] = self.spec.path_style
            session = create_session(aws_config)
            self.backend = StorageBackend(create_s3_client(session, aws_config), self.spec.bucket)

        description = "Downloading" if self.spec.download else "Uploading"
        self.progress_tracker = ProgressTracker(description, enabled=show_progress)
        self.report_generator = ReportGenerator()

    def run(self) -> Union[UploadResult, DownloadResult]:
        """Execute the configured upload or download."""
        spec = self.spec
        LOGGER.info(
            "Starting %s",
            "download" if spec.download else "upload",
            extra={
                "fields": {
                    "bucket": spec.bucket,
                    "source": spec.source,
                    "target": spec.target,
                    "dry_run": spec.dry_run,
                }
            },
        )

        result: Union[UploadResult, DownloadResult]
        if spec.download:
            result = FileDownloader(self.backend, spec, progress_tracker=self.progress_tracker).download()
            LOGGER.info(
                "Download finished. Downloaded=%s, Skipped=%s", result.downloaded, result.skipped
            )
        else:
            result = S3Uploader(self.backend, spec, progress_tracker=self.progress_tracker).upload()
            LOGGER.info(
                "Upload finished. Uploaded=%s, Skipped=%s, Directories=%s",
                result.uploaded,
                result.skipped,
                len(result.skipped_directories),
            )

        self._generate_report(result)
        return result

    def _generate_report(self, result: Union[UploadResult, DownloadResult]) -> None:
        directory = self.config.get_report_config().get("directory")
        if not directory:
            return
        try:
            self.report_generator.generate(result, self.spec, directory, self.config_path)
        except OSError as exc:
            LOGGER.warning("Failed to generate report: %s", exc)
