"""Report generation utilities."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..config import UploadSpec
from ..s3.downloader import DownloadResult
from ..s3.uploader import UploadResult

LOGGER = logging.getLogger(__name__)

RunResult = Union[UploadResult, DownloadResult]


class ReportGenerator:
    """Produces human-readable and JSON reports summarising a run."""

    def generate(
        self,
        result: RunResult,
        spec: UploadSpec,
        output_dir: str,
        config_path: Optional[str] = None,
    ) -> Dict[str, Path]:
        directory = Path(output_dir).resolve()
        directory.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        base_name = f"report_{timestamp}"
        text_path = directory / f"{base_name}.txt"
        json_path = directory / f"{base_name}.json"

        text_path.write_text(self._build_text_report(result, spec, config_path), encoding="utf-8")
        json_path.write_text(
            json.dumps(self._build_json_report(result, spec, config_path), default=self._json_serializer, indent=2),
            encoding="utf-8",
        )

        LOGGER.info("Generated reports: %s, %s", text_path, json_path)
        return {"text": text_path, "json": json_path}

    def _build_text_report(self, result: RunResult, spec: UploadSpec, config_path: Optional[str]) -> str:
        lines: List[str] = []
        mode = "Download" if isinstance(result, DownloadResult) else "Upload"
        lines.append("=" * 80)
        lines.append(f"S3 Artifact {mode} Report")
        lines.append("=" * 80)
        lines.append("")
        lines.append(f"Generated At: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        if config_path:
            lines.append(f"Configuration File: {config_path}")
        lines.append(f"Bucket: {spec.bucket}")
        lines.append(f"Source: {spec.source}")
        lines.append(f"Target: {spec.target or '/'}")
        if spec.strip_prefix.prefix:
            lines.append(f"Strip Prefix: {spec.strip_prefix.prefix} ({spec.strip_prefix.kind})")
        lines.append(f"Dry Run: {result.dry_run}")
        lines.append("")
        lines.append("Summary")
        lines.append("-" * 80)
        lines.append(f"Total Files: {result.total_files}")
        if isinstance(result, UploadResult):
            lines.append(f"Uploaded: {result.uploaded}")
            lines.append(f"Removed Before Upload: {result.removed}")
            lines.append(f"Skipped Directories: {len(result.skipped_directories)}")
        else:
            lines.append(f"Downloaded: {result.downloaded}")
            lines.append(f"Total Size (MB): {result.total_size_mb:.2f}")
        lines.append(f"Skipped: {result.skipped}")
        lines.append(f"Duration (s): {result.duration_seconds:.2f}")
        lines.append("")
        lines.append("Files")
        lines.append("-" * 80)
        if isinstance(result, UploadResult):
            for idx, resolved in enumerate(result.files, start=1):
                lines.append(
                    f"  {idx}. {resolved.local_path} -> s3://{spec.bucket}{resolved.remote_key} "
                    f"({resolved.content_type})"
                )
        else:
            for idx, (key, local_path) in enumerate(result.files, start=1):
                lines.append(f"  {idx}. s3://{spec.bucket}/{key} -> {local_path}")
        lines.append("")
        return "\n".join(lines)

    def _build_json_report(
        self, result: RunResult, spec: UploadSpec, config_path: Optional[str]
    ) -> Dict[str, object]:
        report: Dict[str, object] = {
            "generated_at": datetime.now(timezone.utc),
            "config_file": config_path,
            "mode": "download" if isinstance(result, DownloadResult) else "upload",
            "bucket": spec.bucket,
            "source": spec.source,
            "target": spec.target,
            "strip_prefix": {"pattern": spec.strip_prefix.prefix, "kind": spec.strip_prefix.kind},
            "dry_run": result.dry_run,
            "summary": {
                "total_files": result.total_files,
                "skipped": result.skipped,
                "duration_seconds": result.duration_seconds,
            },
        }
        summary = report["summary"]
        assert isinstance(summary, dict)
        if isinstance(result, UploadResult):
            summary["uploaded"] = result.uploaded
            summary["removed"] = result.removed
            report["skipped_directories"] = list(result.skipped_directories)
            report["files"] = [
                {
                    "local_path": resolved.local_path,
                    "key": resolved.remote_key,
                    "content_type": resolved.content_type,
                    "content_encoding": resolved.content_encoding,
                    "cache_control": resolved.cache_control,
                    "metadata": resolved.metadata,
                    "stripped_prefix": resolved.stripped_prefix,
                }
                for resolved in result.files
            ]
        else:
            summary["downloaded"] = result.downloaded
            summary["total_size_mb"] = result.total_size_mb
            report["files"] = [{"key": key, "local_path": local_path} for key, local_path in result.files]
        return report

    @staticmethod
    def _json_serializer(value):
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=timezone.utc).isoformat()
            return value.isoformat()
        if isinstance(value, Path):
            return str(value)
        raise TypeError(f"Object of type {type(value)!r} is not JSON serialisable")
