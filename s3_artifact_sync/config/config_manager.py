"""Configuration management utilities."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from ..exceptions import ConfigurationError, ValidationError
from ..resolve.keys import StripPattern, compile_strip_pattern
from ..resolve.pattern_matcher import REGEX, SYNTAXES, MatchRuleTable, PatternMatcher
from .validator import (
    parse_bool,
    parse_metadata_table,
    parse_rule_table,
    parse_string_list,
)

VALID_ACLS = (
    "private",
    "public-read",
    "public-read-write",
    "authenticated-read",
    "aws-exec-read",
    "bucket-owner-read",
    "bucket-owner-full-control",
)


@dataclass(frozen=True)
class UploadSpec:
    """Everything one run needs to resolve and transfer files."""

    bucket: str
    source: str
    target: str = ""
    strip_prefix: StripPattern = field(default_factory=lambda: compile_strip_pattern(""))
    exclude: Tuple[str, ...] = ()
    region: str = "us-east-1"
    endpoint: Optional[str] = None
    path_style: bool = False
    dry_run: bool = False
    download: bool = False
    access: str = "private"
    encryption: Optional[str] = None
    storage_class: Optional[str] = None
    content_type: MatchRuleTable[str] = field(default_factory=MatchRuleTable)
    content_encoding: MatchRuleTable[str] = field(default_factory=MatchRuleTable)
    cache_control: MatchRuleTable[str] = field(default_factory=MatchRuleTable)
    metadata: MatchRuleTable[Dict[str, str]] = field(default_factory=MatchRuleTable)
    target_remove: Optional[str] = None
    pattern_syntax: str = REGEX

    def get_s3_path(self) -> str:
        """Return the S3 URI of the target root."""
        return f"s3://{self.bucket}/{self.target.lstrip('/')}"


class ConfigManager:
    """Loads the optional YAML file and merges command line overrides."""

    def __init__(self, config_path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None):
        self.config_path = Path(config_path) if config_path else None
        self.overrides = overrides or {}
        self.config: Dict[str, Any] = {}
        self._spec: Optional[UploadSpec] = None

    def load(self) -> Dict[str, Any]:
        """Load, merge and validate the configuration."""
        data: Dict[str, Any] = {}
        if self.config_path is not None:
            if not self.config_path.exists():
                raise ConfigurationError(f"Configuration file not found: {self.config_path}")
            try:
                with self.config_path.open("r", encoding="utf-8") as fh:
                    data = yaml.safe_load(fh) or {}
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Failed to parse configuration: {exc}") from exc
            if not isinstance(data, dict):
                raise ValidationError("Configuration must be a mapping.")

        for section, values in self.overrides.items():
            if isinstance(values, dict):
                merged = dict(data.get(section) or {})
                merged.update({key: value for key, value in values.items() if value is not None})
                data[section] = merged
            elif values is not None:
                data[section] = values

        self.config = data
        self._spec = None
        self.validate()
        return self.config

    def validate(self) -> bool:
        """Validate the loaded configuration contents."""
        if not isinstance(self.config, dict):
            raise ValidationError("Configuration must be a mapping.")

        for section in ("aws", "upload", "logging", "report"):
            value = self.config.get(section, {})
            if value is not None and not isinstance(value, dict):
                raise ValidationError(f"Section '{section}' must be a mapping.")

        upload_cfg = self.config.get("upload") or {}
        if not upload_cfg.get("bucket"):
            raise ValidationError("Bucket must be specified under upload.bucket.")
        if not upload_cfg.get("source"):
            raise ValidationError("Source must be specified under upload.source.")

        access = upload_cfg.get("acl") or "private"
        if access not in VALID_ACLS:
            raise ValidationError(f"ACL '{access}' must be one of: {', '.join(VALID_ACLS)}.")

        syntax = upload_cfg.get("pattern_syntax") or REGEX
        if syntax not in SYNTAXES:
            raise ValidationError(
                f"pattern_syntax '{syntax}' must be one of: {', '.join(SYNTAXES)}."
            )

        # building the UploadSpec compiles every pattern, surfacing bad rules now
        self._spec = self._build_spec()
        return True

    def get_upload_spec(self) -> UploadSpec:
        """Return the immutable run specification."""
        if self._spec is None:
            self._spec = self._build_spec()
        return self._spec

    def _build_spec(self) -> UploadSpec:
        aws_cfg = self.config.get("aws") or {}
        upload_cfg = self.config.get("upload") or {}
        syntax = upload_cfg.get("pattern_syntax") or REGEX

        spec = UploadSpec(
            bucket=str(upload_cfg["bucket"]),
            source=str(upload_cfg["source"]),
            target=str(upload_cfg.get("target") or ""),
            strip_prefix=compile_strip_pattern(upload_cfg.get("strip_prefix") or ""),
            exclude=tuple(parse_string_list(upload_cfg.get("exclude"), "exclude")),
            region=str(aws_cfg.get("region") or "us-east-1"),
            endpoint=aws_cfg.get("endpoint") or None,
            path_style=parse_bool(aws_cfg.get("path_style", False), "path_style"),
            dry_run=parse_bool(upload_cfg.get("dry_run", False), "dry_run"),
            download=parse_bool(upload_cfg.get("download", False), "download"),
            access=str(upload_cfg.get("acl") or "private"),
            encryption=upload_cfg.get("encryption") or None,
            storage_class=upload_cfg.get("storage_class") or None,
            content_type=parse_rule_table(upload_cfg.get("content_type"), "content_type", syntax),
            content_encoding=parse_rule_table(
                upload_cfg.get("content_encoding"), "content_encoding", syntax
            ),
            cache_control=parse_rule_table(
                upload_cfg.get("cache_control"), "cache_control", syntax
            ),
            metadata=parse_metadata_table(upload_cfg.get("metadata"), syntax=syntax),
            target_remove=upload_cfg.get("target_remove") or None,
            pattern_syntax=syntax,
        )

        matcher = PatternMatcher(syntax)
        for table in (spec.content_type, spec.content_encoding, spec.cache_control, spec.metadata):
            matcher.compile_table(table)
        if spec.target_remove:
            matcher.compile_table(MatchRuleTable.from_pairs([(spec.target_remove, "")]))
        return spec

    def get_aws_config(self) -> Dict[str, Any]:
        """Return the AWS connection section with defaults."""
        defaults = {
            "region": "us-east-1",
            "endpoint": None,
            "profile": None,
            "access_key": None,
            "secret_key": None,
            "session_token": None,
            "assume_role": None,
            "assume_role_session_name": "s3-artifact-sync",
            "external_id": None,
            "oidc_token_id": None,
            "path_style": False,
        }
        aws_cfg = self.config.get("aws") or {}
        return {**defaults, **{key: value for key, value in aws_cfg.items() if value is not None}}

    def get_report_config(self) -> Dict[str, Any]:
        """Return report-related configuration values with defaults."""
        defaults = {"directory": None}
        report_cfg = self.config.get("report") or {}
        return {**defaults, **report_cfg}

    def get_logging_config(self) -> Dict[str, Any]:
        """Return logging configuration values with defaults."""
        defaults = {
            "level": "INFO",
            "file": None,
            "console": True,
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        }
        logging_cfg = self.config.get("logging") or {}
        return {**defaults, **logging_cfg}
