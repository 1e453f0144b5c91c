"""Command line entry point for the S3 artifact sync plugin.

Every option can also be supplied through the ``PLUGIN_*`` environment
variables a CI runner exports for plugin settings.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import click
from dotenv import load_dotenv

from .exceptions import S3ArtifactSyncError
from .main import S3ArtifactSync
from .utils import configure_logging

LOGGER = logging.getLogger(__name__)

__version__ = "1.0.0"


def _load_env_file(ctx: click.Context, param: click.Parameter, value: Optional[str]) -> Optional[str]:
    if value:
        load_dotenv(value, override=False)
    return value


@click.command()
@click.option("--env-file", type=click.Path(exists=True, dir_okay=False), envvar="PLUGIN_ENV_FILE", is_eager=True, expose_value=False, callback=_load_env_file, help="Load environment variables from a .env file first.")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True, dir_okay=False), envvar="PLUGIN_CONFIG", help="Path to a YAML configuration file.")
@click.option("--endpoint", envvar="PLUGIN_ENDPOINT", help="Endpoint URL of an S3-compatible store.")
@click.option("--access-key", envvar=["PLUGIN_ACCESS_KEY", "AWS_ACCESS_KEY_ID"], help="AWS access key.")
@click.option("--secret-key", envvar=["PLUGIN_SECRET_KEY", "AWS_SECRET_ACCESS_KEY"], help="AWS secret key.")
@click.option("--profile", envvar="PLUGIN_PROFILE", help="Named AWS profile.")
@click.option("--assume-role", envvar="PLUGIN_ASSUME_ROLE", help="ARN of a role to assume.")
@click.option("--assume-role-session-name", envvar="PLUGIN_ASSUME_ROLE_SESSION_NAME", help="Session name for the assumed role.")
@click.option("--external-id", envvar="PLUGIN_USER_ROLE_EXTERNAL_ID", help="External ID for the assumed role.")
@click.option("--oidc-token-id", envvar="PLUGIN_OIDC_TOKEN_ID", help="OIDC token (or a file holding it) for web identity.")
@click.option("--bucket", envvar="PLUGIN_BUCKET", help="Bucket name.")
@click.option("--region", envvar="PLUGIN_REGION", help="Bucket region.")
@click.option("--acl", envvar="PLUGIN_ACL", help="Canned ACL applied to uploaded objects.")
@click.option("--source", envvar="PLUGIN_SOURCE", help="Glob of local files (or remote prefix when downloading).")
@click.option("--target", envvar="PLUGIN_TARGET", help="Target key root (or local directory when downloading).")
@click.option("--strip-prefix", envvar="PLUGIN_STRIP_PREFIX", help="Literal prefix or '/'-anchored wildcard pattern removed from paths.")
@click.option("--exclude", envvar="PLUGIN_EXCLUDE", help="Exclude globs as a JSON list or comma separated string.")
@click.option("--encryption", envvar="PLUGIN_ENCRYPTION", help="Server-side encryption algorithm.")
@click.option("--storage-class", envvar="PLUGIN_STORAGE_CLASS", help="Storage class for uploaded objects.")
@click.option("--content-type", envvar="PLUGIN_CONTENT_TYPE", help="Content type, or a JSON object of pattern to content type.")
@click.option("--content-encoding", envvar="PLUGIN_CONTENT_ENCODING", help="Content encoding, or a JSON object of pattern to encoding.")
@click.option("--cache-control", envvar="PLUGIN_CACHE_CONTROL", help="Cache control, or a JSON object of pattern to value.")
@click.option("--metadata", envvar="PLUGIN_METADATA", help="JSON object of metadata, or of pattern to metadata object.")
@click.option("--target-remove", envvar="PLUGIN_TARGET_REMOVE", help="Remove remote keys matching this pattern before uploading.")
@click.option("--pattern-syntax", type=click.Choice(["regex", "glob"]), envvar="PLUGIN_PATTERN_SYNTAX", help="How rule table patterns are matched.")
@click.option("--path-style", is_flag=True, default=None, envvar="PLUGIN_PATH_STYLE", help="Use path style addressing (MinIO and friends).")
@click.option("--dry-run", is_flag=True, default=None, envvar="PLUGIN_DRY_RUN", help="Resolve everything but transfer nothing.")
@click.option("--download", is_flag=True, default=None, envvar="PLUGIN_DOWNLOAD", help="Download from the bucket instead of uploading.")
@click.option("--report-dir", type=click.Path(file_okay=False), envvar="PLUGIN_REPORT_DIR", help="Write text and JSON run reports here.")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False), envvar="PLUGIN_LOG_LEVEL", help="Override logging level.")
@click.option("--no-progress", is_flag=True, help="Disable the progress bar.")
@click.version_option(version=__version__)
def main(config_path: Optional[str], no_progress: bool, **options: Any) -> None:
    """Upload files matching SOURCE to an S3 bucket, or download them back."""
    overrides = build_overrides(options)
    try:
        sync = S3ArtifactSync(config_path, overrides, show_progress=not no_progress)
        sync.run()
    except S3ArtifactSyncError as exc:
        if not logging.getLogger().handlers:
            # configuration failed before logging was set up
            configure_logging({})
        LOGGER.error(
            "Execution failed",
            extra={"fields": {"error": exc, "kind": type(exc).__name__, "path": getattr(exc, "path", None)}},
        )
        raise SystemExit(1) from exc


def build_overrides(options: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Map flat command line options onto configuration sections."""
    aws_keys = (
        "endpoint",
        "access_key",
        "secret_key",
        "profile",
        "assume_role",
        "assume_role_session_name",
        "external_id",
        "oidc_token_id",
        "region",
        "path_style",
    )
    upload_keys = (
        "bucket",
        "acl",
        "source",
        "target",
        "strip_prefix",
        "exclude",
        "encryption",
        "storage_class",
        "content_type",
        "content_encoding",
        "cache_control",
        "metadata",
        "target_remove",
        "pattern_syntax",
        "dry_run",
        "download",
    )
    overrides: Dict[str, Dict[str, Any]] = {
        "aws": {key: options.get(key) for key in aws_keys},
        "upload": {key: options.get(key) for key in upload_keys},
        "logging": {},
        "report": {},
    }
    if options.get("log_level"):
        overrides["logging"]["level"] = options["log_level"].upper()
    if options.get("report_dir"):
        overrides["report"]["directory"] = options["report_dir"]
    return overrides


if __name__ == "__main__":
    main()
