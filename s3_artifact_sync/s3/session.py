"""boto3 session and client construction."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import ConfigurationError

LOGGER = logging.getLogger(__name__)


def create_session(aws_config: Dict[str, Any]) -> boto3.session.Session:
    """Build a session from static keys or a profile, then assume a role if asked."""
    kwargs: Dict[str, Any] = {"region_name": aws_config.get("region")}
    if aws_config.get("profile"):
        kwargs["profile_name"] = aws_config["profile"]
    if aws_config.get("access_key") and aws_config.get("secret_key"):
        kwargs["aws_access_key_id"] = aws_config["access_key"]
        kwargs["aws_secret_access_key"] = aws_config["secret_key"]
        if aws_config.get("session_token"):
            kwargs["aws_session_token"] = aws_config["session_token"]

    try:
        session = boto3.session.Session(**kwargs)
    except (BotoCoreError, ClientError) as exc:  # pragma: no cover - depends on AWS
        raise ConfigurationError(f"Unable to create AWS session: {exc}") from exc

    role_arn = aws_config.get("assume_role")
    if not role_arn:
        return session
    credentials = assume_role(
        session,
        role_arn,
        session_name=aws_config.get("assume_role_session_name") or "s3-artifact-sync",
        external_id=aws_config.get("external_id"),
        oidc_token=read_oidc_token(aws_config.get("oidc_token_id")),
    )
    return boto3.session.Session(
        aws_access_key_id=credentials["AccessKeyId"],
        aws_secret_access_key=credentials["SecretAccessKey"],
        aws_session_token=credentials["SessionToken"],
        region_name=aws_config.get("region"),
    )


def assume_role(
    session: boto3.session.Session,
    role_arn: str,
    *,
    session_name: str,
    external_id: Optional[str] = None,
    oidc_token: Optional[str] = None,
) -> Dict[str, str]:
    """Exchange the session (or an OIDC token) for temporary role credentials."""
    sts = session.client("sts")
    try:
        if oidc_token:
            LOGGER.info("Assuming role with web identity", extra={"fields": {"role": role_arn}})
            response = sts.assume_role_with_web_identity(
                RoleArn=role_arn,
                RoleSessionName=session_name,
                WebIdentityToken=oidc_token,
            )
        else:
            params = {"RoleArn": role_arn, "RoleSessionName": session_name}
            if external_id:
                params["ExternalId"] = external_id
            LOGGER.info("Assuming role", extra={"fields": {"role": role_arn}})
            response = sts.assume_role(**params)
    except (BotoCoreError, ClientError) as exc:
        raise ConfigurationError(f"Unable to assume role {role_arn}: {exc}") from exc
    return response["Credentials"]


def read_oidc_token(token: Optional[str]) -> Optional[str]:
    """Return the token itself, or the contents of the file it names."""
    if not token:
        return None
    path = Path(token)
    try:
        is_file = path.is_file()
    except OSError:
        # raw JWTs are often longer than the filesystem name limit
        is_file = False
    if not is_file:
        return token
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise ConfigurationError(f"Unable to read OIDC token file {path}: {exc}") from exc


def create_s3_client(session: boto3.session.Session, aws_config: Dict[str, Any]):
    """Return an S3 client honouring the endpoint and addressing style."""
    addressing_style = "path" if aws_config.get("path_style") else "auto"
    endpoint = aws_config.get("endpoint") or None
    LOGGER.info(
        "Attempting connection",
        extra={"fields": {"region": aws_config.get("region"), "endpoint": endpoint}},
    )
    return session.client(
        "s3",
        endpoint_url=endpoint,
        region_name=aws_config.get("region"),
        config=Config(s3={"addressing_style": addressing_style}),
    )
