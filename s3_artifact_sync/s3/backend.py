"""Thin adapter over a boto3 S3 client."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import BinaryIO, Dict, Iterable, List, Optional, Union

from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import BucketNotFoundError, S3AccessError, TransferError

LOGGER = logging.getLogger(__name__)

# DeleteObjects accepts at most this many keys per request
DELETE_BATCH_SIZE = 1000


@dataclass
class ObjectHeaders:
    """Optional PutObject parameters for one object."""

    content_type: Optional[str] = None
    content_encoding: Optional[str] = None
    cache_control: Optional[str] = None
    acl: Optional[str] = None
    server_side_encryption: Optional[str] = None
    storage_class: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    def to_put_args(self) -> Dict[str, object]:
        args: Dict[str, object] = {}
        if self.content_type:
            args["ContentType"] = self.content_type
        if self.content_encoding:
            args["ContentEncoding"] = self.content_encoding
        if self.cache_control:
            args["CacheControl"] = self.cache_control
        if self.acl:
            args["ACL"] = self.acl
        if self.server_side_encryption:
            args["ServerSideEncryption"] = self.server_side_encryption
        if self.storage_class:
            args["StorageClass"] = self.storage_class
        if self.metadata:
            args["Metadata"] = dict(self.metadata)
        return args


class StorageBackend:
    """Bucket-scoped object store operations used by the orchestrators."""

    def __init__(self, s3_client, bucket: str) -> None:
        self.s3_client = s3_client
        self.bucket = bucket

    def list_buckets(self) -> List[Dict[str, object]]:
        try:
            response = self.s3_client.list_buckets()
        except (BotoCoreError, ClientError) as exc:
            raise S3AccessError(f"Unable to list buckets: {exc}") from exc
        return list(response.get("Buckets", []))

    def ensure_bucket(self) -> Dict[str, object]:
        """Return the bucket entry or raise BucketNotFoundError."""
        for bucket in self.list_buckets():
            if bucket.get("Name") == self.bucket:
                LOGGER.info(
                    "Found bucket",
                    extra={"fields": {"name": self.bucket, "created": bucket.get("CreationDate")}},
                )
                return bucket
        LOGGER.error("Could not find bucket", extra={"fields": {"name": self.bucket}})
        raise BucketNotFoundError(f"Could not find bucket '{self.bucket}'")

    def put_object(self, key: str, body: Union[bytes, BinaryIO], headers: ObjectHeaders) -> None:
        try:
            self.s3_client.put_object(Bucket=self.bucket, Key=key, Body=body, **headers.to_put_args())
        except (BotoCoreError, ClientError) as exc:
            raise TransferError(f"Unable to upload s3://{self.bucket}/{key}: {exc}") from exc

    def get_object(self, key: str) -> bytes:
        try:
            response = self.s3_client.get_object(Bucket=self.bucket, Key=key)
            return response["Body"].read()
        except (BotoCoreError, ClientError) as exc:
            raise TransferError(f"Unable to download s3://{self.bucket}/{key}: {exc}") from exc

    def list_objects(self, prefix: str = "") -> List[str]:
        """List object keys beneath the prefix, following pagination."""
        keys: List[str] = []
        try:
            paginator = self.s3_client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                keys.extend(obj["Key"] for obj in page.get("Contents", []) if obj.get("Key"))
        except (BotoCoreError, ClientError) as exc:
            raise S3AccessError(
                f"Unable to list objects for s3://{self.bucket}/{prefix}: {exc}"
            ) from exc
        return keys

    def delete_objects(self, keys: Iterable[str]) -> int:
        """Delete the keys in as few requests as possible; return the count."""
        pending = list(keys)
        deleted = 0
        for start in range(0, len(pending), DELETE_BATCH_SIZE):
            batch = pending[start:start + DELETE_BATCH_SIZE]
            try:
                response = self.s3_client.delete_objects(
                    Bucket=self.bucket,
                    Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
                )
            except (BotoCoreError, ClientError) as exc:
                raise S3AccessError(
                    f"Unable to delete objects from s3://{self.bucket}: {exc}"
                ) from exc
            errors = response.get("Errors", []) if isinstance(response, dict) else []
            if errors:
                first = errors[0]
                raise S3AccessError(
                    f"Unable to delete {len(errors)} object(s) from s3://{self.bucket}, "
                    f"first failure {first.get('Key')}: {first.get('Message')}"
                )
            deleted += len(batch)
        return deleted
