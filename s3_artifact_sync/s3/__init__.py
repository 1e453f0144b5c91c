"""S3 integration helpers."""

from .backend import ObjectHeaders, StorageBackend
from .downloader import DownloadResult, FileDownloader
from .session import create_s3_client, create_session
from .uploader import S3Uploader, UploadResult

__all__ = [
    "DownloadResult",
    "FileDownloader",
    "ObjectHeaders",
    "S3Uploader",
    "StorageBackend",
    "UploadResult",
    "create_s3_client",
    "create_session",
]
