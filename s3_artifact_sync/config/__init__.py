"""Configuration utilities for the S3 artifact sync plugin."""

from .config_manager import ConfigManager, UploadSpec

__all__ = ["ConfigManager", "UploadSpec"]
