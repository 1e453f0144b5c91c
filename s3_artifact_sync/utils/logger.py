"""Logging helpers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict


class FieldsFormatter(logging.Formatter):
    """Appends ``key=value`` pairs passed as ``extra={"fields": {...}}``."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        fields = getattr(record, "fields", None)
        if not fields:
            return message
        rendered = " ".join(f"{key}={_quote(value)}" for key, value in fields.items())
        return f"{message} {rendered}"


def _quote(value: Any) -> str:
    text = "" if value is None else str(value)
    if not text or any(char.isspace() for char in text) or '"' in text:
        return '"' + text.replace('"', '\\"') + '"'
    return text


def configure_logging(config: Dict[str, Any]) -> None:
    """Configure application logging based on the supplied configuration."""
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    log_format = config.get("format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    console_enabled = bool(config.get("console", True))
    file_path = config.get("file")

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter = FieldsFormatter(log_format)

    if console_enabled:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if file_path:
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logging.captureWarnings(True)
