import logging
from pathlib import Path
from unittest.mock import Mock

import pytest

from s3_artifact_sync.config import UploadSpec
from s3_artifact_sync.resolve import compile_strip_pattern


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def s3_client():
    client = Mock()
    client.list_buckets.return_value = {"Buckets": [{"Name": "artifacts", "CreationDate": None}]}
    paginator = Mock()
    paginator.paginate.return_value = [{"Contents": []}]
    client.get_paginator.return_value = paginator
    client.delete_objects.return_value = {}
    return client


@pytest.fixture
def dist(tmp_path, monkeypatch):
    """A small build output tree; the working directory is its parent."""
    root = tmp_path / "dist"
    (root / "css").mkdir(parents=True)
    (root / "js").mkdir()
    (root / "index.html").write_text("<html></html>")
    (root / "css" / "site.css").write_text("body {}")
    (root / "js" / "app.js").write_text("console.log(1)")
    (root / "notes.txt").write_text("notes")
    monkeypatch.chdir(tmp_path)
    return root


def make_spec(**kwargs) -> UploadSpec:
    kwargs.setdefault("bucket", "artifacts")
    kwargs.setdefault("source", "dist/**")
    strip_prefix = kwargs.pop("strip_prefix", "")
    return UploadSpec(strip_prefix=compile_strip_pattern(strip_prefix), **kwargs)


def write(path: Path, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path
