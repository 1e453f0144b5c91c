"""Per-file HTTP metadata resolution."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from typing import Dict, Optional

from .pattern_matcher import MatchRuleTable, PatternMatcher

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class FileMetadata:
    """Headers attached to one uploaded object."""

    content_type: str
    content_encoding: Optional[str] = None
    cache_control: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)


def guess_content_type(path: str) -> str:
    """Return the content type for the file based on its extension."""
    content_type, _ = mimetypes.guess_type(path, strict=False)
    return content_type or DEFAULT_CONTENT_TYPE


class MetadataResolver:
    """Looks up content headers and user metadata for a local path."""

    def __init__(
        self,
        matcher: PatternMatcher,
        content_type: Optional[MatchRuleTable[str]] = None,
        content_encoding: Optional[MatchRuleTable[str]] = None,
        cache_control: Optional[MatchRuleTable[str]] = None,
        metadata: Optional[MatchRuleTable[Dict[str, str]]] = None,
    ) -> None:
        self.matcher = matcher
        self.content_type = content_type or MatchRuleTable()
        self.content_encoding = content_encoding or MatchRuleTable()
        self.cache_control = cache_control or MatchRuleTable()
        self.metadata = metadata or MatchRuleTable()
        for table in (self.content_type, self.content_encoding, self.cache_control, self.metadata):
            matcher.compile_table(table)

    def resolve(self, path: str) -> FileMetadata:
        content_type = self.matcher.match(path, self.content_type)
        if not content_type:
            content_type = guess_content_type(path)

        content_encoding = self.matcher.match(path, self.content_encoding) or None
        cache_control = self.matcher.match(path, self.cache_control) or None
        metadata = self.matcher.match_value(path, self.metadata) or {}

        return FileMetadata(
            content_type=content_type,
            content_encoding=content_encoding,
            cache_control=cache_control,
            metadata=dict(metadata),
        )
