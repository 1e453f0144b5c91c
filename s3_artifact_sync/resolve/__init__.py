"""Path, key and metadata resolution."""

from dataclasses import dataclass, field
from typing import Dict, Optional

from .file_set import FileSet, FileSetResolver
from .keys import (
    StripPattern,
    compile_strip_pattern,
    normalize_path,
    resolve_key,
    resolve_key_with,
    resolve_source,
    strip_wildcard_prefix,
    validate_strip_prefix,
)
from .metadata import FileMetadata, MetadataResolver, guess_content_type
from .pattern_matcher import GLOB, REGEX, MatchRuleTable, PatternMatcher


@dataclass(frozen=True)
class ResolvedFile:
    """A local file paired with its object key and headers."""

    local_path: str
    remote_key: str
    content_type: str
    content_encoding: Optional[str] = None
    cache_control: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)
    is_directory_skipped: bool = False
    stripped_prefix: Optional[str] = None


__all__ = [
    "FileMetadata",
    "FileSet",
    "FileSetResolver",
    "GLOB",
    "MatchRuleTable",
    "MetadataResolver",
    "PatternMatcher",
    "REGEX",
    "ResolvedFile",
    "StripPattern",
    "compile_strip_pattern",
    "guess_content_type",
    "normalize_path",
    "resolve_key",
    "resolve_key_with",
    "resolve_source",
    "strip_wildcard_prefix",
    "validate_strip_prefix",
]
