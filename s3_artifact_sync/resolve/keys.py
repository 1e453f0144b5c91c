"""Object key computation from local paths.

All separator handling lives here. Inputs are normalized to forward slashes
with plain string operations so that a key computed on Windows is identical
to the one computed on Linux.

Two strip-prefix modes exist side by side:

* literal: a plain string-prefix trim, unaware of path segments
  (``foo/ba`` trims ``foo/bar/x`` to ``r/x``);
* wildcard: a pattern anchored at ``/`` whose ``*``, ``**`` and ``?`` tokens
  are matched segment by segment.
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from ..exceptions import StripPrefixError, StripPrefixValidationError

LITERAL = "literal"
WILDCARD = "wildcard"

MAX_PATTERN_LENGTH = 256
MAX_WILDCARD_TOKENS = 20

_WILDCARD_CHARS = ("*", "?")


def to_slash(path: str) -> str:
    """Return the path with every backslash replaced by a forward slash."""
    return path.replace("\\", "/")


def normalize_path(path: str) -> str:
    """Drop a single leading slash, turning an absolute path into a key prefix."""
    if path.startswith("/"):
        return path[1:]
    return path


def is_wildcard_pattern(pattern: str) -> bool:
    """Return True if the strip prefix selects wildcard mode."""
    normalized = to_slash(pattern)
    return normalized.startswith("/") and any(char in normalized for char in _WILDCARD_CHARS)


def validate_strip_prefix(pattern: str) -> None:
    """Check a wildcard strip prefix, raising StripPrefixValidationError."""
    normalized = to_slash(pattern)
    if not normalized.startswith("/"):
        raise StripPrefixValidationError(f"strip_prefix '{pattern}' must start with '/'")
    if len(normalized) > MAX_PATTERN_LENGTH:
        raise StripPrefixValidationError(
            f"strip_prefix is too long ({len(normalized)} > {MAX_PATTERN_LENGTH} characters)"
        )

    segments = normalized.split("/")
    # the first element is always empty because of the leading slash and the
    # last one is empty when the pattern ends with a slash
    for segment in segments[1:-1]:
        if segment == "":
            raise StripPrefixValidationError(f"strip_prefix '{pattern}' contains an empty segment")
    for segment in segments:
        if "**" in segment and segment != "**":
            raise StripPrefixValidationError(
                f"strip_prefix '{pattern}': '**' must be a standalone directory segment"
            )

    tokens = _count_wildcard_tokens(normalized)
    if tokens > MAX_WILDCARD_TOKENS:
        raise StripPrefixValidationError(
            f"strip_prefix '{pattern}' has too many wildcards ({tokens} > {MAX_WILDCARD_TOKENS})"
        )


def _count_wildcard_tokens(pattern: str) -> int:
    count = 0
    index = 0
    while index < len(pattern):
        if pattern.startswith("**", index):
            count += 1
            index += 2
            continue
        if pattern[index] in _WILDCARD_CHARS:
            count += 1
        index += 1
    return count


def pattern_to_regex(pattern: str) -> re.Pattern[str]:
    """Compile a strip prefix into a regex anchored at the start of a path.

    ``**`` as a segment spans one or more segments, ``*`` spans one or more
    non-slash characters (as a whole segment or inside one) and ``?`` spans
    one non-slash character. A pattern that does not end with ``/`` must stop
    on a segment boundary.
    """
    normalized = to_slash(pattern)
    parts = []
    for segment in normalized.split("/"):
        if segment == "**":
            parts.append(".+")
        elif segment == "*":
            parts.append("[^/]+")
        else:
            parts.append(_segment_to_regex(segment))
    expression = "^" + "/".join(parts)
    if not normalized.endswith("/"):
        expression += "(?=/|$)"
    return re.compile(expression)


def _segment_to_regex(segment: str) -> str:
    out = []
    for char in segment:
        if char == "*":
            out.append("[^/]+")
        elif char == "?":
            out.append("[^/]")
        else:
            out.append(re.escape(char))
    return "".join(out)


@dataclass(frozen=True)
class StripPattern:
    """A strip prefix resolved once at configuration time."""

    kind: str
    prefix: str
    regex: Optional[re.Pattern[str]] = None

    @property
    def is_wildcard(self) -> bool:
        return self.kind == WILDCARD

    def strip(self, path: str) -> Tuple[str, Optional[str]]:
        """Return the path with the prefix removed and the removed span.

        The span is None when the prefix did not apply.
        """
        normalized = to_slash(path)
        if not self.prefix:
            return normalized, None
        if self.kind == LITERAL:
            if not normalized.startswith(self.prefix):
                return normalized, None
            self._check_remainder(normalized[len(self.prefix):], path)
            return normalized[len(self.prefix):], self.prefix

        regex = self.regex or pattern_to_regex(self.prefix)
        matched = regex.match(normalized)
        if matched is None:
            return normalized, None
        remainder = normalized[matched.end():]
        self._check_remainder(remainder, path)
        return remainder.lstrip("/"), matched.group(0)

    def _check_remainder(self, remainder: str, path: str) -> None:
        # a key must keep at least the file's own name
        if remainder.strip("/") == "":
            raise StripPrefixError(
                f"strip_prefix '{self.prefix}' removes entire path for '{path}'", path=path
            )


def compile_strip_pattern(pattern: Optional[str]) -> StripPattern:
    """Build the StripPattern variant for a configured strip prefix."""
    normalized = to_slash(pattern or "")
    if is_wildcard_pattern(normalized):
        validate_strip_prefix(normalized)
        return StripPattern(WILDCARD, normalized, pattern_to_regex(normalized))
    return StripPattern(LITERAL, normalized)


def strip_wildcard_prefix(path: str, pattern: str) -> str:
    """Remove a slash-anchored prefix pattern from the start of a path.

    The pattern may be literal or contain wildcards. When it does not match,
    the path is returned unchanged. Removing the whole path is an error.
    """
    if not pattern:
        return path
    validate_strip_prefix(pattern)
    normalized = to_slash(pattern)
    strip_pattern = StripPattern(WILDCARD, normalized, pattern_to_regex(normalized))
    stripped, removed = strip_pattern.strip(path)
    if removed is None:
        return path
    return stripped


def join_key(target: str, path: str) -> str:
    """Join target and path into a clean key that always starts with '/'."""
    parts = [part.strip("/") for part in (to_slash(target), to_slash(path))]
    joined = "/".join(part for part in parts if part)
    if not joined:
        return "/"
    key = posixpath.normpath("/" + joined)
    return key if key.startswith("/") else "/" + key


def resolve_key(target: str, local_path: str, strip_prefix: str = "") -> str:
    """Return the remote object key for a local path."""
    return resolve_key_with(target, local_path, compile_strip_pattern(strip_prefix))[0]


def resolve_key_with(
    target: str, local_path: str, strip_pattern: StripPattern
) -> Tuple[str, Optional[str]]:
    """Return the object key and the removed prefix span using a compiled pattern."""
    stripped, removed = strip_pattern.strip(local_path)
    return join_key(target, stripped), removed


def resolve_source(source_dir: str, object_key: str, strip_prefix: str = "") -> str:
    """Return the local relative path for a downloaded object.

    The strip prefix is concatenated as a string, not joined as a path, so
    ``("dist", "dist/js/app.js", "public")`` yields ``publicjs/app.js``.
    """
    path = object_key
    if source_dir and path.startswith(source_dir):
        path = path[len(source_dir):]
    if path.startswith("/"):
        path = path[1:]
    return strip_prefix + path
