"""Ordered pattern tables and first-match lookups."""

from __future__ import annotations

import fnmatch
import re
from dataclasses import dataclass
from typing import Any, Dict, Generic, Iterable, Iterator, List, Optional, Tuple, TypeVar

from ..exceptions import ConfigurationError

REGEX = "regex"
GLOB = "glob"
SYNTAXES = (REGEX, GLOB)

# pattern that matches every candidate, used for scalar (default) rules
MATCH_ALL = {REGEX: "", GLOB: "*"}

V = TypeVar("V")


@dataclass(frozen=True)
class MatchRuleTable(Generic[V]):
    """An ordered sequence of (pattern, value) rules.

    Rules are evaluated in declaration order and the first match wins, so two
    overlapping patterns always resolve the same way.
    """

    rules: Tuple[Tuple[str, V], ...] = ()

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, V]]) -> "MatchRuleTable[V]":
        return cls(tuple((str(pattern), value) for pattern, value in pairs))

    @classmethod
    def from_mapping(cls, mapping: Dict[str, V]) -> "MatchRuleTable[V]":
        # dicts keep insertion order, which is the order the user wrote them
        return cls.from_pairs(mapping.items())

    def patterns(self) -> List[str]:
        return [pattern for pattern, _ in self.rules]

    def __iter__(self) -> Iterator[Tuple[str, V]]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def __bool__(self) -> bool:
        return bool(self.rules)


class PatternMatcher:
    """Evaluates rule tables with either regex search or shell glob semantics.

    ``regex`` mode follows ``re.search``: a pattern matches if it matches any
    substring, so the empty pattern matches every candidate and can be used
    as a default rule. ``glob`` mode follows ``fnmatch.fnmatchcase`` on the
    whole candidate, ``*`` crosses path separators, and the empty pattern
    never matches.
    """

    def __init__(self, syntax: str = REGEX) -> None:
        if syntax not in SYNTAXES:
            raise ConfigurationError(
                f"Unsupported pattern syntax '{syntax}', expected one of {', '.join(SYNTAXES)}."
            )
        self.syntax = syntax
        self._pattern_cache: Dict[str, re.Pattern[str]] = {}

    def matches(self, candidate: str, pattern: str) -> bool:
        """Return True if the candidate matches the supplied pattern."""
        if self.syntax == GLOB:
            if not pattern:
                return False
            return fnmatch.fnmatchcase(candidate, pattern)
        compiled = self._get_compiled_pattern(pattern)
        return compiled.search(candidate) is not None

    def match(self, candidate: str, table: MatchRuleTable[str]) -> str:
        """Return the value of the first matching rule, or an empty string."""
        value = self.match_value(candidate, table)
        return "" if value is None else value

    def match_value(self, candidate: str, table: MatchRuleTable[Any]) -> Optional[Any]:
        """Return the value of the first matching rule, or None."""
        for pattern, value in table:
            if self.matches(candidate, pattern):
                return value
        return None

    def get_matched_pattern(self, candidate: str, patterns: Iterable[str]) -> Optional[str]:
        """Return the first pattern that matches the candidate, if any."""
        for pattern in patterns:
            if self.matches(candidate, pattern):
                return pattern
        return None

    def filter(self, candidates: Iterable[str], pattern: str) -> List[str]:
        """Filter candidates to those matching the pattern."""
        return [name for name in candidates if self.matches(name, pattern)]

    def compile_table(self, table: MatchRuleTable[Any]) -> None:
        """Compile every pattern up front so bad rules fail before any transfer."""
        if self.syntax != REGEX:
            return
        for pattern, _ in table:
            self._get_compiled_pattern(pattern)

    def _get_compiled_pattern(self, pattern: str) -> re.Pattern[str]:
        """Fetch or compile the regex pattern."""
        compiled = self._pattern_cache.get(pattern)
        if compiled is None:
            try:
                compiled = re.compile(pattern)
            except re.error as exc:
                raise ConfigurationError(f"Invalid regex pattern '{pattern}': {exc}") from exc
            self._pattern_cache[pattern] = compiled
        return compiled
