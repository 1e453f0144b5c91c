"""Local file discovery from include and exclude globs."""

from __future__ import annotations

import glob
import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence

from ..exceptions import ConfigurationError, DirectoryWithoutGlobError

LOGGER = logging.getLogger(__name__)


@dataclass
class FileSet:
    """Result of expanding a source pattern."""

    include: str
    matches: List[str] = field(default_factory=list)
    files: List[str] = field(default_factory=list)
    directories: List[str] = field(default_factory=list)
    excluded: List[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.files)

    def __iter__(self):
        return iter(self.files)


class FileSetResolver:
    """Expands an include glob minus a list of exclude globs.

    Exclusion compares path strings exactly, so an exclude pattern must expand
    to paths written the same way as the include expansion (both relative or
    both absolute, same separators).
    """

    def __init__(
        self,
        expand: Optional[Callable[[str], Iterable[str]]] = None,
        is_dir: Optional[Callable[[str], bool]] = None,
    ) -> None:
        self._expand = expand or self._glob
        self._is_dir = is_dir or os.path.isdir

    def resolve(self, include: str, excludes: Sequence[str] = ()) -> FileSet:
        """Return the files matched by include and not by any exclude."""
        matches = self.expand(include)
        excluded_paths = set()
        for pattern in excludes:
            if not pattern:
                continue
            excluded_paths.update(self.expand(pattern))

        result = FileSet(include=include)
        candidates: List[str] = []
        for path in matches:
            if path in excluded_paths:
                result.excluded.append(path)
                continue
            candidates.append(path)

        if not candidates:
            LOGGER.warning("No files matched source pattern '%s'", include)
            return result

        self.check_directory(include, candidates)

        for path in candidates:
            if self._is_dir(path):
                LOGGER.warning("Skipping directory '%s' matched by '%s'", path, include)
                result.directories.append(path)
                continue
            result.files.append(path)
        result.matches = candidates
        return result

    def check_directory(self, source: str, matches: Sequence[str]) -> None:
        """Fail when the only match is a directory named without a glob."""
        if len(matches) != 1:
            return
        path = matches[0]
        if self._is_dir(path):
            raise DirectoryWithoutGlobError(
                f"'{source}' is a directory specified without glob pattern; "
                f"use '{source.rstrip('/')}/**' to upload its contents",
                path=path,
            )

    def expand(self, pattern: str) -> List[str]:
        """Expand a glob into a sorted, de-duplicated list of paths."""
        try:
            paths = list(self._expand(pattern))
        except OSError as exc:
            raise ConfigurationError(f"Unable to expand glob '{pattern}': {exc}") from exc

        seen = set()
        unique: List[str] = []
        for path in sorted(paths):
            if path in seen:
                continue
            seen.add(path)
            unique.append(path)
        return unique

    @staticmethod
    def _glob(pattern: str) -> List[str]:
        # a recursive glob under a missing directory yields the bare prefix
        return [path for path in glob.glob(pattern, recursive=True) if os.path.lexists(path)]
