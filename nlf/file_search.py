"""Case-insensitive file search beneath a package directory."""

from __future__ import annotations

import os
from fnmatch import fnmatchcase
from pathlib import Path
from typing import List, Protocol

from .errors import GlobError

LICENSE_PATTERN = "*li[cs]en[cs]e*"
README_PATTERN = "*readme*"

_EXCLUDED_DIRS = {
    "node_modules",
    "bower_components",
}


class FileSearch(Protocol):
    """Finds files whose basename matches a glob pattern."""

    def search(self, directory: str, pattern: str) -> List[str]:
        """Return sorted absolute paths of matching regular files."""


class GlobFileSearch:
    """Walks a directory tree, skipping nested dependency-manager directories."""

    def __init__(self, excluded_dirs: set[str] | None = None) -> None:
        self.excluded_dirs = set(excluded_dirs) if excluded_dirs is not None else set(_EXCLUDED_DIRS)

    def search(self, directory: str, pattern: str) -> List[str]:
        if not isinstance(pattern, str):
            raise GlobError("pattern must be a string", directory=directory, pattern=pattern)
        if not isinstance(directory, (str, os.PathLike)):
            raise GlobError("directory must be a string", directory=directory, pattern=pattern)

        root = Path(directory)
        if not root.is_dir():
            raise GlobError(f"Not a directory: {directory}", directory=directory, pattern=pattern)

        def _on_error(exc: OSError) -> None:
            raise GlobError(
                f"Unable to search {exc.filename or directory}: {exc}",
                directory=directory,
                pattern=pattern,
            ) from exc

        lowered = pattern.lower()
        found: List[str] = []
        for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
            # Dot entries are hidden from glob matches.
            dirnames[:] = [
                name
                for name in dirnames
                if name not in self.excluded_dirs and not name.startswith(".")
            ]
            for filename in filenames:
                if filename.startswith("."):
                    continue
                if not fnmatchcase(filename.lower(), lowered):
                    continue
                path = os.path.join(dirpath, filename)
                if os.path.isfile(path):
                    found.append(os.path.abspath(path))
        found.sort()
        return found


__all__ = [
    "FileSearch",
    "GlobFileSearch",
    "LICENSE_PATTERN",
    "README_PATTERN",
]
