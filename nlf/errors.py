"""Error taxonomy raised by license scans."""

from __future__ import annotations


class NlfError(RuntimeError):
    """Base class for every failure surfaced by :func:`nlf.find`."""


class ConfigurationError(NlfError):
    """Raised when scan options are malformed or the directory is invalid."""


class MissingManifestError(NlfError):
    """Raised when the target directory has no package.json."""


class TreeReadError(NlfError):
    """Raised when the installed package tree cannot be read."""


class FileAccessError(NlfError):
    """Raised when a matched license or readme file cannot be read."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(message)
        self.path = path


class GlobError(NlfError):
    """Raised when searching a package directory for candidate files fails."""

    def __init__(self, message: str, *, directory: object = None, pattern: object = None) -> None:
        super().__init__(message)
        self.directory = directory
        self.pattern = pattern


__all__ = [
    "ConfigurationError",
    "FileAccessError",
    "GlobError",
    "MissingManifestError",
    "NlfError",
    "TreeReadError",
]
