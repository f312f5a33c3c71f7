"""Evidence items gathered for a package: manifest declarations and files."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from .errors import FileAccessError


@dataclass(frozen=True)
class SimpleLicense:
    """A license declared as a plain string, e.g. ``"MIT"``."""

    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class StructuredLicense:
    """A license declared as a ``{"type": ..., "url": ...}`` object."""

    type: Optional[str] = None
    url: Optional[str] = None

    def __str__(self) -> str:
        if self.type and self.url:
            return f"{self.type} ({self.url})"
        return self.type or self.url or "(unknown)"


LicenseExpr = Union[SimpleLicense, StructuredLicense]


def parse_license_expr(raw: Any) -> LicenseExpr:
    """Convert a raw manifest value into a :data:`LicenseExpr`."""
    if isinstance(raw, str):
        return SimpleLicense(raw)
    if isinstance(raw, Mapping):
        license_type = raw.get("type")
        url = raw.get("url")
        return StructuredLicense(
            type=str(license_type) if license_type is not None else None,
            url=str(url) if url is not None else None,
        )
    raise TypeError(f"Unsupported license declaration: {raw!r}")


@dataclass(frozen=True)
class PackageSource:
    """License evidence declared in a package manifest."""

    license: LicenseExpr

    @property
    def kind(self) -> str:
        return "package"


def _read_text(path: str) -> str:
    return Path(path).read_bytes().decode("utf-8", errors="replace")


class FileSource:
    """License evidence held in a file; contents are loaded by :meth:`read`."""

    kind = "file"

    def __init__(self, path: str) -> None:
        self.path = path
        self.text: Optional[str] = None

    async def read(self, timeout: float | None = None) -> str:
        """Load the file contents, raising :class:`FileAccessError` on failure."""
        try:
            self.text = await asyncio.wait_for(
                asyncio.to_thread(_read_text, self.path), timeout=timeout
            )
        except asyncio.TimeoutError as exc:
            raise FileAccessError(
                self.path, f"Timed out after {timeout}s reading {self.path}"
            ) from exc
        except OSError as exc:
            raise FileAccessError(self.path, f"Unable to read {self.path}: {exc}") from exc
        return self.text

    def __repr__(self) -> str:
        loaded = "loaded" if self.text is not None else "pending"
        return f"FileSource(path={self.path!r}, {loaded})"


EvidenceItem = Union[PackageSource, FileSource]


__all__ = [
    "EvidenceItem",
    "FileSource",
    "LicenseExpr",
    "PackageSource",
    "SimpleLicense",
    "StructuredLicense",
    "parse_license_expr",
]
