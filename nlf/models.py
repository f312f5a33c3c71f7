"""Core data models shared across nlf components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from .sources import EvidenceItem

UNKNOWN_VERSION = "0.0.0"
NO_REPOSITORY = "(none)"


@dataclass(eq=False)
class PackageNode:
    """One installed package as produced by a tree reader.

    ``dependencies`` and ``dev_dependencies`` map declared names to the
    resolved node, or ``None`` when the dependency is not installed.
    """

    path: str
    name: Optional[str] = None
    version: Optional[str] = None
    id: Optional[str] = None
    repository: Optional[str] = None
    extraneous: bool = False
    dependencies: Dict[str, Optional["PackageNode"]] = field(default_factory=dict)
    dev_dependencies: Dict[str, Optional["PackageNode"]] = field(default_factory=dict)
    license: Any = None
    licenses: Any = None

    def __repr__(self) -> str:
        return f"PackageNode(id={create_id(self)!r}, path={self.path!r})"


def create_id(node: PackageNode) -> str:
    """Return the identity key of ``node``, synthesising one when it is missing."""
    if not node.id or node.id == "@":
        return f"unknown({node.path})@{UNKNOWN_VERSION}"
    return node.id


class LicenseCollection:
    """Append-only, insertion-ordered evidence items of one source category."""

    def __init__(self) -> None:
        self._items: List[EvidenceItem] = []

    def add(self, item: EvidenceItem) -> EvidenceItem:
        self._items.append(item)
        return item

    @property
    def items(self) -> List[EvidenceItem]:
        return list(self._items)

    def __iter__(self) -> Iterator[EvidenceItem]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"LicenseCollection({self._items!r})"


@dataclass
class LicenseSources:
    """Evidence buckets for one package, one per source category."""

    package: LicenseCollection = field(default_factory=LicenseCollection)
    license: LicenseCollection = field(default_factory=LicenseCollection)
    readme: LicenseCollection = field(default_factory=LicenseCollection)


@dataclass
class PackageRecord:
    """A resolved package and the license evidence gathered for it."""

    id: str
    name: str
    version: str
    directory: str
    repository: str = NO_REPOSITORY
    license_sources: LicenseSources = field(default_factory=LicenseSources)

    @classmethod
    def from_node(cls, node: PackageNode) -> "PackageRecord":
        package_id = create_id(node)
        return cls(
            id=package_id,
            name=node.name or package_id,
            version=node.version or UNKNOWN_VERSION,
            directory=node.path,
            repository=node.repository or NO_REPOSITORY,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PackageRecord):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


__all__ = [
    "LicenseCollection",
    "LicenseSources",
    "NO_REPOSITORY",
    "PackageNode",
    "PackageRecord",
    "UNKNOWN_VERSION",
    "create_id",
]
