"""Readers that materialise an installed package tree as ``PackageNode`` graphs."""

from __future__ import annotations

import json
import logging
import os
from collections import deque
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional, Protocol, Tuple

from .errors import TreeReadError
from .logging import get_logger
from .models import PackageNode

MANIFEST_FILENAME = "package.json"
MODULES_DIRNAME = "node_modules"

_RUNTIME_KEYS = ("dependencies", "optionalDependencies")
_DEV_KEY = "devDependencies"


class TreeReader(Protocol):
    """Produces the raw dependency graph rooted at a project directory."""

    def read(self, root_directory: str) -> PackageNode:
        """Return the root node, raising :class:`TreeReadError` on failure."""


def load_manifest(directory: Path) -> Dict[str, Any]:
    """Return the parsed package.json in ``directory``."""
    data = json.loads((directory / MANIFEST_FILENAME).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{MANIFEST_FILENAME} must contain a JSON object")
    return data


def _declared_names(manifest: Dict[str, Any], keys: Tuple[str, ...]) -> List[str]:
    names: List[str] = []
    for key in keys:
        deps = manifest.get(key)
        if not isinstance(deps, dict):
            continue
        for name in deps:
            if isinstance(name, str) and name not in names:
                names.append(name)
    return names


def _repository_url(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value or None
    if isinstance(value, dict):
        url = value.get("url")
        if isinstance(url, str) and url:
            return url
    return None


def _as_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _installed_packages(directory: Path) -> List[Tuple[str, Path]]:
    """List ``(name, path)`` for packages installed directly under ``directory/node_modules``."""
    modules_dir = directory / MODULES_DIRNAME
    if not modules_dir.is_dir():
        return []
    found: List[Tuple[str, Path]] = []
    for entry in sorted(modules_dir.iterdir()):
        if entry.name.startswith("."):
            continue
        if entry.name.startswith("@") and entry.is_dir():
            for scoped in sorted(entry.iterdir()):
                if scoped.is_dir():
                    found.append((f"{entry.name}/{scoped.name}", scoped))
            continue
        if entry.is_dir():
            found.append((entry.name, entry))
    return found


class NodeModulesReader:
    """Reads a ``node_modules`` installation the way Node resolves packages.

    Each declared dependency is looked up in the requiring package's own
    ``node_modules`` and then in every enclosing ``node_modules`` up to the
    project root. Packages found on disk that nothing declares are attached to
    the package owning their ``node_modules`` directory and flagged extraneous.
    """

    def __init__(self) -> None:
        self.logger = get_logger("tree_reader")

    def read(self, root_directory: str) -> PackageNode:
        root_path = Path(root_directory).expanduser().resolve()
        try:
            manifest = load_manifest(root_path)
        except (OSError, ValueError) as exc:
            raise TreeReadError(f"Unable to read {root_path / MANIFEST_FILENAME}: {exc}") from exc

        return _TreeBuild(root_path, self.logger).run(manifest)


class _TreeBuild:
    """State for one ``NodeModulesReader.read`` call."""

    def __init__(self, root_path: Path, logger: logging.Logger) -> None:
        self.root_path = root_path
        self.logger = logger
        self.nodes: Dict[str, Optional[PackageNode]] = {}
        self.manifests: Dict[str, Dict[str, Any]] = {}
        self.pending: Deque[PackageNode] = deque()

    def run(self, manifest: Dict[str, Any]) -> PackageNode:
        root = self._make_node(self.root_path, manifest)
        self.nodes[os.path.realpath(self.root_path)] = root

        for name in _declared_names(manifest, (_DEV_KEY,)):
            root.dev_dependencies[name] = self._resolve(name, self.root_path)
        self.pending.append(root)

        visited: List[PackageNode] = []
        undeclared: List[Tuple[PackageNode, str, PackageNode]] = []
        swept = 0
        self._drain(visited)
        while swept < len(visited):
            owner = visited[swept]
            swept += 1
            undeclared.extend(self._load_undeclared(owner))
            self._drain(visited)

        self._mark_extraneous(root, visited, undeclared)
        self.logger.debug("Read %d package(s) under %s", len(visited), self.root_path)
        return root

    def _drain(self, visited: List[PackageNode]) -> None:
        while self.pending:
            node = self.pending.popleft()
            visited.append(node)
            self._link_runtime(node)

    def _make_node(self, directory: Path, manifest: Dict[str, Any]) -> PackageNode:
        name = _as_text(manifest.get("name"))
        version = _as_text(manifest.get("version"))
        node = PackageNode(
            path=str(directory),
            name=name,
            version=version,
            id=f"{name or ''}@{version or ''}",
            repository=_repository_url(manifest.get("repository")),
            license=manifest.get("license"),
            licenses=manifest.get("licenses"),
        )
        self.manifests[str(directory)] = manifest
        return node

    def _link_runtime(self, node: PackageNode) -> None:
        manifest = self.manifests.get(node.path, {})
        directory = Path(node.path)
        for name in _declared_names(manifest, _RUNTIME_KEYS):
            node.dependencies[name] = self._resolve(name, directory)
        if node.path != str(self.root_path):
            # Development dependencies of installed packages are never installed.
            for name in _declared_names(manifest, (_DEV_KEY,)):
                node.dev_dependencies.setdefault(name, None)

    def _resolve(self, name: str, start: Path) -> Optional[PackageNode]:
        for directory in self._lookup_dirs(start):
            candidate = directory / MODULES_DIRNAME / name
            if candidate.is_dir():
                return self._load(candidate)
        self.logger.debug("Dependency %s of %s is not installed", name, start)
        return None

    def _lookup_dirs(self, start: Path) -> List[Path]:
        dirs = [start]
        current = start
        while current != self.root_path and self.root_path in current.parents:
            current = current.parent
            if current.name != MODULES_DIRNAME and not current.name.startswith("@"):
                dirs.append(current)
        if self.root_path not in dirs:
            dirs.append(self.root_path)
        return dirs

    def _load(self, directory: Path) -> Optional[PackageNode]:
        key = os.path.realpath(directory)
        if key in self.nodes:
            return self.nodes[key]
        try:
            manifest = load_manifest(directory)
        except (OSError, ValueError) as exc:
            self.logger.warning("Skipping package at %s: %s", directory, exc)
            self.nodes[key] = None
            return None
        node = self._make_node(directory, manifest)
        self.nodes[key] = node
        self.pending.append(node)
        return node

    def _load_undeclared(self, owner: PackageNode) -> List[Tuple[PackageNode, str, PackageNode]]:
        """Load packages in ``owner``'s node_modules that no declaration has reached yet."""
        found: List[Tuple[PackageNode, str, PackageNode]] = []
        for name, directory in _installed_packages(Path(owner.path)):
            if os.path.realpath(directory) in self.nodes:
                continue
            node = self._load(directory)
            if node is not None:
                found.append((owner, name, node))
        return found

    def _mark_extraneous(
        self,
        root: PackageNode,
        visited: List[PackageNode],
        undeclared: List[Tuple[PackageNode, str, PackageNode]],
    ) -> None:
        reachable = _reach([root], set())
        # Undeclared packages required by another unreached package are not extraneous.
        required = {
            id(dep)
            for node in visited
            if id(node) not in reachable
            for dep in node.dependencies.values()
            if dep is not None and dep is not node
        }
        ordered = [entry for entry in undeclared if id(entry[2]) not in required]
        ordered.extend(entry for entry in undeclared if id(entry[2]) in required)

        for owner, name, node in ordered:
            if id(node) in reachable:
                continue
            node.extraneous = True
            owner.dependencies.setdefault(name, node)
            reachable = _reach([node], reachable)
            self.logger.debug("Found extraneous package %s in %s", name, owner.path)


def _reach(starts: List[PackageNode], seen: set[int]) -> set[int]:
    """Return ``seen`` extended with every node reachable from ``starts``."""
    reached = set(seen)
    queue: Deque[PackageNode] = deque(starts)
    while queue:
        node = queue.popleft()
        if id(node) in reached:
            continue
        reached.add(id(node))
        for dep in [*node.dependencies.values(), *node.dev_dependencies.values()]:
            if dep is not None and id(dep) not in reached:
                queue.append(dep)
    return reached


__all__ = [
    "MANIFEST_FILENAME",
    "MODULES_DIRNAME",
    "NodeModulesReader",
    "TreeReader",
    "load_manifest",
]
