"""Level-by-level traversal of an installed package tree."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Set

from .logging import get_logger
from .models import PackageNode, create_id


@dataclass(frozen=True)
class TraversalOptions:
    """Controls how far and along which edges the traversal descends.

    ``max_depth`` of ``None`` walks until the tree is exhausted; ``0`` keeps
    only the root's direct dependencies.
    """

    max_depth: Optional[int] = None
    include_dev_dependencies: bool = True
    prune_forks: bool = False
    include_extraneous: bool = True


@dataclass
class TraversalResult:
    """Output of :meth:`LevelwiseTraverser.traverse`."""

    levels: List[List[PackageNode]]
    flat: List[PackageNode]
    modules: List[PackageNode]
    forks: Dict[str, List[str]] = field(default_factory=dict)


def _name_key(node: PackageNode) -> str:
    return node.name or create_id(node)


def _unique_by(nodes: Iterable[PackageNode], key: Callable[[PackageNode], str]) -> List[PackageNode]:
    seen: Set[str] = set()
    unique: List[PackageNode] = []
    for node in nodes:
        marker = key(node)
        if marker in seen:
            continue
        seen.add(marker)
        unique.append(node)
    return unique


class LevelwiseTraverser:
    """Walks a dependency graph breadth-first, one depth level at a time."""

    def __init__(self) -> None:
        self.logger = get_logger("traversal")

    def traverse(self, root: PackageNode, options: TraversalOptions | None = None) -> TraversalResult:
        options = options or TraversalOptions()
        identity = _name_key if options.prune_forks else create_id
        seen: Set[str] = {identity(root)}
        levels: List[List[PackageNode]] = []
        level_limit = options.max_depth + 1 if options.max_depth is not None else None

        parents: List[PackageNode] = [root]
        while level_limit is None or len(levels) < level_limit:
            candidates: List[PackageNode] = []
            for parent in parents:
                for child in self._children(parent, options):
                    marker = identity(child)
                    if marker in seen:
                        continue
                    seen.add(marker)
                    candidates.append(child)

            level = _unique_by(candidates, create_id)
            if not level:
                break
            self.logger.debug("Level %d: %d package(s)", len(levels), len(level))
            levels.append(level)
            parents = level

        flat = [node for level in levels for node in level]
        modules = _unique_by(flat, identity)
        forks = {} if options.prune_forks else find_forks(flat)
        return TraversalResult(levels=levels, flat=flat, modules=modules, forks=forks)

    def _children(self, parent: PackageNode, options: TraversalOptions) -> List[PackageNode]:
        edges = list(parent.dependencies.values())
        if options.include_dev_dependencies:
            edges.extend(parent.dev_dependencies.values())
        children: List[PackageNode] = []
        for child in edges:
            if child is None:
                continue
            if child.extraneous and not options.include_extraneous:
                continue
            children.append(child)
        return children


def find_forks(nodes: Iterable[PackageNode]) -> Dict[str, List[str]]:
    """Return ``name -> sorted versions`` for names installed in several versions."""
    versions: Dict[str, List[str]] = defaultdict(list)
    for node in nodes:
        versions[_name_key(node)].append(node.version or "")
    return {
        name: sorted(set(found))
        for name, found in sorted(versions.items())
        if len(set(found)) > 1
    }


__all__ = [
    "LevelwiseTraverser",
    "TraversalOptions",
    "TraversalResult",
    "find_forks",
]
