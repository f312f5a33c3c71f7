"""End-to-end license scan: read the tree, traverse, collect, assemble."""

from __future__ import annotations

import asyncio
from typing import Any, List, Mapping

from .collector import EvidenceCollector
from .config import FindOptions, process_options
from .errors import MissingManifestError, NlfError, TreeReadError
from .file_search import FileSearch
from .logging import configure_logging, get_logger
from .models import PackageRecord
from .report import ReportAssembler
from .traversal import LevelwiseTraverser, TraversalOptions, TraversalResult
from .tree_reader import MANIFEST_FILENAME, NodeModulesReader, TreeReader


class LicenseFinder:
    """Coordinates the scan pipeline for one project directory."""

    def __init__(
        self,
        reader: TreeReader | None = None,
        traverser: LevelwiseTraverser | None = None,
        search: FileSearch | None = None,
        assembler: ReportAssembler | None = None,
    ) -> None:
        self.reader = reader or NodeModulesReader()
        self.traverser = traverser or LevelwiseTraverser()
        self.search = search
        self.assembler = assembler or ReportAssembler()
        self.logger = get_logger("finder")

    async def run(self, options: FindOptions) -> List[PackageRecord]:
        directory = options.directory
        if not (directory / MANIFEST_FILENAME).is_file():
            raise MissingManifestError(f"No {MANIFEST_FILENAME} file found in {directory}")

        self.logger.info("Scanning installed packages under %s", directory)
        try:
            root = await asyncio.to_thread(self.reader.read, str(directory))
        except NlfError:
            raise
        except Exception as exc:
            raise TreeReadError(f"Failed to read the package tree in {directory}: {exc}") from exc

        result = self.traverser.traverse(
            root,
            TraversalOptions(
                max_depth=options.depth,
                include_dev_dependencies=options.include_dev_dependencies,
                prune_forks=options.prune_forks,
                include_extraneous=options.include_extraneous,
            ),
        )
        if options.summary_mode == "detail":
            self._log_summary(result, prune_forks=options.prune_forks)

        collector = EvidenceCollector(
            self.search,
            read_timeout=options.read_timeout,
            max_concurrency=options.max_concurrency,
        )
        records = await collector.collect_all(result.modules)
        report = self.assembler.assemble(records)
        self.logger.info("Collected license evidence for %d package(s)", len(report))
        return report

    def _log_summary(self, result: TraversalResult, *, prune_forks: bool) -> None:
        if not self.logger.hasHandlers():
            # Nothing is listening yet; the summary is console output.
            configure_logging()
        for depth, level in enumerate(result.levels):
            self.logger.info("depth %d: %d module(s)", depth, len(level))
        self.logger.info("deep module count: %d", len(result.flat))
        self.logger.info("unique module count: %d", len(result.modules))
        if prune_forks or not result.forks:
            return
        self.logger.info("forks:")
        for name, versions in result.forks.items():
            self.logger.info("  %s: %s", name, ", ".join(versions))


async def find_async(
    options: FindOptions | Mapping[str, Any] | None = None,
    *,
    finder: LicenseFinder | None = None,
) -> List[PackageRecord]:
    """Coroutine form of :func:`find`."""
    resolved = process_options(options)
    return await (finder or LicenseFinder()).run(resolved)


def find(
    options: FindOptions | Mapping[str, Any] | None = None,
    *,
    finder: LicenseFinder | None = None,
) -> List[PackageRecord]:
    """Scan a project and return its packages sorted by name.

    Raises a :class:`~nlf.errors.NlfError` subclass on any failure; no partial
    report is returned.
    """
    return asyncio.run(find_async(options, finder=finder))


__all__ = ["LicenseFinder", "find", "find_async"]
