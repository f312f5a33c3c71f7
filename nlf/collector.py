"""Per-package license evidence collection."""

from __future__ import annotations

import asyncio
from typing import Any, Iterable, List, Sequence

from .errors import GlobError
from .file_search import FileSearch, GlobFileSearch, LICENSE_PATTERN, README_PATTERN
from .logging import get_logger
from .models import LicenseCollection, PackageNode, PackageRecord
from .sources import FileSource, LicenseExpr, PackageSource, parse_license_expr


def normalise_license_fields(license: Any = None, licenses: Any = None) -> List[LicenseExpr]:
    """Flatten the manifest ``license``/``licenses`` fields into license expressions.

    A ``licenses`` value that is a bare string or object instead of a list is
    accepted as a single declaration; values of any other type are ignored.
    """
    declared: List[LicenseExpr] = []
    if _is_declaration(license):
        declared.append(parse_license_expr(license))

    if isinstance(licenses, list):
        declared.extend(parse_license_expr(item) for item in licenses if _is_declaration(item))
    elif _is_declaration(licenses):
        declared.append(parse_license_expr(licenses))
    return declared


def _is_declaration(value: Any) -> bool:
    return isinstance(value, (str, dict))


class EvidenceCollector:
    """Gathers license evidence for packages from files and manifest fields."""

    def __init__(
        self,
        search: FileSearch | None = None,
        *,
        read_timeout: float | None = None,
        max_concurrency: int = 8,
    ) -> None:
        self.search = search or GlobFileSearch()
        self.read_timeout = read_timeout
        self.max_concurrency = max_concurrency
        self.logger = get_logger("collector")

    async def collect(self, node: PackageNode) -> PackageRecord:
        """Return the record for ``node`` with every evidence category populated."""
        record = PackageRecord.from_node(node)
        sources = record.license_sources

        license_files = await self._find(record.directory, LICENSE_PATTERN)
        await self._add_files(license_files, sources.license)

        readme_files = await self._find(record.directory, README_PATTERN)
        await self._add_files(readme_files, sources.readme)

        for expr in normalise_license_fields(node.license, node.licenses):
            sources.package.add(PackageSource(expr))

        self.logger.debug(
            "Collected %s: %d package, %d license, %d readme item(s)",
            record.id,
            len(sources.package),
            len(sources.license),
            len(sources.readme),
        )
        return record

    async def collect_all(self, nodes: Iterable[PackageNode]) -> List[PackageRecord]:
        """Collect every node concurrently; the first failure fails the whole batch."""
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _bounded(node: PackageNode) -> PackageRecord:
            async with semaphore:
                return await self.collect(node)

        return list(await asyncio.gather(*(_bounded(node) for node in nodes)))

    async def _find(self, directory: str, pattern: str) -> List[str]:
        try:
            return await asyncio.to_thread(self.search.search, directory, pattern)
        except GlobError:
            raise
        except OSError as exc:
            raise GlobError(
                f"Unable to search {directory}: {exc}", directory=directory, pattern=pattern
            ) from exc

    async def _add_files(self, paths: Sequence[str], collection: LicenseCollection) -> None:
        if not paths:
            return
        file_sources = [FileSource(path) for path in paths]
        for source in file_sources:
            collection.add(source)
        results = await asyncio.gather(
            *(source.read(self.read_timeout) for source in file_sources),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result


__all__ = ["EvidenceCollector", "normalise_license_fields"]
