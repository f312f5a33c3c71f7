"""Assembly of collected package records into the final ordered report."""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Tuple

from .models import PackageRecord

_VERSION_TOKEN = re.compile(r"\d+|[A-Za-z]+")


def _version_key(version: str) -> Tuple[Tuple[int, int, str], ...]:
    tokens = []
    for token in _VERSION_TOKEN.findall(version):
        if token.isdigit():
            tokens.append((0, int(token), ""))
        else:
            tokens.append((1, 0, token.lower()))
    return tuple(tokens)


def module_sort_key(record: PackageRecord) -> tuple:
    """Case-insensitive name, then version ascending, then exact values as tie-breakers."""
    return (
        record.name.lower(),
        _version_key(record.version),
        record.name,
        record.version,
        record.id,
    )


def compare_module_names(first: PackageRecord, second: PackageRecord) -> int:
    """Three-way comparison matching :func:`module_sort_key`."""
    left, right = module_sort_key(first), module_sort_key(second)
    return (left > right) - (left < right)


class ReportAssembler:
    """Merges records by identity key and orders them for reporting."""

    def assemble(self, records: Iterable[PackageRecord]) -> List[PackageRecord]:
        merged: Dict[str, PackageRecord] = {}
        for record in records:
            merged[record.id] = record
        return sorted(merged.values(), key=module_sort_key)


__all__ = ["ReportAssembler", "compare_module_names", "module_sort_key"]
