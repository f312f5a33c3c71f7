"""License inventory for installed Node.js package trees."""

from .collector import EvidenceCollector, normalise_license_fields
from .config import FindOptions, load_config, process_options
from .errors import (
    ConfigurationError,
    FileAccessError,
    GlobError,
    MissingManifestError,
    NlfError,
    TreeReadError,
)
from .file_search import GlobFileSearch
from .finder import LicenseFinder, find, find_async
from .models import LicenseCollection, LicenseSources, PackageNode, PackageRecord, create_id
from .report import ReportAssembler, compare_module_names
from .sources import FileSource, PackageSource, SimpleLicense, StructuredLicense
from .traversal import LevelwiseTraverser, TraversalOptions, TraversalResult
from .tree_reader import NodeModulesReader

__all__ = [
    "ConfigurationError",
    "EvidenceCollector",
    "FileAccessError",
    "FileSource",
    "FindOptions",
    "GlobError",
    "GlobFileSearch",
    "LevelwiseTraverser",
    "LicenseCollection",
    "LicenseFinder",
    "LicenseSources",
    "MissingManifestError",
    "NlfError",
    "NodeModulesReader",
    "PackageNode",
    "PackageRecord",
    "PackageSource",
    "ReportAssembler",
    "SimpleLicense",
    "StructuredLicense",
    "TraversalOptions",
    "TraversalResult",
    "TreeReadError",
    "compare_module_names",
    "create_id",
    "find",
    "find_async",
    "load_config",
    "normalise_license_fields",
    "process_options",
]
