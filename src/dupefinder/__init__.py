"""
dupefinder — tiered duplicate file finder.

Core features:
- Three hash tiers: SIZE (metadata), QUICK (first 64 KiB), FULL (whole content)
- Gated computation: later tiers only for files still sharing earlier values
- Background hashing thread with explicit completion signals and cancellation
- CLI interface for headless/server usage
"""

from importlib.metadata import PackageNotFoundError, version as _version

try:
    __version__ = _version("dupefinder")
except PackageNotFoundError:
    __version__ = "0.0.0"

# Public API — only what users should import directly
from dupefinder.commands import DuplicateScanCommand
from dupefinder.core import (
    CatalogConfig, FileCatalog, FileDescriptor, HashTier, ScanParams,
    SimilarFileSet, new_catalog)
from dupefinder.utils.convert_utils import ConvertUtils

__all__ = [
    "DuplicateScanCommand",
    "CatalogConfig",
    "FileCatalog",
    "FileDescriptor",
    "HashTier",
    "ScanParams",
    "SimilarFileSet",
    "new_catalog",
    "ConvertUtils",
    "__version__",
]
