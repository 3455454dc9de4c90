"""
Core duplicate detection engine: descriptors, tier hashing, catalog, background
worker and grouper.

This package contains the whole algorithmic part of dupefinder:
- FileScannerImpl: recursive directory traversal with size/extension filters
- HashTierEngineImpl + XXHashAlgorithmImpl: xxHash64-based quick/full hashing
- FileCatalog: descriptor set with gated SIZE -> QUICK -> FULL computation
- BackgroundHashScheduler: owned worker thread with cooperative cancellation
- FileGrouperImpl: partitions descriptors into SimilarFileSet snapshots

All components are pure Python with no UI dependencies.
"""

from .models import (
    HashTier, HashState, TierHash, FileDescriptor, SimilarFileSet, HashingStats,
    CatalogConfig, ScanParams)
from .errors import (
    DupeFinderError, InvalidRoot, NotAFile, HashingError, FileUnavailable,
    HashComputationFailure, HashingCancelled, ConcurrentStartRejected)
from .hasher import HashTierEngineImpl, XXHashAlgorithmImpl
from .grouper import FileGrouperImpl
from .scanner import FileScannerImpl
from .scheduler import BackgroundHashScheduler
from .catalog import FileCatalog, new_catalog

__all__ = [
    "HashTier",
    "HashState",
    "TierHash",
    "FileDescriptor",
    "SimilarFileSet",
    "HashingStats",
    "CatalogConfig",
    "ScanParams",
    "DupeFinderError",
    "InvalidRoot",
    "NotAFile",
    "HashingError",
    "FileUnavailable",
    "HashComputationFailure",
    "HashingCancelled",
    "ConcurrentStartRejected",
    "HashTierEngineImpl",
    "XXHashAlgorithmImpl",
    "FileGrouperImpl",
    "FileScannerImpl",
    "BackgroundHashScheduler",
    "FileCatalog",
    "new_catalog",
]
