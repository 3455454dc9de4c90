"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

interfaces.py

Defines core interfaces (Protocols) used throughout the duplicate detection system.
These protocols enforce structural typing using Python's `typing.Protocol` so that
hash algorithms, engines, walkers and groupers can be swapped independently.

Key Components:
---------------
- HashAlgorithm: Incremental hash functions (xxHash64 by default).
- HashEngine: Computes and memoizes one tier's hash for one file.
- FileScanner: Walks a directory tree and yields candidate file paths.
- FileGrouper: Partitions descriptors into candidate-duplicate sets for a tier.
"""

from typing import Any, Callable, Iterable, List, Optional, Protocol

from dupefinder.core.models import FileDescriptor, HashTier, SimilarFileSet


class Digest(Protocol):
    """Incremental digest object (e.g. `xxhash.xxh64()`)."""
    def update(self, data: bytes) -> None: ...
    def digest(self) -> bytes: ...


class HashAlgorithm(Protocol):
    """
    Interface for generic hash algorithms.

    Allows plugging in different hashing functions like SHA-256, MD5, or xxHash
    without affecting the tiering logic.
    """

    def new(self) -> Digest:
        """Returns a fresh incremental digest."""
        ...


class HashEngine(Protocol):
    """Interface for computing a tier's hash of a file."""
    def compute_hash(
        self,
        descriptor: FileDescriptor,
        tier: HashTier,
        stopped_flag: Optional[Callable[[], bool]] = None
    ) -> Any:
        """
        Compute (or return the memoized) hash of `descriptor` at `tier`.

        Raises:
            FileUnavailable: The file vanished or cannot be opened.
            HashComputationFailure: Any other I/O error.
            HashingCancelled: `stopped_flag` returned True mid-file.
        """
        ...


class FileScanner(Protocol):
    """
    Interface for scanning file systems and collecting candidate paths.
    """
    def scan(
        self,
        stopped_flag: Optional[Callable[[], bool]] = None,
        progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> List[str]:
        """
        Scan files from the configured directory.

        Args:
            stopped_flag: Function that returns True if operation should be canceled.
            progress_callback: Optional callback for reporting progress (stage, current, total).

        Returns:
            Absolute paths of regular files matching the filters.
        """
        ...


class FileGrouper(Protocol):
    """
    Interface for partitioning descriptors by their hash values at a tier.
    """
    def group(
        self,
        files: Iterable[FileDescriptor],
        tier: HashTier,
        include_singletons: bool = False
    ) -> SimilarFileSet:
        """Group files sharing every hash value up to `tier`."""
        ...
