"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

hasher.py
Implements per-tier file hashing with pluggable hash algorithms.

HashTierEngineImpl computes one tier's fingerprint for one file and memoizes it
in the FileDescriptor. Every tier is computed at most once per descriptor:
- SIZE:  snapshot size, no I/O
- QUICK: digest of the first `quick_sample_size` bytes (bounded read)
- FULL:  digest of the whole file, read in `read_chunk_size` chunks

A failure is memoized too, so a broken file is never re-read. A cancelled
read leaves the tier NOT_COMPUTED.
"""

import logging
from typing import Any, Callable, Optional

import xxhash

from dupefinder.core.errors import (
    FileUnavailable,
    HashComputationFailure,
    HashingCancelled,
    HashingError,
)
from dupefinder.core.interfaces import Digest, HashAlgorithm, HashEngine
from dupefinder.core.models import FileDescriptor, HashState, HashTier, TierHash

logger = logging.getLogger(__name__)

DEFAULT_QUICK_SAMPLE_SIZE = 64 * 1024
DEFAULT_READ_CHUNK_SIZE = 1024 * 1024


# Use the same way to implement and use any other hashing algorithm
class XXHashAlgorithmImpl(HashAlgorithm):
    def new(self) -> Digest:
        return xxhash.xxh64()


class HashTierEngineImpl(HashEngine):
    """
    A hash engine that supports any algorithm via the HashAlgorithm interface.
    Computes and caches tier hashes in FileDescriptor objects.
    """

    def __init__(
        self,
        algorithm: Optional[HashAlgorithm] = None,
        quick_sample_size: int = DEFAULT_QUICK_SAMPLE_SIZE,
        read_chunk_size: int = DEFAULT_READ_CHUNK_SIZE
    ):
        self.algorithm = algorithm or XXHashAlgorithmImpl()
        self.quick_sample_size = quick_sample_size
        self.read_chunk_size = read_chunk_size

    def compute_hash(
        self,
        descriptor: FileDescriptor,
        tier: HashTier,
        stopped_flag: Optional[Callable[[], bool]] = None
    ) -> Any:
        with descriptor.lock:
            entry = descriptor.hashes[tier]
            if entry.state is HashState.COMPUTED:
                return entry.value
            if entry.state is HashState.FAILED:
                raise entry.error

            try:
                value = self._compute(descriptor, tier, stopped_flag)
            except HashingError as e:
                descriptor.record(tier, TierHash.failed(e))
                logger.debug(f"Recorded {tier.value} failure for {descriptor.path}: {e}")
                raise

            descriptor.record(tier, TierHash.computed(value))
            return value

    def _compute(
        self,
        descriptor: FileDescriptor,
        tier: HashTier,
        stopped_flag: Optional[Callable[[], bool]]
    ) -> Any:
        if tier is HashTier.SIZE:
            return descriptor.size
        if tier is HashTier.QUICK:
            return self._hash_file(descriptor, tier, self.quick_sample_size, stopped_flag)

        return self._hash_file(descriptor, tier, None, stopped_flag)

    def _hash_file(
        self,
        descriptor: FileDescriptor,
        tier: HashTier,
        limit: Optional[int],
        stopped_flag: Optional[Callable[[], bool]]
    ) -> bytes:
        """
        Digest of the first `limit` bytes of the file, or of the whole file
        when `limit` is None. Checks `stopped_flag` before every read.
        """
        digest = self.algorithm.new()
        bytes_read = 0
        try:
            with open(descriptor.path, 'rb') as f:
                while True:
                    if stopped_flag and stopped_flag():
                        raise HashingCancelled(
                            f"{tier.value} hash of {descriptor.path} cancelled after {bytes_read} bytes"
                        )
                    size = self.read_chunk_size
                    if limit is not None:
                        size = min(size, limit - bytes_read)
                        if size <= 0:
                            break
                    data = f.read(size)
                    if not data:
                        break
                    digest.update(data)
                    bytes_read += len(data)
        except (FileNotFoundError, PermissionError, IsADirectoryError, NotADirectoryError) as e:
            raise FileUnavailable(descriptor.path, tier, e) from e
        except OSError as e:
            raise HashComputationFailure(descriptor.path, tier, e) from e

        # A full read that disagrees with the discovery size means the file
        # changed after its SIZE tier was recorded.
        if limit is None and bytes_read != descriptor.size:
            raise HashComputationFailure(
                descriptor.path, tier,
                ValueError(f"size changed from {descriptor.size} to {bytes_read} bytes")
            )
        return digest.digest()
