"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/models.py
Data models for tiered duplicate detection: hash tiers, per-tier hash states,
file descriptors, grouping snapshots, statistics and configuration objects.
"""

import logging
import os
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from functools import total_ordering
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)


# =============================
# Enums
# =============================

@total_ordering
class HashTier(Enum):
    """
    Fingerprint tiers, ordered from cheapest to most discriminating.
    A later tier is only meaningful for files that agree on every earlier tier.
    """
    SIZE = "size"
    QUICK = "quick"
    FULL = "full"

    @property
    def rank(self) -> int:
        return _TIER_ORDER.index(self)

    @property
    def display_name(self) -> str:
        """Human-readable name for console output."""
        mapping = {
            HashTier.SIZE: "Size",
            HashTier.QUICK: "Quick Hash",
            HashTier.FULL: "Full Hash",
        }
        return mapping.get(self, self.value)

    @property
    def description(self) -> str:
        mapping = {
            HashTier.SIZE: "File size in bytes (metadata only, no reads)",
            HashTier.QUICK: "xxHash64 of the first bytes of the file (bounded read)",
            HashTier.FULL: "xxHash64 of the entire file content",
        }
        return mapping.get(self, self.value)

    def predecessors(self) -> List["HashTier"]:
        """Tiers that must agree before this one is worth computing."""
        return _TIER_ORDER[:self.rank]

    def __lt__(self, other):
        if not isinstance(other, HashTier):
            return NotImplemented
        return self.rank < other.rank

    def __repr__(self) -> str:
        return self.value

    @classmethod
    def get_all(cls) -> List["HashTier"]:
        return list(_TIER_ORDER)


_TIER_ORDER = [HashTier.SIZE, HashTier.QUICK, HashTier.FULL]


class HashState(Enum):
    NOT_COMPUTED = "not-computed"
    COMPUTED = "computed"
    FAILED = "failed"
    SKIPPED = "skipped"  # proven unique at an earlier tier


# ======================
#  Core Data Models
# ======================

@dataclass(frozen=True)
class TierHash:
    """Memoized result of one tier for one file."""
    state: HashState = HashState.NOT_COMPUTED
    value: Any = None
    error: Optional[Exception] = None

    @classmethod
    def computed(cls, value: Any) -> "TierHash":
        return cls(HashState.COMPUTED, value=value)

    @classmethod
    def failed(cls, error: Exception) -> "TierHash":
        return cls(HashState.FAILED, error=error)

    @classmethod
    def skipped(cls) -> "TierHash":
        return cls(HashState.SKIPPED)

    @property
    def is_final(self) -> bool:
        """COMPUTED and FAILED entries are never overwritten."""
        return self.state in (HashState.COMPUTED, HashState.FAILED)


def _blank_hashes() -> Dict[HashTier, TierHash]:
    return {tier: TierHash() for tier in HashTier.get_all()}


@dataclass(eq=False)
class FileDescriptor:
    """
    Represents a single regular file discovered under the scan root.
    Identity is the absolute path; size is a snapshot taken at discovery time.
    Tier entries are written through `record()` while holding `lock`.
    """
    path: str
    size: int  # in bytes
    name: Optional[str] = None
    extension: Optional[str] = None
    hashes: Dict[HashTier, TierHash] = field(default_factory=_blank_hashes)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self):
        """Automatically extract basename and extension from path if not provided."""
        if self.name is None:
            self.name = os.path.basename(self.path)

        if self.extension is None:
            _, ext = os.path.splitext(self.name)
            self.extension = ext.lower()

    def state(self, tier: HashTier) -> HashState:
        return self.hashes[tier].state

    def value(self, tier: HashTier) -> Any:
        """Hash value at `tier`, or None when the tier is not COMPUTED."""
        entry = self.hashes[tier]
        return entry.value if entry.state is HashState.COMPUTED else None

    def is_computed(self, tier: HashTier) -> bool:
        return self.hashes[tier].state is HashState.COMPUTED

    def has_failed(self) -> bool:
        """True if any tier failed; such files take no part in later tiers."""
        return any(entry.state is HashState.FAILED for entry in self.hashes.values())

    @property
    def failure(self) -> Optional[Exception]:
        for tier in HashTier.get_all():
            if self.hashes[tier].state is HashState.FAILED:
                return self.hashes[tier].error
        return None

    def key(self, tier: HashTier) -> Optional[Tuple[Any, ...]]:
        """
        Tuple of hash values for every tier up to and including `tier`.
        Returns None if any of those tiers is not COMPUTED.
        """
        values = []
        for current in HashTier.get_all()[:tier.rank + 1]:
            entry = self.hashes[current]
            if entry.state is not HashState.COMPUTED:
                return None
            values.append(entry.value)
        return tuple(values)

    def record(self, tier: HashTier, entry: TierHash) -> TierHash:
        """
        Store a tier entry. Final entries (COMPUTED/FAILED) are kept as they are;
        the already stored entry is returned in that case.
        Caller must hold `lock`.
        """
        current = self.hashes[tier]
        if current.is_final:
            return current
        self.hashes[tier] = entry
        return entry

    def __eq__(self, other):
        if not isinstance(other, FileDescriptor):
            return NotImplemented
        return self.path == other.path

    def __hash__(self):
        return hash(self.path)

    def __repr__(self):
        return f"<FileDescriptor path={self.path}, size={self.size}>"


class SimilarFileSet(Mapping):
    """
    Read-only snapshot of a grouping pass: maps a duplicate-candidate key
    (tuple of tier hash values) to the files sharing it, in catalog order.
    """

    def __init__(
            self,
            tier: HashTier,
            groups: Dict[Tuple[Any, ...], Tuple[FileDescriptor, ...]],
            include_singletons: bool = False
    ):
        self._tier = tier
        self._groups = dict(groups)
        self._include_singletons = include_singletons

    @property
    def tier(self) -> HashTier:
        return self._tier

    @property
    def include_singletons(self) -> bool:
        return self._include_singletons

    def __getitem__(self, key) -> Tuple[FileDescriptor, ...]:
        return self._groups[key]

    def __iter__(self) -> Iterator[Tuple[Any, ...]]:
        return iter(self._groups)

    def __len__(self) -> int:
        return len(self._groups)

    def groups(self) -> List[Tuple[FileDescriptor, ...]]:
        return list(self._groups.values())

    def duplicate_groups(self) -> List[Tuple[FileDescriptor, ...]]:
        """Only the groups with two or more members."""
        return [files for files in self._groups.values() if len(files) >= 2]

    @property
    def file_count(self) -> int:
        return sum(len(files) for files in self._groups.values())

    @property
    def wasted_bytes(self) -> int:
        """Bytes taken by every copy beyond the first in each duplicate group."""
        return sum(files[0].size * (len(files) - 1) for files in self.duplicate_groups())

    def __repr__(self):
        return f"<SimilarFileSet tier={self._tier.value}, groups={len(self._groups)}>"


class HashingStats:
    """
    Statistics collected while computing tiers.
    Updated from the hashing thread, read from the caller's thread.
    """
    def __init__(self):
        self.total_time: float = 0.0
        self.tier_stats: Dict[str, Dict[str, float]] = {}
        self._listeners: List[Callable[[str, Dict], None]] = []
        self._lock = threading.Lock()

    def add_listener(self, listener: Callable[[str, Dict], None]):
        """Adds a listener to receive updates when stats are updated."""
        self._listeners.append(listener)

    def update_tier(
            self,
            tier: HashTier,
            hashed: int,
            skipped: int,
            failed: int,
            duration: float
    ) -> None:
        with self._lock:
            data = self.tier_stats.setdefault(
                tier.value, {"hashed": 0, "skipped": 0, "failed": 0, "time": 0.0}
            )
            data["hashed"] += hashed
            data["skipped"] += skipped
            data["failed"] += failed
            data["time"] += duration
            self.total_time += duration
            snapshot = dict(data)

        for listener in self._listeners:
            try:
                listener(tier.value, snapshot)
            except Exception:
                logger.exception("Error in stats listener")

    def notify_tier_start(self, tier: HashTier):
        for listener in self._listeners:
            try:
                listener(tier.value, {"status": "started"})
            except Exception:
                logger.exception("Error in stats listener")

    def reset(self) -> None:
        with self._lock:
            self.total_time = 0.0
            self.tier_stats = {}

    def print_summary(self) -> str:
        lines = [
            "Hashing Statistics:",
            f"Total Hashing Time: {self.total_time:.3f}s\n",
            "Tier: HASHED / SKIPPED / FAILED / TIME"
        ]

        with self._lock:
            items = [(name, dict(data)) for name, data in self.tier_stats.items()]

        for name, data in items:
            label = HashTier(name).display_name
            lines.append(
                f"{label}: {int(data['hashed'])} / {int(data['skipped'])} / "
                f"{int(data['failed'])} / {data['time']:.3f}s"
            )

        return "\n".join(lines)


"""
Configuration DTOs with built-in validation.
Interface-agnostic: used by the catalog, the command layer and the CLI.
"""
from dupefinder.utils.convert_utils import ConvertUtils


@dataclass
class CatalogConfig:
    """Tuning knobs for hashing."""
    quick_sample_size: int = 64 * 1024
    read_chunk_size: int = 1024 * 1024
    hash_workers: int = 1

    def __post_init__(self):
        if self.quick_sample_size <= 0:
            raise ValueError("Quick sample size must be positive")
        if self.read_chunk_size <= 0:
            raise ValueError("Read chunk size must be positive")
        if self.hash_workers < 1:
            raise ValueError("At least one hash worker is required")


@dataclass
class ScanParams:
    """Parameters for a complete scan-and-group operation."""
    root_dir: str
    min_size_bytes: int = 0
    max_size_bytes: Optional[int] = None
    extensions: List[str] = field(default_factory=list)
    excluded_dirs: List[str] = field(default_factory=list)
    tier: HashTier = HashTier.FULL
    include_singletons: bool = False
    timeout: Optional[float] = None
    config: CatalogConfig = field(default_factory=CatalogConfig)

    def __post_init__(self):
        """Validate parameters immediately after creation."""
        if not self.root_dir:
            raise ValueError("Root directory cannot be empty")

        if self.min_size_bytes < 0:
            raise ValueError("Minimum size cannot be negative")

        if self.max_size_bytes is not None and self.max_size_bytes < self.min_size_bytes:
            raise ValueError("Maximum size cannot be less than minimum size")

        if self.timeout is not None and self.timeout < 0:
            raise ValueError("Timeout cannot be negative")

        # Normalize extensions: ensure they start with dot and are lowercase
        normalized = []
        for ext in self.extensions:
            ext = ext.strip().lower()
            if ext and not ext.startswith('.'):
                ext = f".{ext}"
            if ext:
                normalized.append(ext)
        self.extensions = normalized

    @staticmethod
    def from_human_readable(
            root_dir: str,
            min_size_str: str = "0",
            max_size_str: Optional[str] = None,
            extensions_str: str = "",
            excluded_dirs: Optional[List[str]] = None,
            tier: HashTier = HashTier.FULL,
            include_singletons: bool = False,
            timeout: Optional[float] = None,
            quick_sample_str: str = "64K",
            hash_workers: int = 1,
    ) -> 'ScanParams':
        """
        Factory method to create params from human-readable inputs.
        Useful for CLI argument parsing.
        """
        min_size = ConvertUtils.human_to_bytes(min_size_str)
        max_size = ConvertUtils.human_to_bytes(max_size_str) if max_size_str else None

        ext_list = [
            ext.strip() for ext in extensions_str.split(",") if ext.strip()
        ] if extensions_str else []

        return ScanParams(
            root_dir=root_dir,
            min_size_bytes=min_size,
            max_size_bytes=max_size,
            extensions=ext_list,
            excluded_dirs=excluded_dirs or [],
            tier=tier,
            include_singletons=include_singletons,
            timeout=timeout,
            config=CatalogConfig(
                quick_sample_size=ConvertUtils.human_to_bytes(quick_sample_str),
                hash_workers=hash_workers,
            ),
        )
