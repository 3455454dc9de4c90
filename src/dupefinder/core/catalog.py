"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/catalog.py
FileCatalog owns the FileDescriptors of one scan root and orchestrates tiered
hash computation across the whole set.

TIER COMPUTATION
----------------
Tiers are computed in the fixed order SIZE -> QUICK -> FULL. A later tier is
gated: only files that share every earlier-tier value with at least one other
file are hashed, the others are marked SKIPPED (proven unique).

A tier is marked complete only when a pass finished with no file added in the
meantime. Adding a file clears every completion flag, because the newcomer
needs every tier and may turn a SKIPPED file back into a candidate.

THREADING
---------
The descriptor list and the completion flags are guarded by one RLock; a
Condition on that lock wakes `wait_for_tier()` callers. Tier entries are
written under the per-descriptor lock by the hash engine, so discovery,
background hashing and grouping may run concurrently.
"""

import logging
import stat
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from dupefinder.core.errors import (
    ConcurrentStartRejected,
    HashingCancelled,
    HashingError,
    InvalidRoot,
    NotAFile,
)
from dupefinder.core.grouper import FileGrouperImpl
from dupefinder.core.hasher import HashTierEngineImpl
from dupefinder.core.interfaces import FileGrouper, FileScanner, HashEngine
from dupefinder.core.models import (
    CatalogConfig,
    FileDescriptor,
    HashingStats,
    HashTier,
    SimilarFileSet,
    TierHash,
)
from dupefinder.core.scanner import FileScannerImpl
from dupefinder.core.scheduler import BackgroundHashScheduler

logger = logging.getLogger(__name__)

# Outcomes of a single pass over the catalog for one tier
_DONE = "done"
_STALE = "stale"
_CANCELLED = "cancelled"


class FileCatalog:
    """
    The set of all FileDescriptors for one scan, plus one completion flag per tier.

    Typical use:
        catalog = FileCatalog("/data")
        catalog.build_file_list(background=True)
        if catalog.wait_for_tier(HashTier.FULL, timeout=60):
            duplicates = catalog.group(HashTier.FULL)
    """

    def __init__(
        self,
        root_dir: Optional[str] = None,
        config: Optional[CatalogConfig] = None,
        engine: Optional[HashEngine] = None,
        grouper: Optional[FileGrouper] = None
    ):
        self.config = config or CatalogConfig()
        self._engine = engine or HashTierEngineImpl(
            quick_sample_size=self.config.quick_sample_size,
            read_chunk_size=self.config.read_chunk_size
        )
        self._grouper = grouper or FileGrouperImpl()
        self._lock = threading.RLock()
        self._tier_done = threading.Condition(self._lock)
        self._scheduler: Optional[BackgroundHashScheduler] = None
        self.root_dir: Optional[str] = None
        self.stats = HashingStats()
        self._initialize()

        if root_dir is not None:
            self.set_directory(root_dir)

    def _initialize(self) -> None:
        self._files: List[FileDescriptor] = []
        self._index: Dict[str, FileDescriptor] = {}
        self._complete: Dict[HashTier, bool] = {tier: False for tier in HashTier.get_all()}
        self._generation = 0
        self._scheduler = None
        self.stats.reset()

    # =============================
    # Lifecycle
    # =============================

    def reset(self) -> "FileCatalog":
        """
        Return to the just-constructed state: no files, no completed tiers.
        A running background worker is cancelled and joined first.
        """
        scheduler = self._scheduler
        if scheduler is not None:
            scheduler.stop()
            scheduler.join()

        with self._lock:
            self._initialize()
            self._tier_done.notify_all()

        logger.info("Reset of FileCatalog successful")
        return self

    def set_directory(self, root_dir: str) -> "FileCatalog":
        root_path = Path(root_dir).resolve()
        if not root_path.is_dir():
            raise InvalidRoot(f"Not a directory: {root_dir}")
        self.root_dir = str(root_path)
        logger.info(f"FileCatalog now working in directory '{self.root_dir}'")
        return self

    # =============================
    # Discovery
    # =============================

    def add_file(self, path: str) -> FileDescriptor:
        """
        Create and store a descriptor for `path`.
        Adding a path that is already known returns the existing descriptor.

        Raises:
            NotAFile: path does not resolve to an existing regular file.
        """
        descriptor, _ = self._add(path)
        return descriptor

    def add_files(self, paths: Iterable[str]) -> int:
        """
        Add every path, logging and skipping the ones that are not regular files.
        Returns the number of new descriptors.
        """
        added = 0
        for path in paths:
            try:
                _, created = self._add(path)
            except NotAFile as e:
                logger.warning(f"Skipping {e}")
                continue
            if created:
                added += 1
        return added

    def build_file_list(
        self,
        scanner: Optional[FileScanner] = None,
        background: bool = False,
        stopped_flag: Optional[Callable[[], bool]] = None,
        progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> int:
        """
        Feed the walker's paths into the catalog.
        With `background=True`, hashing starts on the worker thread once the
        list is built.
        """
        if scanner is None:
            if self.root_dir is None:
                raise InvalidRoot("No directory set")
            scanner = FileScannerImpl(self.root_dir)

        logger.info("Start building file list")
        paths = scanner.scan(stopped_flag=stopped_flag, progress_callback=progress_callback)
        added = self.add_files(paths)
        logger.info(f"Found {len(self)} files in search directory")

        if background:
            logger.debug("Background hashing requested: launching worker")
            self.start_background_hashing(progress_callback=progress_callback)

        return added

    def _add(self, path: str) -> Tuple[FileDescriptor, bool]:
        try:
            resolved = Path(path).resolve()
            st = resolved.stat()
        except (OSError, RuntimeError) as e:
            raise NotAFile(str(path), f"cannot stat ({e})") from e

        if not stat.S_ISREG(st.st_mode):
            raise NotAFile(str(path))

        key = str(resolved)
        with self._lock:
            existing = self._index.get(key)
            if existing is not None:
                return existing, False

            descriptor = FileDescriptor(path=key, size=st.st_size)
            self._files.append(descriptor)
            self._index[key] = descriptor
            self._generation += 1
            for tier in self._complete:
                self._complete[tier] = False
            self._restart_idle_worker()
            return descriptor, True

    def _restart_idle_worker(self) -> None:
        """Start a new worker if the last one finished every tier. Caller holds the lock."""
        scheduler = self._scheduler
        if scheduler is None or not scheduler.idle or scheduler.is_stopped():
            return
        logger.debug("File added after background hashing finished, restarting worker")
        replacement = BackgroundHashScheduler(self, progress_callback=scheduler.progress_callback)
        replacement.start()
        self._scheduler = replacement

    # =============================
    # Read access
    # =============================

    @property
    def files(self) -> List[FileDescriptor]:
        """Snapshot of the descriptors in insertion order."""
        with self._lock:
            return list(self._files)

    def __len__(self) -> int:
        with self._lock:
            return len(self._files)

    def __iter__(self) -> Iterator[FileDescriptor]:
        return iter(self.files)

    def is_tier_complete(self, tier: HashTier) -> bool:
        with self._lock:
            return self._complete[tier]

    def wait_for_tier(self, tier: HashTier, timeout: Optional[float] = None) -> bool:
        """
        Block until `tier` is complete or `timeout` seconds elapse.
        Returns True if the tier completed in time.
        """
        with self._tier_done:
            return self._tier_done.wait_for(lambda: self._complete[tier], timeout)

    def group(self, tier: HashTier, include_singletons: bool = False) -> SimilarFileSet:
        """
        Partition the catalog by hash values up to `tier`.
        Uses whatever hashes are present; call `wait_for_tier()` first for
        complete results.
        """
        if not self.is_tier_complete(tier):
            logger.debug(f"Grouping on incomplete {tier.value} tier")
        logger.debug(f"Start building similar file set for {tier.value} hashing")
        return self._grouper.group(self.files, tier, include_singletons=include_singletons)

    # =============================
    # Hash computation
    # =============================

    def compute_tier(
        self,
        tier: HashTier,
        stopped_flag: Optional[Callable[[], bool]] = None,
        progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> bool:
        """
        Compute `tier` (and any incomplete earlier tier) for every file lacking it,
        then mark it complete. Passes repeat until no file was added mid-pass.

        Returns:
            True once the tier is complete, False if cancelled via `stopped_flag`.
        """
        chain = tier.predecessors() + [tier]
        while True:
            for current in chain:
                if self.is_tier_complete(current):
                    continue
                outcome = self._compute_pass(current, stopped_flag, progress_callback)
                if outcome == _CANCELLED:
                    return False
                if outcome == _STALE:
                    break

            with self._lock:
                if all(self._complete[current] for current in chain):
                    return True

    def _compute_pass(
        self,
        tier: HashTier,
        stopped_flag: Optional[Callable[[], bool]],
        progress_callback: Optional[Callable[[str, int, object], None]]
    ) -> str:
        with self._lock:
            if any(not self._complete[earlier] for earlier in tier.predecessors()):
                return _STALE
            generation = self._generation
            files = list(self._files)

        if stopped_flag and stopped_flag():
            return _CANCELLED

        logger.debug(f"Start computing {tier.value} hashes for all {len(files)} known files")
        self.stats.notify_tier_start(tier)
        start_time = time.time()

        todo, skipped = self._plan(tier, files)
        hashed, failed, cancelled = self._hash_files(tier, todo, stopped_flag, progress_callback)
        self.stats.update_tier(tier, hashed, skipped, failed, time.time() - start_time)

        if cancelled:
            logger.info(f"Computation of {tier.value} hashes cancelled after {hashed} files")
            return _CANCELLED

        with self._lock:
            if self._generation != generation:
                logger.debug(f"Files added while computing {tier.value} hashes, starting another pass")
                return _STALE
            self._complete[tier] = True
            self._tier_done.notify_all()

        logger.debug(f"Done computing {tier.value} hashes for all {len(files)} known files "
                     f"(hashed={hashed}, skipped={skipped}, failed={failed})")
        return _DONE

    def _plan(self, tier: HashTier, files: List[FileDescriptor]) -> Tuple[List[FileDescriptor], int]:
        """
        Pick the files that need `tier` computed; mark the proven-unique ones SKIPPED.
        Returns the files to hash and the number of files skipped.
        """
        if tier is HashTier.SIZE:
            return [f for f in files if not f.hashes[tier].is_final], 0

        previous = tier.predecessors()[-1]
        todo = []
        unique = []
        candidates = []
        for file in files:
            if file.is_computed(previous):
                candidates.append(file)
            elif not file.has_failed():
                # skipped at an earlier tier: stays skipped
                unique.append(file)

        for members in FileGrouperImpl._group_by(candidates, lambda f: f.key(previous)).values():
            if len(members) >= 2:
                todo.extend(f for f in members if not f.hashes[tier].is_final)
            else:
                unique.extend(members)

        for file in unique:
            with file.lock:
                file.record(tier, TierHash.skipped())

        return todo, len(unique)

    def _hash_files(
        self,
        tier: HashTier,
        files: List[FileDescriptor],
        stopped_flag: Optional[Callable[[], bool]],
        progress_callback: Optional[Callable[[str, int, object], None]]
    ) -> Tuple[int, int, bool]:
        """
        Hash every file at `tier`. Each file is handled by exactly one task.
        Returns (hashed, failed, cancelled).
        """
        hashed = failed = 0
        total = len(files)

        def hash_one(file: FileDescriptor) -> bool:
            try:
                self._engine.compute_hash(file, tier, stopped_flag)
                return True
            except HashingError as e:
                logger.warning(f"Excluding file from further tiers: {e}")
                return False

        def report(done: int) -> None:
            if progress_callback:
                progress_callback(tier.display_name, done, total)

        workers = self.config.hash_workers
        if workers <= 1 or total < 2:
            for done, file in enumerate(files, 1):
                if stopped_flag and stopped_flag():
                    return hashed, failed, True
                try:
                    ok = hash_one(file)
                except HashingCancelled:
                    return hashed, failed, True
                hashed += ok
                failed += not ok
                report(done)
            return hashed, failed, False

        cancelled = False
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"hash-{tier.value}") as executor:
            futures = [executor.submit(hash_one, file) for file in files]
            for done, future in enumerate(as_completed(futures), 1):
                try:
                    ok = future.result()
                except HashingCancelled:
                    cancelled = True
                    executor.shutdown(wait=False, cancel_futures=True)
                    break
                hashed += ok
                failed += not ok
                report(done)
                if stopped_flag and stopped_flag():
                    cancelled = True
                    executor.shutdown(wait=False, cancel_futures=True)
                    break

        return hashed, failed, cancelled

    # =============================
    # Background hashing
    # =============================

    def start_background_hashing(
        self,
        progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> BackgroundHashScheduler:
        """
        Start computing SIZE, QUICK and FULL on a dedicated thread. Non-blocking.
        Files added after the worker finished FULL start a new worker with the
        same progress callback, until the run is cancelled or the catalog reset.

        Raises:
            ConcurrentStartRejected: a background run is already active.
        """
        with self._lock:
            if self.is_hashing:
                raise ConcurrentStartRejected("Background hashing is already running for this catalog")
            scheduler = BackgroundHashScheduler(self, progress_callback=progress_callback)
            scheduler.start()
            self._scheduler = scheduler
        return scheduler

    def cancel_background_hashing(self, wait: bool = True, timeout: Optional[float] = None) -> bool:
        """
        Ask the background worker to stop between files.
        Returns True if the worker is no longer running.
        """
        scheduler = self._scheduler
        if scheduler is None:
            return True
        scheduler.stop()
        if wait:
            return scheduler.join(timeout)
        return not scheduler.is_running

    def mark_worker_idle(self, scheduler: BackgroundHashScheduler) -> bool:
        """
        Called by the worker at the end of a SIZE -> QUICK -> FULL sequence.
        Returns True and flags the worker idle if FULL is complete.
        Runs under the catalog lock, the same lock `add_file()` holds.
        """
        with self._lock:
            if not self._complete[HashTier.FULL]:
                return False
            scheduler.idle = True
            return True

    @property
    def is_hashing(self) -> bool:
        scheduler = self._scheduler
        return scheduler is not None and scheduler.is_running and not scheduler.idle

    @property
    def scheduler(self) -> Optional[BackgroundHashScheduler]:
        return self._scheduler


def new_catalog(root_dir: str, config: Optional[CatalogConfig] = None, **kwargs) -> FileCatalog:
    """Create a catalog bound to `root_dir`. Extra keyword arguments build a CatalogConfig."""
    if config is None:
        config = CatalogConfig(**kwargs)
    return FileCatalog(root_dir, config=config)
