"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/grouper.py
Partitions file descriptors into candidate-duplicate sets.

The grouper never triggers hashing: it consumes whatever tier entries are
already present on the descriptors, so it can run against a partially hashed
catalog. Files lacking the requested tier are left out of the result.
"""

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List, Optional

from dupefinder.core.interfaces import FileGrouper
from dupefinder.core.models import FileDescriptor, HashState, HashTier, SimilarFileSet

logger = logging.getLogger(__name__)


class FileGrouperImpl(FileGrouper):
    """
    Groups descriptors by the tuple of their hash values up to a tier.
    Member order is catalog insertion order; groups follow first appearance.
    """

    def group(
        self,
        files: Iterable[FileDescriptor],
        tier: HashTier,
        include_singletons: bool = False
    ) -> SimilarFileSet:
        """
        Build a SimilarFileSet for `tier`.

        Files COMPUTED at `tier` are keyed by their full hash tuple. Files SKIPPED
        at `tier` were proven unique earlier; they are keyed by their known prefix
        padded with None and only reported as singletons. Files that failed any
        tier, or are not computed yet, are excluded.
        """
        unresolved_keys = set()

        def key_func(file: FileDescriptor) -> Optional[tuple]:
            if file.has_failed():
                return None
            state = file.state(tier)
            if state is HashState.COMPUTED:
                return file.key(tier)
            if state is HashState.SKIPPED:
                key = self._skipped_key(file, tier)
                unresolved_keys.add(key)
                return key
            return None

        buckets = self._group_by(files, key_func)

        result = {}
        for key, members in buckets.items():
            if key in unresolved_keys:
                if len(members) > 1:
                    # Only possible when files were added after the tier was gated
                    logger.debug(f"Dropping {len(members)} unresolved files at {tier.value} tier")
                    continue
                if include_singletons:
                    result[key] = tuple(members)
            elif len(members) >= 2 or include_singletons:
                result[key] = tuple(members)

        return SimilarFileSet(tier, result, include_singletons=include_singletons)

    def group_by_size(self, files: Iterable[FileDescriptor]) -> Dict[int, List[FileDescriptor]]:
        """Groups files by their snapshot size, keeping only groups of 2+ files."""
        groups = self._group_by(files, lambda f: f.size)
        return {size: members for size, members in groups.items() if len(members) >= 2}

    @staticmethod
    def _skipped_key(file: FileDescriptor, tier: HashTier) -> tuple:
        values = []
        for current in HashTier.get_all()[:tier.rank + 1]:
            values.append(file.value(current))
        return tuple(values)

    @staticmethod
    def _group_by(
        files: Iterable[FileDescriptor],
        key_func: Callable[[FileDescriptor], Any]
    ) -> Dict[Any, List[FileDescriptor]]:
        """
        Helper method to group files by any computed key.
        Args:
            files: Files to group, in the order they should appear
            key_func: Function that computes a hashable key, or None to skip the file
        Returns:
            Dict[key, List[FileDescriptor]] in first-appearance order
        """
        groups = defaultdict(list)
        skipped_files = 0
        for file in files:
            try:
                key = key_func(file)
            except Exception:
                logger.exception(f"Error computing grouping key for {file.path}")
                skipped_files += 1
                continue
            if key is not None:
                groups[key].append(file)

        if skipped_files > 0:
            logger.warning(f"Skipped {skipped_files} files due to key computation errors")

        return dict(groups)
