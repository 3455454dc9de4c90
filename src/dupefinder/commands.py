"""
Unified command orchestrator for a scan.
Single code path for the CLI and for library users: scan, hash in the
background, wait for the requested tier, group.
"""
import logging
from typing import Callable, Optional, Tuple

from dupefinder.core.catalog import FileCatalog
from dupefinder.core.models import HashingStats, ScanParams, SimilarFileSet
from dupefinder.core.scanner import FileScannerImpl

logger = logging.getLogger(__name__)


class TierTimeout(RuntimeError):
    """The requested tier did not finish within the configured timeout."""

    def __init__(self, params: ScanParams, partial: SimilarFileSet):
        super().__init__(
            f"{params.tier.display_name} tier not complete after {params.timeout}s"
        )
        self.partial = partial


class DuplicateScanCommand:
    """
    Orchestrates the whole workflow:
    1. Create a catalog for the root directory
    2. Walk the tree and feed the paths to the catalog
    3. Hash on the background worker, wait for the requested tier
    4. Group

    Usage:
        params = ScanParams(root_dir="/data", tier=HashTier.FULL, timeout=600)
        command = DuplicateScanCommand()
        groups, stats = command.execute(params, progress_callback=printer)
    """

    def __init__(self):
        self.catalog: Optional[FileCatalog] = None

    def execute(
            self,
            params: ScanParams,
            progress_callback: Optional[Callable[[str, int, Optional[int]], None]] = None,
            stopped_flag: Optional[Callable[[], bool]] = None
    ) -> Tuple[SimilarFileSet, HashingStats]:
        """
        Execute a scan with given parameters.

        Args:
            params: Validated scan parameters
            progress_callback: (stage: str, current: int, total: Optional[int]) -> None
            stopped_flag: () -> bool (returns True if the directory walk should stop)

        Returns:
            Tuple of (similar file set, hashing statistics)

        Raises:
            InvalidRoot: root directory is missing or not a directory
            TierTimeout: the tier did not complete within `params.timeout`;
                carries the partial grouping
        """
        self.catalog = FileCatalog(params.root_dir, config=params.config)
        scanner = FileScannerImpl(
            root_dir=params.root_dir,
            min_size=params.min_size_bytes,
            max_size=params.max_size_bytes,
            extensions=params.extensions,
            excluded_dirs=params.excluded_dirs,
        )

        self.catalog.build_file_list(
            scanner,
            background=True,
            stopped_flag=stopped_flag,
            progress_callback=progress_callback
        )

        completed = self.catalog.wait_for_tier(params.tier, timeout=params.timeout)
        if not completed:
            self.catalog.cancel_background_hashing()
            partial = self.catalog.group(params.tier, include_singletons=params.include_singletons)
            logger.warning(f"Timed out waiting for {params.tier.value} tier")
            raise TierTimeout(params, partial)

        # FULL may still be running when a cheaper tier was requested
        self.catalog.cancel_background_hashing()

        groups = self.catalog.group(params.tier, include_singletons=params.include_singletons)
        logger.info(f"{len(groups.duplicate_groups())} duplicate groups at {params.tier.value} tier")
        return groups, self.catalog.stats

    def get_catalog(self) -> FileCatalog:
        """Get the underlying catalog (for advanced use cases)."""
        if not self.catalog:
            raise RuntimeError("Command not executed yet")
        return self.catalog
