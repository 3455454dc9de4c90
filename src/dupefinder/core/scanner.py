"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/scanner.py
Directory walker feeding candidate paths into a FileCatalog.
Features:
- Recursively scans directories with os.walk
- Skips symbolic links, system trash and excluded directories
- Applies optional size and extension filters
- Returns absolute paths; FileCatalog re-validates each one on add
"""

import logging
import os
import sys
import time
from pathlib import Path
from typing import Callable, List, Optional

from dupefinder.core.errors import InvalidRoot
from dupefinder.core.interfaces import FileScanner

logger = logging.getLogger(__name__)

# Report progress after this many files
PROGRESS_INTERVAL = 5000


class FileScannerImpl(FileScanner):
    """
    Scans directories recursively and filters files based on size and extensions.

    Attributes:
        root_dir: Root directory to scan
        min_size: Minimum file size in bytes (optional)
        max_size: Maximum file size in bytes (optional)
        extensions: List of allowed file extensions (e.g., [".txt", ".jpg"])
        excluded_dirs: Directories that are never entered
        skip_empty: Drop zero-byte files
    """

    def __init__(
        self,
        root_dir: str,
        min_size: Optional[int] = None,
        max_size: Optional[int] = None,
        extensions: Optional[List[str]] = None,
        excluded_dirs: Optional[List[str]] = None,
        skip_empty: bool = False
    ):
        self.root_dir = root_dir
        self.min_size = min_size
        self.max_size = max_size
        self.extensions = [ext.lower() for ext in extensions] if extensions else []
        self.excluded_dirs = [str(Path(d).resolve()) for d in excluded_dirs] if excluded_dirs else []
        self.skip_empty = skip_empty

    def scan(self,
             stopped_flag: Optional[Callable[[], bool]] = None,
             progress_callback: Optional[Callable[[str, int, object], None]] = None) -> List[str]:
        """
        Single-pass walk of the root directory.
        Returns the absolute paths of regular files that pass all filters.
        """
        root_path = Path(self.root_dir).resolve()
        if not root_path.exists():
            raise InvalidRoot(f"Directory does not exist: {self.root_dir}")
        if not root_path.is_dir():
            raise InvalidRoot(f"Not a directory: {self.root_dir}")

        logger.info(f"Scanning directory: {root_path}")
        logger.debug(f"Filters: min_size={self.min_size}, max_size={self.max_size}, extensions={self.extensions}")

        found = []
        processed_files = 0
        start_time = time.time()

        for root, dirs, files in os.walk(str(root_path), onerror=self._on_walk_error):
            if stopped_flag and stopped_flag():
                logger.info("Scan interrupted")
                return found

            # Prune subdirectories before os.walk enters them
            dirs[:] = [d for d in dirs if self._prefilter_dirs(Path(root) / d)]

            for filename in files:
                path = Path(root) / filename
                if self._accept(path):
                    found.append(str(path))
                processed_files += 1

                if progress_callback and processed_files % PROGRESS_INTERVAL == 0:
                    progress_callback('scanning', processed_files, None)

        if progress_callback:
            progress_callback('scanning', processed_files, None)

        logger.info(f"Found {len(found)} files in {time.time() - start_time:.2f}s "
                    f"({processed_files} examined)")
        return found

    @staticmethod
    def _on_walk_error(error: OSError) -> None:
        logger.warning(f"Cannot read directory: {error}")

    @staticmethod
    def _is_system_trash(path: Path) -> bool:
        """Check if path belongs to the OS trash/recycle bin."""
        path_str = str(path)
        if sys.platform == "win32":
            return "$Recycle.Bin" in path_str or "\\Recycler\\" in path_str
        if sys.platform == "darwin":
            return "/.Trash/" in path_str or path_str.endswith("/.Trash")
        return ".local/share/Trash" in path_str or "/.trash/" in path_str

    def _is_excluded_directory(self, path: Path) -> bool:
        path_str = os.path.normpath(str(path))
        for excluded_dir in self.excluded_dirs:
            if path_str == excluded_dir or path_str.startswith(excluded_dir + os.sep):
                return True
        return False

    def _prefilter_dirs(self, path: Path) -> bool:
        """Skip system trash, excluded, symlinked and inaccessible directories."""
        if self._is_system_trash(path):
            logger.debug(f"Skipping system trash directory: {path}")
            return False

        if self.excluded_dirs and self._is_excluded_directory(path):
            logger.debug(f"Skipping excluded directory: {path}")
            return False

        try:
            if path.is_symlink():
                logger.debug(f"Skipping symlinked directory: {path}")
                return False
            return os.access(path, os.R_OK | os.X_OK)
        except OSError as e:
            logger.debug(f"Skipping inaccessible directory {path}: {e}")
            return False

    def _accept(self, path: Path) -> bool:
        """Apply the regular-file, size and extension filters to one path."""
        try:
            if path.is_symlink():
                logger.debug(f"Skipping symbolic link: {path}")
                return False
            stat_result = path.stat()
        except OSError as e:
            logger.debug(f"Could not stat {path}: {e}")
            return False

        if not path.is_file():
            return False

        size = stat_result.st_size
        if size == 0 and self.skip_empty:
            logger.debug(f"Skipping zero-byte file: {path}")
            return False
        if self.min_size is not None and size < self.min_size:
            return False
        if self.max_size is not None and size > self.max_size:
            return False
        if self.extensions and path.suffix.lower() not in self.extensions:
            return False
        return True
