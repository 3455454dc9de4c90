#!/usr/bin/env python3
"""
dupefinder CLI — command line interface for tiered duplicate file detection.
Scans a directory, hashes files in the background and prints the groups of
files that share every hash up to the requested tier. Read-only: nothing is
moved or deleted.
"""
from __future__ import annotations  # Enable postponed evaluation of annotations (PEP 563)
import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import List, NoReturn, Optional

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)-8s | %(name)-25s | %(message)s"
)

# === EARLY DEPENDENCY VALIDATION ===
try:
    import xxhash  # noqa: F401
except ImportError:
    print("❌ Missing required dependency: xxhash", file=sys.stderr)
    print("   pip install xxhash", file=sys.stderr)
    sys.exit(1)

# === NORMAL IMPORTS (after validation) ===
from dupefinder.aliases import EPILOG_TEXT, TIER_ALIASES, TIER_CHOICES, TIER_HELP_TEXT
from dupefinder.commands import DuplicateScanCommand, TierTimeout
from dupefinder.core.errors import DupeFinderError
from dupefinder.core.models import CatalogConfig, HashTier, ScanParams, SimilarFileSet
from dupefinder.utils.convert_utils import ConvertUtils

# Exit status when the requested tier did not finish in time
EXIT_TIMEOUT = 2


class CLIApplication:
    """Main CLI application controller."""

    def __init__(self):
        self.start_time: float = time.time()
        self.verbose: bool = False
        self.quiet: bool = False

        # Fix encoding for Windows consoles to prevent UnicodeEncodeError
        for stream in (sys.stdout, sys.stderr):
            if hasattr(stream, "reconfigure"):
                stream.reconfigure(encoding='utf-8')

    @staticmethod
    def parse_args(args=None) -> argparse.Namespace:
        """Parse command-line arguments."""
        parser = argparse.ArgumentParser(
            prog="dupefinder",
            description="dupefinder — tiered duplicate file finder (size → quick hash → full hash)",
            formatter_class=argparse.RawTextHelpFormatter,
            epilog=EPILOG_TEXT
        )

        # Required arguments
        parser.add_argument(
            "--input", "-i",
            required=True,
            type=str,
            help="Input directory to scan for duplicates"
        )

        # Filtering options
        parser.add_argument(
            "--min-size", "-m",
            default="0",
            type=str,
            metavar='',
            help="Minimum file size (e.g., 500KB, 1MB). Default: 0"
        )
        parser.add_argument(
            "--max-size", "-M",
            default=None,
            type=str,
            metavar='',
            help="Maximum file size (e.g., 10MB, 1GB). Default: no limit"
        )
        parser.add_argument(
            "--extensions", "-x",
            nargs="+",
            default=[],
            type=str,
            metavar='',
            help="File extensions (space separated) to include (e.g., .jpg .png)"
        )
        parser.add_argument(
            "--excluded-dirs", '-e',
            nargs="+",
            default=[],
            type=str,
            metavar='',
            dest="excluded_dirs",
            help="Excluded/ignored directories (space separated)"
        )

        # Hashing options
        parser.add_argument(
            "--tier",
            choices=TIER_CHOICES,
            default="full",
            type=str,
            help=TIER_HELP_TEXT
        )
        parser.add_argument(
            "--quick-size",
            default="64K",
            type=str,
            metavar='',
            help="Bytes read from the start of each file for the quick hash. Default: 64K"
        )
        parser.add_argument(
            "--workers",
            default=1,
            type=int,
            metavar='',
            help="Threads hashing files within a tier. Default: 1"
        )
        parser.add_argument(
            "--timeout",
            default=None,
            type=float,
            metavar='',
            help="Seconds to wait for the tier to finish. Default: wait until done"
        )

        # Output options
        parser.add_argument(
            "--include-singletons",
            action="store_true",
            help="Also list files that have no duplicate"
        )
        parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress non-essential output"
        )
        parser.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Show detailed statistics, progress and log messages"
        )

        return parser.parse_args(args)

    def validate_args(self, args: argparse.Namespace) -> None:
        """Validate command-line arguments before execution."""
        root_path = Path(args.input).resolve()
        if not root_path.exists():
            self.error_exit(f"Directory not found: {args.input}")
        if not root_path.is_dir():
            self.error_exit(f"Path is not a directory: {args.input}")

        for option, value in (("--min-size", args.min_size), ("--max-size", args.max_size),
                              ("--quick-size", args.quick_size)):
            if value is not None and not ConvertUtils.is_valid_size_format(value):
                self.error_exit(f"Invalid size format for {option}: '{value}'")

        if args.workers < 1:
            self.error_exit("--workers must be at least 1")
        if args.timeout is not None and args.timeout < 0:
            self.error_exit("--timeout cannot be negative")

        for excl_dir in args.excluded_dirs:
            excl_path = Path(excl_dir).resolve()
            if not excl_path.exists():
                self.warning(f"Excluded directory not found: {excl_dir}")
            elif not excl_path.is_dir():
                self.warning(f"Excluded path is not a directory: {excl_dir}")

    def create_params(self, args: argparse.Namespace) -> ScanParams:
        """Create ScanParams from CLI arguments."""
        try:
            max_size = ConvertUtils.human_to_bytes(args.max_size) if args.max_size else None
            return ScanParams(
                root_dir=str(Path(args.input).resolve()),
                min_size_bytes=ConvertUtils.human_to_bytes(args.min_size),
                max_size_bytes=max_size,
                extensions=list(args.extensions),
                excluded_dirs=[str(Path(d.strip()).resolve()) for d in args.excluded_dirs],
                tier=TIER_ALIASES.get(args.tier, HashTier.FULL),
                include_singletons=args.include_singletons,
                timeout=args.timeout,
                config=CatalogConfig(
                    quick_sample_size=ConvertUtils.human_to_bytes(args.quick_size),
                    hash_workers=args.workers,
                ),
            )
        except ValueError as e:
            self.error_exit(f"Parameter error: {e}")

    def progress_callback(self, stage: str, current: int, total: Optional[int]) -> None:
        """CLI progress callback - shows progress in console."""
        if not self.verbose:
            return

        if total and total > 0:
            percent = (current / total) * 100
            sys.stderr.write(f"\r  [{stage}] {current}/{total} ({percent:.1f}%)")
        else:
            sys.stderr.write(f"\r  [{stage}] {current} files processed...")
        sys.stderr.flush()

    def run_scan(self, params: ScanParams) -> SimilarFileSet:
        """Execute the scan; a timeout still prints the partial result."""
        command = DuplicateScanCommand()
        if self.verbose:
            print(f"Finding duplicates (tier: {params.tier.display_name})...")

        try:
            groups, stats = command.execute(
                params,
                progress_callback=self.progress_callback if self.verbose else None,
            )
        except TierTimeout as e:
            self.warning(f"{e}; results below are partial")
            self.output_results(e.partial)
            sys.exit(EXIT_TIMEOUT)
        except DupeFinderError as e:
            self.error_exit(str(e))

        if self.verbose:
            sys.stderr.write("\n")
            print()
            print(stats.print_summary())

        return groups

    def output_results(self, groups: SimilarFileSet) -> None:
        """Output groups as plain text, in catalog order."""
        if self.quiet:
            return

        duplicates = groups.duplicate_groups()
        if not groups:
            print("No duplicate groups found.")
            return

        print(f"\nFound {len(duplicates)} duplicate groups "
              f"({sum(len(g) for g in duplicates)} files, "
              f"{ConvertUtils.bytes_to_human(groups.wasted_bytes)} reclaimable)")

        for idx, files in enumerate(groups.groups(), 1):
            size_str = ConvertUtils.bytes_to_human(files[0].size)
            marker = "Group" if len(files) >= 2 else "Unique"
            print(f"\n📁 {marker} {idx} | Size: {size_str} | Files: {len(files)}")
            for file in files:
                print(f"   {file.path}")

    def warning(self, message: str) -> None:
        """Print a warning message to stderr."""
        if not self.quiet:
            print(f"⚠️  {message}", file=sys.stderr)

    @staticmethod
    def error_exit(message: str, code: int = 1) -> NoReturn:
        """Print error and exit."""
        print(f"❌ Error: {message}", file=sys.stderr)
        sys.exit(code)

    def run(self, argv: Optional[List[str]] = None) -> None:
        """Main entry point with conditional output behavior."""
        args = self.parse_args(argv)
        self.verbose = args.verbose
        self.quiet = args.quiet
        if self.verbose:
            logging.getLogger().setLevel(logging.INFO)
        elif self.quiet:
            logging.getLogger().setLevel(logging.ERROR)

        self.validate_args(args)
        params = self.create_params(args)

        if not self.quiet:
            print(f"Scanning directory: {params.root_dir}")

        groups = self.run_scan(params)
        self.output_results(groups)

        elapsed = time.time() - self.start_time
        if self.verbose:
            print(f"\n✅ Completed in {elapsed:.2f} seconds")


def main() -> None:
    """Application entry point."""
    app = CLIApplication()
    try:
        app.run()
    except KeyboardInterrupt:
        print("\n⚠️  Operation cancelled by user (Ctrl+C)")
        sys.exit(130)
    except Exception as e:
        if os.environ.get("DEBUG"):
            raise
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
