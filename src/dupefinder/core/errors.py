"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/errors.py
Exception hierarchy for scanning, hashing and background scheduling.

Per-file errors (NotAFile, FileUnavailable, HashComputationFailure) are logged
and never abort a scan. Structural misuse (ConcurrentStartRejected, InvalidRoot)
is raised to the immediate caller.
"""


class DupeFinderError(Exception):
    """Base class for all dupefinder errors."""


class InvalidRoot(DupeFinderError):
    """Scan root does not exist or is not a directory."""


class NotAFile(DupeFinderError):
    """Path given to discovery does not resolve to an existing regular file."""

    def __init__(self, path: str, reason: str = "not a regular file"):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class HashingError(DupeFinderError):
    """A file could not be hashed at some tier."""

    def __init__(self, path: str, tier, cause: Exception = None):
        message = f"{path}: cannot compute {tier.value} hash"
        if cause is not None:
            message += f" ({cause})"
        super().__init__(message)
        self.path = path
        self.tier = tier
        self.cause = cause


class FileUnavailable(HashingError):
    """File vanished or became unreadable between discovery and hashing."""


class HashComputationFailure(HashingError):
    """Any other I/O error raised while hashing."""


class HashingCancelled(DupeFinderError):
    """Hashing was interrupted by a cancellation request. Nothing was cached."""


class ConcurrentStartRejected(DupeFinderError):
    """A background hashing run is already active for this catalog."""
