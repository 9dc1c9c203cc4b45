"""
Core functionality for setup-crate.

This package contains the foundational modules that other components depend on.
"""

from .platform import (
    PlatformInfo,
    detect_platform,
    detect_targets,
    resolve_targets,
    clear_platform_cache,
)

from .cache import (
    CacheEntry,
    ToolCache,
)

from .locking import (
    LockManager,
)

from .exceptions import (
    SetupCrateError,
    InputError,
    ConflictingInputError,
    MissingInputError,
    InvalidInputError,
    UnsupportedPlatformError,
    ReleaseError,
    ReleaseListingError,
    NoMatchingReleaseError,
    InvalidVersionError,
    DownloadError,
    ArchiveExtractionError,
    InsecureArchiveError,
    PermissionRepairError,
    CacheError,
    CacheLockTimeout,
)

__all__ = [
    "PlatformInfo",
    "detect_platform",
    "detect_targets",
    "resolve_targets",
    "clear_platform_cache",
    "CacheEntry",
    "ToolCache",
    "LockManager",
    "SetupCrateError",
    "InputError",
    "ConflictingInputError",
    "MissingInputError",
    "InvalidInputError",
    "UnsupportedPlatformError",
    "ReleaseError",
    "ReleaseListingError",
    "NoMatchingReleaseError",
    "InvalidVersionError",
    "DownloadError",
    "ArchiveExtractionError",
    "InsecureArchiveError",
    "PermissionRepairError",
    "CacheError",
    "CacheLockTimeout",
]
