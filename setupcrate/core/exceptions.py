"""
Centralized exception hierarchy for setup-crate.

Every failure the installer can report derives from SetupCrateError so the
CLI can turn any of them into a single error message.
"""

from typing import Optional


# ============================================================================
# Base Exceptions
# ============================================================================


class SetupCrateError(Exception):
    """Base exception for all setup-crate errors."""

    pass


# ============================================================================
# Input Exceptions
# ============================================================================


class InputError(SetupCrateError):
    """Base exception for invalid configuration inputs."""

    pass


class ConflictingInputError(InputError):
    """Raised when mutually exclusive inputs are supplied together."""

    pass


class MissingInputError(InputError):
    """Raised when a required input is absent."""

    pass


class InvalidInputError(InputError):
    """Raised when an input value is malformed."""

    pass


# ============================================================================
# Platform Exceptions
# ============================================================================


class UnsupportedPlatformError(SetupCrateError):
    """Raised when the OS/architecture pair has no known release targets."""

    def __init__(self, arch: str, os_name: str):
        self.arch = arch
        self.os_name = os_name
        super().__init__(
            f"failed to determine any valid targets; arch = {arch}, platform = {os_name}"
        )


# ============================================================================
# Release Exceptions
# ============================================================================


class ReleaseError(SetupCrateError):
    """Base exception for release resolution errors."""

    pass


class ReleaseListingError(ReleaseError):
    """Raised when the release listing cannot be retrieved."""

    pass


class NoMatchingReleaseError(ReleaseError):
    """Raised when no release has an asset for the targets and constraint."""

    def __init__(self, name: str, version_spec: Optional[str] = None):
        self.name = name
        self.version_spec = version_spec
        super().__init__(
            f"no release for {name} matching version specifier {version_spec}"
        )


class InvalidVersionError(ReleaseError):
    """Invalid version or version constraint."""

    pass


# ============================================================================
# Install Exceptions
# ============================================================================


class DownloadError(SetupCrateError):
    """Raised when an asset download fails."""

    pass


class ArchiveExtractionError(SetupCrateError):
    """Failed to extract an archive or stage a downloaded binary."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """Archive contains members that would escape the destination."""

    pass


class PermissionRepairError(SetupCrateError):
    """Raised when the installed binary cannot be made executable."""

    pass


# ============================================================================
# Cache Exceptions
# ============================================================================


class CacheError(SetupCrateError):
    """Base exception for tool cache errors."""

    pass


class CacheLockTimeout(CacheError):
    """Raised when the per-tool cache lock cannot be acquired within timeout."""

    pass
