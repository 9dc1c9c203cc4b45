"""
GitHub release discovery for setup-crate.
"""

from .models import (
    ToolDescriptor,
    Release,
    ReleaseAsset,
    ReleaseCandidate,
    InstalledTool,
)

from .client import (
    DEFAULT_API_URL,
    GitHubReleaseClient,
)

from .locator import (
    select_asset,
    candidates_from_page,
    locate_release,
)

__all__ = [
    "ToolDescriptor",
    "Release",
    "ReleaseAsset",
    "ReleaseCandidate",
    "InstalledTool",
    "DEFAULT_API_URL",
    "GitHubReleaseClient",
    "select_asset",
    "candidates_from_page",
    "locate_release",
]
