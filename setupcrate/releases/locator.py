"""
Release resolution: find the newest release with an asset for this platform.

The search is recency-first. Pages are consumed newest to oldest and the
search stops at the first page that yields a qualifying release; that page's
newest qualifier wins even if an older release would also satisfy the
version constraint.
"""

import logging
from typing import Iterable, List, Optional, Sequence

from setupcrate.core.exceptions import NoMatchingReleaseError
from setupcrate.core.versions import parse_spec, satisfies
from setupcrate.releases.client import GitHubReleaseClient
from setupcrate.releases.models import (
    Release,
    ReleaseAsset,
    ReleaseCandidate,
    ToolDescriptor,
)

logger = logging.getLogger(__name__)

# Sidecar files that name the same target as the artifact they describe.
SIDECAR_SUFFIXES = (
    ".sha256",
    ".sha256sum",
    ".sha512",
    ".sha512sum",
    ".md5",
    ".sig",
    ".asc",
    ".pem",
    ".minisig",
    ".sbom",
    ".intoto.jsonl",
)


def _is_sidecar(asset_name: str) -> bool:
    return asset_name.lower().endswith(SIDECAR_SUFFIXES)


def select_asset(
    assets: Sequence[ReleaseAsset], targets: Sequence[str]
) -> Optional[ReleaseAsset]:
    """
    Pick the asset for the most preferred target present.

    Every asset is checked against the first target before any asset is
    checked against the second.

    Args:
        assets: Assets of one release
        targets: Target triples, most preferred first

    Returns:
        The matching asset, or None
    """
    for target in targets:
        for asset in assets:
            if target in asset.name and not _is_sidecar(asset.name):
                return asset
    return None


def _release_version(tag_name: str) -> str:
    return tag_name[1:] if tag_name.startswith("v") else tag_name


def candidates_from_page(
    releases: Iterable[Release],
    targets: Sequence[str],
    version_spec: Optional[str] = None,
) -> List[ReleaseCandidate]:
    """
    Turn one page of releases into qualifying candidates, newest first.

    Args:
        releases: Releases of one page in API order
        targets: Target triples, most preferred first
        version_spec: Optional npm-style version range

    Returns:
        Candidates with a matching asset that satisfy the range
    """
    candidates = []
    for release in releases:
        asset = select_asset(release.assets, targets)
        if asset is None:
            continue
        candidate = ReleaseCandidate(
            version=_release_version(release.tag_name),
            download_url=asset.download_url,
        )
        if satisfies(candidate.version, version_spec):
            candidates.append(candidate)
        else:
            logger.debug(f"Skipping {release.tag_name}: does not satisfy {version_spec}")
    return candidates


def locate_release(
    tool: ToolDescriptor,
    targets: Sequence[str],
    client: GitHubReleaseClient,
) -> ReleaseCandidate:
    """
    Fetch the latest matching release for the given tool.

    Args:
        tool: Tool to find a release for
        targets: Target triples, most preferred first
        client: Release listing client

    Returns:
        The newest qualifying release

    Raises:
        InvalidVersionError: If the tool's version range is malformed
        ReleaseListingError: If the listing cannot be retrieved
        NoMatchingReleaseError: If no release qualifies
    """
    if tool.version_spec:
        # Fail on a malformed range before any request is made.
        parse_spec(tool.version_spec)

    for page in client.iter_release_pages(tool.owner, tool.name):
        candidates = candidates_from_page(page, targets, tool.version_spec)
        if candidates:
            release = candidates[0]
            logger.debug(
                f"Resolved {tool.slug} to v{release.version}: {release.download_url}"
            )
            return release

    raise NoMatchingReleaseError(tool.name, tool.version_spec)


__all__ = [
    "SIDECAR_SUFFIXES",
    "select_asset",
    "candidates_from_page",
    "locate_release",
]
