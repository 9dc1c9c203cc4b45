"""
Semantic version matching for release tags and cache entries.

Constraints use npm range syntax (exact versions, comparators, x-ranges,
caret and tilde ranges), delegated to ``semantic_version.NpmSpec``.

Example:
    >>> satisfies("0.10.3", "0.10")
    True
    >>> satisfies("0.11.0", "0.10")
    False
"""

import functools
from typing import Optional

import semantic_version

from setupcrate.core.exceptions import InvalidVersionError

ANY_VERSION = "*"


@functools.lru_cache(maxsize=64)
def parse_spec(version_spec: str) -> semantic_version.NpmSpec:
    """
    Parse an npm-style range expression.

    Raises:
        InvalidVersionError: If the expression is not a valid range
    """
    try:
        return semantic_version.NpmSpec(version_spec.strip() or ANY_VERSION)
    except ValueError as e:
        raise InvalidVersionError(
            f"Invalid version specifier '{version_spec}': {e}"
        ) from e


def parse_version(version: str) -> Optional[semantic_version.Version]:
    """Parse a version string, returning None when it is not valid semver."""
    try:
        return semantic_version.Version(version)
    except ValueError:
        return None


def satisfies(version: str, version_spec: Optional[str]) -> bool:
    """
    Check whether a version satisfies a range.

    A missing range accepts anything; a version that is not valid semver
    never satisfies a range.
    """
    if not version_spec:
        return True
    parsed = parse_version(version)
    if parsed is None:
        return False
    return parse_spec(version_spec).match(parsed)


def exact_version(version_spec: Optional[str]) -> Optional[str]:
    """
    Return the pinned version if the range names exactly one version.

    Example:
        >>> exact_version("v1.2.3")
        '1.2.3'
        >>> exact_version("^1.2.3") is None
        True
    """
    if not version_spec:
        return None
    candidate = version_spec.strip().lstrip("=v")
    parsed = parse_version(candidate)
    return str(parsed) if parsed is not None else None


__all__ = [
    "ANY_VERSION",
    "parse_spec",
    "parse_version",
    "satisfies",
    "exact_version",
]
