"""
Platform detection and release target resolution for setup-crate.

This module maps the current operating system and CPU architecture onto the
Rust target triples that tool authors embed in release asset filenames.

Features:
- Operating system detection (Windows, Linux, macOS)
- CPU architecture detection (x64, ARM64)
- Ordered target resolution (statically linked musl before glibc on Linux)
- Detection caching

Usage:
    from setupcrate.core.platform import detect_platform, resolve_targets

    info = detect_platform()
    targets = resolve_targets(info.arch, info.os)
    # ['x86_64-unknown-linux-musl', 'x86_64-unknown-linux-gnu']
"""

import functools
import platform
from dataclasses import dataclass
from typing import Dict, List, Tuple

from setupcrate.core.exceptions import UnsupportedPlatformError


# Ordered by preference: static musl before dynamic glibc.
TARGETS: Dict[Tuple[str, str], Tuple[str, ...]] = {
    ("x64", "linux"): ("x86_64-unknown-linux-musl", "x86_64-unknown-linux-gnu"),
    ("x64", "macos"): ("x86_64-apple-darwin",),
    ("x64", "windows"): ("x86_64-pc-windows-msvc",),
    ("arm64", "linux"): ("aarch64-unknown-linux-musl", "aarch64-unknown-linux-gnu"),
    ("arm64", "macos"): ("aarch64-apple-darwin",),
}


@dataclass(frozen=True)
class PlatformInfo:
    """
    Host platform information.

    Attributes:
        os: Operating system ('windows', 'linux', 'macos', or the raw lowercase
            system name when unrecognized)
        arch: CPU architecture ('x64', 'arm64', or the raw lowercase machine name)
    """

    os: str
    arch: str

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect current platform information.

    This function is cached - it only runs detection once per process.

    Returns:
        PlatformInfo instance with detected platform information
    """
    return PlatformInfo(os=_detect_os(), arch=_detect_architecture())


def _detect_os() -> str:
    """
    Detect operating system.

    Returns:
        Normalized OS name: 'windows', 'linux', 'macos', or the raw system name
    """
    system = platform.system().lower()

    if system == "windows" or system.startswith(("cygwin", "msys", "mingw")):
        return "windows"
    elif system == "linux":
        return "linux"
    elif system == "darwin":
        return "macos"
    else:
        return system


def _detect_architecture() -> str:
    """
    Detect CPU architecture.

    Returns:
        Normalized architecture: 'x64', 'arm64', or the raw machine name
    """
    machine = platform.machine().lower()

    if machine in ("x86_64", "amd64", "x64"):
        return "x64"
    elif machine in ("aarch64", "arm64"):
        return "arm64"
    else:
        return machine


def resolve_targets(arch: str, os_name: str) -> List[str]:
    """
    Resolve the ordered release targets for an architecture/OS pair.

    Args:
        arch: Normalized architecture ('x64', 'arm64')
        os_name: Normalized OS name ('linux', 'macos', 'windows')

    Returns:
        Target triples, most preferred first

    Raises:
        UnsupportedPlatformError: If the pair is not in the target table

    Example:
        >>> resolve_targets('arm64', 'macos')
        ['aarch64-apple-darwin']
    """
    targets = TARGETS.get((arch, os_name))
    if not targets:
        raise UnsupportedPlatformError(arch, os_name)
    return list(targets)


def detect_targets() -> List[str]:
    """Resolve release targets for the current host."""
    info = detect_platform()
    return resolve_targets(info.arch, info.os)


def clear_platform_cache():
    """
    Clear the platform detection cache.

    This forces the next call to detect_platform() to re-detect.
    Useful for testing.
    """
    detect_platform.cache_clear()


__all__ = [
    "TARGETS",
    "PlatformInfo",
    "detect_platform",
    "detect_targets",
    "resolve_targets",
    "clear_platform_cache",
]
