"""
Concurrent access control for the tool cache.

Two jobs sharing a runner can try to install the same tool at once. A
per-tool file lock serializes the check-cache/install/cache sequence so the
second process finds the first one's entry instead of racing it.

Usage:
    from setupcrate.core.locking import LockManager

    lock_manager = LockManager(cache_root / "lock")
    with lock_manager.tool_lock("mdBook", timeout=300):
        # check cache, install, cache
        pass
"""

import logging
import re
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout as LockTimeout

from setupcrate.core.exceptions import CacheLockTimeout

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class LockManager:
    """
    Manages cross-process locks for tool installations.

    Uses file-based locking with the `filelock` library for cross-platform
    compatibility and automatic cleanup on process death.

    Attributes:
        lock_dir: Directory where lock files are stored
    """

    def __init__(self, lock_dir: Path):
        self.lock_dir = Path(lock_dir)

    def lock_path(self, name: str) -> Path:
        """Lock file used for a tool name (case-insensitive)."""
        safe_name = _UNSAFE_CHARS.sub("-", name.lower())
        return self.lock_dir / f"tool-{safe_name}.lock"

    @contextmanager
    def tool_lock(self, name: str, timeout: float = 300):
        """
        Acquire the lock for a tool (for download/installation).

        Args:
            name: Tool name
            timeout: Maximum wait time in seconds (default: 300 for long downloads)

        Raises:
            CacheLockTimeout: If lock can't be acquired within timeout
        """
        self.lock_dir.mkdir(parents=True, exist_ok=True)
        lock_path = self.lock_path(name)
        lock = FileLock(lock_path, timeout=timeout)

        try:
            with lock:
                logger.debug(f"Acquired tool lock: {lock_path}")
                yield
                logger.debug(f"Released tool lock: {lock_path}")
        except LockTimeout as e:
            raise CacheLockTimeout(
                f"Could not acquire cache lock for {name} after {timeout}s. "
                "Another process may be installing this tool."
            ) from e


__all__ = [
    "LockManager",
    "LockTimeout",
]
