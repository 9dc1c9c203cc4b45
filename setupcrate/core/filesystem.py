"""
Filesystem helpers used while installing a tool.

Covers unpacking release archives (zip, tar.gz) without letting members
escape the destination, guarded tree removal, copying trees into the cache
and scratch directories for downloads.
"""

import os
import shutil
import stat
import sys
import tarfile
import tempfile
import zipfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Optional, Union

from setupcrate.core.exceptions import (
    ArchiveExtractionError,
    InsecureArchiveError,
    SetupCrateError,
)

IS_WINDOWS = os.name == "nt"

PathLike = Union[str, Path]


class FilesystemError(SetupCrateError):
    """Raised when a filesystem operation cannot be completed."""

    pass


def is_within(path: Path, parent: Path) -> bool:
    """
    Return True if path is parent itself or lies below it.

    Example:
        >>> is_within(Path("/cache/mdBook/0.4.40"), Path("/cache"))
        True
    """
    try:
        return os.path.commonpath([str(path), str(parent)]) == str(parent)
    except ValueError:
        # Different drives on Windows.
        return False


# ============================================================================
# Archive Extraction
# ============================================================================


def _check_members(names: Iterable[str], destination: Path) -> None:
    """
    Reject archives whose members would land outside destination.

    Raises:
        InsecureArchiveError: On the first escaping member
    """
    root = destination.resolve()
    for name in names:
        if not is_within((root / name).resolve(), root):
            raise InsecureArchiveError(
                f"Refusing to extract '{name}': it resolves outside {destination}"
            )


def _check_links(members: Iterable[tarfile.TarInfo], destination: Path) -> None:
    """
    Reject symlink and hardlink members whose target lies outside destination.

    A link pointing out of the tree would let a later member such as
    ``link/file`` be written through it.

    Raises:
        InsecureArchiveError: On the first escaping link
    """
    root = destination.resolve()
    for member in members:
        if member.issym():
            target = root / os.path.dirname(member.name) / member.linkname
        elif member.islnk():
            target = root / member.linkname
        else:
            continue
        if not is_within(target.resolve(), root):
            raise InsecureArchiveError(
                f"Refusing to extract link '{member.name}' -> '{member.linkname}': "
                f"it points outside {destination}"
            )


def _prepare(archive_path: PathLike, destination: PathLike):
    archive_path = Path(archive_path)
    destination = Path(destination)
    if not archive_path.is_file():
        raise ArchiveExtractionError(f"Archive not found: {archive_path}")
    destination.mkdir(parents=True, exist_ok=True)
    return archive_path, destination


def extract_zip(archive_path: PathLike, destination: PathLike) -> Path:
    """
    Unpack a .zip release asset.

    Zip files built on Unix record permission bits in ``external_attr``;
    those are applied after extraction. Archives built on Windows have none,
    so their files keep the default mode.

    Returns:
        The destination directory

    Raises:
        ArchiveExtractionError: If the archive is missing or corrupt
        InsecureArchiveError: If a member would escape destination
    """
    archive_path, destination = _prepare(archive_path, destination)

    try:
        with zipfile.ZipFile(archive_path) as zf:
            members = zf.infolist()
            _check_members((m.filename for m in members), destination)

            for member in members:
                target = zf.extract(member, destination)
                unix_mode = (member.external_attr >> 16) & 0o777
                if unix_mode and not member.is_dir() and not IS_WINDOWS:
                    os.chmod(target, unix_mode)
    except (zipfile.BadZipFile, OSError) as e:
        raise ArchiveExtractionError(f"Failed to extract {archive_path}: {e}") from e

    return destination


def extract_tar(archive_path: PathLike, destination: PathLike) -> Path:
    """
    Unpack a gzip-compressed tarball (.tar.gz or .tgz).

    Returns:
        The destination directory

    Raises:
        ArchiveExtractionError: If the archive is missing or corrupt
        InsecureArchiveError: If a member would escape destination
    """
    archive_path, destination = _prepare(archive_path, destination)

    try:
        with tarfile.open(archive_path, "r:gz") as tar:
            members = tar.getmembers()
            _check_members((m.name for m in members), destination)
            _check_links(members, destination)
            if hasattr(tarfile, "data_filter"):
                tar.extractall(destination, filter="data")
            else:
                tar.extractall(destination)
    except (tarfile.TarError, OSError) as e:
        raise ArchiveExtractionError(f"Failed to extract {archive_path}: {e}") from e

    return destination


# ============================================================================
# Tree Operations
# ============================================================================


def _make_writable_and_retry(func, target, _exc):
    os.chmod(target, stat.S_IRWXU)
    func(target)


def safe_rmtree(path: PathLike, require_prefix: Optional[PathLike] = None) -> None:
    """
    Remove a directory tree, refusing paths outside require_prefix.

    Read-only entries are made writable and removed on a second attempt.
    A missing path is not an error.

    Raises:
        ValueError: If path is not under require_prefix
        FilesystemError: If path is a file or cannot be removed

    Example:
        >>> safe_rmtree("/tmp/setup-crate-binaries/mdBook", require_prefix="/tmp")
    """
    path = Path(path).resolve()

    if require_prefix is not None:
        prefix = Path(require_prefix).resolve()
        if not is_within(path, prefix):
            raise ValueError(f"Refusing to delete '{path}': not under required prefix '{prefix}'")

    if not path.exists():
        return
    if not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    try:
        if sys.version_info >= (3, 12):
            shutil.rmtree(path, onexc=_make_writable_and_retry)
        else:
            shutil.rmtree(path, onerror=_make_writable_and_retry)
    except OSError as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}") from e


def copy_tree(source: PathLike, destination: PathLike) -> Path:
    """
    Copy the contents of source into destination.

    Symlinks are copied as links and file modes are preserved, so an
    executable bit set by the archive survives caching.

    Raises:
        FilesystemError: If source is missing or not a directory
    """
    source = Path(source)
    destination = Path(destination)

    if not source.exists():
        raise FilesystemError(f"Source does not exist: {source}")
    if not source.is_dir():
        raise FilesystemError(f"Source is not a directory: {source}")

    shutil.copytree(source, destination, symlinks=True, dirs_exist_ok=True)
    return destination


@contextmanager
def temporary_directory(
    prefix: str = "setup-crate-",
    parent: Optional[PathLike] = None,
):
    """
    Yield a fresh scratch directory, removed on exit.

    Args:
        prefix: Name prefix
        parent: Directory to create it in (created if missing; default:
            system temp dir)

    Example:
        >>> with temporary_directory(parent=runner_temp) as work_dir:
        ...     download_file(url, work_dir / "asset.tar.gz")
    """
    if parent is not None:
        Path(parent).mkdir(parents=True, exist_ok=True)
    work_dir = Path(tempfile.mkdtemp(prefix=prefix, dir=parent))

    try:
        yield work_dir
    finally:
        safe_rmtree(work_dir)


__all__ = [
    "FilesystemError",
    "is_within",
    "extract_zip",
    "extract_tar",
    "safe_rmtree",
    "copy_tree",
    "temporary_directory",
]
