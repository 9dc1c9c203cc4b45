"""
Pytest configuration and shared fixtures for setup-crate tests.
"""

import io
import os
import tarfile
import zipfile
from pathlib import Path
from typing import Callable, Dict

import pytest

from setupcrate.config.inputs import SetupConfig
from setupcrate.core.platform import PlatformInfo, clear_platform_cache
from setupcrate.releases.models import ToolDescriptor


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (requires --integration)",
    )


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests that require network access",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is provided."""
    if config.getoption("--integration"):
        return
    skip_integration = pytest.mark.skip(reason="need --integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Remove Actions and runner variables that would leak into inputs."""
    for key in list(os.environ):
        if key.startswith("INPUT_"):
            monkeypatch.delenv(key, raising=False)
    for key in (
        "GITHUB_TOKEN",
        "GITHUB_PATH",
        "GITHUB_OUTPUT",
        "GITHUB_API_URL",
        "RUNNER_TOOL_CACHE",
        "RUNNER_TEMP",
        "SETUP_CRATE_CACHE_DIR",
    ):
        monkeypatch.delenv(key, raising=False)
    clear_platform_cache()
    yield
    clear_platform_cache()


@pytest.fixture
def linux_x64() -> PlatformInfo:
    return PlatformInfo(os="linux", arch="x64")


@pytest.fixture
def windows_x64() -> PlatformInfo:
    return PlatformInfo(os="windows", arch="x64")


@pytest.fixture
def cache_root(tmp_path: Path) -> Path:
    root = tmp_path / "toolcache"
    root.mkdir()
    return root


@pytest.fixture
def setup_config(tmp_path: Path, cache_root: Path) -> SetupConfig:
    """Configuration for installing rust-lang/mdBook@^0.4 into a temp cache."""
    temp_dir = tmp_path / "runner-temp"
    temp_dir.mkdir()
    return SetupConfig(
        tool=ToolDescriptor(owner="rust-lang", name="mdBook", version_spec="^0.4"),
        cache_dir=cache_root,
        temp_dir=temp_dir,
        lock_timeout=5,
    )


@pytest.fixture
def make_tarball() -> Callable[[Dict[str, bytes]], bytes]:
    """Build a gzip tarball in memory from {member name: content}."""

    def build(files: Dict[str, bytes], mode: int = 0o755) -> bytes:
        buffer = io.BytesIO()
        with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
            for name, content in files.items():
                info = tarfile.TarInfo(name)
                info.size = len(content)
                info.mode = mode
                tar.addfile(info, io.BytesIO(content))
        return buffer.getvalue()

    return build


@pytest.fixture
def make_zip() -> Callable[[Dict[str, bytes]], bytes]:
    """Build a zip archive in memory from {member name: content}."""

    def build(files: Dict[str, bytes], mode: int = 0o755) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            for name, content in files.items():
                info = zipfile.ZipInfo(name)
                info.external_attr = (0o100000 | mode) << 16
                zf.writestr(info, content)
        return buffer.getvalue()

    return build
