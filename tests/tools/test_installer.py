"""
Unit tests for the tool installer.

Network access is mocked with ``responses``; archives are built in memory.
"""

import os
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import responses

from setupcrate.core.cache import CacheEntry, ToolCache
from setupcrate.core.exceptions import (
    CacheLockTimeout,
    DownloadError,
    NoMatchingReleaseError,
    PermissionRepairError,
    UnsupportedPlatformError,
)
from setupcrate.core.platform import PlatformInfo
from setupcrate.releases.models import ToolDescriptor
from setupcrate.tools import installer as installer_module
from setupcrate.tools.installer import (
    ToolInstaller,
    check_or_install,
    find_binary,
    normalize_extract_dir,
    repair_permissions,
    staging_root,
)

MDBOOK_RELEASES = "https://api.github.com/repos/rust-lang/mdBook/releases"
MDBOOK_ASSET = (
    "https://github.com/rust-lang/mdBook/releases/download/v0.4.40/"
    "mdbook-v0.4.40-x86_64-unknown-linux-musl.tar.gz"
)

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")


def _api_release(tag, assets):
    return {
        "tag_name": tag,
        "assets": [{"name": url.rsplit("/", 1)[-1], "browser_download_url": url} for url in assets],
    }


def _add_mdbook_release(tarball: bytes):
    responses.add(
        responses.GET,
        MDBOOK_RELEASES,
        json=[
            _api_release(
                "v0.4.40",
                [
                    MDBOOK_ASSET,
                    MDBOOK_ASSET + ".sha256",
                    MDBOOK_ASSET.replace("x86_64-unknown-linux-musl", "x86_64-apple-darwin"),
                ],
            )
        ],
    )
    responses.add(responses.GET, MDBOOK_ASSET, body=tarball)


@pytest.fixture
def staging(setup_config):
    """Naked-binary staging directory under the configured temp dir."""
    return staging_root(setup_config.temp_dir)


class TestCheckOrInstall:
    """End-to-end installation against mocked GitHub."""

    @posix_only
    @responses.activate
    def test_installs_mdbook(self, setup_config, linux_x64, make_tarball):
        _add_mdbook_release(make_tarball({"mdbook": b"#!/bin/sh\necho mdbook\n"}, mode=0o644))

        tool = ToolInstaller(setup_config, platform=linux_x64).check_or_install(setup_config.tool)

        expected_dir = setup_config.cache_dir / "mdBook" / "0.4.40" / "x64"
        assert tool.version == "0.4.40"
        assert tool.directory == expected_dir
        assert (expected_dir / "mdbook").read_bytes() == b"#!/bin/sh\necho mdbook\n"
        assert os.access(expected_dir / "mdbook", os.X_OK)
        assert (setup_config.cache_dir / "mdBook" / "0.4.40" / "x64.complete").is_file()
        assert list(setup_config.temp_dir.iterdir()) == []

    @responses.activate
    def test_second_call_uses_cache(self, setup_config, linux_x64, make_tarball):
        _add_mdbook_release(make_tarball({"mdbook": b"binary"}))
        installer = ToolInstaller(setup_config, platform=linux_x64)

        first = installer.check_or_install(setup_config.tool)
        calls_after_install = len(responses.calls)
        second = installer.check_or_install(setup_config.tool)

        assert calls_after_install == 2
        assert len(responses.calls) == calls_after_install
        assert second == first

    @responses.activate
    def test_warm_cache_makes_no_requests(self, setup_config, linux_x64, tmp_path):
        source = tmp_path / "prebuilt"
        source.mkdir()
        (source / "mdbook").write_text("cached")
        ToolCache(setup_config.cache_dir, arch="x64").cache_dir(source, "mdBook", "0.4.37")

        tool = ToolInstaller(setup_config, platform=linux_x64).check_or_install(setup_config.tool)

        assert tool.version == "0.4.37"
        assert len(responses.calls) == 0
        assert not (setup_config.cache_dir / "lock").exists()

    @responses.activate
    def test_cache_hit_ignores_newer_release(self, setup_config, linux_x64, tmp_path, make_tarball):
        """A satisfying cached version is used even if GitHub has a newer one."""
        _add_mdbook_release(make_tarball({"mdbook": b"new"}))
        source = tmp_path / "prebuilt"
        source.mkdir()
        (source / "mdbook").write_text("old")
        ToolCache(setup_config.cache_dir, arch="x64").cache_dir(source, "mdBook", "0.4.1")

        tool = ToolInstaller(setup_config, platform=linux_x64).check_or_install(setup_config.tool)

        assert tool.version == "0.4.1"
        assert len(responses.calls) == 0

    @responses.activate
    def test_single_wrapping_directory_flattened(self, setup_config, linux_x64, make_tarball):
        _add_mdbook_release(
            make_tarball(
                {
                    "mdbook-v0.4.40/mdbook": b"binary",
                    "mdbook-v0.4.40/LICENSE": b"MPL",
                }
            )
        )

        tool = ToolInstaller(setup_config, platform=linux_x64).check_or_install(setup_config.tool)

        assert sorted(p.name for p in tool.directory.iterdir()) == ["LICENSE", "mdbook"]

    @responses.activate
    def test_naked_binary(self, setup_config, linux_x64, staging):
        asset = (
            "https://github.com/casey/just/releases/download/1.25.0/"
            "just-1.25.0-x86_64-unknown-linux-gnu"
        )
        responses.add(
            responses.GET,
            "https://api.github.com/repos/casey/just/releases",
            json=[_api_release("1.25.0", [asset])],
        )
        responses.add(responses.GET, asset, body=b"\x7fELF")
        (staging / "just").mkdir(parents=True)
        (staging / "just" / "leftover").write_text("stale")

        tool = ToolInstaller(setup_config, platform=linux_x64).check_or_install(
            ToolDescriptor("casey", "just")
        )

        assert tool.version == "1.25.0"
        assert sorted(p.name for p in tool.directory.iterdir()) == ["just"]
        assert (tool.directory / "just").read_bytes() == b"\x7fELF"
        assert (staging / "just" / "just").is_file()
        assert not (staging / "just" / "leftover").exists()
        assert staging.parent == setup_config.temp_dir
        if sys.platform != "win32":
            assert os.access(tool.directory / "just", os.X_OK)

    @responses.activate
    def test_windows_zip_without_permission_repair(self, setup_config, windows_x64, make_zip):
        asset = (
            "https://github.com/rust-lang/mdBook/releases/download/v0.4.40/"
            "mdbook-v0.4.40-x86_64-pc-windows-msvc.zip"
        )
        responses.add(
            responses.GET,
            MDBOOK_RELEASES,
            json=[_api_release("v0.4.40", [MDBOOK_ASSET, asset])],
        )
        responses.add(responses.GET, asset, body=make_zip({"mdbook.exe": b"MZ"}, mode=0o644))

        with patch.object(installer_module, "repair_permissions") as repair:
            tool = ToolInstaller(setup_config, platform=windows_x64).check_or_install(
                setup_config.tool
            )

        repair.assert_not_called()
        assert (tool.directory / "mdbook.exe").read_bytes() == b"MZ"

    @responses.activate
    def test_windows_naked_exe_keeps_extension(self, setup_config, windows_x64, staging):
        asset = "https://github.com/o/tool/releases/download/v2.0.0/tool-x86_64-pc-windows-msvc.exe"
        responses.add(
            responses.GET,
            "https://api.github.com/repos/o/tool/releases",
            json=[_api_release("v2.0.0", [asset])],
        )
        responses.add(responses.GET, asset, body=b"MZ")

        tool = ToolInstaller(setup_config, platform=windows_x64).check_or_install(
            ToolDescriptor("o", "tool")
        )

        assert [p.name for p in tool.directory.iterdir()] == ["tool.exe"]

    @responses.activate
    def test_no_matching_release(self, setup_config, linux_x64):
        responses.add(
            responses.GET,
            MDBOOK_RELEASES,
            json=[_api_release("v0.5.0", [MDBOOK_ASSET.replace("0.4.40", "0.5.0")])],
        )

        with pytest.raises(NoMatchingReleaseError, match="matching version specifier \\^0.4"):
            ToolInstaller(setup_config, platform=linux_x64).check_or_install(setup_config.tool)

        assert ToolCache(setup_config.cache_dir, arch="x64").list_versions("mdBook") == []

    @responses.activate
    def test_download_failure_leaves_no_cache_entry(self, setup_config, linux_x64):
        responses.add(responses.GET, MDBOOK_RELEASES, json=[_api_release("v0.4.40", [MDBOOK_ASSET])])
        responses.add(responses.GET, MDBOOK_ASSET, status=404)

        with pytest.raises(DownloadError):
            ToolInstaller(setup_config, platform=linux_x64).check_or_install(setup_config.tool)

        assert not (setup_config.cache_dir / "mdBook").exists()
        assert list(setup_config.temp_dir.iterdir()) == []

    @responses.activate
    def test_unsupported_platform_before_network(self, setup_config):
        installer = ToolInstaller(setup_config, platform=PlatformInfo("windows", "arm64"))

        with pytest.raises(UnsupportedPlatformError):
            installer.check_or_install(setup_config.tool)

        assert len(responses.calls) == 0

    def test_rechecks_cache_under_lock(self, setup_config, linux_x64):
        """A concurrent install finished while we waited for the lock."""
        entry = CacheEntry("mdBook", "0.4.40", setup_config.cache_dir / "mdBook" / "0.4.40" / "x64")
        cache = MagicMock(spec=ToolCache)
        cache.find.side_effect = [None, entry]
        client = MagicMock()

        tool = ToolInstaller(
            setup_config, platform=linux_x64, client=client, cache=cache
        ).check_or_install(setup_config.tool)

        assert tool.version == "0.4.40"
        assert cache.find.call_count == 2
        client.iter_release_pages.assert_not_called()

    def test_lock_timeout(self, setup_config, linux_x64):
        cache = MagicMock(spec=ToolCache)
        cache.find.return_value = None
        lock_manager = MagicMock()
        lock_manager.tool_lock.side_effect = CacheLockTimeout("busy")

        installer = ToolInstaller(
            setup_config, platform=linux_x64, cache=cache, lock_manager=lock_manager
        )

        with pytest.raises(CacheLockTimeout):
            installer.check_or_install(setup_config.tool)

        lock_manager.tool_lock.assert_called_once_with("mdBook", timeout=setup_config.lock_timeout)

    @responses.activate
    def test_module_level_entry_point(self, setup_config, linux_x64, make_tarball):
        _add_mdbook_release(make_tarball({"mdbook": b"binary"}))

        tool = check_or_install(setup_config.tool, setup_config, platform=linux_x64)

        assert tool.name == "mdBook"
        assert tool.owner == "rust-lang"


class TestNormalizeExtractDir:
    def test_single_directory_descended(self, tmp_path):
        (tmp_path / "tool-v1.0.0").mkdir()

        assert normalize_extract_dir(tmp_path) == tmp_path / "tool-v1.0.0"

    def test_only_one_level(self, tmp_path):
        (tmp_path / "outer" / "inner").mkdir(parents=True)

        assert normalize_extract_dir(tmp_path) == tmp_path / "outer"

    def test_single_file_kept(self, tmp_path):
        (tmp_path / "tool").write_text("binary")

        assert normalize_extract_dir(tmp_path) == tmp_path

    def test_multiple_entries_kept(self, tmp_path):
        (tmp_path / "bin").mkdir()
        (tmp_path / "README").write_text("docs")

        assert normalize_extract_dir(tmp_path) == tmp_path

    @posix_only
    def test_symlinked_directory_kept(self, tmp_path):
        target = tmp_path / "real"
        target.mkdir()
        extract_dir = tmp_path / "extract"
        extract_dir.mkdir()
        (extract_dir / "link").symlink_to(target)

        assert normalize_extract_dir(extract_dir) == extract_dir


class TestFindBinary:
    def test_explicit_bin(self, tmp_path):
        assert find_binary(tmp_path, "ripgrep", "rg") == tmp_path / "rg"

    def test_case_insensitive_match(self, tmp_path):
        (tmp_path / "README.md").write_text("")
        (tmp_path / "mdbook").write_text("")

        assert find_binary(tmp_path, "mdBook") == tmp_path / "mdbook"

    def test_falls_back_to_name(self, tmp_path):
        assert find_binary(tmp_path, "tool") == tmp_path / "tool"


@posix_only
class TestRepairPermissions:
    def test_makes_binary_executable(self, tmp_path):
        binary = tmp_path / "mdbook"
        binary.write_text("binary")
        binary.chmod(0o644)

        repair_permissions(tmp_path, "mdBook")

        assert binary.stat().st_mode & 0o777 == 0o755

    def test_executable_left_alone(self, tmp_path):
        binary = tmp_path / "tool"
        binary.write_text("binary")
        binary.chmod(0o700)

        repair_permissions(tmp_path, "tool")

        assert binary.stat().st_mode & 0o777 == 0o700

    def test_uses_explicit_bin(self, tmp_path):
        (tmp_path / "rg").write_text("binary")
        (tmp_path / "rg").chmod(0o644)

        repair_permissions(tmp_path, "ripgrep", "rg")

        assert os.access(tmp_path / "rg", os.X_OK)

    def test_chmod_failure(self, tmp_path):
        (tmp_path / "tool").write_text("binary")

        with patch("os.access", return_value=False), patch(
            "os.chmod", side_effect=PermissionError("read-only filesystem")
        ):
            with pytest.raises(PermissionRepairError, match="Failed to make"):
                repair_permissions(tmp_path, "tool")

    def test_missing_binary(self, tmp_path):
        with pytest.raises(PermissionRepairError):
            repair_permissions(Path(tmp_path), "tool")
