"""
setup-crate: install tools from their GitHub release binaries.

Usage:
    from setupcrate import ToolDescriptor, build_config, check_or_install

    config = build_config({"repo": "rust-lang/mdBook@^0.4"})
    tool = check_or_install(config.tool, config)
    print(tool.directory)
"""

from setupcrate.config.inputs import SetupConfig, build_config
from setupcrate.core.exceptions import SetupCrateError
from setupcrate.releases.models import InstalledTool, ToolDescriptor
from setupcrate.tools.installer import ToolInstaller, check_or_install

__all__ = [
    "SetupConfig",
    "build_config",
    "SetupCrateError",
    "InstalledTool",
    "ToolDescriptor",
    "ToolInstaller",
    "check_or_install",
]
