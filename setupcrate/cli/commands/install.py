"""
Install command implementation.

Resolves inputs, installs the tool (or reuses the cached copy) and exports
its directory to PATH.
"""

import logging

from setupcrate.cli.actions import add_path, set_output
from setupcrate.config.inputs import build_config
from setupcrate.tools.installer import ToolInstaller

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the install command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)

    Raises:
        SetupCrateError: On any input or installation failure
    """
    cli_inputs = {
        "repo": args.repo,
        "owner": args.owner,
        "name": args.name,
        "version": args.tool_version,
        "bin": args.bin,
        "github-token": args.github_token,
        "cache-dir": str(args.cache_dir) if args.cache_dir else None,
    }
    config = build_config(cli_inputs, config_file=args.config)
    logger.debug(f"Installing {config.tool.slug} (version: {config.tool.version_spec or '*'})")

    tool = ToolInstaller(config).check_or_install(config.tool)

    add_path(tool.directory)
    set_output("version", tool.version)
    set_output("dir", str(tool.directory))
    logger.info(f"Successfully setup {tool.name} v{tool.version}")
    return 0
