"""
setup-crate CLI argument parser.

This module implements the command-line interface for setup-crate using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from setupcrate.cli.actions import set_failed
from setupcrate.core.exceptions import SetupCrateError

try:
    from importlib.metadata import version

    __version__ = version("setup-crate")
except Exception:
    __version__ = "0.1.0"

logger = logging.getLogger(__name__)


class CLI:
    """setup-crate command-line interface."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="setup-crate",
            description="Install a tool from its GitHub release binaries",
            epilog='Use "setup-crate COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        parser.add_argument(
            "--version", action="version", version=f"setup-crate {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )

        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_install_command(subparsers)
        self._add_targets_command(subparsers)

        return parser

    def _add_install_command(self, subparsers):
        """Add 'install' subcommand."""
        parser = subparsers.add_parser(
            "install",
            help="Install a tool and add it to PATH",
            description=(
                "Install a tool from GitHub releases. Inputs not given as flags "
                "are read from INPUT_* environment variables, then --config."
            ),
        )
        parser.add_argument(
            "--repo",
            metavar="OWNER/NAME[@VERSION]",
            help="Repository, optionally with a version range (e.g., rust-lang/mdBook@^0.4)",
        )
        parser.add_argument("--owner", help="Repository owner")
        parser.add_argument("--name", help="Repository name")
        parser.add_argument(
            "--tool-version",
            dest="tool_version",
            metavar="RANGE",
            help="Version range (e.g., 0.10, ^1.2, ~0.4.1, >=1.0.0 <2.0.0)",
        )
        parser.add_argument("--bin", help="Binary name (default: repository name)")
        parser.add_argument(
            "--github-token",
            metavar="TOKEN",
            help="GitHub token for the releases API (default: $GITHUB_TOKEN)",
        )
        parser.add_argument(
            "--cache-dir",
            type=Path,
            metavar="PATH",
            help="Tool cache root (default: $RUNNER_TOOL_CACHE or ~/.setup-crate/tools)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="YAML file with inputs (lowest precedence)",
        )

    def _add_targets_command(self, subparsers):
        """Add 'targets' subcommand."""
        parser = subparsers.add_parser(
            "targets",
            help="Show release targets for a platform",
            description="Print release target triples, most preferred first",
        )
        parser.add_argument(
            "--os",
            dest="os_name",
            choices=["linux", "macos", "windows"],
            help="Operating system (default: current)",
        )
        parser.add_argument(
            "--arch",
            choices=["x64", "arm64"],
            help="CPU architecture (default: current)",
        )

    def parse_args(self, args: Optional[List[str]] = None):
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        parsed_args = self.parse_args(args)

        self._configure_logging(parsed_args)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130
        except SetupCrateError as e:
            logger.debug(f"{type(e).__name__}: {e}", exc_info=parsed_args.verbose)
            set_failed(str(e))
            return 1
        except Exception as e:
            logger.debug(f"Unexpected {type(e).__name__}", exc_info=True)
            set_failed(str(e))
            return 1

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            force=True,
        )

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Returns:
            Exit code from command handler
        """
        command_map = {
            "install": "setupcrate.cli.commands.install",
            "targets": "setupcrate.cli.commands.targets",
        }

        module_name = command_map.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        module = importlib.import_module(module_name)
        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
