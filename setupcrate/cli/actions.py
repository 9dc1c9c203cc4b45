"""
GitHub Actions workflow command helpers.

Outside of Actions these degrade to plain stderr output and an in-process
PATH update.
"""

import os
import sys
from pathlib import Path
from typing import Mapping, MutableMapping, Optional, TextIO


def _escape_data(message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def set_failed(message: str, stream: Optional[TextIO] = None) -> None:
    """Report a failure as an ``::error::`` workflow command."""
    stream = stream or sys.stdout
    stream.write(f"::error::{_escape_data(message)}\n")
    stream.flush()


def add_path(
    directory: Path,
    environ: Optional[MutableMapping[str, str]] = None,
) -> None:
    """
    Prepend a directory to PATH for this process and later workflow steps.

    Later steps see it through the file named by ``$GITHUB_PATH``.
    """
    environ = os.environ if environ is None else environ

    github_path = environ.get("GITHUB_PATH")
    if github_path:
        with open(github_path, "a", encoding="utf-8") as f:
            f.write(f"{directory}\n")

    current = environ.get("PATH", "")
    environ["PATH"] = f"{directory}{os.pathsep}{current}" if current else str(directory)


def set_output(
    name: str,
    value: str,
    environ: Optional[Mapping[str, str]] = None,
) -> None:
    """Write a step output to the file named by ``$GITHUB_OUTPUT``, if set."""
    environ = os.environ if environ is None else environ
    github_output = environ.get("GITHUB_OUTPUT")
    if github_output:
        with open(github_output, "a", encoding="utf-8") as f:
            f.write(f"{name}={value}\n")


__all__ = [
    "set_failed",
    "add_path",
    "set_output",
]
