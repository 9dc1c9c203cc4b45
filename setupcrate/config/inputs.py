"""Input resolution for setup-crate.

Inputs come from three places, highest precedence first:

1. Command-line flags
2. GitHub Actions environment (``INPUT_REPO``, ``INPUT_GITHUB-TOKEN``, ...)
3. An optional YAML file

They are validated once and frozen into a :class:`SetupConfig` that is passed
explicitly to the installer; nothing downstream reads the environment.
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from setupcrate.core.directory import get_default_tool_cache_dir
from setupcrate.core.exceptions import (
    ConflictingInputError,
    InvalidInputError,
    MissingInputError,
)
from setupcrate.releases.client import DEFAULT_API_URL, DEFAULT_PER_PAGE
from setupcrate.releases.models import ToolDescriptor

logger = logging.getLogger(__name__)

INPUT_KEYS = ("repo", "owner", "name", "version", "bin", "github-token", "cache-dir")


@dataclass(frozen=True)
class SetupConfig:
    """Complete configuration for one installation."""

    tool: ToolDescriptor
    cache_dir: Path
    temp_dir: Path
    github_token: Optional[str] = None
    api_url: str = DEFAULT_API_URL
    per_page: int = DEFAULT_PER_PAGE
    request_timeout: int = 30
    lock_timeout: float = 300


def load_config_file(config_file: Path) -> Dict[str, Any]:
    """
    Load inputs from a YAML file.

    Args:
        config_file: Path to YAML file

    Returns:
        Mapping of input names to values

    Raises:
        InvalidInputError: If the file is missing, malformed, or not a mapping
    """
    if not config_file.exists():
        raise InvalidInputError(f"Configuration file not found: {config_file}")

    logger.debug(f"Loading configuration from {config_file}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            # BaseLoader keeps scalars as written, so "version: 0.10" stays "0.10".
            data = yaml.load(f, Loader=yaml.BaseLoader)
    except yaml.YAMLError as e:
        raise InvalidInputError(f"Invalid YAML in {config_file}: {e}") from e

    data = data or {}
    if not isinstance(data, dict):
        raise InvalidInputError(f"Configuration in {config_file} must be a mapping")

    unknown = sorted(set(data) - set(INPUT_KEYS))
    if unknown:
        logger.warning(f"Ignoring unknown configuration keys: {', '.join(unknown)}")

    inputs = {}
    for key, value in data.items():
        if key not in INPUT_KEYS:
            continue
        if not isinstance(value, str):
            raise InvalidInputError(f"Input '{key}' in {config_file} must be a scalar value")
        inputs[key] = value
    return inputs


def inputs_from_env(environ: Mapping[str, str]) -> Dict[str, str]:
    """
    Read GitHub Actions style inputs from an environment mapping.

    Actions exposes input ``foo-bar`` as ``INPUT_FOO-BAR``.
    """
    inputs = {}
    for key in INPUT_KEYS:
        value = environ.get(f"INPUT_{key.upper()}", "").strip()
        if value:
            inputs[key] = value
    if "github-token" not in inputs and environ.get("GITHUB_TOKEN"):
        inputs["github-token"] = environ["GITHUB_TOKEN"]
    return inputs


def merge_inputs(*sources: Mapping[str, Optional[str]]) -> Dict[str, str]:
    """Merge input sources; for each key the first non-empty value wins."""
    merged: Dict[str, str] = {}
    for source in sources:
        for key, value in source.items():
            if key not in merged and value not in (None, ""):
                merged[key] = str(value).strip()
    return merged


def parse_repo_spec(repo_spec: str) -> Tuple[str, str, Optional[str]]:
    """
    Split ``owner/name[@version]``.

    Example:
        >>> parse_repo_spec("rust-lang/mdBook@^0.4")
        ('rust-lang', 'mdBook', '^0.4')

    Raises:
        InvalidInputError: If the value is not of that form
    """
    repo, _, version = repo_spec.partition("@")
    owner, _, name = repo.partition("/")
    if not owner or not name or "/" in name:
        raise InvalidInputError(
            f"Invalid repo '{repo_spec}', expected 'owner/name[@version]'"
        )
    return owner.strip(), name.strip(), version.strip() or None


def resolve_tool(inputs: Mapping[str, str]) -> ToolDescriptor:
    """
    Build the tool descriptor from merged inputs.

    Raises:
        ConflictingInputError: If 'repo' is combined with 'owner'/'name', or
            both 'repo' and 'version' carry a version
        MissingInputError: If neither 'repo' nor both 'owner' and 'name' are given
        InvalidInputError: If 'repo' is malformed
    """
    repo_spec = inputs.get("repo")
    owner = inputs.get("owner")
    name = inputs.get("name")
    version_spec = inputs.get("version")

    if repo_spec:
        if owner or name:
            raise ConflictingInputError(
                "When 'repo' is supplied, 'owner' and 'name' must not be provided"
            )
        owner, name, repo_version = parse_repo_spec(repo_spec)
        if repo_version and version_spec:
            raise ConflictingInputError(
                "Both 'version' and 'repo' have a version specified, only one is allowed"
            )
        version_spec = repo_version or version_spec
    elif not owner or not name:
        raise MissingInputError(
            "Both 'owner' and 'name' must be supplied when 'repo' is not provided"
        )

    return ToolDescriptor(
        owner=owner,
        name=name,
        version_spec=version_spec or None,
        bin=inputs.get("bin") or None,
    )


def build_config(
    cli_inputs: Optional[Mapping[str, Optional[str]]] = None,
    environ: Optional[Mapping[str, str]] = None,
    config_file: Optional[Path] = None,
) -> SetupConfig:
    """
    Resolve and validate all inputs into a SetupConfig.

    Args:
        cli_inputs: Values from command-line flags (keys as in INPUT_KEYS)
        environ: Environment mapping (default: os.environ)
        config_file: Optional YAML file with lowest precedence

    Returns:
        Frozen configuration

    Raises:
        InputError: If inputs conflict, are missing, or are malformed
    """
    environ = os.environ if environ is None else environ
    file_inputs = load_config_file(config_file) if config_file else {}

    inputs = merge_inputs(cli_inputs or {}, inputs_from_env(environ), file_inputs)
    tool = resolve_tool(inputs)

    cache_dir = (
        inputs.get("cache-dir")
        or environ.get("RUNNER_TOOL_CACHE")
        or environ.get("SETUP_CRATE_CACHE_DIR")
    )
    temp_dir = environ.get("RUNNER_TEMP") or tempfile.gettempdir()

    return SetupConfig(
        tool=tool,
        cache_dir=Path(cache_dir) if cache_dir else get_default_tool_cache_dir(),
        temp_dir=Path(temp_dir),
        github_token=inputs.get("github-token") or None,
        api_url=environ.get("GITHUB_API_URL") or DEFAULT_API_URL,
    )


__all__ = [
    "INPUT_KEYS",
    "SetupConfig",
    "load_config_file",
    "inputs_from_env",
    "merge_inputs",
    "parse_repo_spec",
    "resolve_tool",
    "build_config",
]
