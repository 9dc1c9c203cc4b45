"""
Configuration inputs for setup-crate.
"""

from .inputs import (
    INPUT_KEYS,
    SetupConfig,
    load_config_file,
    inputs_from_env,
    merge_inputs,
    parse_repo_spec,
    resolve_tool,
    build_config,
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
