"""
setup-crate CLI commands.

Each module exposes run(args) -> int.
"""
