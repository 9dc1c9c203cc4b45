"""
setup-crate CLI module.

This module provides the command-line interface for setup-crate.
"""

from .parser import CLI, main

__all__ = ["CLI", "main"]
