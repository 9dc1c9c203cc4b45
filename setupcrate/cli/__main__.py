"""
Entry point for running the setup-crate CLI as a module.

Usage: python -m setupcrate.cli [command] [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
