"""
Entry point for running the setup-crate CLI as a module.

Usage: python -m setupcrate [command] [options]
"""

from setupcrate.cli.parser import main

if __name__ == "__main__":
    main()
