"""
Targets command implementation.

Prints the release target triples for a platform, most preferred first.
"""

from setupcrate.core.platform import detect_platform, resolve_targets


def run(args) -> int:
    info = detect_platform()
    for target in resolve_targets(args.arch or info.arch, args.os_name or info.os):
        print(target)
    return 0
