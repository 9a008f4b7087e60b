#!/usr/bin/env python3
"""
apt-pkg-cache - Main entry point

Usage:
    apt-pkg-cache normalized-list <pkg[=ver]>... [--replay-file=<LOG>]
    apt-pkg-cache validate <pkg[=ver]>... [--replay-file=<LOG>]
    apt-pkg-cache createkey <pkg[=ver]>... --cache-dir=<DIR> \
        --global-version=<VER> [--version=<VER>] [--os-arch=<ARCH>]
    apt-pkg-cache install <pkg[=ver]>... --cache-dir=<DIR> \
        --global-version=<VER> [--version=<VER>] [--os-arch=<ARCH>]
    apt-pkg-cache restore --cache-dir=<DIR> [--restore-root=<DIR>]
    apt-pkg-cache cache <pkg[=ver]>... --cache-dir=<DIR> \
        --global-version=<VER> [--version=<VER>] [--restore-root=<DIR>]
"""

import argparse
import sys
from typing import List, Optional

from .domain.errors import AptPkgCacheError
from .interfaces.cli import Config, configure_logging, initialize_handler, run_command


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--verbose', '-v', action='store_true',
                        help='Log every tool execution at DEBUG level')
    common.add_argument('--replay-file',
                        help='Replay tool executions recorded in a debug log instead of running them')

    packages = argparse.ArgumentParser(add_help=False)
    packages.add_argument('packages', nargs='+', help='Packages as name or name=version')

    cache = argparse.ArgumentParser(add_help=False)
    cache.add_argument('--cache-dir', required=True, help='Directory holding the cache files')
    cache.add_argument('--github-output',
                       help='File receiving GitHub Actions outputs (default: $GITHUB_OUTPUT)')

    key = argparse.ArgumentParser(add_help=False)
    key.add_argument('--version', default='', help='User cache version')
    key.add_argument('--global-version', required=True, help='Global cache version')
    key.add_argument('--os-arch', help='OS architecture (default: platform.machine())')

    restore_root = argparse.ArgumentParser(add_help=False)
    restore_root.add_argument('--restore-root', default='/',
                              help='Directory the cached files are restored under (default: /)')

    parser = argparse.ArgumentParser(
        prog='apt-pkg-cache',
        description='apt-pkg-cache - Cache APT package installations',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    commands = parser.add_subparsers(dest='command', required=True)

    commands.add_parser('normalized-list', parents=[common, packages],
                        help='Print the resolved, sorted package list')
    commands.add_parser('validate', parents=[common, packages],
                        help='Check every package resolves in the catalog')
    commands.add_parser('createkey', parents=[common, packages, cache, key],
                        help='Write the cache key for the packages')
    commands.add_parser('install', parents=[common, packages, cache, key],
                        help='Install the packages and cache their files')
    commands.add_parser('restore', parents=[common, cache, restore_root],
                        help='Restore cached files')
    commands.add_parser('cache', parents=[common, packages, cache, key, restore_root],
                        help='Restore on a cache hit, otherwise install and cache')
    return parser


def parse_config(argv: Optional[List[str]] = None) -> Config:
    args = build_parser().parse_args(argv)
    return Config(
        command=args.command,
        packages=getattr(args, 'packages', []),
        cache_dir=getattr(args, 'cache_dir', None),
        version=getattr(args, 'version', ''),
        global_version=getattr(args, 'global_version', ''),
        os_arch=getattr(args, 'os_arch', None),
        restore_root=getattr(args, 'restore_root', '/'),
        replay_file=args.replay_file,
        github_output=getattr(args, 'github_output', None),
        verbose=args.verbose
    )


def main(argv: Optional[List[str]] = None) -> int:
    config = parse_config(argv)
    configure_logging(config.verbose)

    try:
        handler = initialize_handler(config)
        output = run_command(config, handler)
    except AptPkgCacheError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if output is not None:
        print(output)
    return 0


if __name__ == '__main__':
    sys.exit(main())
