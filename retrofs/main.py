#!/usr/bin/env python3
"""
RetroFS - Kernel File System for RetroOS

Headless host for the kernel file system.

Boot sequence:
1. Load configuration
2. Initialize logging
3. Restore persisted state
4. Optionally mount the Hardware Uplink
5. Show the root listing and recent operations
6. Save state and shut down

Usage: retrofs [--config FILE] [--mount DIR]

Author: RetroOS Kernel Team
Version: 18.0.0
"""

import argparse
import asyncio
import sys
from typing import Optional, List

from retrofs.core.config_loader import ConfigLoader, Config
from retrofs.exceptions import ConfigValidationError, FileSystemException
from retrofs.filesystem.capability import LocalDirectoryProvider
from retrofs.filesystem.kernel_fs import KernelFS
from retrofs.filesystem.utils import format_bytes
from retrofs.logger import Logger, LogLevel
from retrofs.storage import FileKeyValueStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='retrofs',
        description='RetroOS kernel file system host',
    )
    parser.add_argument('--config', metavar='FILE', help='JSON configuration file')
    parser.add_argument('--mount', metavar='DIR', help='directory to attach as the Hardware Uplink')
    return parser


async def run_session(fs: KernelFS, mount: bool) -> None:
    """Mount if requested, then print the root listing and recent log."""
    if mount:
        result = await fs.mount()
        if result.success:
            print(f"Mounted: {result.mount_point}")
        else:
            print(f"Mount failed ({result.error}); using sandbox")

    print(f"\nListing of / [{fs.get_mount_state().value}]")
    for entry in await fs.list('/'):
        suffix = '/' if entry.is_directory else ''
        print(f"  {entry.name}{suffix}")

    stats = fs.get_statistics()
    print(
        f"\nSandbox: {stats['total_files']} files, "
        f"{stats['total_directories']} directories, {format_bytes(stats['total_size'])}"
    )

    print("\nRecent operations:")
    for item in fs.get_log(10):
        line = f"  {item.operation:<6} {item.path} {item.status.value}"
        if item.details:
            line += f" ({item.details})"
        print(line)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the RetroFS host.

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)

    loader = ConfigLoader()
    try:
        config: Config = loader.load(args.config) if args.config else loader.config
    except ConfigValidationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    Logger.initialize(
        level=LogLevel.from_name(config.logging.level),
        log_file=config.logging.log_file,
        use_colors=True,
        console_output=config.logging.console_output,
    )

    provider = None
    if args.mount:
        provider = LocalDirectoryProvider(args.mount, create=True)

    fs = KernelFS(
        config=config,
        provider=provider,
        store=FileKeyValueStore(config.storage.state_dir),
    )
    fs.initialize()
    fs.start()

    try:
        asyncio.run(run_session(fs, mount=bool(args.mount or config.uplink.root_path)))
    except FileSystemException as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\n\nInterrupted")
    finally:
        fs.stop()
        fs.cleanup()

    return 0


if __name__ == '__main__':
    sys.exit(main())
