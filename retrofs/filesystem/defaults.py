"""
Default File System Layout

The tree, files and permission rules a fresh sandbox starts with, and
the content written to a newly mounted Hardware Uplink.

Author: RetroOS Kernel Team
Version: 18.0.0
"""

import json
from typing import List

from .vnode import Content


DEFAULT_DIRECTORIES: List[str] = [
    '/system',
    '/system/kernel',
    '/system/drivers',
    '/system/registry',
    '/users',
    '/users/admin',
    '/users/admin/documents',
    '/users/admin/downloads',
    '/users/admin/pictures',
    '/users/guest',
    '/users/guest/documents',
    '/users/guest/temp',
    '/applications',
    '/temp',
]

README_TEXT = """RETROOS v18.0 - KERNEL FILE SYSTEM

Path-addressed storage for the RetroOS desktop.

FEATURES:
- In-memory sandbox with persistent state
- Hardware Uplink to a real directory
- Per-path permissions with inheritance
- Operation log of the last 1000 operations

COMMANDS:
- ls [path]: List a directory
- cat <file>: Show a file
- mkdir <path>: Create a directory
- rm <path>: Remove a file or empty directory
"""

BOOT_INI = """[boot loader]
timeout=30
default=multi(0)disk(0)rdisk(0)partition(1)\\RETROOS

[operating systems]
RetroOS v18.0="RetroOS v18.0 Professional" /fastdetect
"""

CONFIG_SYS = """[System]
Version=18.0.0
Build=1800
Kernel=RetroOS Kernel
GUI=Window Manager v2.0

[Security]
AccessLevel=User
"""

ADMIN_CONFIG_INI = """[UserProfile]
Name=admin
Home=/users/admin/
Theme=Phosphor

[Preferences]
Terminal=bash
Editor=vim
"""

DEFAULT_FILES: dict[str, Content] = {
    '/readme.txt': README_TEXT,
    '/boot.ini': BOOT_INI,
    '/system/config.sys': CONFIG_SYS,
    '/users/admin/config.ini': ADMIN_CONFIG_INI,
}

# path -> (read, write, execute)
DEFAULT_PERMISSION_RULES: dict[str, tuple] = {
    '/': (True, False, True),
    '/system': (True, False, False),
    '/users': (True, True, True),
    '/users/admin': (True, True, True),
    '/users/guest': (True, False, True),
    '/applications': (True, False, True),
    '/temp': (True, True, True),
}

KERNEL_STATE_PATH = '/system/kernel_state.json'


def kernel_state_document(version: str, build: int, mount_time: float) -> str:
    """JSON body of the state file seeded onto a freshly mounted directory."""
    return json.dumps({
        'version': version,
        'build': build,
        'mountTime': mount_time,
    }, indent=2)
