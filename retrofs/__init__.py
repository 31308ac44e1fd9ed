"""
RetroFS - Kernel File System for RetroOS

One path-addressed storage contract over an in-memory sandbox and a
real directory reached through a granted capability handle.
"""

__version__ = "18.0.0"
__author__ = "RetroOS Kernel Team"

from .filesystem.kernel_fs import KernelFS, MountState, MountResult, FileChangeEvent
from .notifications import Severity, LoggingSink
from .storage import MemoryKeyValueStore, FileKeyValueStore

__all__ = [
    'KernelFS',
    'MountState',
    'MountResult',
    'FileChangeEvent',
    'Severity',
    'LoggingSink',
    'MemoryKeyValueStore',
    'FileKeyValueStore',
]
