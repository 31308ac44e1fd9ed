"""
RetroFS Kernel File System Module

Path-addressed storage over two substrates:
- In-memory sandbox tree
- Real directory through a capability handle (Hardware Uplink)
- Per-path permissions with inheritance
- Bounded operation log
"""

from .path_resolver import PathResolver, ParsedPath, ROOT
from .vnode import VNode, NodeKind, DirEntry, Content
from .backend import StorageBackend
from .memory_backend import MemoryBackend
from .handles import (
    HandleKind,
    FileHandle,
    DirectoryHandle,
    LocalFileHandle,
    LocalDirectoryHandle,
)
from .capability import CapabilityProvider, LocalDirectoryProvider, UnavailableProvider
from .real_backend import RealBackend
from .permissions import PermissionTable, PermissionEntry, PermissionOp
from .operation_log import OperationLog, OperationLogEntry, OperationStatus
from .kernel_fs import KernelFS, MountState, MountResult, FileChangeEvent

__all__ = [
    # Paths
    'PathResolver',
    'ParsedPath',
    'ROOT',
    # Nodes
    'VNode',
    'NodeKind',
    'DirEntry',
    'Content',
    # Backends
    'StorageBackend',
    'MemoryBackend',
    'RealBackend',
    # Capability handles
    'HandleKind',
    'FileHandle',
    'DirectoryHandle',
    'LocalFileHandle',
    'LocalDirectoryHandle',
    'CapabilityProvider',
    'LocalDirectoryProvider',
    'UnavailableProvider',
    # Permissions
    'PermissionTable',
    'PermissionEntry',
    'PermissionOp',
    # Operation log
    'OperationLog',
    'OperationLogEntry',
    'OperationStatus',
    # Facade
    'KernelFS',
    'MountState',
    'MountResult',
    'FileChangeEvent',
]
