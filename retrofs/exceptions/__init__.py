"""
RetroFS Exception Hierarchy

Architecture:
    KernelException
    └── ConfigValidationError
    FileSystemException
    ├── InvalidPathError
    ├── NotFoundError
    ├── AlreadyExistsError
    ├── PermissionDeniedError
    ├── DirectoryNotEmptyError
    ├── NotADirectoryError
    ├── IsADirectoryError
    ├── ParentNotFoundError
    ├── BackendError
    ├── MountException
    │   ├── MountNotSupportedError
    │   └── MountDeniedError
    └── PersistLoadCorruptError
"""

from .kernel_exceptions import (
    KernelException,
    ConfigValidationError,
)

from .fs_exceptions import (
    FileSystemException,
    InvalidPathError,
    NotFoundError,
    AlreadyExistsError,
    PermissionDeniedError,
    DirectoryNotEmptyError,
    NotADirectoryError,
    IsADirectoryError,
    ParentNotFoundError,
    BackendError,
)

from .mount_exceptions import (
    MountException,
    MountNotSupportedError,
    MountDeniedError,
)

from .storage_exceptions import (
    PersistLoadCorruptError,
)

__all__ = [
    # Kernel exceptions
    "KernelException",
    "ConfigValidationError",
    # Filesystem exceptions
    "FileSystemException",
    "InvalidPathError",
    "NotFoundError",
    "AlreadyExistsError",
    "PermissionDeniedError",
    "DirectoryNotEmptyError",
    "NotADirectoryError",
    "IsADirectoryError",
    "ParentNotFoundError",
    "BackendError",
    # Mount exceptions
    "MountException",
    "MountNotSupportedError",
    "MountDeniedError",
    # Storage exceptions
    "PersistLoadCorruptError",
]
