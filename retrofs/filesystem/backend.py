"""
Storage Backend Interface

The narrow contract shared by the sandbox and the Hardware Uplink. The
facade holds one "current backend" reference chosen by its mount state and
never branches on which implementation it is talking to.

Author: RetroOS Kernel Team
Version: 18.0.0
"""

from abc import ABC, abstractmethod
from typing import List

from .vnode import Content, DirEntry


class StorageBackend(ABC):
    """
    Abstract backend for path-based file-system I/O.

    Implementations:
    - MemoryBackend: in-process VNode store (the sandbox)
    - RealBackend: a granted directory capability (the uplink)

    All paths are canonical (see PathResolver). ``now`` and ``owner`` are
    supplied by the facade; backends that keep their own metadata may
    ignore them. Backends do not check permissions and do not log
    operations.
    """

    name: str = 'backend'

    @abstractmethod
    async def read(self, path: str, now: float) -> Content:
        """
        Read a file's content.

        Raises:
            NotFoundError: If nothing exists at path or it is a directory
        """

    @abstractmethod
    async def write(self, path: str, content: Content, now: float, owner: str) -> None:
        """
        Create or overwrite a file.

        Raises:
            ParentNotFoundError: If the parent directory is missing
            NotADirectoryError: If the parent is a file
            IsADirectoryError: If path is a directory
        """

    @abstractmethod
    async def remove(self, path: str, now: float, recursive: bool = False) -> List[str]:
        """
        Remove a file or directory.

        Returns:
            Every removed path, descendants first, ``path`` last

        Raises:
            NotFoundError: If nothing exists at path
            DirectoryNotEmptyError: If a non-empty directory is removed
                without ``recursive``
        """

    @abstractmethod
    async def list(self, path: str) -> List[DirEntry]:
        """
        List a directory, directories first then by name.

        Raises:
            NotFoundError: If nothing exists at path
            NotADirectoryError: If path is a file
        """

    @abstractmethod
    async def mkdir(self, path: str, now: float, owner: str) -> None:
        """
        Create an empty directory.

        Raises:
            AlreadyExistsError: If anything exists at path
            ParentNotFoundError: If the parent directory is missing
            NotADirectoryError: If the parent is a file
        """

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check whether anything exists at path."""

    @abstractmethod
    async def subtree(self, path: str) -> List[str]:
        """
        Every path a recursive removal of ``path`` would delete.

        Returns:
            Descendants in depth-first post-order, ``path`` last

        Raises:
            NotFoundError: If nothing exists at path
        """
