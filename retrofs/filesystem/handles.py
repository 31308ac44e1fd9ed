"""
Capability Handles Module

Scoped directory and file handles modelled on a browser's File System
Access API: a handle only reaches its own entry and the names beneath it,
and the grant behind it can be withdrawn by the host at any time.

The local implementation maps handles onto a real directory through
pathlib. Blocking disk calls run in a worker thread so a suspended
operation never stalls the event loop.

Errors follow the standard library: ``FileNotFoundError`` for missing
entries, ``NotADirectoryError`` / ``IsADirectoryError`` for kind
mismatches, ``PermissionError`` once the grant is revoked, and other
``OSError`` subclasses for medium failures.

Author: RetroOS Kernel Team
Version: 18.0.0
"""

import asyncio
import errno
import os
import shutil
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import AsyncIterator, Tuple, Union


# Bookkeeping files kept beside real entries; never listed as children.
SWAP_SUFFIX = '.crswap'
BINARY_MARKER_SUFFIX = '.crbin'
HIDDEN_SUFFIXES = (SWAP_SUFFIX, BINARY_MARKER_SUFFIX)


class HandleKind(Enum):
    """Kinds of capability handles."""
    FILE = 'file'
    DIRECTORY = 'directory'


def check_entry_name(name: str) -> str:
    """
    Validate a single entry name.

    Raises:
        ValueError: If the name could escape its directory
    """
    if not name or name in ('.', '..') or '/' in name or '\\' in name or '\x00' in name:
        raise ValueError(f"Invalid entry name: {name!r}")
    return name


class FileHandle(ABC):
    """Handle to a single file."""

    kind = HandleKind.FILE

    @property
    @abstractmethod
    def name(self) -> str:
        """Entry name of the file."""

    @abstractmethod
    async def read_bytes(self) -> bytes:
        """Read the whole file."""

    @abstractmethod
    async def write_bytes(self, data: bytes) -> None:
        """Replace the whole file."""


class DirectoryHandle(ABC):
    """Handle to a directory and everything beneath it."""

    kind = HandleKind.DIRECTORY

    @property
    @abstractmethod
    def name(self) -> str:
        """Entry name of the directory."""

    @abstractmethod
    async def get_directory_handle(self, name: str, create: bool = False) -> 'DirectoryHandle':
        """Open (or create) a child directory."""

    @abstractmethod
    async def get_file_handle(self, name: str, create: bool = False) -> FileHandle:
        """Open (or create empty) a child file."""

    @abstractmethod
    async def remove_entry(self, name: str, recursive: bool = False) -> None:
        """Remove a child entry."""

    @abstractmethod
    def entries(self) -> AsyncIterator[Tuple[str, Union['DirectoryHandle', FileHandle]]]:
        """Iterate over ``(name, handle)`` pairs of the children."""


class Grant:
    """
    Shared permission state for every handle derived from one grant.

    Revoking it invalidates the root handle and all descendants at once.
    """

    def __init__(self, root: Path):
        self.root = root
        self.revoked = False

    def revoke(self) -> None:
        self.revoked = True

    def ensure_active(self) -> None:
        if self.revoked:
            raise PermissionError(errno.EACCES, "Directory access was revoked", str(self.root))


class LocalFileHandle(FileHandle):
    """File handle backed by a file on the local disk."""

    def __init__(self, path: Path, grant: Grant):
        self._path = path
        self._grant = grant

    @property
    def name(self) -> str:
        return self._path.name

    @property
    def path(self) -> Path:
        return self._path

    async def read_bytes(self) -> bytes:
        self._grant.ensure_active()
        return await asyncio.to_thread(self._read)

    def _read(self) -> bytes:
        if self._path.is_dir():
            raise IsADirectoryError(errno.EISDIR, "Is a directory", str(self._path))
        return self._path.read_bytes()

    async def write_bytes(self, data: bytes) -> None:
        self._grant.ensure_active()
        await asyncio.to_thread(self._write, data)

    def _write(self, data: bytes) -> None:
        # Written to a swap file first so readers never see a partial file
        swap = self._path.with_name(self._path.name + SWAP_SUFFIX)
        try:
            swap.write_bytes(data)
            os.replace(swap, self._path)
        finally:
            if swap.exists():
                swap.unlink()


class LocalDirectoryHandle(DirectoryHandle):
    """
    Directory handle backed by a directory on the local disk.

    Example:
        >>> root = LocalDirectoryHandle.grant(Path('/tmp/uplink'))
        >>> docs = await root.get_directory_handle('docs', create=True)
        >>> note = await docs.get_file_handle('a.txt', create=True)
        >>> await note.write_bytes(b'hello')
    """

    def __init__(self, path: Path, grant: Grant):
        self._path = path
        self._grant = grant

    @classmethod
    def grant(cls, root: Path) -> 'LocalDirectoryHandle':
        """Issue a fresh grant rooted at an existing directory."""
        root = Path(root).expanduser().resolve()
        if not root.is_dir():
            raise NotADirectoryError(errno.ENOTDIR, "Not a directory", str(root))
        return cls(root, Grant(root))

    @property
    def name(self) -> str:
        return self._path.name

    @property
    def path(self) -> Path:
        return self._path

    def revoke(self) -> None:
        """Withdraw the grant this handle was derived from."""
        self._grant.revoke()

    def _child(self, name: str) -> Path:
        return self._path / check_entry_name(name)

    async def get_directory_handle(self, name: str, create: bool = False) -> 'LocalDirectoryHandle':
        self._grant.ensure_active()
        target = self._child(name)
        await asyncio.to_thread(self._open_directory, target, create)
        return LocalDirectoryHandle(target, self._grant)

    @staticmethod
    def _open_directory(target: Path, create: bool) -> None:
        if target.exists():
            if not target.is_dir():
                raise NotADirectoryError(errno.ENOTDIR, "Not a directory", str(target))
            return
        if not create:
            raise FileNotFoundError(errno.ENOENT, "No such directory", str(target))
        target.mkdir()

    async def get_file_handle(self, name: str, create: bool = False) -> LocalFileHandle:
        self._grant.ensure_active()
        target = self._child(name)
        await asyncio.to_thread(self._open_file, target, create)
        return LocalFileHandle(target, self._grant)

    @staticmethod
    def _open_file(target: Path, create: bool) -> None:
        if target.exists():
            if target.is_dir():
                raise IsADirectoryError(errno.EISDIR, "Is a directory", str(target))
            return
        if not create:
            raise FileNotFoundError(errno.ENOENT, "No such file", str(target))
        target.touch()

    async def remove_entry(self, name: str, recursive: bool = False) -> None:
        self._grant.ensure_active()
        target = self._child(name)
        await asyncio.to_thread(self._remove, target, recursive)

    @staticmethod
    def _remove(target: Path, recursive: bool) -> None:
        if not target.exists():
            raise FileNotFoundError(errno.ENOENT, "No such entry", str(target))
        if target.is_dir():
            if recursive:
                shutil.rmtree(target)
            else:
                target.rmdir()
        else:
            target.unlink()

    async def entries(self) -> AsyncIterator[Tuple[str, Union['LocalDirectoryHandle', LocalFileHandle]]]:
        self._grant.ensure_active()
        children = await asyncio.to_thread(self._scan)
        for name, is_dir in children:
            if is_dir:
                yield name, LocalDirectoryHandle(self._path / name, self._grant)
            else:
                yield name, LocalFileHandle(self._path / name, self._grant)

    def _scan(self) -> list:
        if not self._path.is_dir():
            raise FileNotFoundError(errno.ENOENT, "No such directory", str(self._path))
        with os.scandir(self._path) as it:
            return sorted(
                (entry.name, entry.is_dir())
                for entry in it
                if not entry.name.endswith(HIDDEN_SUFFIXES)
            )
