"""
Real Backend Module

The Hardware Uplink: serves the path-based contract from a granted
directory capability by walking handles one segment at a time.

Lookup failures keep the same error kinds the sandbox raises (a missing
parent is ``ParentNotFound`` for both). Anything else that goes wrong
underneath (revoked grant, stale handle, medium error) is reported as
``BackendError`` with the original exception attached. The backend never
falls back to the sandbox on its own.

Author: RetroOS Kernel Team
Version: 18.0.0
"""

import builtins
from typing import Iterable, List, Mapping, Sequence, Union

from .backend import StorageBackend
from .handles import DirectoryHandle, FileHandle, HandleKind, BINARY_MARKER_SUFFIX
from .path_resolver import PathResolver, ParsedPath
from .vnode import NodeKind, DirEntry, Content, listing_order
from retrofs.exceptions import (
    NotFoundError,
    AlreadyExistsError,
    PermissionDeniedError,
    DirectoryNotEmptyError,
    NotADirectoryError,
    IsADirectoryError,
    ParentNotFoundError,
    BackendError,
)
from retrofs.logger import get_logger


# Handle-level errors come from the standard library; the names above are
# the file-system contract's own error kinds.
HandleNotFound = builtins.FileNotFoundError
HandleNotADirectory = builtins.NotADirectoryError
HandleIsADirectory = builtins.IsADirectoryError
HandleFailure = (OSError, ValueError)


def encode_content(content: Content) -> bytes:
    if isinstance(content, str):
        return content.encode('utf-8')
    if isinstance(content, bytes):
        return content
    raise TypeError(f"File content must be str or bytes, not {type(content).__name__}")


def decode_content(data: bytes, binary: bool = False) -> Content:
    """
    Turn stored bytes back into file content.

    Files written as bytes carry a marker and come back as bytes. Anything
    else is text, unless it was placed on disk by another program and is
    not valid UTF-8.
    """
    if binary:
        return data
    try:
        return data.decode('utf-8')
    except UnicodeDecodeError:
        return data


class RealBackend(StorageBackend):
    """
    Storage backend over a borrowed directory capability.

    The backend does not own the handle; once the host revokes the grant
    every call fails with ``BackendError``.

    Example:
        >>> backend = RealBackend(await provider.acquire())
        >>> await backend.write('/users/notes.txt', 'hello', now=0.0, owner='admin')
    """

    name = 'real'

    def __init__(self, root: DirectoryHandle):
        self._root = root
        self._logger = get_logger('real_backend')

    @property
    def mount_point(self) -> str:
        return self._root.name

    # Traversal

    async def _walk(self, segments: Sequence[str]) -> DirectoryHandle:
        """Follow directory segments from the root; raises handle errors."""
        current = self._root
        for segment in segments:
            current = await current.get_directory_handle(segment)
        return current

    async def _open_parent(self, path: str, segments: Sequence[str]) -> DirectoryHandle:
        """Open the parent directory of a path that is about to be created."""
        parents = tuple(segments[:-1])
        parent_path = ParsedPath(parents).path
        current = self._root

        for index, segment in enumerate(parents):
            try:
                current = await current.get_directory_handle(segment)
            except HandleNotFound as e:
                raise ParentNotFoundError(path, parent=parent_path) from e
            except HandleNotADirectory as e:
                if index == len(parents) - 1:
                    raise NotADirectoryError(parent_path) from e
                raise ParentNotFoundError(path, parent=parent_path) from e

        return current

    async def _lookup(
        self,
        parent: DirectoryHandle,
        name: str
    ) -> Union[DirectoryHandle, FileHandle]:
        """Open a child of either kind; raises ``HandleNotFound`` if absent."""
        try:
            return await parent.get_file_handle(name)
        except HandleIsADirectory:
            return await parent.get_directory_handle(name)

    async def _subtree(self, path: str, directory: DirectoryHandle) -> List[str]:
        """Paths beneath a directory in depth-first post-order."""
        removed: List[str] = []
        async for name, handle in directory.entries():
            child_path = PathResolver.join(path, name)
            if handle.kind is HandleKind.DIRECTORY:
                removed.extend(await self._subtree(child_path, handle))
            removed.append(child_path)
        return removed

    # Binary markers

    async def _is_binary(self, directory: DirectoryHandle, name: str) -> bool:
        try:
            await directory.get_file_handle(name + BINARY_MARKER_SUFFIX)
        except HandleNotFound:
            return False
        return True

    async def _set_binary(self, directory: DirectoryHandle, name: str, binary: bool) -> None:
        """Create or drop the empty marker file that flags ``name`` as bytes."""
        marker = name + BINARY_MARKER_SUFFIX
        if binary:
            await directory.get_file_handle(marker, create=True)
            return
        try:
            await directory.remove_entry(marker)
        except HandleNotFound:
            pass

    # StorageBackend implementation

    async def read(self, path: str, now: float) -> Content:
        segments = PathResolver.segments(path)
        if not segments:
            raise NotFoundError(path)

        try:
            directory = await self._walk(segments[:-1])
            handle = await directory.get_file_handle(segments[-1])
            data = await handle.read_bytes()
            binary = await self._is_binary(directory, segments[-1])
        except (HandleNotFound, HandleNotADirectory, HandleIsADirectory) as e:
            raise NotFoundError(path) from e
        except HandleFailure as e:
            raise BackendError(path, cause=e, operation='read') from e

        return decode_content(data, binary=binary)

    async def write(self, path: str, content: Content, now: float, owner: str) -> None:
        segments = PathResolver.segments(path)
        if not segments:
            raise IsADirectoryError(path)

        data = encode_content(content)

        try:
            parent = await self._open_parent(path, segments)
            handle = await parent.get_file_handle(segments[-1], create=True)
            await handle.write_bytes(data)
            await self._set_binary(parent, segments[-1], isinstance(content, bytes))
        except HandleIsADirectory as e:
            raise IsADirectoryError(path) from e
        except HandleFailure as e:
            raise BackendError(path, cause=e, operation='write') from e

        self._logger.debug("Wrote file", context={'path': path, 'size': len(data)})

    async def remove(self, path: str, now: float, recursive: bool = False) -> List[str]:
        segments = PathResolver.segments(path)
        if not segments:
            raise PermissionDeniedError(path, operation="remove")

        try:
            parent = await self._walk(segments[:-1])
            handle = await self._lookup(parent, segments[-1])

            removed: List[str] = []
            if handle.kind is HandleKind.DIRECTORY:
                removed = await self._subtree(path, handle)
                if removed and not recursive:
                    raise DirectoryNotEmptyError(path)
            removed.append(path)

            await parent.remove_entry(segments[-1], recursive=recursive)
            if handle.kind is HandleKind.FILE:
                await self._set_binary(parent, segments[-1], False)
        except (HandleNotFound, HandleNotADirectory) as e:
            raise NotFoundError(path) from e
        except HandleFailure as e:
            raise BackendError(path, cause=e, operation='remove') from e

        self._logger.debug("Removed", context={'path': path, 'count': len(removed)})
        return removed

    async def list(self, path: str) -> List[DirEntry]:
        segments = PathResolver.segments(path)

        try:
            parent = await self._walk(segments[:-1])
            if segments:
                handle = await self._lookup(parent, segments[-1])
            else:
                handle = parent
            if handle.kind is not HandleKind.DIRECTORY:
                raise NotADirectoryError(path)

            entries = [
                DirEntry(name=name, kind=NodeKind(child.kind.value))
                async for name, child in handle.entries()
            ]
        except (HandleNotFound, HandleNotADirectory) as e:
            raise NotFoundError(path) from e
        except HandleFailure as e:
            raise BackendError(path, cause=e, operation='list') from e

        return sorted(entries, key=listing_order)

    async def mkdir(self, path: str, now: float, owner: str) -> None:
        segments = PathResolver.segments(path)
        if not segments:
            raise AlreadyExistsError(path)

        try:
            parent = await self._open_parent(path, segments)
            try:
                await self._lookup(parent, segments[-1])
            except HandleNotFound:
                await parent.get_directory_handle(segments[-1], create=True)
            else:
                raise AlreadyExistsError(path)
        except HandleFailure as e:
            raise BackendError(path, cause=e, operation='mkdir') from e

        self._logger.debug("Created directory", context={'path': path})

    async def exists(self, path: str) -> bool:
        segments = PathResolver.segments(path)
        if not segments:
            return True

        try:
            parent = await self._walk(segments[:-1])
            await self._lookup(parent, segments[-1])
        except (HandleNotFound, HandleNotADirectory):
            return False
        except HandleFailure as e:
            raise BackendError(path, cause=e, operation='exists') from e
        return True

    async def subtree(self, path: str) -> List[str]:
        segments = PathResolver.segments(path)

        try:
            parent = await self._walk(segments[:-1])
            handle = await self._lookup(parent, segments[-1]) if segments else parent
            paths: List[str] = []
            if handle.kind is HandleKind.DIRECTORY:
                paths = await self._subtree(path, handle)
        except (HandleNotFound, HandleNotADirectory) as e:
            raise NotFoundError(path) from e
        except HandleFailure as e:
            raise BackendError(path, cause=e, operation='remove') from e

        paths.append(path)
        return paths

    async def seed(self, directories: Iterable[str], files: Mapping[str, Content]) -> None:
        """
        Create top-level directories and files that are missing.

        Existing entries are left alone. Raises ``BackendError`` on any
        I/O failure.
        """
        try:
            for name in directories:
                await self._root.get_directory_handle(name, create=True)

            for path, content in files.items():
                if await self.exists(path):
                    continue
                segments = PathResolver.segments(path)
                directory = self._root
                for segment in segments[:-1]:
                    directory = await directory.get_directory_handle(segment, create=True)
                handle = await directory.get_file_handle(segments[-1], create=True)
                await handle.write_bytes(encode_content(content))
        except HandleFailure as e:
            raise BackendError('/', cause=e, operation='seed') from e
