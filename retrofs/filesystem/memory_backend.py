"""
Memory Backend Module

The sandbox: an in-process tree of VNodes kept in a flat map keyed by
canonical path. Parents list their children by name, and children are
reached by joining names onto the parent path, so nodes never hold
references to each other.

None of the mutating methods suspend between updating a parent and
inserting or deleting a child, so other coroutines can never observe a
half-applied change.

Author: RetroOS Kernel Team
Version: 18.0.0
"""

from typing import Any, Iterable, List, Mapping, Tuple

from .backend import StorageBackend
from .path_resolver import PathResolver, ROOT
from .vnode import VNode, DirEntry, Content, listing_order
from retrofs.exceptions import (
    NotFoundError,
    AlreadyExistsError,
    PermissionDeniedError,
    DirectoryNotEmptyError,
    NotADirectoryError,
    IsADirectoryError,
    ParentNotFoundError,
    FileSystemException,
    PersistLoadCorruptError,
)
from retrofs.logger import get_logger


class MemoryBackend(StorageBackend):
    """
    In-memory storage backend.

    Example:
        >>> backend = MemoryBackend()
        >>> await backend.mkdir('/docs', now=1.0, owner='admin')
        >>> await backend.write('/docs/a.txt', 'hi', now=2.0, owner='admin')
        >>> await backend.read('/docs/a.txt', now=3.0)
        'hi'
    """

    name = 'memory'

    def __init__(self, now: float = 0.0, owner: str = 'admin'):
        self._logger = get_logger('memory_backend')
        self._nodes: dict[str, VNode] = {}
        self.reset(now, owner)

    def reset(self, now: float = 0.0, owner: str = 'admin') -> None:
        """Drop every node except a fresh root directory."""
        self._nodes = {ROOT: VNode.new_directory(ROOT, now, owner)}

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, path: str) -> bool:
        return path in self._nodes

    # Internal helpers

    def _parent_dir(self, path: str) -> VNode:
        """Return the parent directory node, or raise the matching error."""
        parent_path = PathResolver.dirname(path)
        parent = self._nodes.get(parent_path)

        if parent is None:
            raise ParentNotFoundError(path, parent=parent_path)
        if not parent.is_directory:
            raise NotADirectoryError(parent_path)

        return parent

    def _collect_subtree(self, path: str) -> List[str]:
        """Paths under ``path`` in depth-first post-order, ``path`` last."""
        order: List[str] = []
        stack: List[Tuple[str, bool]] = [(path, False)]

        while stack:
            current, expanded = stack.pop()
            node = self._nodes[current]
            if expanded or not node.is_directory:
                order.append(current)
                continue
            stack.append((current, True))
            for name in reversed(node.children):
                stack.append((PathResolver.join(current, name), False))

        return order

    def _insert(self, node: VNode, parent: VNode, now: float) -> None:
        self._nodes[node.path] = node
        parent.add_child(node.name, now)

    # StorageBackend implementation

    async def read(self, path: str, now: float) -> Content:
        return self.read_sync(path, now)

    def read_sync(self, path: str, now: float) -> Content:
        node = self._nodes.get(path)

        if node is None or not node.is_file:
            raise NotFoundError(path)

        node.touch(now)
        return node.content if node.content is not None else ''

    async def write(self, path: str, content: Content, now: float, owner: str) -> None:
        self.write_sync(path, content, now, owner)

    def write_sync(self, path: str, content: Content, now: float, owner: str) -> None:
        existing = self._nodes.get(path)

        if existing is not None:
            if existing.is_directory:
                raise IsADirectoryError(path)
            existing.set_content(content, now)
            self._logger.debug("Overwrote file", context={'path': path, 'size': existing.size})
            return

        parent = self._parent_dir(path)
        node = VNode.new_file(path, content, now, owner)
        self._insert(node, parent, now)

        self._logger.debug("Created file", context={'path': path, 'size': node.size})

    async def remove(self, path: str, now: float, recursive: bool = False) -> List[str]:
        if path == ROOT:
            raise PermissionDeniedError(ROOT, operation="remove")

        node = self._nodes.get(path)
        if node is None:
            raise NotFoundError(path)

        if node.is_directory and node.children and not recursive:
            raise DirectoryNotEmptyError(path)

        removed = self._collect_subtree(path)
        for victim in removed:
            del self._nodes[victim]

        parent = self._nodes.get(PathResolver.dirname(path))
        if parent is not None:
            parent.remove_child(node.name, now)

        self._logger.debug("Removed", context={'path': path, 'count': len(removed)})
        return removed

    async def list(self, path: str) -> List[DirEntry]:
        node = self._nodes.get(path)

        if node is None:
            raise NotFoundError(path)
        if not node.is_directory:
            raise NotADirectoryError(path)

        entries = []
        for name in node.children:
            child = self._nodes.get(PathResolver.join(path, name))
            if child is None:
                continue
            entries.append(DirEntry(name=name, kind=child.kind, size=child.size))

        return sorted(entries, key=listing_order)

    async def mkdir(self, path: str, now: float, owner: str) -> None:
        self.mkdir_sync(path, now, owner)

    def mkdir_sync(self, path: str, now: float, owner: str) -> None:
        if path in self._nodes:
            raise AlreadyExistsError(path)

        parent = self._parent_dir(path)
        self._insert(VNode.new_directory(path, now, owner), parent, now)

        self._logger.debug("Created directory", context={'path': path})

    async def exists(self, path: str) -> bool:
        return path in self._nodes

    async def subtree(self, path: str) -> List[str]:
        if path not in self._nodes:
            raise NotFoundError(path)
        return self._collect_subtree(path)

    # Inspection

    def stat(self, path: str) -> VNode:
        """
        Get a detached copy of the node at path.

        Raises:
            NotFoundError: If nothing exists at path
        """
        node = self._nodes.get(path)
        if node is None:
            raise NotFoundError(path)
        return node.copy()

    def populate(
        self,
        directories: Iterable[str],
        files: Mapping[str, Content],
        now: float,
        owner: str
    ) -> None:
        """
        Create directories (parents first) and files, skipping existing ones.
        """
        for path in directories:
            if path not in self._nodes:
                self.mkdir_sync(path, now, owner)

        for path, content in files.items():
            if path not in self._nodes:
                self.write_sync(path, content, now, owner)

    def check_integrity(self) -> List[str]:
        """Return a description of every tree-invariant violation found."""
        return self._integrity_errors(self._nodes)

    @staticmethod
    def _integrity_errors(nodes: Mapping[str, VNode]) -> List[str]:
        errors: List[str] = []

        root = nodes.get(ROOT)
        if root is None or not root.is_directory:
            errors.append("root directory missing")

        for path, node in nodes.items():
            if node.path != path:
                errors.append(f"{path}: node records path {node.path}")
            if node.is_file and node.children:
                errors.append(f"{path}: file has children")

            if path != ROOT:
                parent_path = PathResolver.dirname(path)
                parent = nodes.get(parent_path)
                if parent is None:
                    errors.append(f"{path}: parent {parent_path} missing")
                elif not parent.is_directory:
                    errors.append(f"{path}: parent {parent_path} is a file")
                elif node.name not in parent.children:
                    errors.append(f"{path}: not listed in {parent_path}")

            if node.is_directory:
                if len(set(node.children)) != len(node.children):
                    errors.append(f"{path}: duplicate child names")
                for name in node.children:
                    if PathResolver.join(path, name) not in nodes:
                        errors.append(f"{path}: orphaned child name {name!r}")

        return errors

    def statistics(self) -> dict[str, Any]:
        files = [n for n in self._nodes.values() if n.is_file]
        directories = [n for n in self._nodes.values() if n.is_directory]
        return {
            'total_files': len(files),
            'total_directories': len(directories),
            'total_size': sum(n.size for n in files),
        }

    # Persistence

    def snapshot(self) -> List[List[Any]]:
        """Serialize the tree as ``[[path, node_dict], ...]``."""
        return [[path, node.to_dict()] for path, node in self._nodes.items()]

    def restore(self, entries: Any) -> None:
        """
        Replace the tree with a snapshot.

        The current tree is left untouched unless the snapshot decodes
        cleanly and satisfies the tree invariant.

        Raises:
            PersistLoadCorruptError: If the snapshot is malformed
        """
        if not isinstance(entries, list):
            raise PersistLoadCorruptError("tree must be a list of [path, node] pairs")

        nodes: dict[str, VNode] = {}
        for item in entries:
            try:
                path, data = item
                if PathResolver.normalize(path) != path:
                    raise ValueError(f"non-canonical path {path!r}")
                node = VNode.from_dict(data)
            except (AttributeError, KeyError, TypeError, ValueError, FileSystemException) as e:
                raise PersistLoadCorruptError(f"bad tree entry {item!r}: {e}") from e
            nodes[path] = node

        errors = self._integrity_errors(nodes)
        if errors:
            raise PersistLoadCorruptError("; ".join(errors[:5]))

        self._nodes = nodes
