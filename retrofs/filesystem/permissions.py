"""
Permission Table Module

Per-path access rules with closest-ancestor inheritance. The facade
consults the table before dispatching any operation; backends never see
it.

Author: RetroOS Kernel Team
Version: 18.0.0
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Any, List, Union

from .path_resolver import PathResolver
from retrofs.exceptions import FileSystemException, PersistLoadCorruptError


class PermissionOp(Enum):
    """Operations a permission entry can allow or deny."""
    READ = 'read'
    WRITE = 'write'
    EXECUTE = 'execute'

    @classmethod
    def coerce(cls, op: Union['PermissionOp', str]) -> 'PermissionOp':
        """
        Accept either a PermissionOp or its string name.

        Raises:
            ValueError: If the name is not a known operation
        """
        if isinstance(op, cls):
            return op
        try:
            return cls(str(op).lower())
        except ValueError:
            raise ValueError(f"Unknown permission operation: {op!r}") from None


DEFAULT_PERMISSIONS = {
    PermissionOp.READ: True,
    PermissionOp.WRITE: False,
    PermissionOp.EXECUTE: True,
}


@dataclass
class PermissionEntry:
    """
    Access rule for one path.

    A flag left as ``None`` is undefined here, so lookup continues to
    the next ancestor for that operation.
    """
    path: str
    read: Optional[bool] = None
    write: Optional[bool] = None
    execute: Optional[bool] = None

    def get(self, op: PermissionOp) -> Optional[bool]:
        return getattr(self, op.value)

    def set(self, op: PermissionOp, allowed: bool) -> None:
        setattr(self, op.value, bool(allowed))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for op in PermissionOp:
            value = self.get(op)
            if value is not None:
                data[op.value] = value
        return data

    @classmethod
    def from_dict(cls, path: str, data: dict[str, Any]) -> 'PermissionEntry':
        entry = cls(path=path)
        for op in PermissionOp:
            value = data.get(op.value)
            if value is not None:
                if not isinstance(value, bool):
                    raise TypeError(f"{op.value} flag must be a boolean")
                entry.set(op, value)
        return entry


class PermissionTable:
    """
    Path-keyed access rules.

    ``check`` walks from the path up to the root and returns the first
    entry that defines the operation; built-in defaults apply when none
    does.

    Example:
        >>> table = PermissionTable()
        >>> table.set('/system', 'write', False)
        >>> table.check('/system/config.sys', 'write')
        False
    """

    def __init__(self):
        self._entries: dict[str, PermissionEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def check(self, path: str, op: Union[PermissionOp, str]) -> bool:
        """
        Decide whether an operation is allowed on a path.

        Args:
            path: Absolute path (normalized here)
            op: Operation name or PermissionOp

        Returns:
            True if allowed
        """
        operation = PermissionOp.coerce(op)

        for candidate in PathResolver.ancestors(path):
            entry = self._entries.get(candidate)
            if entry is None:
                continue
            allowed = entry.get(operation)
            if allowed is not None:
                return allowed

        return DEFAULT_PERMISSIONS[operation]

    def set(self, path: str, op: Union[PermissionOp, str], allowed: bool) -> None:
        """Create or update the rule for one operation on a path."""
        operation = PermissionOp.coerce(op)
        canonical = PathResolver.normalize(path)

        entry = self._entries.get(canonical)
        if entry is None:
            entry = PermissionEntry(path=canonical)
            self._entries[canonical] = entry
        entry.set(operation, allowed)

    def get(self, path: str) -> Optional[PermissionEntry]:
        """Get the entry stored exactly at path (no inheritance)."""
        entry = self._entries.get(PathResolver.normalize(path))
        if entry is None:
            return None
        return PermissionEntry(entry.path, entry.read, entry.write, entry.execute)

    def entries(self) -> List[PermissionEntry]:
        """Copies of every stored entry."""
        return [
            PermissionEntry(e.path, e.read, e.write, e.execute)
            for e in self._entries.values()
        ]

    def clear(self) -> None:
        self._entries.clear()

    def snapshot(self) -> List[List[Any]]:
        """Serialize as ``[[path, {op: allowed}], ...]``."""
        return [[path, entry.to_dict()] for path, entry in self._entries.items()]

    def restore(self, items: Any) -> None:
        """
        Replace every entry from a snapshot.

        Raises:
            PersistLoadCorruptError: If the snapshot is malformed
        """
        if not isinstance(items, list):
            raise PersistLoadCorruptError("permissions must be a list of [path, entry] pairs")

        restored: dict[str, PermissionEntry] = {}
        for item in items:
            try:
                path, data = item
                canonical = PathResolver.normalize(path)
                restored[canonical] = PermissionEntry.from_dict(canonical, data)
            except (AttributeError, KeyError, TypeError, ValueError, FileSystemException) as e:
                raise PersistLoadCorruptError(f"bad permission entry {item!r}: {e}") from e

        self._entries = restored
