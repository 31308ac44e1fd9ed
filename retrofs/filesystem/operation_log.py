"""
Operation Log Module

Bounded, append-only record of every attempted file-system operation and
its outcome. Once full, the oldest entry is evicted first.

Author: RetroOS Kernel Team
Version: 18.0.0
"""

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Any, List

from retrofs.exceptions import PersistLoadCorruptError


DEFAULT_CAPACITY = 1000


class OperationStatus(Enum):
    """Outcome of a logged operation."""
    SUCCESS = 'success'
    FAILED = 'failed'


@dataclass(frozen=True)
class OperationLogEntry:
    """A single log record."""
    timestamp: float
    operation: str
    path: str
    status: OperationStatus
    details: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            'timestamp': self.timestamp,
            'operation': self.operation,
            'path': self.path,
            'status': self.status.value,
            'details': self.details,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'OperationLogEntry':
        details = data.get('details')
        return cls(
            timestamp=float(data['timestamp']),
            operation=str(data['operation']),
            path=str(data['path']),
            status=OperationStatus(data['status']),
            details=None if details is None else str(details),
        )


class OperationLog:
    """
    Fixed-capacity FIFO ring of OperationLogEntry.

    Example:
        >>> log = OperationLog(capacity=2)
        >>> log.record_operation('read', '/a', OperationStatus.SUCCESS, timestamp=1.0)
        >>> log.recent(10)[-1].path
        '/a'
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._entries: deque = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, entry: OperationLogEntry) -> None:
        """Append an entry, evicting the oldest one when full."""
        self._entries.append(entry)

    def record_operation(
        self,
        operation: str,
        path: str,
        status: OperationStatus,
        details: Optional[str] = None,
        timestamp: float = 0.0
    ) -> OperationLogEntry:
        entry = OperationLogEntry(
            timestamp=timestamp,
            operation=operation,
            path=path,
            status=status,
            details=details,
        )
        self.record(entry)
        return entry

    def recent(self, n: int) -> List[OperationLogEntry]:
        """
        The last ``n`` entries, most recent last.

        The returned list is a copy; later records never show up in it.
        """
        if n <= 0:
            return []
        entries = list(self._entries)
        return entries[-n:]

    def clear(self) -> None:
        self._entries.clear()

    def snapshot(self) -> List[dict[str, Any]]:
        return [entry.to_dict() for entry in self._entries]

    def restore(self, items: Any) -> None:
        """
        Replace the log contents from a snapshot.

        Raises:
            PersistLoadCorruptError: If the snapshot is malformed
        """
        if not isinstance(items, list):
            raise PersistLoadCorruptError("log must be a list of entries")

        restored = deque(maxlen=self._entries.maxlen)
        for item in items:
            try:
                restored.append(OperationLogEntry.from_dict(item))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                raise PersistLoadCorruptError(f"bad log entry {item!r}: {e}") from e

        self._entries = restored
