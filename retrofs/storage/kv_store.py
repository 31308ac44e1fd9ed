"""
Durable Key/Value Store

String-keyed, string-valued storage that survives restarts. The file
system saves its whole state as one value under a single key.

Author: RetroOS Kernel Team
Version: 18.0.0
"""

import os
import re
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, List

from retrofs.exceptions import PersistLoadCorruptError
from retrofs.logger import get_logger


class KeyValueStore(ABC):
    """Interface for durable string storage."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""

    @abstractmethod
    def remove(self, key: str) -> bool:
        """Delete a key. Returns True if it existed."""

    @abstractmethod
    def keys(self) -> List[str]:
        """All stored keys."""


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store, used by tests and headless runs without a state dir."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = str(value)

    def remove(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> List[str]:
        return list(self._data)


_KEY_PATTERN = re.compile(r'^[A-Za-z0-9_.-]+$')


class FileKeyValueStore(KeyValueStore):
    """
    One file per key inside a directory.

    Writes go to a temporary file in the same directory and are moved
    into place with ``os.replace``, so a crash never leaves a truncated
    value behind.

    Example:
        >>> store = FileKeyValueStore('~/.retroos')
        >>> store.set('retroos_filesystem_state', '{}')
        >>> store.get('retroos_filesystem_state')
        '{}'
    """

    SUFFIX = '.json'

    def __init__(self, directory: str):
        self._directory = Path(directory).expanduser()
        self._logger = get_logger('kv_store')

    @property
    def directory(self) -> Path:
        return self._directory

    def _path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key) or key in ('.', '..'):
            raise ValueError(f"Invalid store key: {key!r}")
        return self._directory / f"{key}{self.SUFFIX}"

    def get(self, key: str) -> Optional[str]:
        """
        Read a stored value.

        Raises:
            PersistLoadCorruptError: If the stored bytes are not UTF-8 text
            OSError: If the file exists but cannot be read
        """
        path = self._path_for(key)
        try:
            return path.read_text(encoding='utf-8')
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            raise PersistLoadCorruptError(f"value is not UTF-8 text: {e}", key=key) from e

    def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        self._directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=f".{key}.", suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(value)
            os.replace(tmp_name, path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        self._logger.debug("Stored value", context={'key': key, 'size': len(value)})

    def remove(self, key: str) -> bool:
        path = self._path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    def keys(self) -> List[str]:
        if not self._directory.is_dir():
            return []
        return sorted(
            p.name[:-len(self.SUFFIX)]
            for p in self._directory.iterdir()
            if p.is_file() and p.name.endswith(self.SUFFIX) and not p.name.startswith('.')
        )
