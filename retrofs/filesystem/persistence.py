"""
State Persistence Module

Encodes the sandbox tree, permission table and operation log into the
single JSON document kept in the durable key/value store, and decodes it
back.

Author: RetroOS Kernel Team
Version: 18.0.0
"""

import json
from dataclasses import dataclass
from typing import Any, List, Optional

from retrofs.exceptions import PersistLoadCorruptError


STATE_SECTIONS = ('tree', 'permissions', 'log')


@dataclass
class PersistedState:
    """Decoded sections of a saved state document."""
    tree: List[Any]
    permissions: List[Any]
    log: List[Any]
    timestamp: float = 0.0


def encode_state(
    tree: List[Any],
    permissions: List[Any],
    log: List[Any],
    timestamp: float
) -> str:
    """
    Serialize state sections to a JSON document.

    Args:
        tree: ``MemoryBackend.snapshot()`` output
        permissions: ``PermissionTable.snapshot()`` output
        log: ``OperationLog.snapshot()`` output
        timestamp: Time of the save

    Returns:
        JSON text
    """
    return json.dumps({
        'tree': tree,
        'permissions': permissions,
        'log': log,
        'timestamp': timestamp,
    })


def decode_state(text: str, key: Optional[str] = None) -> PersistedState:
    """
    Parse a saved state document.

    Only the document shape is checked here; the tree and permission
    sections are validated when they are restored.

    Raises:
        PersistLoadCorruptError: If the text is not a state document
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise PersistLoadCorruptError(f"invalid JSON: {e}", key=key) from e

    if not isinstance(data, dict):
        raise PersistLoadCorruptError("state document must be a JSON object", key=key)

    for section in ('tree', 'permissions'):
        if section not in data:
            raise PersistLoadCorruptError(f"missing '{section}' section", key=key)
        if not isinstance(data[section], list):
            raise PersistLoadCorruptError(f"'{section}' section must be a list", key=key)

    log = data.get('log') or []
    if not isinstance(log, list):
        raise PersistLoadCorruptError("'log' section must be a list", key=key)

    timestamp = data.get('timestamp', 0.0)
    if not isinstance(timestamp, (int, float)) or isinstance(timestamp, bool):
        raise PersistLoadCorruptError("'timestamp' must be a number", key=key)

    return PersistedState(
        tree=data['tree'],
        permissions=data['permissions'],
        log=log,
        timestamp=float(timestamp),
    )
