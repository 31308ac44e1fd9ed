"""
RetroFS Durable Storage

Key/value stores used to persist file system state between runs.
"""

from .kv_store import KeyValueStore, MemoryKeyValueStore, FileKeyValueStore

__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "FileKeyValueStore",
]
