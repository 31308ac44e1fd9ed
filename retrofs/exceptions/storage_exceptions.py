"""
Storage Exceptions

Errors raised while restoring persisted sandbox state from the durable
key/value store.

Author: RetroOS Kernel Team
Version: 18.0.0
"""

from typing import Optional, Any

from .fs_exceptions import FileSystemException


class PersistLoadCorruptError(FileSystemException):
    """
    Persisted state could not be decoded or violates the tree invariant.

    ``KernelFS.load_state`` recovers from this error by restoring the
    built-in default tree; it is never returned to callers of the CRUD
    operations.

    Example:
        >>> raise PersistLoadCorruptError("missing 'tree' section", key="retroos_filesystem_state")
    """

    kind = "PersistLoadCorrupt"

    def __init__(
        self,
        reason: str,
        key: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if key:
            ctx["key"] = key
        super().__init__(
            message=f"Persisted state is corrupt: {reason}",
            error_code=4040,
            context=ctx
        )
        self.reason = reason
        self.key = key
