"""
Filesystem Exceptions

Typed failures of the path-based CRUD contract. Every backend raises the
same kinds for the same situations, so callers can handle errors without
knowing whether the sandbox or the real uplink served the call.

Author: RetroOS Kernel Team
Version: 18.0.0
"""

from typing import Optional, Any


class FileSystemException(Exception):
    """
    Base exception for all filesystem-related errors.

    Attributes:
        message: Human-readable error description
        path: File path associated with the error (if applicable)
        error_code: Numeric error code for programmatic handling
        context: Additional context about the error
        kind: Short error-kind name recorded in the operation log
    """

    kind = "FileSystemError"

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        error_code: Optional[int] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.error_code = error_code or 4000
        self.context = context or {}
        if path:
            self.context["path"] = path

    def __str__(self) -> str:
        base = f"[Error {self.error_code}] {self.message}"
        if self.path:
            base = f"{base} (path={self.path})"
        return base


class InvalidPathError(FileSystemException):
    """
    The path string is not a valid absolute path.

    Raised for empty paths, relative paths, and paths that contain empty
    segments (``/a//b``).

    Example:
        >>> raise InvalidPathError("/a//b", reason="empty segment")
    """

    kind = "InvalidPath"

    def __init__(
        self,
        path: str,
        reason: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if reason:
            ctx["reason"] = reason
        super().__init__(
            message=f"Invalid path: {path!r}",
            path=path or None,
            error_code=4010,
            context=ctx
        )
        self.reason = reason


class NotFoundError(FileSystemException):
    """
    No entry exists at the path, or a file was expected and a directory
    was found.

    Example:
        >>> raise NotFoundError("/users/alice/notes.txt")
    """

    kind = "NotFound"

    def __init__(
        self,
        path: str,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(
            message=f"File not found: {path}",
            path=path,
            error_code=4001,
            context=context
        )


class AlreadyExistsError(FileSystemException):
    """
    An entry already occupies the path.

    Example:
        >>> raise AlreadyExistsError("/users/alice")
    """

    kind = "AlreadyExists"

    def __init__(
        self,
        path: str,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(
            message=f"File already exists: {path}",
            path=path,
            error_code=4002,
            context=context
        )


class PermissionDeniedError(FileSystemException):
    """
    The permission table does not allow the operation on the path.

    Example:
        >>> raise PermissionDeniedError("/system/config.sys", operation="write")
    """

    kind = "PermissionDenied"

    def __init__(
        self,
        path: str,
        operation: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if operation:
            ctx["operation"] = operation
        super().__init__(
            message=f"Permission denied: {path}",
            path=path,
            error_code=4003,
            context=ctx
        )
        self.operation = operation


class DirectoryNotEmptyError(FileSystemException):
    """
    Directory still has children and recursive removal was not requested.

    Example:
        >>> raise DirectoryNotEmptyError("/users/alice")
    """

    kind = "DirectoryNotEmpty"

    def __init__(
        self,
        path: str,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(
            message=f"Directory not empty: {path}",
            path=path,
            error_code=4004,
            context=context
        )


class NotADirectoryError(FileSystemException):
    """
    Path (or one of its parents) is a file where a directory is required.

    Example:
        >>> raise NotADirectoryError("/readme.txt")
    """

    kind = "NotADirectory"

    def __init__(
        self,
        path: str,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(
            message=f"Not a directory: {path}",
            path=path,
            error_code=4009,
            context=context
        )


class IsADirectoryError(FileSystemException):
    """
    A file write targeted a path that is already a directory.

    Example:
        >>> raise IsADirectoryError("/users")
    """

    kind = "IsADirectory"

    def __init__(
        self,
        path: str,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(
            message=f"Is a directory: {path}",
            path=path,
            error_code=4011,
            context=context
        )


class ParentNotFoundError(FileSystemException):
    """
    The parent directory of the target path does not exist.

    Example:
        >>> raise ParentNotFoundError("/missing/file.txt", parent="/missing")
    """

    kind = "ParentNotFound"

    def __init__(
        self,
        path: str,
        parent: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if parent:
            ctx["parent"] = parent
        super().__init__(
            message=f"Parent directory not found: {path}",
            path=path,
            error_code=4012,
            context=ctx
        )
        self.parent = parent


class BackendError(FileSystemException):
    """
    The storage substrate failed underneath a valid request.

    Wraps the originating exception (revoked capability, stale handle,
    medium error) in ``cause``; it is also chained as ``__cause__`` when
    raised with ``raise ... from``.

    Example:
        >>> raise BackendError("/users/a.txt", cause=PermissionError("revoked"))
    """

    kind = "BackendError"

    def __init__(
        self,
        path: Optional[str] = None,
        cause: Optional[BaseException] = None,
        operation: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if operation:
            ctx["operation"] = operation
        if cause is not None:
            ctx["cause"] = f"{type(cause).__name__}: {cause}"
        super().__init__(
            message=f"Backend failure: {cause}" if cause else "Backend failure",
            path=path,
            error_code=4020,
            context=ctx
        )
        self.cause = cause
        self.operation = operation
