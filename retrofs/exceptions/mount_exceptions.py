"""
Mount Exceptions

Failures while acquiring a capability handle for the Hardware Uplink.
They never escape ``KernelFS.mount``; the facade converts them into the
``MOUNT_FAILED`` state and keeps serving from the sandbox.

Author: RetroOS Kernel Team
Version: 18.0.0
"""

from typing import Optional, Any

from .fs_exceptions import FileSystemException


class MountException(FileSystemException):
    """Base class for capability acquisition failures."""

    kind = "MountError"

    def __init__(
        self,
        message: str,
        error_code: Optional[int] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(
            message=message,
            path="/",
            error_code=error_code or 4030,
            context=context
        )


class MountNotSupportedError(MountException):
    """
    The host environment offers no directory-access capability.

    Example:
        >>> raise MountNotSupportedError("Directory picker unavailable")
    """

    kind = "MountNotSupported"

    def __init__(
        self,
        message: str = "Directory access is not supported by this host",
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(message=message, error_code=4030, context=context)


class MountDeniedError(MountException):
    """
    The user (or host policy) refused to grant the capability.

    Example:
        >>> raise MountDeniedError(target="/home/alice/retro")
    """

    kind = "MountDenied"

    def __init__(
        self,
        message: str = "Directory access was denied",
        target: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if target:
            ctx["target"] = target
        super().__init__(message=message, error_code=4031, context=ctx)
        self.target = target
