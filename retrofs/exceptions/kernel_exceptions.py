"""
Kernel Exceptions

Exceptions raised outside the file-system contract itself: configuration
loading and host start-up.

Author: RetroOS Kernel Team
Version: 18.0.0
"""

from typing import Optional, Any


class KernelException(Exception):
    """
    Base exception for kernel-level errors.

    Attributes:
        message: Human-readable error description
        error_code: Numeric error code for programmatic handling
        recoverable: Whether the error can be recovered from
        context: Additional context about the error

    Example:
        >>> raise KernelException("Host start-up failed", error_code=1001)
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[int] = None,
        recoverable: bool = False,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or 0
        self.recoverable = recoverable
        self.context = context or {}

    def __str__(self) -> str:
        base = f"[Error {self.error_code}] {self.message}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base = f"{base} ({context_str})"
        return base

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code}, "
            f"recoverable={self.recoverable})"
        )


class ConfigValidationError(KernelException):
    """
    Configuration could not be loaded or a key is invalid.

    Raised by the configuration loader for a missing file, malformed JSON,
    or an unknown dotted key passed to ``ConfigLoader.set``.

    Example:
        >>> raise ConfigValidationError("Invalid configuration key: foo.bar")
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if source:
            ctx["source"] = source
        super().__init__(
            message=message,
            error_code=1100,
            recoverable=True,
            context=ctx
        )
        self.source = source
