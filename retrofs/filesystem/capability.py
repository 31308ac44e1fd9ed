"""
Capability Providers

The only inbound dependency of ``KernelFS.mount``: something that either
hands out a read/write directory capability or explains why it cannot.

Author: RetroOS Kernel Team
Version: 18.0.0
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional
import asyncio

from .handles import DirectoryHandle, LocalDirectoryHandle
from retrofs.exceptions import MountNotSupportedError, MountDeniedError
from retrofs.logger import get_logger


class CapabilityProvider(ABC):
    """
    Source of directory capabilities.

    ``acquire`` raises ``MountNotSupportedError`` when the host has no
    directory-access API, ``MountDeniedError`` when the grant is refused,
    and lets any other I/O error propagate.
    """

    @abstractmethod
    async def acquire(self) -> DirectoryHandle:
        """Obtain a scoped read/write directory handle."""


class UnavailableProvider(CapabilityProvider):
    """Provider for hosts without any directory-access capability."""

    def __init__(self, reason: str = "Directory access is not supported by this host"):
        self._reason = reason

    async def acquire(self) -> DirectoryHandle:
        raise MountNotSupportedError(self._reason)


class LocalDirectoryProvider(CapabilityProvider):
    """
    Grants handles onto a directory of the local disk.

    Args:
        root: Directory to expose
        approve: Consent prompt; receives the resolved root and returns
            whether access is granted. ``None`` grants without asking.
        create: Create ``root`` if it does not exist yet

    Example:
        >>> provider = LocalDirectoryProvider('~/RetroOS', create=True)
        >>> handle = await provider.acquire()
    """

    def __init__(
        self,
        root: str,
        approve: Optional[Callable[[Path], bool]] = None,
        create: bool = False
    ):
        self._root = Path(root).expanduser()
        self._approve = approve
        self._create = create
        self._logger = get_logger('capability')
        self._handle: Optional[LocalDirectoryHandle] = None

    @property
    def root(self) -> Path:
        return self._root

    @property
    def handle(self) -> Optional[LocalDirectoryHandle]:
        """The most recently granted handle, if any."""
        return self._handle

    async def acquire(self) -> LocalDirectoryHandle:
        root = self._root.resolve()

        if self._approve is not None and not self._approve(root):
            self._logger.info("Directory access refused", context={'root': str(root)})
            raise MountDeniedError(target=str(root))

        if self._create:
            await asyncio.to_thread(root.mkdir, parents=True, exist_ok=True)

        self._handle = await asyncio.to_thread(LocalDirectoryHandle.grant, root)
        self._logger.debug("Directory access granted", context={'root': str(root)})
        return self._handle
