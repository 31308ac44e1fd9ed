"""
Kernel File System Module

The single entry point other RetroOS components use for storage:
- Path normalization and permission checks
- Dispatch to the sandbox or the Hardware Uplink
- Operation logging
- Mount management with transparent fallback
- State persistence and change notifications

Author: RetroOS Kernel Team
Version: 18.0.0
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Any, Callable, List

from .backend import StorageBackend
from .capability import CapabilityProvider, LocalDirectoryProvider, UnavailableProvider
from .defaults import (
    DEFAULT_DIRECTORIES,
    DEFAULT_FILES,
    DEFAULT_PERMISSION_RULES,
    KERNEL_STATE_PATH,
    kernel_state_document,
)
from .memory_backend import MemoryBackend
from .operation_log import OperationLog, OperationLogEntry, OperationStatus
from .path_resolver import PathResolver, ROOT
from .permissions import PermissionTable, PermissionOp
from .persistence import encode_state, decode_state
from .real_backend import RealBackend
from .vnode import Content, DirEntry
from retrofs.core.config_loader import Config, get_config
from retrofs.core.registry import Subsystem, SubsystemState
from retrofs.exceptions import (
    FileSystemException,
    PermissionDeniedError,
    PersistLoadCorruptError,
)
from retrofs.notifications import Severity, NotificationSink, LoggingSink
from retrofs.storage import KeyValueStore, MemoryKeyValueStore


class MountState(Enum):
    """Which backend currently serves requests."""
    UNMOUNTED = 'unmounted'
    MOUNTED = 'mounted'
    MOUNT_FAILED = 'mount_failed'


@dataclass
class MountResult:
    """Outcome of a mount attempt."""
    success: bool
    state: MountState
    mount_point: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class FileChangeEvent:
    """Sent to listeners after a successful mutation."""
    path: str
    action: str
    timestamp: float


FileChangeListener = Callable[[FileChangeEvent], None]


@dataclass
class _Sandbox:
    """State that is persisted and replaced as a unit."""
    backend: MemoryBackend
    permissions: PermissionTable
    log: OperationLog = field(default_factory=OperationLog)


class KernelFS(Subsystem):
    """
    Kernel File System facade.

    Every operation normalizes its path, checks the permission table,
    runs on the backend selected by the mount state and records the
    outcome in the operation log. Backend errors reach the caller
    unchanged after they have been logged; invalid paths and denied
    permissions fail before anything is logged.

    Example:
        >>> fs = KernelFS()
        >>> fs.initialize()
        >>> await fs.mkdir('/users/alice')
        >>> await fs.write('/users/alice/notes.txt', 'hello')
        >>> await fs.read('/users/alice/notes.txt')
        'hello'
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        provider: Optional[CapabilityProvider] = None,
        store: Optional[KeyValueStore] = None,
        notify: Optional[NotificationSink] = None,
        user: Optional[str] = None
    ):
        super().__init__('kernel_fs')
        self._config = config or get_config()
        self._provider = provider or self._default_provider(self._config)
        self._store = store if store is not None else MemoryKeyValueStore()
        self._notify_sink: NotificationSink = notify or LoggingSink()
        self._user = user or self._config.filesystem.default_user

        self._last_timestamp = 0.0
        self._mount_state = MountState.UNMOUNTED
        self._real: Optional[RealBackend] = None
        self._listeners: List[FileChangeListener] = []
        self._sandbox = self._default_sandbox()

    @staticmethod
    def _default_provider(config: Config) -> CapabilityProvider:
        if config.uplink.root_path:
            return LocalDirectoryProvider(config.uplink.root_path, create=config.uplink.create)
        return UnavailableProvider()

    # Lifecycle

    def initialize(self) -> None:
        """Restore persisted state, or keep the default tree if there is none."""
        self.set_state(SubsystemState.INITIALIZING)
        self._logger.info("Initializing kernel file system", context={'user': self._user})

        restored = self.load_state()

        self.set_state(SubsystemState.INITIALIZED)
        self._logger.info(
            "Kernel file system initialized",
            context={'restored': restored, 'nodes': len(self._sandbox.backend)}
        )

    def start(self) -> None:
        self.set_state(SubsystemState.RUNNING)
        self._logger.info("Kernel file system started")

    def stop(self) -> None:
        """Save state and stop."""
        self.set_state(SubsystemState.STOPPING)
        try:
            self.save_state()
        except OSError as e:
            self._logger.exception("Failed to save file system state", exc=e)
            self.set_state(SubsystemState.ERROR)
            return
        self.set_state(SubsystemState.STOPPED)
        self._logger.info("Kernel file system stopped")

    def cleanup(self) -> None:
        self._listeners.clear()

    # Internal helpers

    @property
    def user(self) -> str:
        return self._user

    @property
    def _backend(self) -> StorageBackend:
        if self._mount_state is MountState.MOUNTED and self._real is not None:
            return self._real
        return self._sandbox.backend

    def _now(self) -> float:
        """Wall-clock time that never goes backwards."""
        now = max(time.time(), self._last_timestamp)
        self._last_timestamp = now
        return now

    def _default_sandbox(self) -> _Sandbox:
        now = self._now()
        backend = MemoryBackend(now, self._user)
        backend.populate(DEFAULT_DIRECTORIES, DEFAULT_FILES, now, self._user)

        permissions = PermissionTable()
        for path, flags in DEFAULT_PERMISSION_RULES.items():
            for op, allowed in zip(PermissionOp, flags):
                permissions.set(path, op, allowed)

        return _Sandbox(
            backend=backend,
            permissions=permissions,
            log=OperationLog(self._config.filesystem.log_capacity),
        )

    def _authorize(self, path: str, op: PermissionOp, operation: str) -> str:
        """Normalize a path and check it against the permission table."""
        canonical = PathResolver.normalize(path)
        if not self._sandbox.permissions.check(canonical, op):
            raise PermissionDeniedError(canonical, operation=operation)
        return canonical

    def _record(
        self,
        operation: str,
        path: str,
        failure: Optional[str] = None,
        details: Optional[str] = None
    ) -> OperationLogEntry:
        """Log an outcome; ``failure`` is the error kind of a failed call."""
        if failure is None:
            status = OperationStatus.SUCCESS
        else:
            status = OperationStatus.FAILED
            details = failure
            self._logger.debug(f"{operation} failed", context={'path': path, 'error': failure})
        return self._sandbox.log.record_operation(
            operation, path, status, details=details, timestamp=self._now()
        )

    def _emit(self, path: str, action: str, timestamp: float) -> None:
        event = FileChangeEvent(path=path, action=action, timestamp=timestamp)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                self._logger.exception(
                    "File change listener failed",
                    exc=e,
                    context={'path': path, 'action': action}
                )

    def _notify(self, message: str, severity: Severity) -> None:
        try:
            self._notify_sink(message, severity)
        except Exception as e:
            self._logger.exception("Notification sink failed", exc=e)

    # File operations

    async def read(self, path: str) -> Content:
        """
        Read a whole file.

        Returns:
            File content, ``str`` for text and ``bytes`` for binary data

        Raises:
            InvalidPathError: If the path is malformed
            PermissionDeniedError: If reading is not allowed
            NotFoundError: If no file exists at path
            BackendError: If the Hardware Uplink fails
        """
        canonical = self._authorize(path, PermissionOp.READ, 'read')

        try:
            content = await self._backend.read(canonical, self._now())
        except FileSystemException as e:
            self._record('read', canonical, e.kind)
            raise

        self._record('read', canonical)
        return content

    async def write(self, path: str, content: Content) -> None:
        """
        Create or overwrite a file.

        Args:
            path: Absolute file path
            content: Text or binary content

        Raises:
            TypeError: If content is neither str nor bytes
            InvalidPathError: If the path is malformed
            PermissionDeniedError: If writing is not allowed
            ParentNotFoundError: If the parent directory does not exist
            NotADirectoryError: If the parent is a file
            IsADirectoryError: If path is a directory
            BackendError: If the Hardware Uplink fails
        """
        if not isinstance(content, (str, bytes)):
            raise TypeError(f"File content must be str or bytes, not {type(content).__name__}")

        canonical = self._authorize(path, PermissionOp.WRITE, 'write')

        try:
            await self._backend.write(canonical, content, self._now(), self._user)
        except FileSystemException as e:
            self._record('write', canonical, e.kind)
            raise

        entry = self._record('write', canonical)
        self._emit(canonical, 'write', entry.timestamp)

    async def remove(self, path: str, recursive: bool = False) -> None:
        """
        Remove a file or directory.

        A recursive removal first checks write permission on every path
        beneath ``path`` and logs every removed path, deepest first.

        Raises:
            InvalidPathError: If the path is malformed
            PermissionDeniedError: If writing is not allowed, or path is root
                (for a recursive removal, on any path beneath it)
            NotFoundError: If nothing exists at path
            DirectoryNotEmptyError: If path is a non-empty directory and
                recursive is False
            BackendError: If the Hardware Uplink fails
        """
        canonical = self._authorize(path, PermissionOp.WRITE, 'remove')

        if recursive and canonical != ROOT:
            try:
                victims = await self._backend.subtree(canonical)
            except FileSystemException as e:
                self._record('remove', canonical, e.kind)
                raise
            # Nothing is removed unless every descendant may be written
            for victim in victims:
                if not self._sandbox.permissions.check(victim, PermissionOp.WRITE):
                    raise PermissionDeniedError(victim, operation='remove')

        try:
            removed = await self._backend.remove(canonical, self._now(), recursive=recursive)
        except FileSystemException as e:
            self._record('remove', canonical, e.kind)
            raise

        entry = None
        for victim in removed:
            entry = self._record('remove', victim)
        if entry is not None:
            self._emit(canonical, 'remove', entry.timestamp)

    async def list(self, path: str = ROOT) -> List[DirEntry]:
        """
        List a directory, directories first and then by name.

        Raises:
            InvalidPathError: If the path is malformed
            PermissionDeniedError: If reading is not allowed
            NotFoundError: If nothing exists at path
            NotADirectoryError: If path is a file
            BackendError: If the Hardware Uplink fails
        """
        canonical = self._authorize(path, PermissionOp.READ, 'list')

        try:
            entries = await self._backend.list(canonical)
        except FileSystemException as e:
            self._record('list', canonical, e.kind)
            raise

        self._record('list', canonical)
        return entries

    async def mkdir(self, path: str) -> None:
        """
        Create a single directory. Parents are not created.

        Raises:
            InvalidPathError: If the path is malformed
            PermissionDeniedError: If writing is not allowed
            AlreadyExistsError: If something already exists at path
            ParentNotFoundError: If the parent directory does not exist
            NotADirectoryError: If the parent is a file
            BackendError: If the Hardware Uplink fails
        """
        canonical = self._authorize(path, PermissionOp.WRITE, 'mkdir')

        try:
            await self._backend.mkdir(canonical, self._now(), self._user)
        except FileSystemException as e:
            self._record('mkdir', canonical, e.kind)
            raise

        entry = self._record('mkdir', canonical)
        self._emit(canonical, 'mkdir', entry.timestamp)

    # Hardware Uplink

    async def mount(self) -> MountResult:
        """
        Attach the Hardware Uplink.

        Acquires a directory capability, seeds the standard top-level
        directories and the kernel state file, then routes every later
        operation to the real directory. On failure the sandbox keeps
        serving and the state becomes ``MOUNT_FAILED``.

        Returns:
            MountResult describing the outcome
        """
        self._logger.info("Mounting Hardware Uplink")
        kernel = self._config.kernel

        try:
            handle = await self._provider.acquire()
            backend = RealBackend(handle)
            await backend.seed(
                self._config.filesystem.seed_directories,
                {KERNEL_STATE_PATH: kernel_state_document(kernel.version, kernel.build, self._now())},
            )
        except (FileSystemException, OSError) as e:
            return self._mount_failed(e)
        except Exception as e:
            self._logger.exception("Capability provider raised unexpectedly", exc=e)
            return self._mount_failed(e)

        self._real = backend
        self._mount_state = MountState.MOUNTED
        self._record('mount', ROOT, details=backend.mount_point)
        self._logger.notice("Hardware Uplink mounted", context={'mount_point': backend.mount_point})
        self._notify(f"Hardware Uplink mounted: {backend.mount_point}", Severity.SUCCESS)
        return MountResult(success=True, state=self._mount_state, mount_point=backend.mount_point)

    def _mount_failed(self, e: Exception) -> MountResult:
        """Fall back to the sandbox after a failed mount attempt."""
        self._real = None
        self._mount_state = MountState.MOUNT_FAILED
        self._record('mount', ROOT, failure=getattr(e, 'kind', type(e).__name__))
        self._logger.warning("Mount failed, using sandbox", context={'error': str(e)})
        self._notify(f"Hardware Uplink unavailable: {e}", Severity.ERROR)
        return MountResult(success=False, state=self._mount_state, error=str(e))

    def get_mount_state(self) -> MountState:
        return self._mount_state

    # Permissions

    def check_permission(self, path: str, op: Any) -> bool:
        """
        Check whether an operation is allowed on a path.

        Args:
            path: Absolute path
            op: 'read', 'write', 'execute' or a PermissionOp

        Raises:
            InvalidPathError: If the path is malformed
            ValueError: If op is unknown
        """
        return self._sandbox.permissions.check(PathResolver.normalize(path), op)

    def set_permission(self, path: str, op: Any, allowed: bool) -> None:
        """Set one operation's rule on a path; other operations are untouched."""
        canonical = PathResolver.normalize(path)
        self._sandbox.permissions.set(canonical, op, allowed)
        self._logger.debug(
            "Permission set",
            context={'path': canonical, 'op': PermissionOp.coerce(op).value, 'allowed': allowed}
        )

    # Operation log

    def get_log(self, limit: Optional[int] = None) -> List[OperationLogEntry]:
        """The most recent log entries, newest last."""
        if limit is None:
            limit = self._config.filesystem.default_log_limit
        return self._sandbox.log.recent(limit)

    # Listeners

    def add_listener(self, callback: FileChangeListener) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: FileChangeListener) -> bool:
        try:
            self._listeners.remove(callback)
        except ValueError:
            return False
        return True

    # Persistence

    def save_state(self) -> None:
        """
        Write the sandbox tree, permissions and log to the key/value store.

        Raises:
            OSError: If the store cannot be written
        """
        key = self._config.storage.state_key
        document = encode_state(
            tree=self._sandbox.backend.snapshot(),
            permissions=self._sandbox.permissions.snapshot(),
            log=self._sandbox.log.snapshot(),
            timestamp=self._now(),
        )
        self._store.set(key, document)
        self._logger.info("File system state saved", context={'key': key, 'bytes': len(document)})

    def load_state(self) -> bool:
        """
        Restore state saved by :meth:`save_state`.

        A corrupt document is replaced by the default tree and
        permissions, and a warning is sent to the notification sink.

        Returns:
            True if saved state was restored
        """
        key = self._config.storage.state_key
        try:
            document = self._store.get(key)
            if document is None:
                self._logger.debug("No saved state", context={'key': key})
                return False

            state = decode_state(document, key=key)
            backend = MemoryBackend(owner=self._user)
            backend.restore(state.tree)
            permissions = PermissionTable()
            permissions.restore(state.permissions)
            log = OperationLog(self._config.filesystem.log_capacity)
            log.restore(state.log)
        except PersistLoadCorruptError as e:
            self._logger.warning("Saved state is corrupt, restoring defaults", context={'error': e.reason})
            self._sandbox = self._default_sandbox()
            self._notify("File system state was corrupt and has been reset", Severity.WARNING)
            return False
        except OSError as e:
            self._logger.warning("Saved state is unreadable, restoring defaults", context={'error': str(e)})
            self._sandbox = self._default_sandbox()
            self._notify("File system state could not be read and has been reset", Severity.WARNING)
            return False

        self._sandbox = _Sandbox(backend=backend, permissions=permissions, log=log)
        self._last_timestamp = max(self._last_timestamp, state.timestamp)
        self._logger.info("File system state restored", context={'nodes': len(backend)})
        return True

    # Statistics

    def get_statistics(self) -> dict[str, Any]:
        """Sandbox usage plus mount and bookkeeping counters."""
        stats = self._sandbox.backend.statistics()
        stats.update({
            'mount_state': self._mount_state.value,
            'uplink_mounted': self._mount_state is MountState.MOUNTED,
            'mount_point': self._real.mount_point if self._real is not None else None,
            'operation_count': len(self._sandbox.log),
            'permissions_count': len(self._sandbox.permissions),
        })
        return stats
