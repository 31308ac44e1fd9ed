#!/usr/bin/env python3
"""
RetroFS Unit Tests

Synchronous building blocks of the kernel file system.

Run with: python -m pytest retrofs/tests -v
Or: python retrofs/tests/unit_tests.py

Author: RetroOS Kernel Team
Version: 18.0.0
"""

import json
import os
import sys
import tempfile
import unittest


class TestExceptions(unittest.TestCase):
    """Test the exception hierarchy."""

    def test_kernel_exception(self):
        """Test KernelException creation and properties."""
        from retrofs.exceptions import KernelException

        exc = KernelException("Test error", error_code=1001, recoverable=True)

        self.assertEqual(exc.message, "Test error")
        self.assertEqual(exc.error_code, 1001)
        self.assertTrue(exc.recoverable)
        self.assertIn("1001", str(exc))

    def test_filesystem_error_codes(self):
        """Each error kind carries its numeric code and kind name."""
        from retrofs.exceptions import (
            InvalidPathError, NotFoundError, AlreadyExistsError,
            PermissionDeniedError, DirectoryNotEmptyError, NotADirectoryError,
            IsADirectoryError, ParentNotFoundError, BackendError,
            MountNotSupportedError, MountDeniedError, PersistLoadCorruptError,
            ConfigValidationError,
        )

        cases = [
            (InvalidPathError('a'), 4010, 'InvalidPath'),
            (NotFoundError('/a'), 4001, 'NotFound'),
            (AlreadyExistsError('/a'), 4002, 'AlreadyExists'),
            (PermissionDeniedError('/a', operation='write'), 4003, 'PermissionDenied'),
            (DirectoryNotEmptyError('/a'), 4004, 'DirectoryNotEmpty'),
            (NotADirectoryError('/a'), 4009, 'NotADirectory'),
            (IsADirectoryError('/a'), 4011, 'IsADirectory'),
            (ParentNotFoundError('/a/b', parent='/a'), 4012, 'ParentNotFound'),
            (BackendError('/a', cause=OSError('disk')), 4020, 'BackendError'),
            (MountNotSupportedError(), 4030, 'MountNotSupported'),
            (MountDeniedError(), 4031, 'MountDenied'),
            (PersistLoadCorruptError('bad'), 4040, 'PersistLoadCorrupt'),
        ]
        for exc, code, kind in cases:
            self.assertEqual(exc.error_code, code)
            self.assertEqual(exc.kind, kind)

        self.assertEqual(ConfigValidationError("bad").error_code, 1100)

    def test_backend_error_keeps_cause(self):
        """BackendError exposes the underlying failure."""
        from retrofs.exceptions import BackendError

        cause = PermissionError("revoked")
        exc = BackendError('/users/a.txt', cause=cause, operation='read')

        self.assertIs(exc.cause, cause)
        self.assertEqual(exc.context['operation'], 'read')
        self.assertIn('PermissionError', exc.context['cause'])

    def test_contract_errors_do_not_replace_builtins(self):
        """Contract error kinds are distinct from the OSError subclasses."""
        from retrofs.exceptions import NotADirectoryError as ContractNotADirectory

        self.assertFalse(issubclass(ContractNotADirectory, OSError))


class TestLogger(unittest.TestCase):
    """Test the logging system."""

    def test_logger_creation(self):
        """Test logger creation and singleton."""
        from retrofs.logger import Logger, get_logger

        log1 = Logger('test1')
        log2 = get_logger('test1')

        self.assertIs(log1, log2)
        self.assertEqual(log1.subsystem, 'test1')

    def test_log_levels(self):
        """Test log level ordering and lookup by name."""
        from retrofs.logger import LogLevel

        self.assertTrue(LogLevel.ERROR > LogLevel.INFO)
        self.assertTrue(LogLevel.INFO < LogLevel.NOTICE < LogLevel.WARNING)
        self.assertEqual(LogLevel.from_name('warning'), LogLevel.WARNING)

        with self.assertRaises(ValueError):
            LogLevel.from_name('loud')

    def test_context_reaches_records(self):
        """Structured context is attached to emitted records."""
        from retrofs.logger import get_logger

        log = get_logger('context_test')
        with self.assertLogs('retrofs.context_test', level='INFO') as captured:
            log.info("Mounted", context={'root': '/data'})

        record = captured.records[0]
        self.assertEqual(record.subsystem, 'context_test')
        self.assertEqual(record.context, {'root': '/data'})


class TestConfig(unittest.TestCase):
    """Test the configuration system."""

    def tearDown(self):
        from retrofs.core.config_loader import ConfigLoader
        ConfigLoader().reset()

    def test_default_config(self):
        """Test default configuration values."""
        from retrofs.core.config_loader import Config

        config = Config()

        self.assertEqual(config.kernel.name, "RetroOS")
        self.assertEqual(config.filesystem.log_capacity, 1000)
        self.assertEqual(config.filesystem.default_log_limit, 100)
        self.assertEqual(config.storage.state_key, "retroos_filesystem_state")
        self.assertEqual(
            config.filesystem.seed_directories,
            ['system', 'users', 'applications', 'temp']
        )

    def test_load_file(self):
        """Values from a JSON file override the defaults."""
        from retrofs.core.config_loader import ConfigLoader, get_config

        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'retrofs.json')
            with open(path, 'w', encoding='utf-8') as f:
                json.dump({'filesystem': {'log_capacity': 50}, 'logging': {'level': 'debug'}}, f)

            config = ConfigLoader().load(path)

        self.assertEqual(config.filesystem.log_capacity, 50)
        self.assertEqual(config.filesystem.default_log_limit, 100)
        self.assertIs(get_config(), config)

    def test_invalid_files(self):
        """Missing files, bad JSON and bad values raise ConfigValidationError."""
        from retrofs.core.config_loader import ConfigLoader
        from retrofs.exceptions import ConfigValidationError

        loader = ConfigLoader()

        with self.assertRaises(ConfigValidationError):
            loader.load('/nonexistent/retrofs.json')

        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'broken.json')
            with open(path, 'w', encoding='utf-8') as f:
                f.write('{not json')
            with self.assertRaises(ConfigValidationError):
                loader.load(path)

        with self.assertRaises(ConfigValidationError):
            loader.load_dict({'filesystem': {'log_capacity': 0}})

    def test_seed_names_must_be_plain(self):
        """Seed directory names that a handle would refuse are rejected on load."""
        from retrofs.core.config_loader import ConfigLoader
        from retrofs.exceptions import ConfigValidationError

        loader = ConfigLoader()

        for name in ['.', '..', '', 'a/b', 'a\\b', 'a\x00b']:
            with self.assertRaises(ConfigValidationError, msg=repr(name)):
                loader.load_dict({'filesystem': {'seed_directories': ['system', name]}})

        config = loader.load_dict({'filesystem': {'seed_directories': ['system', '.hidden']}})
        self.assertEqual(config.filesystem.seed_directories, ['system', '.hidden'])

    def test_dotted_access(self):
        """get/set address values by dotted key."""
        from retrofs.core.config_loader import ConfigLoader
        from retrofs.exceptions import ConfigValidationError

        loader = ConfigLoader()
        loader.set('filesystem.default_user', 'guest')

        self.assertEqual(loader.get('filesystem.default_user'), 'guest')
        self.assertEqual(loader.get('filesystem.missing', 'fallback'), 'fallback')
        self.assertEqual(loader.to_dict()['filesystem']['default_user'], 'guest')

        with self.assertRaises(ConfigValidationError):
            loader.set('filesystem.missing', 1)


class TestPathResolver(unittest.TestCase):
    """Test path normalization."""

    def test_normalize(self):
        """Canonical forms of accepted paths."""
        from retrofs.filesystem.path_resolver import PathResolver

        self.assertEqual(PathResolver.normalize('/'), '/')
        self.assertEqual(PathResolver.normalize('/users/alice'), '/users/alice')
        self.assertEqual(PathResolver.normalize('/users/alice/'), '/users/alice')
        self.assertEqual(PathResolver.normalize('/users/./alice'), '/users/alice')
        self.assertEqual(PathResolver.normalize('/users/alice/../bob'), '/users/bob')
        self.assertEqual(PathResolver.normalize('/../..'), '/')

    def test_idempotent(self):
        """Normalizing a canonical path returns it unchanged."""
        from retrofs.filesystem.path_resolver import PathResolver

        for path in ['/', '/a', '/a/b/c', '/a/./b/../c/']:
            once = PathResolver.normalize(path)
            self.assertEqual(PathResolver.normalize(once), once)

    def test_invalid_paths(self):
        """Empty, relative and malformed paths are rejected."""
        from retrofs.filesystem.path_resolver import PathResolver
        from retrofs.exceptions import InvalidPathError

        for bad in ['', 'users', 'a/b', '/a//b', '//', '/a\x00b']:
            with self.assertRaises(InvalidPathError, msg=repr(bad)):
                PathResolver.normalize(bad)

    def test_segments_and_helpers(self):
        """Segment splitting and the path helpers."""
        from retrofs.filesystem.path_resolver import PathResolver

        self.assertEqual(PathResolver.segments('/'), [])
        self.assertEqual(PathResolver.segments('/a/b'), ['a', 'b'])
        self.assertEqual(PathResolver.join('/', 'a'), '/a')
        self.assertEqual(PathResolver.join('/a', 'b'), '/a/b')
        self.assertEqual(PathResolver.split('/a/b.txt'), ('/a', 'b.txt'))
        self.assertEqual(PathResolver.dirname('/a'), '/')
        self.assertEqual(PathResolver.basename('/'), '/')
        self.assertEqual(
            list(PathResolver.ancestors('/system/config.sys')),
            ['/system/config.sys', '/system', '/']
        )
        self.assertTrue(PathResolver.is_ancestor('/a', '/a/b'))
        self.assertFalse(PathResolver.is_ancestor('/a', '/a'))
        self.assertFalse(PathResolver.is_ancestor('/a', '/ab'))
        self.assertEqual(PathResolver.get_depth('/a/b/c'), 3)

    def test_resolve_relative(self):
        """Relative paths resolve against a working directory."""
        from retrofs.filesystem.path_resolver import PathResolver

        self.assertEqual(PathResolver.resolve('notes.txt', '/users/alice'), '/users/alice/notes.txt')
        self.assertEqual(PathResolver.resolve('..', '/users/alice'), '/users')
        self.assertEqual(PathResolver.resolve('/temp', '/users'), '/temp')


class TestVNode(unittest.TestCase):
    """Test tree nodes."""

    def test_file_node(self):
        """Size and MIME type follow the content and name."""
        from retrofs.filesystem.vnode import VNode

        node = VNode.new_file('/docs/a.txt', 'héllo', now=1.0, owner='admin')

        self.assertTrue(node.is_file)
        self.assertEqual(node.size, len('héllo'.encode('utf-8')))
        self.assertEqual(node.mime_type, 'text/plain')
        self.assertEqual(node.name, 'a.txt')

        with self.assertRaises(TypeError):
            node.set_content(42, now=2.0)

    def test_serialization(self):
        """Binary content survives a dict round trip as base64."""
        from retrofs.filesystem.vnode import VNode

        node = VNode.new_file('/bin.dat', b'\x00\xff', now=1.0, owner='admin')
        data = node.to_dict()

        self.assertEqual(data['encoding'], 'base64')
        self.assertEqual(VNode.from_dict(data).content, b'\x00\xff')

        directory = VNode.new_directory('/docs', now=1.0, owner='admin')
        directory.add_child('a.txt', now=2.0)
        self.assertEqual(VNode.from_dict(directory.to_dict()).children, ['a.txt'])


class TestPermissions(unittest.TestCase):
    """Test the permission table."""

    def test_defaults(self):
        """With no entries the built-in defaults apply."""
        from retrofs.filesystem.permissions import PermissionTable

        table = PermissionTable()

        self.assertTrue(table.check('/anything', 'read'))
        self.assertFalse(table.check('/anything', 'write'))
        self.assertTrue(table.check('/anything', 'execute'))

    def test_inheritance(self):
        """The closest ancestor that defines an operation wins."""
        from retrofs.filesystem.permissions import PermissionTable

        table = PermissionTable()
        table.set('/system', 'write', False)

        self.assertFalse(table.check('/system/config.sys', 'write'))

        table.set('/users', 'write', True)
        table.set('/users/guest', 'write', False)

        self.assertTrue(table.check('/users/alice/notes.txt', 'write'))
        self.assertFalse(table.check('/users/guest/notes.txt', 'write'))

    def test_partial_entries_fall_through(self):
        """An entry that leaves an operation unset defers to its ancestors."""
        from retrofs.filesystem.permissions import PermissionTable, PermissionOp

        table = PermissionTable()
        table.set('/', PermissionOp.READ, False)
        table.set('/docs', PermissionOp.WRITE, True)

        self.assertFalse(table.check('/docs/a.txt', PermissionOp.READ))
        self.assertTrue(table.check('/docs/a.txt', PermissionOp.WRITE))

    def test_unknown_operation(self):
        """Unknown operation names raise ValueError."""
        from retrofs.filesystem.permissions import PermissionTable

        with self.assertRaises(ValueError):
            PermissionTable().check('/', 'delete')

    def test_snapshot_restore(self):
        """A snapshot restores the same rules."""
        from retrofs.filesystem.permissions import PermissionTable
        from retrofs.exceptions import PersistLoadCorruptError

        table = PermissionTable()
        table.set('/system', 'write', False)
        table.set('/temp', 'write', True)

        copy = PermissionTable()
        copy.restore(json.loads(json.dumps(table.snapshot())))

        self.assertFalse(copy.check('/system/x', 'write'))
        self.assertTrue(copy.check('/temp/x', 'write'))
        self.assertIsNone(copy.get('/system').read)

        with self.assertRaises(PersistLoadCorruptError):
            copy.restore([['/system', {'write': 'no'}]])


class TestOperationLog(unittest.TestCase):
    """Test the bounded operation log."""

    def test_bounded_fifo(self):
        """The oldest entries are evicted once capacity is reached."""
        from retrofs.filesystem.operation_log import OperationLog, OperationStatus

        log = OperationLog(capacity=3)
        for i in range(5):
            log.record_operation('read', f'/f{i}', OperationStatus.SUCCESS, timestamp=float(i))

        self.assertEqual(len(log), 3)
        self.assertEqual([e.path for e in log.recent(10)], ['/f2', '/f3', '/f4'])
        self.assertEqual([e.path for e in log.recent(1)], ['/f4'])
        self.assertEqual(log.recent(0), [])

    def test_recent_is_a_copy(self):
        """Entries recorded later never appear in an earlier result."""
        from retrofs.filesystem.operation_log import OperationLog, OperationStatus

        log = OperationLog()
        log.record_operation('read', '/a', OperationStatus.SUCCESS)
        snapshot = log.recent(10)
        log.record_operation('read', '/b', OperationStatus.FAILED, details='NotFound')

        self.assertEqual(len(snapshot), 1)
        self.assertEqual(log.recent(10)[-1].details, 'NotFound')

    def test_restore_respects_capacity(self):
        """Restoring more entries than fit keeps the newest ones."""
        from retrofs.filesystem.operation_log import OperationLog, OperationStatus

        source = OperationLog()
        for i in range(4):
            source.record_operation('mkdir', f'/d{i}', OperationStatus.SUCCESS)

        target = OperationLog(capacity=2)
        target.restore(source.snapshot())

        self.assertEqual([e.path for e in target.recent(5)], ['/d2', '/d3'])


class TestMemoryBackendState(unittest.TestCase):
    """Test sandbox inspection and persistence helpers."""

    def _backend(self):
        from retrofs.filesystem.memory_backend import MemoryBackend

        backend = MemoryBackend(now=1.0)
        backend.populate(['/docs', '/docs/old'], {'/docs/a.txt': 'hello'}, now=1.0, owner='admin')
        return backend

    def test_populate_and_statistics(self):
        """Populated nodes are counted by kind."""
        backend = self._backend()
        stats = backend.statistics()

        self.assertEqual(stats['total_files'], 1)
        self.assertEqual(stats['total_directories'], 3)
        self.assertEqual(stats['total_size'], 5)
        self.assertEqual(backend.check_integrity(), [])

    def test_stat_returns_copy(self):
        """Mutating a stat result leaves the tree unchanged."""
        backend = self._backend()

        node = backend.stat('/docs')
        node.children.append('ghost')

        self.assertNotIn('ghost', backend.stat('/docs').children)

    def test_snapshot_restore(self):
        """A snapshot restores an identical tree."""
        from retrofs.filesystem.memory_backend import MemoryBackend

        backend = self._backend()
        copy = MemoryBackend()
        copy.restore(json.loads(json.dumps(backend.snapshot())))

        self.assertEqual(copy.read_sync('/docs/a.txt', now=2.0), 'hello')
        self.assertEqual(copy.check_integrity(), [])

    def test_restore_rejects_broken_tree(self):
        """Orphans and missing parents are reported as corrupt state."""
        from retrofs.exceptions import PersistLoadCorruptError

        backend = self._backend()
        entries = [item for item in backend.snapshot() if item[0] != '/docs']

        with self.assertRaises(PersistLoadCorruptError):
            backend.restore(entries)

        with self.assertRaises(PersistLoadCorruptError):
            backend.restore({'not': 'a list'})

        # Failed restores leave the tree untouched
        self.assertEqual(backend.read_sync('/docs/a.txt', now=2.0), 'hello')


class TestPersistence(unittest.TestCase):
    """Test the state document codec."""

    def test_round_trip(self):
        """Encoded sections decode unchanged."""
        from retrofs.filesystem.persistence import encode_state, decode_state

        text = encode_state(tree=[['/', {}]], permissions=[], log=[], timestamp=12.5)
        state = decode_state(text)

        self.assertEqual(state.tree, [['/', {}]])
        self.assertEqual(state.timestamp, 12.5)

    def test_corrupt_documents(self):
        """Malformed documents raise PersistLoadCorruptError."""
        from retrofs.filesystem.persistence import decode_state
        from retrofs.exceptions import PersistLoadCorruptError

        for text in ['{oops', '[]', '{"permissions": []}', '{"tree": {}, "permissions": []}']:
            with self.assertRaises(PersistLoadCorruptError, msg=text):
                decode_state(text, key='state')


class TestKeyValueStore(unittest.TestCase):
    """Test durable key/value stores."""

    def test_memory_store(self):
        """Values are stored and removed by key."""
        from retrofs.storage import MemoryKeyValueStore

        store = MemoryKeyValueStore()
        store.set('a', '1')

        self.assertEqual(store.get('a'), '1')
        self.assertEqual(store.keys(), ['a'])
        self.assertTrue(store.remove('a'))
        self.assertFalse(store.remove('a'))
        self.assertIsNone(store.get('a'))

    def test_file_store(self):
        """Values persist across store instances."""
        from retrofs.storage import FileKeyValueStore

        with tempfile.TemporaryDirectory() as tmp:
            directory = os.path.join(tmp, 'state')
            FileKeyValueStore(directory).set('retroos_filesystem_state', '{"tree": []}')

            reopened = FileKeyValueStore(directory)
            self.assertEqual(reopened.get('retroos_filesystem_state'), '{"tree": []}')
            self.assertEqual(reopened.keys(), ['retroos_filesystem_state'])
            self.assertIsNone(reopened.get('other'))

            with self.assertRaises(ValueError):
                reopened.set('../escape', 'x')

    def test_file_store_undecodable_value(self):
        """A value that is not UTF-8 is reported as corrupt state."""
        from retrofs.exceptions import PersistLoadCorruptError
        from retrofs.storage import FileKeyValueStore

        with tempfile.TemporaryDirectory() as tmp:
            with open(os.path.join(tmp, 'state.json'), 'wb') as f:
                f.write(b'{"tree": \xff\xfe}')

            with self.assertRaises(PersistLoadCorruptError) as ctx:
                FileKeyValueStore(tmp).get('state')
            self.assertEqual(ctx.exception.key, 'state')


class TestUtils(unittest.TestCase):
    """Test filesystem utilities."""

    def test_format_bytes(self):
        from retrofs.filesystem.utils import format_bytes

        self.assertEqual(format_bytes(0), '0 B')
        self.assertEqual(format_bytes(512), '512 B')
        self.assertEqual(format_bytes(1536), '1.5 KB')

    def test_mime_type(self):
        from retrofs.filesystem.utils import get_mime_type

        self.assertEqual(get_mime_type('kernel_state.json'), 'application/json')
        self.assertEqual(get_mime_type('README'), 'application/octet-stream')


def run_tests():
    """Run all tests."""
    loader = unittest.TestLoader()
    suite = loader.loadTestsFromModule(sys.modules[__name__])

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return 0 if result.wasSuccessful() else 1


if __name__ == '__main__':
    sys.exit(run_tests())
