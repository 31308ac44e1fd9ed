"""
Path Resolver Module

Handles path parsing and normalization for the virtual file system.
Every public file-system operation funnels its path through here first,
so both backends only ever see canonical absolute paths.

Author: RetroOS Kernel Team
Version: 18.0.0
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Tuple

from retrofs.exceptions import InvalidPathError


ROOT = '/'


@dataclass(frozen=True)
class ParsedPath:
    """A canonical absolute path split into its segments."""
    segments: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def path(self) -> str:
        return ROOT + '/'.join(self.segments)

    @property
    def is_root(self) -> bool:
        return not self.segments

    @property
    def name(self) -> str:
        return self.segments[-1] if self.segments else ROOT

    @property
    def parent(self) -> 'ParsedPath':
        return ParsedPath(self.segments[:-1])

    def __str__(self) -> str:
        return self.path


class PathResolver:
    """
    Resolves and manipulates filesystem paths.

    Rules:
    - Paths are absolute; ``/`` is the root with zero segments
    - ``.`` segments are dropped and ``..`` removes the previous segment
      (never above the root)
    - A single trailing slash is accepted and dropped
    - Empty segments (``/a//b``), empty strings and NUL bytes are rejected

    All methods are pure; ``normalize`` is idempotent.
    """

    @staticmethod
    def parse(path: str) -> ParsedPath:
        """
        Parse a path into canonical segments.

        Args:
            path: Absolute path string

        Returns:
            ParsedPath with canonical segments

        Raises:
            InvalidPathError: If the path is empty, relative or malformed
        """
        if not isinstance(path, str) or not path:
            raise InvalidPathError(str(path) if path is not None else '', reason="empty path")

        if not path.startswith(ROOT):
            raise InvalidPathError(path, reason="path must be absolute")

        if '\x00' in path:
            raise InvalidPathError(path, reason="NUL character in path")

        if path == ROOT:
            return ParsedPath()

        body = path[1:]
        if body.endswith('/'):
            body = body[:-1]

        result: List[str] = []

        for component in body.split('/'):
            if component == '':
                raise InvalidPathError(path, reason="empty segment")
            if component == '.':
                continue
            if component == '..':
                if result:
                    result.pop()
                continue
            result.append(component)

        return ParsedPath(tuple(result))

    @staticmethod
    def normalize(path: str) -> str:
        """
        Return the canonical string form of a path.

        Args:
            path: Path to normalize

        Returns:
            Canonical absolute path, no trailing slash except for root
        """
        return PathResolver.parse(path).path

    @staticmethod
    def segments(path: str) -> List[str]:
        """Return the ordered segments of a path (empty for root)."""
        return list(PathResolver.parse(path).segments)

    @staticmethod
    def join(parent: str, name: str) -> str:
        """
        Join a canonical directory path and a child name.

        Args:
            parent: Canonical directory path
            name: Child name (single segment)

        Returns:
            Canonical child path
        """
        if parent == ROOT:
            return ROOT + name
        return parent + '/' + name

    @staticmethod
    def resolve(path: str, cwd: str = ROOT) -> str:
        """
        Resolve a path relative to a current working directory.

        The file system has no notion of a working directory; this helper
        serves callers (such as a terminal) that keep one.

        Args:
            path: Absolute or relative path
            cwd: Current working directory (absolute)

        Returns:
            Canonical absolute path
        """
        if path.startswith(ROOT):
            return PathResolver.normalize(path)

        base = PathResolver.normalize(cwd)
        if not path:
            return base
        return PathResolver.normalize(base.rstrip('/') + '/' + path)

    @staticmethod
    def dirname(path: str) -> str:
        """Get the parent directory of a path (root is its own parent)."""
        return PathResolver.parse(path).parent.path

    @staticmethod
    def basename(path: str) -> str:
        """Get the final segment of a path (``/`` for root)."""
        return PathResolver.parse(path).name

    @staticmethod
    def split(path: str) -> Tuple[str, str]:
        """
        Split a path into directory and base name.

        Returns:
            Tuple of (dirname, basename)
        """
        parsed = PathResolver.parse(path)
        return (parsed.parent.path, parsed.name)

    @staticmethod
    def ancestors(path: str) -> Iterator[str]:
        """
        Yield the path itself, then each ancestor up to and including root.

        Example:
            >>> list(PathResolver.ancestors('/system/config.sys'))
            ['/system/config.sys', '/system', '/']
        """
        segments = PathResolver.parse(path).segments
        for depth in range(len(segments), -1, -1):
            yield ParsedPath(segments[:depth]).path

    @staticmethod
    def is_ancestor(ancestor: str, path: str) -> bool:
        """Check whether ``ancestor`` is a strict ancestor of ``path``."""
        outer = PathResolver.parse(ancestor).segments
        inner = PathResolver.parse(path).segments
        return len(outer) < len(inner) and inner[:len(outer)] == outer

    @staticmethod
    def get_depth(path: str) -> int:
        """Get the depth of a path (number of segments)."""
        return len(PathResolver.parse(path).segments)
