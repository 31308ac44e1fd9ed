"""
VNode Module

Implements the VNode abstraction for the virtual file system.
A VNode is one file or directory entry; directories keep the names of
their immediate children so listings never have to scan the whole store.

Author: RetroOS Kernel Team
Version: 18.0.0
"""

import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Any, List, Union

from .utils import get_mime_type


Content = Union[str, bytes]


class NodeKind(Enum):
    """Types of VNodes."""
    FILE = 'file'
    DIRECTORY = 'directory'


def content_size(content: Optional[Content]) -> int:
    """Size in bytes of a file payload (text is measured as UTF-8)."""
    if content is None:
        return 0
    if isinstance(content, str):
        return len(content.encode('utf-8'))
    return len(content)


@dataclass
class VNode:
    """
    VNode - one entry in the tree.

    Stores:
    - Canonical path and kind
    - Content (files) or child names (directories)
    - Size, timestamps and owner

    Timestamps are supplied by the caller; a VNode never reads the clock.
    """

    path: str
    kind: NodeKind
    content: Optional[Content] = None
    children: List[str] = field(default_factory=list)
    size: int = 0
    created_at: float = 0.0
    modified_at: float = 0.0
    accessed_at: float = 0.0
    owner: str = 'admin'
    mime_type: Optional[str] = None

    @classmethod
    def new_directory(cls, path: str, now: float, owner: str) -> 'VNode':
        return cls(
            path=path,
            kind=NodeKind.DIRECTORY,
            created_at=now,
            modified_at=now,
            accessed_at=now,
            owner=owner,
        )

    @classmethod
    def new_file(cls, path: str, content: Content, now: float, owner: str) -> 'VNode':
        node = cls(
            path=path,
            kind=NodeKind.FILE,
            created_at=now,
            accessed_at=now,
            owner=owner,
            mime_type=get_mime_type(path.rsplit('/', 1)[-1]),
        )
        node.set_content(content, now)
        return node

    @property
    def is_directory(self) -> bool:
        return self.kind == NodeKind.DIRECTORY

    @property
    def is_file(self) -> bool:
        return self.kind == NodeKind.FILE

    @property
    def name(self) -> str:
        if self.path == '/':
            return '/'
        return self.path.rsplit('/', 1)[1]

    # File operations

    def set_content(self, content: Content, now: float) -> None:
        """Replace the file payload and update size and mtime."""
        if not self.is_file:
            raise ValueError("Not a file")
        if not isinstance(content, (str, bytes)):
            raise TypeError(f"File content must be str or bytes, not {type(content).__name__}")

        self.content = content
        self.size = content_size(content)
        self.modified_at = now

    def touch(self, now: float) -> None:
        """Update the access time."""
        self.accessed_at = now

    # Directory operations

    def add_child(self, name: str, now: float) -> None:
        """Register a child name (no-op if already present)."""
        if not self.is_directory:
            raise ValueError("Not a directory")

        if name not in self.children:
            self.children.append(name)
            self.modified_at = now

    def remove_child(self, name: str, now: float) -> bool:
        """Unregister a child name; returns whether it was present."""
        if not self.is_directory:
            raise ValueError("Not a directory")

        if name in self.children:
            self.children.remove(name)
            self.modified_at = now
            return True
        return False

    def copy(self) -> 'VNode':
        """Detached copy; mutating it never touches the store."""
        return VNode(
            path=self.path,
            kind=self.kind,
            content=self.content,
            children=list(self.children),
            size=self.size,
            created_at=self.created_at,
            modified_at=self.modified_at,
            accessed_at=self.accessed_at,
            owner=self.owner,
            mime_type=self.mime_type,
        )

    # Serialization

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-safe dictionary."""
        data: dict[str, Any] = {
            'path': self.path,
            'type': self.kind.value,
            'size': self.size,
            'created': self.created_at,
            'modified': self.modified_at,
            'accessed': self.accessed_at,
            'owner': self.owner,
        }

        if self.is_directory:
            data['contents'] = list(self.children)
        elif isinstance(self.content, bytes):
            data['content'] = base64.b64encode(self.content).decode('ascii')
            data['encoding'] = 'base64'
        else:
            data['content'] = self.content if self.content is not None else ''

        if self.mime_type:
            data['mimeType'] = self.mime_type

        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'VNode':
        """
        Rebuild a VNode from :meth:`to_dict` output.

        Raises:
            KeyError, ValueError, TypeError: If the mapping is malformed
        """
        kind = NodeKind(data['type'])
        node = cls(
            path=data['path'],
            kind=kind,
            size=int(data.get('size', 0)),
            created_at=float(data.get('created', 0.0)),
            modified_at=float(data.get('modified', 0.0)),
            accessed_at=float(data.get('accessed', 0.0)),
            owner=str(data.get('owner', 'admin')),
            mime_type=data.get('mimeType'),
        )

        if kind == NodeKind.DIRECTORY:
            contents = data.get('contents', [])
            if not isinstance(contents, list) or not all(isinstance(c, str) for c in contents):
                raise TypeError("Directory contents must be a list of names")
            node.children = list(contents)
        else:
            raw = data.get('content', '')
            if not isinstance(raw, str):
                raise TypeError("File content must be a string")
            if data.get('encoding') == 'base64':
                node.content = base64.b64decode(raw.encode('ascii'), validate=True)
            else:
                node.content = raw
            node.size = content_size(node.content)

        return node


@dataclass
class DirEntry:
    """One row of a directory listing."""
    name: str
    kind: NodeKind
    size: int = 0

    @property
    def is_directory(self) -> bool:
        return self.kind == NodeKind.DIRECTORY

    def to_dict(self) -> dict[str, Any]:
        return {'name': self.name, 'kind': self.kind.value, 'size': self.size}


def listing_order(entry: DirEntry) -> tuple:
    """Sort key: directories first, then by name."""
    return (not entry.is_directory, entry.name)
