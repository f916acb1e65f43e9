#!/usr/bin/env python3
"""
virtual_fs - An in-memory hierarchical filesystem for the webshell terminal.

Core philosophy:
- The base tree supplied at construction is never mutated
- Every node lives in an append-only arena and is addressed by integer id
- Session changes go to an overlay (path -> node id) consulted before the base
- Nodes are immutable; an update stores a new node and repoints the overlay

Operations report failures by returning an ``OperationError`` value rather
than raising, so callers can render them as ordinary output.
"""

import json
import logging
import re
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)

FOLDER_SIZE = 4096
MAX_TREE_DEPTH = 10
SIZE_UNITS = ['B', 'K', 'M', 'G', 'T']

SUBTYPES = {
    'image': ('png', 'jpg', 'jpeg', 'gif', 'svg', 'webp', 'bmp', 'ico'),
    'code': ('js', 'jsx', 'ts', 'tsx', 'py', 'rb', 'go', 'rs', 'java', 'c', 'cpp',
             'h', 'css', 'scss', 'html', 'sh'),
    'document': ('md', 'txt', 'pdf', 'doc', 'docx', 'rtf'),
    'data': ('json', 'csv', 'yaml', 'yml', 'xml', 'toml'),
    'audio': ('mp3', 'wav', 'ogg', 'flac'),
    'video': ('mp4', 'webm', 'mov', 'avi'),
    'archive': ('zip', 'tar', 'gz', 'rar', '7z'),
}


class NodeKind(Enum):
    """Filesystem node types."""
    FILE = 'file'
    FOLDER = 'folder'

    @classmethod
    def parse(cls, value: Union[str, 'NodeKind']) -> 'NodeKind':
        if isinstance(value, NodeKind):
            return value
        if value in ('folder', 'dir', 'directory'):
            return cls.FOLDER
        if value == 'file':
            return cls.FILE
        raise ValueError(f"Unknown node kind: {value!r}")


class ErrorKind(Enum):
    """Reasons a filesystem operation can fail."""
    NOT_FOUND = 'No such file or directory'
    NOT_A_DIRECTORY = 'Not a directory'
    IS_A_DIRECTORY = 'Is a directory'
    ALREADY_EXISTS = 'File exists'


_ERROR_TEMPLATES = {
    'ls': "ls: cannot access '{path}': {reason}",
    'mkdir': "mkdir: cannot create directory '{path}': {reason}",
    'touch': "touch: cannot touch '{path}': {reason}",
    'stat': "stat: cannot stat '{path}': {reason}",
    'find': "find: '{path}': {reason}",
    'tree': "tree: '{path}': {reason}",
}


@dataclass(frozen=True)
class OperationError:
    """A failed filesystem operation, returned as a value."""
    kind: ErrorKind
    operation: str
    path: str

    def __str__(self) -> str:
        template = _ERROR_TEMPLATES.get(self.operation, "{op}: {path}: {reason}")
        return template.format(op=self.operation, path=self.path, reason=self.kind.value)


@dataclass(frozen=True)
class FsNode:
    """A file or folder. Children are tracked by the filesystem, not the node."""
    name: str
    kind: NodeKind
    content: Optional[str] = None
    size: Optional[int] = None
    created: Optional[str] = None
    modified: Optional[str] = None
    subtype: Optional[str] = None

    def is_dir(self) -> bool:
        return self.kind is NodeKind.FOLDER

    def is_file(self) -> bool:
        return self.kind is NodeKind.FILE

    @property
    def display_name(self) -> str:
        return f"{self.name}/" if self.is_dir() else self.name

    def byte_size(self) -> int:
        if self.size is not None:
            return self.size
        if self.is_dir():
            return FOLDER_SIZE
        return len((self.content or '').encode('utf-8'))


@dataclass
class ListingEntry:
    """One row of an ``ls`` listing."""
    name: str
    raw_name: str
    is_dir: bool
    size: int
    kind: NodeKind
    subtype: Optional[str] = None
    long: Optional[str] = None


@dataclass
class TouchResult:
    path: str
    created: bool = False
    updated: bool = False


@dataclass
class StatResult:
    path: str
    name: str
    kind: NodeKind
    subtype: Optional[str]
    size: int
    created: Optional[str]
    modified: Optional[str]

    @property
    def is_dir(self) -> bool:
        return self.kind is NodeKind.FOLDER


@dataclass
class TreeLine:
    text: str
    is_dir: bool
    depth: int


@dataclass
class TreeResult:
    root: str
    lines: List[TreeLine]


def human_readable_size(size: int) -> str:
    """Format a byte count with binary units, rounded to an integer."""
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{int(value + 0.5)}{SIZE_UNITS[unit]}"


def infer_subtype(name: str) -> Optional[str]:
    """Guess a display subtype from a file extension."""
    if '.' not in name:
        return None
    extension = name.rsplit('.', 1)[1].lower()
    for subtype, extensions in SUBTYPES.items():
        if extension in extensions:
            return subtype
    return None


@lru_cache(maxsize=128)
def _glob_to_regex(pattern: str):
    """
    Compile a find(1) name pattern.

    Only ``*`` and ``?`` are wildcards. ``fnmatch`` is not used because it
    also treats ``[...]`` as a character class, while here brackets match
    themselves.
    """
    parts = []
    for char in pattern:
        if char == '*':
            parts.append('.*')
        elif char == '?':
            parts.append('.')
        else:
            parts.append(re.escape(char))
    return re.compile('^' + ''.join(parts) + '$')


def match_pattern(name: str, pattern: str) -> bool:
    """Anchored glob match supporting ``*`` and ``?``."""
    if pattern == '*':
        return True
    return _glob_to_regex(pattern).match(name) is not None


def join_path(parent: str, name: str) -> str:
    return f"/{name}" if parent == '/' else f"{parent}/{name}"


def normalize(path: str) -> str:
    """Fold ``.`` and ``..`` segments; ``..`` at the root stays at the root."""
    resolved: List[str] = []
    for part in path.split('/'):
        if part in ('', '.'):
            continue
        if part == '..':
            if resolved:
                resolved.pop()
        else:
            resolved.append(part)
    return '/' + '/'.join(resolved)


def dirname(path: str) -> str:
    path = normalize(path)
    if path == '/':
        return '/'
    return normalize(path.rsplit('/', 1)[0])


def basename(path: str) -> str:
    path = normalize(path)
    return path.rsplit('/', 1)[1] or '/'


class VirtualFileSystem:
    """
    Two-layer virtual filesystem.

    The base layer is built once from a nested record tree and then frozen.
    The overlay maps absolute paths to arena ids and shadows the base.
    """

    def __init__(self, base_tree: Optional[Mapping[str, Any]] = None,
                 owner: str = 'guest', clock: Callable[[], datetime] = datetime.now):
        self.owner = owner
        self.clock = clock
        self.started = clock()

        # The arena: node id -> node. Append-only.
        self._arena: List[FsNode] = []

        base_paths: Dict[str, int] = {}
        base_children: Dict[str, Tuple[str, ...]] = {}
        root = base_tree or {'name': 'Home', 'type': 'folder', 'children': []}
        self._load_base(root, '/', base_paths, base_children)
        if not self._arena[base_paths['/']].is_dir():
            raise ValueError("Base tree root must be a folder")

        self._base_paths = MappingProxyType(base_paths)
        self._base_children = MappingProxyType(base_children)

        # Session layer
        self._overlay: Dict[str, int] = {}
        self._overlay_children: Dict[str, List[str]] = {}

        self.current_path = '/'
        self.history: List[str] = ['/']

    @classmethod
    def from_json(cls, text: str, **kwargs) -> 'VirtualFileSystem':
        """Build a filesystem from a JSON encoded base tree."""
        return cls(json.loads(text), **kwargs)

    def _load_base(self, record: Mapping[str, Any], path: str,
                   paths: Dict[str, int], children: Dict[str, Tuple[str, ...]]) -> None:
        kind = record.get('kind') or record.get('type') or (
            'folder' if 'children' in record else 'file')
        node = FsNode(
            name=record.get('name', basename(path)),
            kind=NodeKind.parse(kind),
            content=record.get('content'),
            size=record.get('size'),
            created=record.get('created'),
            modified=record.get('modified'),
            subtype=record.get('subtype'),
        )
        paths[path] = self._alloc(node)

        if not node.is_dir():
            return

        names: List[str] = []
        for child in record.get('children') or []:
            name = child.get('name')
            if not name or '/' in name:
                logger.warning("skipping base node with invalid name %r under %s", name, path)
                continue
            if name in names:
                logger.warning("skipping duplicate base node %s under %s", name, path)
                continue
            names.append(name)
            self._load_base(child, join_path(path, name), paths, children)
        children[path] = tuple(names)

    def _alloc(self, node: FsNode) -> int:
        self._arena.append(node)
        return len(self._arena) - 1

    def _now(self) -> str:
        return self.clock().isoformat()

    def _put(self, path: str, node: FsNode) -> None:
        """Store a node in the overlay."""
        self._overlay[path] = self._alloc(node)
        if path == '/' or path in self._base_paths:
            return
        siblings = self._overlay_children.setdefault(dirname(path), [])
        if node.name not in siblings:
            siblings.append(node.name)

    # Lookup

    def resolve_path(self, path: str) -> str:
        """Turn any user supplied path into a normalized absolute path."""
        if not path:
            return self.current_path
        if path == '~':
            return '/'
        if path.startswith('~/'):
            return normalize('/' + path[2:])
        if path.startswith('/'):
            return normalize(path)
        return normalize(f"{self.current_path}/{path}")

    def get_node(self, path: str) -> Optional[FsNode]:
        """Look up a normalized absolute path, overlay first."""
        node_id = self._overlay.get(path)
        if node_id is None:
            node_id = self._base_paths.get(path)
        return None if node_id is None else self._arena[node_id]

    def exists(self, path: str) -> bool:
        return self.get_node(path) is not None

    def is_directory(self, path: str) -> bool:
        node = self.get_node(path)
        return node is not None and node.is_dir()

    def children(self, path: str) -> List[Tuple[str, FsNode]]:
        """Children of a folder as (path, node), base order then overlay additions."""
        names = list(self._base_children.get(path, ()))
        names.extend(self._overlay_children.get(path, ()))
        result = []
        for name in names:
            child_path = join_path(path, name)
            node = self.get_node(child_path)
            if node is not None:
                result.append((child_path, node))
        return result

    # Navigation

    def pwd(self) -> str:
        return self.current_path

    def cd(self, path: Optional[str] = None) -> Union[str, OperationError]:
        """Change directory and return the new working directory."""
        if not path or path == '~':
            target = '/'
        elif path == '-':
            if len(self.history) > 1:
                self.history.pop()
                self.current_path = self.history[-1]
            return self.current_path
        else:
            target = self.resolve_path(path)
            node = self.get_node(target)
            if node is None:
                return OperationError(ErrorKind.NOT_FOUND, 'cd', path)
            if not node.is_dir():
                return OperationError(ErrorKind.NOT_A_DIRECTORY, 'cd', path)

        self.current_path = target
        self.history.append(target)
        return target

    # Listing

    def ls(self, path: str = '.', flags: Optional[Mapping[str, Any]] = None
           ) -> Union[List[ListingEntry], OperationError]:
        """
        List a folder, or a single file.

        Folders sort before files, then by name. Flags: ``a`` adds ``.`` and
        ``..``, ``l`` adds a long format line, ``h`` uses human sizes with ``l``.
        """
        flags = flags or {}
        target = self.resolve_path(path)
        node = self.get_node(target)

        if node is None:
            return OperationError(ErrorKind.NOT_FOUND, 'ls', path)

        if node.is_file():
            return [self._entry(target, node, flags)]

        entries = [self._entry(child_path, child, flags)
                   for child_path, child in self.children(target)]
        entries.sort(key=lambda entry: (not entry.is_dir, entry.raw_name))

        if flags.get('a'):
            dots = [
                self._entry(target, replace(node, name='.', size=FOLDER_SIZE), flags),
                self._entry(dirname(target), replace(
                    self.get_node(dirname(target)) or node, name='..', size=FOLDER_SIZE), flags),
            ]
            entries = dots + entries

        return entries

    def _entry(self, path: str, node: FsNode, flags: Mapping[str, Any]) -> ListingEntry:
        size = node.byte_size()
        entry = ListingEntry(
            name=node.display_name,
            raw_name=node.name,
            is_dir=node.is_dir(),
            size=size,
            kind=node.kind,
            subtype=node.subtype,
        )

        if flags.get('l'):
            if node.is_dir():
                permissions = 'drwxr-xr-x'
                links = len(self.children(path)) or 2
            else:
                permissions = '-rw-r--r--'
                links = 1
            size_str = human_readable_size(size) if flags.get('h') else str(size)
            entry.long = (f"{permissions}  {links} {self.owner} {self.owner} "
                          f"{size_str:>6} {self._format_date(node)} {node.display_name}")

        return entry

    def _format_date(self, node: FsNode) -> str:
        stamp = node.modified or node.created
        if not stamp:
            return self.started.strftime('%b %d %Y')
        try:
            return datetime.fromisoformat(stamp).strftime('%b %d %Y')
        except ValueError:
            return stamp

    # File operations

    def cat(self, path: str) -> Union[str, OperationError]:
        """Return file content, empty string for an empty file."""
        node = self.get_node(self.resolve_path(path))
        if node is None:
            return OperationError(ErrorKind.NOT_FOUND, 'cat', path)
        if node.is_dir():
            return OperationError(ErrorKind.IS_A_DIRECTORY, 'cat', path)
        return node.content or ''

    def mkdir(self, path: str, flags: Optional[Mapping[str, Any]] = None
              ) -> Union[str, OperationError]:
        """Create a folder; with ``p`` create missing parents too."""
        flags = flags or {}
        target = self.resolve_path(path)

        if self.exists(target):
            return OperationError(ErrorKind.ALREADY_EXISTS, 'mkdir', path)

        parent = self.get_node(dirname(target))
        if parent is None and not flags.get('p'):
            return OperationError(ErrorKind.NOT_FOUND, 'mkdir', path)
        if parent is not None and not parent.is_dir():
            return OperationError(ErrorKind.NOT_A_DIRECTORY, 'mkdir', path)

        # Walk every segment; without -p only the last one is missing
        current = '/'
        for part in target.strip('/').split('/'):
            current = join_path(current, part)
            node = self.get_node(current)
            if node is None:
                self._put(current, FsNode(name=part, kind=NodeKind.FOLDER, created=self._now()))
            elif not node.is_dir():
                return OperationError(ErrorKind.NOT_A_DIRECTORY, 'mkdir', path)

        logger.debug("mkdir %s", target)
        return target

    def touch(self, path: str) -> Union[TouchResult, OperationError]:
        """Create an empty file or refresh the modified time of an existing node."""
        target = self.resolve_path(path)
        node = self.get_node(target)

        if node is not None:
            self._put(target, replace(node, modified=self._now()))
            return TouchResult(path=target, updated=True)

        parent = self.get_node(dirname(target))
        if parent is None:
            return OperationError(ErrorKind.NOT_FOUND, 'touch', path)
        if not parent.is_dir():
            return OperationError(ErrorKind.NOT_A_DIRECTORY, 'touch', path)

        now = self._now()
        self._put(target, FsNode(name=basename(target), kind=NodeKind.FILE,
                                 content='', size=0, created=now, modified=now))
        return TouchResult(path=target, created=True)

    def stat(self, path: str) -> Union[StatResult, OperationError]:
        target = self.resolve_path(path)
        node = self.get_node(target)
        if node is None:
            return OperationError(ErrorKind.NOT_FOUND, 'stat', path)

        subtype = node.subtype
        if subtype is None and node.is_file():
            subtype = infer_subtype(node.name)

        return StatResult(
            path=target,
            name=node.name,
            kind=node.kind,
            subtype=subtype,
            size=node.byte_size() if node.is_file() else (node.size or 0),
            created=node.created,
            modified=node.modified,
        )

    def disk_usage(self, path: str) -> Union[int, OperationError]:
        """Total size of a file, or of every file below a folder."""
        target = self.resolve_path(path)
        node = self.get_node(target)
        if node is None:
            return OperationError(ErrorKind.NOT_FOUND, 'du', path)
        if node.is_file():
            return node.byte_size()
        return sum(child.byte_size() if child.is_file() else self.disk_usage(child_path)
                   for child_path, child in self.children(target))

    # Search

    def find(self, start_path: str = '.', pattern: str = '*',
             type: Optional[str] = None, max_depth: Optional[int] = None
             ) -> Union[List[str], OperationError]:
        """
        Depth-first search by name glob.

        A node is listed before its children and children keep their stored
        order. ``type`` restricts results to files (``f``) or folders (``d``).
        """
        target = self.resolve_path(start_path)
        node = self.get_node(target)
        if node is None:
            return OperationError(ErrorKind.NOT_FOUND, 'find', start_path)

        found: List[str] = []

        def search(current_path: str, current: FsNode, depth: int):
            if match_pattern(current.name, pattern):
                if (type is None
                        or (type == 'f' and current.is_file())
                        or (type == 'd' and current.is_dir())):
                    found.append(current_path)

            if current.is_dir() and (max_depth is None or depth < max_depth):
                for child_path, child in self.children(current_path):
                    search(child_path, child, depth + 1)

        search(target, node, 0)
        return found

    def tree(self, start_path: str = '.', max_depth: int = MAX_TREE_DEPTH
             ) -> Union[TreeResult, OperationError]:
        """Render a folder as box-drawing lines."""
        target = self.resolve_path(start_path)
        node = self.get_node(target)
        if node is None:
            return OperationError(ErrorKind.NOT_FOUND, 'tree', start_path)
        if not node.is_dir():
            return OperationError(ErrorKind.NOT_A_DIRECTORY, 'tree', start_path)

        return TreeResult(root=node.name, lines=self._build_tree(target, 0, max_depth, ''))

    def _build_tree(self, path: str, depth: int, max_depth: int, prefix: str) -> List[TreeLine]:
        if depth >= max_depth:
            return []

        lines = []
        children = self.children(path)
        for index, (child_path, child) in enumerate(children):
            last = index == len(children) - 1
            connector = '└── ' if last else '├── '
            extension = '    ' if last else '│   '
            lines.append(TreeLine(text=f"{prefix}{connector}{child.display_name}",
                                  is_dir=child.is_dir(), depth=depth))
            if child.is_dir():
                lines.extend(self._build_tree(child_path, depth + 1, max_depth, prefix + extension))

        return lines
