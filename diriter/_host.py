from __future__ import annotations

import errno
import posixpath
import threading
from collections.abc import Callable
from datetime import datetime

from ._catalogue import (
    FILE_TYPE_MASK,
    FILE_TYPE_SHIFT,
    LOAD_HAS_STAMP,
    MAX_ENTRIES,
    CatalogueEntry,
    CatalogueReader,
    FileType,
    ObjectType,
    decode_load_exec,
    encode_load_exec,
    encode_name,
)
from ._exceptions import DIHostError
from ._path import normalize_path
from ._typing import HostCatInfo

ATTR_OWNER_READ = 1 << 0
ATTR_OWNER_WRITE = 1 << 1
ATTR_LOCKED = 1 << 3
ATTR_PUBLIC_READ = 1 << 4
ATTR_PUBLIC_WRITE = 1 << 5

DEFAULT_FILE_ATTRIBUTES = ATTR_OWNER_READ | ATTR_OWNER_WRITE | ATTR_PUBLIC_READ
DEFAULT_DIR_ATTRIBUTES = ATTR_OWNER_READ | ATTR_OWNER_WRITE
IMAGE_FILE_TYPE = 0xDDC

# ---------------------------------------------------------------------------
#  Directory Index Layer
# ---------------------------------------------------------------------------


class DirNode:
    """A directory, or an image file exposed with directory-like semantics."""

    __slots__ = ("node_id", "children", "load_addr", "exec_addr", "attributes", "is_image")

    def __init__(
        self,
        node_id: int,
        load_addr: int,
        exec_addr: int,
        attributes: int,
        is_image: bool = False,
    ) -> None:
        self.node_id: int = node_id
        self.children: dict[str, int] = {}
        self.load_addr: int = load_addr
        self.exec_addr: int = exec_addr
        self.attributes: int = attributes
        self.is_image: bool = is_image

    @property
    def object_type(self) -> ObjectType:
        return ObjectType.IMAGE if self.is_image else ObjectType.DIRECTORY


class FileNode:
    __slots__ = ("node_id", "length", "load_addr", "exec_addr", "attributes")

    def __init__(
        self, node_id: int, length: int, load_addr: int, exec_addr: int, attributes: int
    ) -> None:
        self.node_id: int = node_id
        self.length: int = length
        self.load_addr: int = load_addr
        self.exec_addr: int = exec_addr
        self.attributes: int = attributes

    @property
    def object_type(self) -> ObjectType:
        return ObjectType.FILE


Node = DirNode | FileNode


def _check_leaf_name(name: str, path: str) -> None:
    if "\0" in name:
        raise ValueError(f"Object name contains a NUL character: '{path}'")
    encode_name(name)


# ---------------------------------------------------------------------------
#  HostFileSystem
# ---------------------------------------------------------------------------


class HostFileSystem:
    """In-memory filing system serving catalogue reads.

    Children are kept in creation order, which is the order in which the
    catalogue reports them.
    """

    def __init__(self, max_nodes: int | None = None) -> None:
        if max_nodes is not None and max_nodes < 1:
            raise ValueError(f"Invalid max_nodes value: {max_nodes!r}. Expected None or >= 1.")
        self._global_lock = threading.RLock()
        self._max_nodes: int | None = max_nodes
        self._nodes: dict[int, Node] = {}
        self._next_node_id: int = 0
        # Root directory
        load, exec_addr = encode_load_exec(FileType.DATA)
        self._root = self._alloc_dir(load, exec_addr, DEFAULT_DIR_ATTRIBUTES)

    # -- node allocation helpers --

    def _check_node_limit(self) -> None:
        if self._max_nodes is not None and len(self._nodes) >= self._max_nodes:
            raise DIHostError(
                errno.ENOSPC,
                f"Host node limit exceeded: current {len(self._nodes)} nodes, "
                f"limit is {self._max_nodes}.",
            )

    def _alloc_dir(
        self, load_addr: int, exec_addr: int, attributes: int, is_image: bool = False
    ) -> DirNode:
        self._check_node_limit()
        nid = self._next_node_id
        self._next_node_id += 1
        node = DirNode(nid, load_addr, exec_addr, attributes, is_image)
        self._nodes[nid] = node
        return node

    def _alloc_file(
        self, length: int, load_addr: int, exec_addr: int, attributes: int
    ) -> FileNode:
        self._check_node_limit()
        nid = self._next_node_id
        self._next_node_id += 1
        node = FileNode(nid, length, load_addr, exec_addr, attributes)
        self._nodes[nid] = node
        return node

    # -- path helpers --

    def _np(self, path: str) -> str:
        return normalize_path(path)

    def _resolve_path(self, npath: str) -> Node | None:
        if npath == "/":
            return self._root
        parts = [p for p in npath.split("/") if p]
        current: Node = self._root
        for part in parts:
            if not isinstance(current, DirNode):
                return None
            child_id = current.children.get(part)
            if child_id is None:
                return None
            current = self._nodes[child_id]
        return current

    def _resolve_parent_and_name(self, npath: str) -> tuple[DirNode, str] | None:
        parent_path = posixpath.dirname(npath) or "/"
        name = posixpath.basename(npath)
        parent_node = self._resolve_path(parent_path)
        if parent_node is None or not isinstance(parent_node, DirNode):
            return None
        return parent_node, name

    def _require(self, path: str) -> Node:
        node = self._resolve_path(self._np(path))
        if node is None:
            raise FileNotFoundError(f"No such file or directory: '{path}'")
        return node

    def _link(self, path: str, make_node: Callable[[], Node]) -> None:
        npath = self._np(path)
        if npath == "/":
            raise FileExistsError(f"Directory exists: '{path}'")
        with self._global_lock:
            if self._resolve_path(npath) is not None:
                raise FileExistsError(f"File exists: '{path}'")
            pinfo = self._resolve_parent_and_name(npath)
            if pinfo is None:
                parent_path = posixpath.dirname(npath) or "/"
                raise FileNotFoundError(f"Parent directory does not exist: '{parent_path}'")
            parent, name = pinfo
            _check_leaf_name(name, path)
            node = make_node()
            parent.children[name] = node.node_id

    # -- public API --

    def canonicalise(self, path: str) -> str:
        return self._np(path)

    def mkdir(self, path: str, exist_ok: bool = False) -> None:
        npath = self._np(path)
        with self._global_lock:
            node = self._resolve_path(npath)
            if node is not None:
                if isinstance(node, DirNode) and not node.is_image:
                    if not exist_ok:
                        raise FileExistsError(f"Directory exists: '{path}'")
                    return
                raise FileExistsError(f"File exists at path: '{path}'")
            self._makedirs(npath)

    def _makedirs(self, npath: str) -> None:
        parts = [p for p in npath.split("/") if p]
        current = self._root
        for part in parts:
            child_id = current.children.get(part)
            if child_id is not None:
                child = self._nodes[child_id]
                if isinstance(child, DirNode):
                    current = child
                else:
                    raise FileExistsError(f"A file exists at path component: '{part}'")
            else:
                _check_leaf_name(part, npath)
                load, exec_addr = encode_load_exec(FileType.DATA)
                new_dir = self._alloc_dir(load, exec_addr, DEFAULT_DIR_ATTRIBUTES)
                current.children[part] = new_dir.node_id
                current = new_dir

    def make_path(self, path: str, offset: int = 0) -> None:
        """Create the directory named before each separator at or after *offset*.

        The final element of *path* is not created.  Directories that
        already exist are not an error.
        """
        if not 0 <= offset <= len(path):
            raise ValueError(f"Offset {offset} is outside path '{path}'")
        end = path.find("/", offset)
        while end >= 0:
            prefix = path[:end]
            if prefix:
                self.mkdir(prefix, exist_ok=True)
            end = path.find("/", end + 1)

    def create_file(
        self,
        path: str,
        length: int = 0,
        file_type: int | None = FileType.DATA,
        attributes: int = DEFAULT_FILE_ATTRIBUTES,
        stamp: datetime | None = None,
    ) -> None:
        """Create a file; ``file_type=None`` makes it untyped (load = exec = 0)."""
        if length < 0:
            raise ValueError(f"Invalid length: {length!r}")
        if file_type is None:
            load, exec_addr = 0, 0
        else:
            load, exec_addr = encode_load_exec(file_type, stamp)
        with self._global_lock:
            self._link(path, lambda: self._alloc_file(length, load, exec_addr, attributes))

    def create_image(
        self,
        path: str,
        file_type: int = IMAGE_FILE_TYPE,
        attributes: int = DEFAULT_FILE_ATTRIBUTES,
        stamp: datetime | None = None,
    ) -> None:
        load, exec_addr = encode_load_exec(file_type, stamp)
        with self._global_lock:
            self._link(
                path, lambda: self._alloc_dir(load, exec_addr, attributes, is_image=True)
            )

    def set_file_type(self, path: str, file_type: int) -> None:
        """Set an object's type, stamping it with the current time if unstamped."""
        if not 0 <= file_type <= FILE_TYPE_MASK:
            raise ValueError(f"Invalid file type: {file_type!r}. Expected 0..0xFFF.")
        with self._global_lock:
            node = self._require(path)
            if (node.load_addr & LOAD_HAS_STAMP) == LOAD_HAS_STAMP:
                node.load_addr = (
                    node.load_addr & ~(FILE_TYPE_MASK << FILE_TYPE_SHIFT)
                ) | (file_type << FILE_TYPE_SHIFT)
            else:
                node.load_addr, node.exec_addr = encode_load_exec(file_type)

    def get_file_type(self, path: str) -> int:
        with self._global_lock:
            node = self._require(path)
            return decode_load_exec(node.load_addr, node.exec_addr)[0]

    def get_date_stamp(self, path: str) -> bytes:
        with self._global_lock:
            node = self._require(path)
            return decode_load_exec(node.load_addr, node.exec_addr)[1]

    def get_file_size(self, path: str) -> int:
        with self._global_lock:
            node = self._require(path)
            if isinstance(node, DirNode):
                raise IsADirectoryError(f"Is a directory: '{path}'")
            return node.length

    def read_cat_info(self, path: str) -> HostCatInfo:
        """Catalogue information for *path*; a missing object is reported, not raised."""
        with self._global_lock:
            node = self._resolve_path(self._np(path))
            if node is None:
                return HostCatInfo(
                    object_type=ObjectType.NOT_FOUND,
                    load_addr=0,
                    exec_addr=0,
                    length=0,
                    attributes=0,
                )
            return HostCatInfo(
                object_type=node.object_type,
                load_addr=node.load_addr,
                exec_addr=node.exec_addr,
                length=node.length if isinstance(node, FileNode) else 0,
                attributes=node.attributes,
            )

    def remove(self, path: str) -> None:
        npath = self._np(path)
        with self._global_lock:
            node = self._resolve_path(npath)
            if node is None:
                raise FileNotFoundError(f"No such file: '{path}'")
            if isinstance(node, DirNode):
                raise IsADirectoryError(f"Is a directory: '{path}'")
            pinfo = self._resolve_parent_and_name(npath)
            if pinfo is None:
                raise FileNotFoundError(f"No such file: '{path}'")
            parent, name = pinfo
            del parent.children[name]
            del self._nodes[node.node_id]

    def rmtree(self, path: str) -> None:
        npath = self._np(path)
        if npath == "/":
            raise ValueError("Cannot remove the root directory.")
        with self._global_lock:
            node = self._resolve_path(npath)
            if node is None:
                raise FileNotFoundError(f"No such directory: '{path}'")
            if not isinstance(node, DirNode):
                raise NotADirectoryError(f"Not a directory: '{path}'")
            pinfo = self._resolve_parent_and_name(npath)
            if pinfo is not None:
                parent, name = pinfo
                del parent.children[name]
            self._remove_subtree(node)

    def _remove_subtree(self, node: Node) -> None:
        if isinstance(node, DirNode):
            for child_id in list(node.children.values()):
                self._remove_subtree(self._nodes[child_id])
            node.children.clear()
        if node.node_id in self._nodes:
            del self._nodes[node.node_id]

    def listdir(self, path: str) -> list[str]:
        with self._global_lock:
            node = self._require(path)
            if not isinstance(node, DirNode):
                raise NotADirectoryError(f"Not a directory: '{path}'")
            return list(node.children.keys())

    def exists(self, path: str) -> bool:
        npath = self._np(path)
        with self._global_lock:
            return self._resolve_path(npath) is not None

    def is_dir(self, path: str) -> bool:
        npath = self._np(path)
        with self._global_lock:
            return isinstance(self._resolve_path(npath), DirNode)

    def is_file(self, path: str) -> bool:
        npath = self._np(path)
        with self._global_lock:
            return isinstance(self._resolve_path(npath), FileNode)

    def catalogue(self, path: str) -> list[CatalogueEntry]:
        """Snapshot of the entries of directory *path*, in catalogue order."""
        with self._global_lock:
            node = self._require(path)
            if not isinstance(node, DirNode):
                raise NotADirectoryError(f"Not a directory: '{path}'")
            entries: list[CatalogueEntry] = []
            for name, child_id in node.children.items():
                child = self._nodes.get(child_id)
                if child is None:
                    continue
                entries.append(
                    CatalogueEntry(
                        name=name,
                        object_type=child.object_type,
                        load_addr=child.load_addr,
                        exec_addr=child.exec_addr,
                        length=child.length if isinstance(child, FileNode) else 0,
                        attributes=child.attributes,
                    )
                )
            return entries

    def read_catalogue(
        self,
        path: str,
        buffer: bytearray,
        offset: int,
        cursor: int,
        max_entries: int = MAX_ENTRIES,
        pattern: str | None = None,
    ) -> tuple[int, int]:
        return CatalogueReader.fill(
            self.catalogue(path), buffer, offset, cursor, max_entries, pattern
        )


class MemoryCatalogueReader(CatalogueReader):
    """Catalogue reader backed by a :class:`HostFileSystem`."""

    separator = "/"

    def __init__(self, host: HostFileSystem) -> None:
        self._host = host

    @property
    def host(self) -> HostFileSystem:
        return self._host

    def read(
        self,
        path: str,
        buffer: bytearray,
        offset: int,
        cursor: int,
        max_entries: int = MAX_ENTRIES,
        pattern: str | None = None,
    ) -> tuple[int, int]:
        return self._host.read_catalogue(path, buffer, offset, cursor, max_entries, pattern)
