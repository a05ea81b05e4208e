"""Table of contents files and the directory tree they describe."""

from __future__ import annotations

import enum
import os
import struct
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Iterator, Optional, Union

PathLike = Union[str, "os.PathLike[str]"]

_ENTRY_STRUCT = struct.Struct("<qqiiii64s")

#: Size in bytes of a single entry in a TOC file.
TOC_ENTRY_SIZE = _ENTRY_STRUCT.size

#: Size in bytes of the TOC file header preceding the entries.
TOC_HEADER_SIZE = 8


class NodeKind(enum.Enum):
    """Whether a node is a directory or a file."""

    DIRECTORY = "directory"
    FILE = "file"


@dataclass(eq=False)
class Node:
    """A file or directory in the tree of a TOC file."""

    name: str
    kind: NodeKind
    cache_offset: Optional[int] = None
    timestamp: Optional[int] = None
    comp_len: Optional[int] = None
    length: Optional[int] = None
    parent: Optional["Node"] = field(default=None, repr=False)
    children: list["Node"] = field(default_factory=list, repr=False)

    @classmethod
    def file(
        cls, name: str, cache_offset: int, timestamp: int, comp_len: int, length: int
    ) -> "Node":
        return cls(name, NodeKind.FILE, cache_offset, timestamp, comp_len, length)

    @classmethod
    def directory(cls, name: str) -> "Node":
        return cls(name, NodeKind.DIRECTORY)

    @classmethod
    def root(cls) -> "Node":
        return cls.directory("")

    def append(self, child: "Node") -> None:
        """Attach ``child`` as the last child of this node."""
        child.parent = self
        self.children.append(child)

    def get_child(self, name: str) -> Optional["Node"]:
        """Return the first child named ``name``, if any."""
        return next((child for child in self.children if child.name == name), None)

    def ancestors(self) -> Iterator["Node"]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def path(self) -> PurePosixPath:
        """Return the absolute path of this node within its tree."""
        names = [ancestor.name for ancestor in reversed(list(self.ancestors()))]
        return PurePosixPath("/", *names, self.name)


@dataclass(frozen=True)
class TocEntry:
    """A single raw entry of a TOC file."""

    cache_offset: int
    timestamp: int
    comp_len: int
    len: int
    reserved: int
    parent_dir_index: int
    name: bytes

    @classmethod
    def unpack(cls, data: bytes) -> "TocEntry":
        """Parse one entry from exactly ``TOC_ENTRY_SIZE`` bytes."""
        if len(data) != TOC_ENTRY_SIZE:
            raise ValueError(
                f"TOC entry must be {TOC_ENTRY_SIZE} bytes, got {len(data)}"
            )
        return cls(*_ENTRY_STRUCT.unpack(data))

    @classmethod
    def iter_unpack(cls, data: bytes) -> Iterator["TocEntry"]:
        """Parse consecutive entries from a buffer whose length is a multiple of the entry size."""
        if len(data) % TOC_ENTRY_SIZE:
            raise ValueError("TOC data is not a whole number of entries")
        for fields in _ENTRY_STRUCT.iter_unpack(data):
            yield cls(*fields)

    def pack(self) -> bytes:
        return _ENTRY_STRUCT.pack(
            self.cache_offset,
            self.timestamp,
            self.comp_len,
            self.len,
            self.reserved,
            self.parent_dir_index,
            self.name,
        )

    @property
    def decoded_name(self) -> str:
        """The entry name up to the first NUL byte."""
        return self.name.split(b"\0", 1)[0].decode("utf-8")

    @property
    def is_directory(self) -> bool:
        return self.cache_offset == -1


class Toc:
    """A lazily loaded table of contents file."""

    def __init__(self, toc_path: PathLike) -> None:
        self.toc_path = Path(toc_path)
        self.directories: list[Node] = []
        self.files: list[Node] = []

    def is_loaded(self) -> bool:
        return bool(self.directories)

    def root(self) -> Optional[Node]:
        return self.directories[0] if self.directories else None

    def read_toc(self) -> None:
        """Read the TOC file and build the tree; does nothing if already loaded."""
        if self.is_loaded():
            return
        self.unread_toc()

        with self.toc_path.open("rb") as reader:
            size = os.fstat(reader.fileno()).st_size
            if size < TOC_HEADER_SIZE:
                raise ValueError(f"TOC file is too short: {size} bytes")
            entry_count = (size - TOC_HEADER_SIZE) // TOC_ENTRY_SIZE
            reader.seek(TOC_HEADER_SIZE)
            buffer = reader.read(entry_count * TOC_ENTRY_SIZE)

        directories = [Node.root()]
        files: list[Node] = []

        for entry in TocEntry.iter_unpack(buffer):
            # A zero timestamp marks an entry superseded by a newer one.
            if entry.timestamp == 0:
                continue

            name = entry.decoded_name
            if not 0 <= entry.parent_dir_index < len(directories):
                raise ValueError(
                    f"Invalid parent directory index {entry.parent_dir_index} for {name!r}"
                )
            parent = directories[entry.parent_dir_index]

            if entry.is_directory:
                node = Node.directory(name)
                directories.append(node)
            else:
                node = Node.file(
                    name, entry.cache_offset, entry.timestamp, entry.comp_len, entry.len
                )
                files.append(node)
            parent.append(node)

        self.directories = directories
        self.files = files

    def unread_toc(self) -> None:
        self.directories = []
        self.files = []

    def get_node(self, path: PathLike) -> Optional[Node]:
        """Resolve an absolute path to a node, or ``None`` if it does not exist."""
        if not self.is_loaded():
            return None

        pure = PurePosixPath(os.fspath(path))
        if not pure.root:
            raise ValueError("Path must be absolute")

        current = self.directories[0]
        for part in pure.parts[1:]:
            if part == "..":
                if current.parent is None:
                    return None
                current = current.parent
            elif part == ".":
                continue
            else:
                child = current.get_child(part)
                if child is None:
                    return None
                current = child
        return current

    def get_directory_node(self, path: PathLike) -> Optional[Node]:
        node = self.get_node(path)
        return node if node is not None and node.kind is NodeKind.DIRECTORY else None

    def get_file_node(self, path: PathLike) -> Optional[Node]:
        node = self.get_node(path)
        return node if node is not None and node.kind is NodeKind.FILE else None