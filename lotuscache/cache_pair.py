"""Readers for a pair of ``.toc`` and ``.cache`` files."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from lotuscache.compression import (
    OodleDecoder,
    decompress_post_ensmallening,
    decompress_pre_ensmallening,
)
from lotuscache.toc import Node, NodeKind, PathLike, Toc

#: Magic number identifying a cache pair.
MAGIC_NUMBER = 0x1867C64E

#: Archive version of the cache pair format.
ARCHIVE_VERSION = 20


def _require_file(node: Node) -> tuple[int, int, int]:
    if (
        node.kind is not NodeKind.FILE
        or node.cache_offset is None
        or node.comp_len is None
        or node.length is None
    ):
        raise ValueError(f"Node {node.name!r} is not a file node")
    return node.cache_offset, node.comp_len, node.length


class CachePairReader:
    """Reads the table of contents and the file data of one cache pair.

    ``is_post_ensmallening`` selects the block format used to decompress the
    cache data. ``oodle`` is an optional callable used to decode Oodle blocks.
    """

    MAGIC_NUMBER = MAGIC_NUMBER
    ARCHIVE_VERSION = ARCHIVE_VERSION

    def __init__(
        self,
        toc_path: PathLike,
        cache_path: PathLike,
        is_post_ensmallening: bool,
        oodle: Optional[OodleDecoder] = None,
    ) -> None:
        self.toc_path = Path(toc_path)
        self.cache_path = Path(cache_path)
        self.is_post_ensmallening = is_post_ensmallening
        self.oodle = oodle
        self._toc = Toc(self.toc_path)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(toc_path={str(self.toc_path)!r}, "
            f"cache_path={str(self.cache_path)!r}, "
            f"is_post_ensmallening={self.is_post_ensmallening!r})"
        )

    @property
    def directories(self) -> list[Node]:
        """Directory nodes of the loaded TOC, the root first."""
        return self._toc.directories

    @property
    def files(self) -> list[Node]:
        """File nodes of the loaded TOC."""
        return self._toc.files

    def read_toc(self) -> None:
        """Load the TOC file; does nothing if it is already loaded."""
        self._toc.read_toc()

    def unread_toc(self) -> None:
        """Forget the loaded TOC so that it is read again on demand."""
        self._toc.unread_toc()

    def get_directory_node(self, path: PathLike) -> Optional[Node]:
        """Return the directory node at ``path``, or ``None``."""
        return self._toc.get_directory_node(path)

    def get_file_node(self, path: PathLike) -> Optional[Node]:
        """Return the file node at ``path``, or ``None``."""
        return self._toc.get_file_node(path)

    def get_data(self, file_node: Node) -> bytes:
        """Read the raw, still compressed, bytes of a file node."""
        offset, comp_len, _ = _require_file(file_node)
        with self.cache_path.open("rb") as reader:
            reader.seek(offset)
            data = reader.read(comp_len)
        if len(data) != comp_len:
            raise EOFError(
                f"Cache file ended after {len(data)} of {comp_len} bytes "
                f"for {file_node.name!r}"
            )
        return data

    def decompress_data(self, file_node: Node) -> bytes:
        """Read and decompress the data of a file node.

        Data whose compressed and decompressed lengths are equal is returned as stored.
        """
        offset, comp_len, length = _require_file(file_node)
        if comp_len == length:
            return self.get_data(file_node)

        with self.cache_path.open("rb") as reader:
            reader.seek(offset)
            if self.is_post_ensmallening:
                return decompress_post_ensmallening(comp_len, length, reader, self.oodle)
            return decompress_pre_ensmallening(comp_len, length, reader)