"""Extraction of DDS textures from a package's header, file and binary caches."""

from __future__ import annotations

import io
import logging
from typing import BinaryIO

from lotuscache.cache_pair import CachePairReader
from lotuscache.compression import (
    BLOCK_HEADER_LEN,
    decompress_post_ensmallening,
    get_block_lengths,
)
from lotuscache.package import Package, PackageType
from lotuscache.texture_header import RawTextureHeader, TextureHeader, TextureKind
from lotuscache.toc import Node

logger = logging.getLogger(__name__)


def _require_cache(package: Package, package_type: PackageType, what: str) -> CachePairReader:
    cache = package.borrow(package_type)
    if cache is None:
        raise FileNotFoundError(f"No {what} found")
    return cache


def _require_file_node(cache: CachePairReader, node: Node) -> Node:
    file_node = cache.get_file_node(node.path())
    if file_node is None:
        raise FileNotFoundError(f"No file node for {node.path()} in {cache.cache_path}")
    return file_node


def _tail(data: bytes, size: int) -> bytes:
    if size > len(data):
        raise ValueError(f"Image data is {len(data)} bytes, header expects {size}")
    return data[len(data) - size :]


def _log_node(file_node: Node, header: TextureHeader) -> None:
    logger.debug("Cache offset: %s", file_node.cache_offset)
    logger.debug("Cache image size: %s", file_node.comp_len)
    logger.debug("Real image size: %d", header.size)
    logger.debug("Decompressed image size: %s", file_node.length)


def is_texture(package: Package, node: Node) -> bool:
    """Tell whether ``node`` is a texture of a known kind.

    Raises ``FileNotFoundError`` if the package has no header cache.
    """
    if not node.name.endswith(".png"):
        return False

    h_cache = _require_cache(package, PackageType.H, "header file")
    header_data = h_cache.decompress_data(node)
    try:
        raw = RawTextureHeader.parse(header_data)
        TextureKind(raw.file_type)
    except ValueError:
        return False
    return True


def get_real_cache_image_offset(
    reader: BinaryIO, cache_image_offset: int, cache_image_sub_offset: int
) -> int:
    """Return the block boundary closest to ``cache_image_sub_offset``.

    Blocks are walked from ``cache_image_offset``; the returned offset is
    relative to it. The reader is left at ``cache_image_offset``.
    """
    reader.seek(cache_image_offset)

    top = 0
    bottom = 0
    while True:
        block_comp_len, _ = get_block_lengths(reader) or (0, 0)
        top += block_comp_len + BLOCK_HEADER_LEN
        if top >= cache_image_sub_offset:
            break
        bottom = top
        reader.seek(block_comp_len, io.SEEK_CUR)

    reader.seek(cache_image_offset)

    diff_top = top - cache_image_sub_offset
    diff_bottom = cache_image_sub_offset - bottom
    return bottom if diff_top > diff_bottom else top


def _f_cache_image(f_cache: CachePairReader, file_node: Node, header: TextureHeader) -> bytes:
    offsets = header.f_cache_image_offsets
    if not offsets:
        # Older headers carry no image offsets: take the tail of the whole file.
        return _tail(f_cache.decompress_data(file_node), header.size)

    sub_offset = offsets[-1]
    with f_cache.cache_path.open("rb") as reader:
        real_offset = get_real_cache_image_offset(reader, file_node.cache_offset, sub_offset)
        logger.debug("Cache image offset: %d", sub_offset)
        logger.debug("Real cache image offset: %d", real_offset)
        reader.seek(real_offset, io.SEEK_CUR)
        return decompress_post_ensmallening(
            file_node.comp_len, header.size, reader, f_cache.oodle
        )


def decompress_texture(package: Package, node: Node) -> tuple[bytes, str]:
    """Return the DDS file for ``node`` and its file name."""
    h_cache = _require_cache(package, PackageType.H, "header file")
    header = TextureHeader.parse(h_cache.decompress_data(node))
    logger.debug("Header: %r", header)

    dds_header = header.to_bytes()

    if header.f_cache_image_count > 0:
        f_cache = _require_cache(package, PackageType.F, "F cache")
        file_node = _require_file_node(f_cache, node)
        _log_node(file_node, header)
        image = _f_cache_image(f_cache, file_node, header)
    else:
        b_cache = _require_cache(package, PackageType.B, "B cache")
        file_node = _require_file_node(b_cache, node)
        _log_node(file_node, header)
        image = _tail(b_cache.decompress_data(file_node), header.size)

    return dds_header + image, get_texture_file_name(node)


def get_texture_file_name(node: Node) -> str:
    """The node's name with a trailing ``.png`` replaced by ``.dds``."""
    name = node.name
    if name.endswith(".png"):
        name = name[: -len(".png")]
    return f"{name}.dds"