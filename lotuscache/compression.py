"""Block decompression for cache files before and after the post-ensmallening format."""

from __future__ import annotations

import io
import logging
import struct
from typing import BinaryIO, Callable, Optional

import lz4.block

logger = logging.getLogger(__name__)

#: Largest compressed block accepted by the post-ensmallening reader.
MAX_BLOCK_LEN = 0x40000

#: First byte of an Oodle-compressed block.
OODLE_MAGIC = 0x8C

BLOCK_HEADER_LEN = 8

OodleDecoder = Callable[[bytes, int], bytes]


class DecompressionError(Exception):
    """Raised when cache data cannot be decompressed."""


def _read_exact(reader: BinaryIO, size: int) -> bytes:
    data = reader.read(size)
    if data is None or len(data) != size:
        raise DecompressionError(
            f"Unexpected end of data: wanted {size} bytes, got {len(data or b'')}"
        )
    return data


def decompress_lz(data: bytes, decompressed_len: int) -> bytes:
    """Decompress an LZ4 block whose uncompressed size is prepended (little endian u32)."""
    try:
        result = lz4.block.decompress(bytes(data))
    except (lz4.block.LZ4BlockError, ValueError) as exc:
        raise DecompressionError(f"Failed to decompress lz4 data: {exc}") from exc
    if len(result) != decompressed_len:
        raise DecompressionError(
            f"lz4 data decompressed to {len(result)} bytes, expected {decompressed_len}"
        )
    return result


def decompress_oodle(
    data: bytes, decompressed_len: int, oodle: Optional[OodleDecoder] = None
) -> bytes:
    """Decompress an Oodle block with the given decoder.

    ``oodle`` is a callable taking the compressed bytes and the expected
    decompressed length and returning the decompressed bytes.
    """
    if oodle is None:
        raise DecompressionError("Failed to decompress oodle data: no oodle decoder available")
    try:
        result = oodle(bytes(data), decompressed_len)
    except Exception as exc:
        raise DecompressionError("Failed to decompress oodle data") from exc
    if result is None or len(result) != decompressed_len:
        raise DecompressionError("Failed to decompress oodle data")
    return bytes(result)


def is_oodle_block(reader: BinaryIO) -> bool:
    """Peek at the next byte and tell whether it starts an Oodle block."""
    (first,) = _read_exact(reader, 1)
    reader.seek(-1, io.SEEK_CUR)
    return first == OODLE_MAGIC


def get_block_lengths(reader: BinaryIO) -> Optional[tuple[int, int]]:
    """Read a block header and return ``(compressed_len, decompressed_len)``.

    If the next eight bytes are not a block header, the reader is moved back
    and ``None`` is returned.
    """
    block_info = _read_exact(reader, BLOCK_HEADER_LEN)

    if block_info[0] != 0x80 or (block_info[7] & 0x0F) != 0x1:
        reader.seek(-BLOCK_HEADER_LEN, io.SEEK_CUR)
        return None

    num1, num2 = struct.unpack(">II", block_info)
    block_comp_len = (num1 >> 2) & 0xFFFFFF
    block_decomp_len = (num2 >> 5) & 0xFFFFFF
    return block_comp_len, block_decomp_len


def _stream_length(reader: BinaryIO) -> int:
    current = reader.tell()
    end = reader.seek(0, io.SEEK_END)
    reader.seek(current)
    return end


def decompress_post_ensmallening(
    compressed_len: int,
    decompressed_len: int,
    reader: BinaryIO,
    oodle: Optional[OodleDecoder] = None,
) -> bytes:
    """Decompress a sequence of blocks starting at the reader's position."""
    output = bytearray()
    cache_len = _stream_length(reader)

    while len(output) < decompressed_len:
        lengths = get_block_lengths(reader)
        block_comp_len, block_decomp_len = lengths or (compressed_len, decompressed_len)
        logger.debug(
            "Decompressing block, compressed_len: %d, decompressed_len: %d",
            block_comp_len,
            block_decomp_len,
        )

        if len(output) + block_decomp_len > decompressed_len:
            raise DecompressionError(
                "Decompressed past the file length, "
                f"decompressed_pos: {len(output)}, decompressed_len: {block_decomp_len}, "
                f"file_len: {decompressed_len}"
            )

        remaining_len = cache_len - reader.tell()
        if block_comp_len > min(remaining_len, MAX_BLOCK_LEN):
            raise DecompressionError(
                "Tried to read beyond limits, probably not a compressed file, "
                f"compressed_len: {block_comp_len}, remaining_len: {remaining_len}"
            )

        oodle_block = is_oodle_block(reader)
        block = _read_exact(reader, block_comp_len)

        if oodle_block:
            logger.debug("Decompressing with oodle (%d bytes)", block_comp_len)
            output += decompress_oodle(block, block_decomp_len, oodle)
        elif block_comp_len == block_decomp_len:
            logger.debug("Copying (%d bytes)", block_comp_len)
            output += block
        else:
            logger.debug("Decompressing with lz4 (%d bytes)", block_comp_len)
            output += decompress_lz(block, block_decomp_len)
        logger.debug("Decompressed %d bytes", block_decomp_len)

    return bytes(output)


def decompress_pre_ensmallening(
    compressed_len: int, decompressed_len: int, reader: BinaryIO
) -> bytes:
    """Decompress a single size-prepended LZ4 block read from the reader."""
    data = _read_exact(reader, compressed_len)
    return decompress_lz(data, decompressed_len)