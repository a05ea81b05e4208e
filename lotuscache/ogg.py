"""Ogg pages and Opus identification and comment headers."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field, replace

OGG_MAGIC = b"OggS"
OPUS_HEAD_MAGIC = b"OpusHead"
OPUS_TAGS_MAGIC = b"OpusTags"

_CRC_POLY = 0x04C11DB7


def _build_crc_table() -> tuple[int, ...]:
    table = []
    for byte in range(256):
        crc = byte << 24
        for _ in range(8):
            crc = ((crc << 1) ^ _CRC_POLY) if crc & 0x80000000 else (crc << 1)
            crc &= 0xFFFFFFFF
        table.append(crc)
    return tuple(table)


_CRC_TABLE = _build_crc_table()


def ogg_crc32(data: bytes) -> int:
    """CRC-32 as used by Ogg: polynomial 0x04C11DB7, zero init, no reflection, no final xor."""
    crc = 0
    for byte in data:
        crc = ((crc << 8) & 0xFFFFFFFF) ^ _CRC_TABLE[((crc >> 24) ^ byte) & 0xFF]
    return crc


def get_segment_table(data: bytes, segment_size: int) -> list[int]:
    """Split ``data`` into packets of ``segment_size`` bytes and return their lacing values.

    Each packet is laced in segments of at most 255 bytes.
    """
    if segment_size <= 0:
        raise ValueError("segment_size must be positive")
    table: list[int] = []
    for start in range(0, len(data), segment_size):
        chunk_len = min(segment_size, len(data) - start)
        full, rest = divmod(chunk_len, 255)
        table.extend([255] * full)
        if rest:
            table.append(rest)
    return table


@dataclass
class OggHeader:
    """The header of an Ogg page, including its segment table."""

    header_type: int
    granule_position: int
    stream_serial_number: int
    page_sequence_number: int
    segment_table: list[int] = field(default_factory=list)
    checksum: int = 0
    version: int = 0
    magic: bytes = OGG_MAGIC

    @property
    def page_segments(self) -> int:
        """Number of entries in the segment table, stored as a single byte."""
        return len(self.segment_table) & 0xFF

    def to_bytes(self) -> bytes:
        return (
            self.magic
            + struct.pack(
                "<BBQIIIB",
                self.version,
                self.header_type,
                self.granule_position,
                self.stream_serial_number,
                self.page_sequence_number,
                self.checksum,
                self.page_segments,
            )
            + bytes(self.segment_table)
        )


@dataclass
class OggPage:
    """An Ogg page; its header checksum is computed on construction."""

    header: OggHeader
    body: bytes = b""

    def __post_init__(self) -> None:
        self.body = bytes(self.body)
        unsigned = replace(self.header, checksum=0)
        self.header = replace(
            self.header, checksum=ogg_crc32(unsigned.to_bytes() + self.body)
        )

    @classmethod
    def create(
        cls,
        header_type: int,
        granule_position: int,
        stream_serial_number: int,
        page_sequence_number: int,
        segment_table: list[int],
        body: bytes,
    ) -> "OggPage":
        header = OggHeader(
            header_type,
            granule_position,
            stream_serial_number,
            page_sequence_number,
            list(segment_table),
        )
        return cls(header, body)

    def to_bytes(self) -> bytes:
        return self.header.to_bytes() + self.body


@dataclass
class OpusHead:
    """The Opus identification header."""

    version: int
    channels: int
    pre_skip: int
    input_sample_rate: int
    output_gain: int
    channel_mapping_family: int
    magic: bytes = OPUS_HEAD_MAGIC

    def to_bytes(self) -> bytes:
        return self.magic + struct.pack(
            "<BBHIHB",
            self.version,
            self.channels,
            self.pre_skip,
            self.input_sample_rate,
            self.output_gain,
            self.channel_mapping_family,
        )


@dataclass
class OpusTags:
    """The Opus comment header."""

    vendor: str
    user_comment_list: list[str] = field(default_factory=list)
    magic: bytes = OPUS_TAGS_MAGIC

    def to_bytes(self) -> bytes:
        parts = [self.magic]
        vendor = self.vendor.encode("utf-8")
        parts.append(struct.pack("<I", len(vendor)))
        parts.append(vendor)
        parts.append(struct.pack("<I", len(self.user_comment_list)))
        for comment in self.user_comment_list:
            encoded = comment.encode("utf-8")
            parts.append(struct.pack("<I", len(encoded)))
            parts.append(encoded)
        return b"".join(parts)