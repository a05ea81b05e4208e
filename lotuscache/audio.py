"""Extraction of audio files from a package's header, file and binary caches."""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from lotuscache.audio_header import AudioHeader, AudioKind, CompressionFormat, RawAudioHeader
from lotuscache.cache_pair import CachePairReader
from lotuscache.ogg import OggPage, get_segment_table
from lotuscache.package import Package, PackageType
from lotuscache.toc import Node

logger = logging.getLogger(__name__)

#: Number of audio blocks written to each Ogg data page.
BLOCKS_PER_PAGE = 50


def _require_cache(package: Package, package_type: PackageType, what: str) -> CachePairReader:
    cache = package.borrow(package_type)
    if cache is None:
        raise FileNotFoundError(f"No {what} found")
    return cache


def _read_part(cache: CachePairReader, node: Node, label: str) -> Optional[bytes]:
    file_node = cache.get_file_node(node.path())
    if file_node is None:
        return None
    logger.debug("Part %s file node found!", label)
    logger.debug("Cache offset: %s", file_node.cache_offset)
    logger.debug("Cache audio size: %s", file_node.comp_len)
    logger.debug("Decompressed audio size: %s", file_node.length)
    return cache.decompress_data(file_node)


def _stem(name: str) -> str:
    return name.rsplit(".", 1)[0]


def is_audio(package: Package, node: Node) -> bool:
    """Tell whether ``node`` is an audio file of a known kind.

    Raises ``FileNotFoundError`` if the package has no header cache.
    """
    if not node.name.endswith(".wav"):
        return False

    h_cache = _require_cache(package, PackageType.H, "header file")
    header_data = h_cache.decompress_data(node)
    try:
        raw = RawAudioHeader.parse(header_data)
        AudioKind(raw.file_type)
    except ValueError:
        return False
    return True


def _wav_data(package: Package, node: Node, header: AudioHeader) -> bytes:
    f_cache = _require_cache(package, PackageType.F, "F cache")
    b_cache = _require_cache(package, PackageType.B, "B cache")

    parts = (_read_part(b_cache, node, "B"), _read_part(f_cache, node, "F"))
    buffer = b"".join(part for part in parts if part is not None)
    logger.debug("Real audio size: %d", header.size)

    if header.size > len(buffer):
        raise ValueError(
            f"Audio data is {len(buffer)} bytes, header expects {header.size}"
        )
    file_data = buffer[len(buffer) - header.size :]

    if header.format_tag is CompressionFormat.PCM:
        return header.to_wav_pcm() + file_data
    return header.to_wav_adpcm() + file_data


def _opus_pages(header: AudioHeader, file_data: bytes) -> Iterator[bytes]:
    if header.block_align == 0:
        raise ValueError("Opus audio header has a block alignment of 0")
    chunk_size = header.block_align * BLOCKS_PER_PAGE
    granule_position = header.samples_per_second

    for sequence, start in enumerate(range(0, len(file_data), chunk_size), start=2):
        chunk = file_data[start : start + chunk_size]
        header_type = 0x04 if len(chunk) < chunk_size else 0x00
        page = OggPage.create(
            header_type,
            granule_position,
            header.stream_serial_number,
            sequence,
            get_segment_table(chunk, header.block_align),
            chunk,
        )
        yield page.to_bytes()
        granule_position += header.samples_per_second


def _opus_data(package: Package, node: Node, header: AudioHeader) -> bytes:
    b_cache = _require_cache(package, PackageType.B, "B cache")
    f_cache = _require_cache(package, PackageType.F, "F cache")

    f_data = _read_part(f_cache, node, "F")
    buffer = f_data if f_data is not None else b""
    if f_data is None or len(buffer) != header.size:
        b_data = _read_part(b_cache, node, "B")
        if b_data is not None:
            buffer += b_data
    logger.debug("Real audio size: %d", header.size)

    if header.size > len(buffer):
        raise ValueError(
            f"Audio data is {len(buffer)} bytes, header expects {header.size}"
        )
    file_data = buffer[: header.size]
    return header.to_opus() + b"".join(_opus_pages(header, file_data))


def decompress_audio(package: Package, node: Node) -> tuple[bytes, str]:
    """Return the playable audio file for ``node`` and its file name.

    PCM and ADPCM audio becomes a ``.wav`` file, Opus audio an ``.opus`` file.
    """
    h_cache = _require_cache(package, PackageType.H, "header file")
    header = AudioHeader.parse(h_cache.decompress_data(node))
    logger.debug("Header: %r", header)

    if header.format_tag is CompressionFormat.OPUS:
        return _opus_data(package, node, header), f"{_stem(node.name)}.opus"
    return _wav_data(package, node, header), f"{_stem(node.name)}.wav"