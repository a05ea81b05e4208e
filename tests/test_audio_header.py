import dataclasses
import struct

import pytest

from lotuscache.audio_header import (
    AudioHeader,
    AudioKind,
    CompressionFormat,
    RawAudioHeader,
)
from lotuscache.ogg import OpusHead, ogg_crc32


def build_header(
    paths=("/Lotus/a.wav",),
    arguments="",
    file_type=0x8B,
    format_tag=0x00,
    samples_per_second=44100,
    bits_per_sample=16,
    channels=2,
    average_bytes_per_second=176400,
    block_align=4,
    samples_per_block=1,
    size=1000,
):
    parts = [bytes(range(16)), struct.pack("<I", len(paths))]
    for path in paths:
        encoded = path.encode()
        parts += [struct.pack("<I", len(encoded)), encoded]
    args = arguments.encode()
    parts += [struct.pack("<I", len(args)), args]
    if args:
        parts.append(b"\0")
    parts += [
        struct.pack("<III", file_type, format_tag, 0x11),
        b"\x22" * 24,
        struct.pack("<IBB", samples_per_second, bits_per_sample, channels),
        struct.pack("<IIHH", 0x33, average_bytes_per_second, block_align, samples_per_block),
        b"\x44" * 12,
        struct.pack("<I", size),
    ]
    return b"".join(parts)


def test_compression_format_values():
    assert CompressionFormat(0x05) is CompressionFormat.ADPCM
    assert CompressionFormat(0x07) is CompressionFormat.OPUS
    with pytest.raises(ValueError):
        CompressionFormat(3)


def test_audio_kind_values():
    assert AudioKind(0x8B) is AudioKind.AUDIO_139
    with pytest.raises(ValueError):
        AudioKind(0x8C)


def test_raw_header_parse_fields():
    raw = RawAudioHeader.parse(build_header(paths=("/x.wav", "/y.wav"), size=321))
    assert raw.hash == bytes(range(16))
    assert raw.merged_file_count == 2
    assert raw.file_paths == ["/x.wav", "/y.wav"]
    assert raw.arguments_length == 0
    assert raw.file_type == 0x8B
    assert raw.format_tag == 0
    assert raw.unknown1 == 0x11
    assert raw.unknown2 == b"\x22" * 24
    assert (raw.samples_per_second, raw.bits_per_sample, raw.channels) == (44100, 16, 2)
    assert raw.unknown3 == 0x33
    assert raw.average_bytes_per_second == 176400
    assert (raw.block_align, raw.samples_per_block) == (4, 1)
    assert raw.unknown4 == b"\x44" * 12
    assert raw.size == 321


def test_raw_header_skips_argument_terminator():
    raw = RawAudioHeader.parse(build_header(arguments="quality=high", size=77))
    assert raw.arguments == "quality=high"
    assert raw.arguments_length == len("quality=high")
    assert raw.size == 77
    assert raw.file_type == 0x8B


def test_raw_header_truncated():
    data = build_header()
    with pytest.raises(ValueError):
        RawAudioHeader.parse(data[:-1])


def test_raw_header_invalid_utf8_path():
    data = bytearray(build_header(paths=("ab",)))
    data[24] = 0xFF
    with pytest.raises(ValueError):
        RawAudioHeader.parse(bytes(data))


def test_audio_header_parse():
    header = AudioHeader.parse(build_header(format_tag=0x07, size=55))
    assert header.format_tag is CompressionFormat.OPUS
    assert header.size == 55
    assert 0 <= header.stream_serial_number < 2**32


def test_audio_header_unknown_format():
    with pytest.raises(ValueError):
        AudioHeader.parse(build_header(format_tag=0x03))


def test_wav_pcm_header():
    header = AudioHeader.parse(build_header(channels=2, bits_per_sample=16, size=1000))
    data = header.to_wav_pcm()
    assert len(data) == 44
    assert data[:4] == b"RIFF" and data[8:16] == b"WAVEfmt "
    assert struct.unpack("<I", data[4:8])[0] == 1000 + 32
    fmt = struct.unpack("<IHHIIHH", data[16:36])
    assert fmt == (16, 1, 2, 44100, 44100 * 4, 4, 16)
    assert data[36:40] == b"data"
    assert struct.unpack("<I", data[40:44])[0] == 1000


def test_wav_adpcm_header():
    header = AudioHeader.parse(
        build_header(
            format_tag=0x05,
            channels=1,
            bits_per_sample=4,
            average_bytes_per_second=22000,
            block_align=512,
            samples_per_block=1017,
            size=2048,
        )
    )
    data = header.to_wav_adpcm()
    assert len(data) == 78
    assert struct.unpack("<I", data[4:8])[0] == 2048 + 66
    fmt = struct.unpack("<IHHIIHHHHH", data[16:42])
    assert fmt == (50, 2, 1, 44100, 22000, 512, 4, 32, 1017, 7)
    assert struct.unpack("<14h", data[42:70]) == (
        256, 0, 512, -256, 0, 0, 192, 64, 240, 0, 460, -208, 392, -232
    )
    assert data[70:74] == b"data"
    assert struct.unpack("<I", data[74:78])[0] == 2048


def _split_pages(data):
    pages = []
    offset = 0
    while offset < len(data):
        nseg = data[offset + 26]
        table = data[offset + 27 : offset + 27 + nseg]
        end = offset + 27 + nseg + sum(table)
        pages.append(data[offset:end])
        offset = end
    return pages


def test_opus_pages():
    header = dataclasses.replace(
        AudioHeader.parse(build_header(format_tag=0x07, channels=2, samples_per_second=48000)),
        stream_serial_number=0x1234,
    )
    pages = _split_pages(header.to_opus())
    assert len(pages) == 2
    for sequence, page in enumerate(pages):
        assert page[:4] == b"OggS"
        serial, seq = struct.unpack("<II", page[14:22])
        assert (serial, seq) == (0x1234, sequence)
        zeroed = page[:22] + bytes(4) + page[26:]
        assert struct.unpack("<I", page[22:26])[0] == ogg_crc32(zeroed)
    assert pages[0][5] == 0x02
    assert pages[1][5] == 0x00
    assert pages[0].endswith(OpusHead(1, 2, 312, 48000, 0, 0).to_bytes())
    assert pages[1][28:36] == b"OpusTags"
    assert pages[1].endswith(b"ARTIST=Warframe")