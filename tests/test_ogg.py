import struct

import pytest

from lotuscache.ogg import (
    OggHeader,
    OggPage,
    OpusHead,
    OpusTags,
    get_segment_table,
    ogg_crc32,
)


def test_crc_check_value():
    assert ogg_crc32(b"123456789") == 0x89A1897F


def test_crc_of_empty_is_zero():
    assert ogg_crc32(b"") == 0


def test_crc_detects_change():
    assert ogg_crc32(b"abc") != ogg_crc32(b"abd")


def test_segment_table_splits_long_packets():
    assert get_segment_table(bytes(600), 255) == [255, 255, 90]


def test_segment_table_per_packet():
    assert get_segment_table(bytes(300), 100) == [100, 100, 100]


def test_segment_table_packets_larger_than_255():
    assert get_segment_table(bytes(600), 300) == [255, 45, 255, 45]


def test_segment_table_empty():
    assert get_segment_table(b"", 255) == []


def test_segment_table_sums_to_length():
    table = get_segment_table(bytes(1234), 77)
    assert sum(table) == 1234


def test_segment_table_rejects_zero_size():
    with pytest.raises(ValueError):
        get_segment_table(b"abc", 0)


def test_ogg_header_layout():
    header = OggHeader(2, 5, 0xABCD, 3, [10, 20])
    data = header.to_bytes()
    magic, version, htype, granule, serial, seq, checksum, nseg = struct.unpack(
        "<4sBBQIIIB", data[:-2]
    )
    assert magic == b"OggS"
    assert (version, htype, granule, serial, seq, checksum, nseg) == (0, 2, 5, 0xABCD, 3, 0, 2)
    assert list(data[-2:]) == [10, 20]


def test_page_checksum_matches_zeroed_page():
    body = b"hello world"
    page = OggPage.create(0, 7, 99, 4, get_segment_table(body, 255), body)
    data = page.to_bytes()
    zeroed = data[:22] + b"\0\0\0\0" + data[26:]
    (stored,) = struct.unpack("<I", data[22:26])
    assert stored == ogg_crc32(zeroed)
    assert stored == page.header.checksum
    assert data.endswith(body)


def test_page_checksum_depends_on_body():
    a = OggPage.create(0, 0, 1, 0, [3], b"abc")
    b = OggPage.create(0, 0, 1, 0, [3], b"abd")
    assert a.header.checksum != b.header.checksum


def test_opus_head_bytes():
    head = OpusHead(1, 2, 312, 48000, 0, 0)
    assert struct.unpack("<8sBBHIHB", head.to_bytes()) == (
        b"OpusHead", 1, 2, 312, 48000, 0, 0
    )


def test_opus_tags_bytes():
    tags = OpusTags("Warframe", ["ARTIST=Warframe"])
    data = tags.to_bytes()
    assert data[:8] == b"OpusTags"
    (vendor_len,) = struct.unpack("<I", data[8:12])
    assert data[12 : 12 + vendor_len] == b"Warframe"
    offset = 12 + vendor_len
    (count,) = struct.unpack("<I", data[offset : offset + 4])
    assert count == 1
    (comment_len,) = struct.unpack("<I", data[offset + 4 : offset + 8])
    assert data[offset + 8 :] == b"ARTIST=Warframe"
    assert comment_len == len(b"ARTIST=Warframe")


def test_opus_tags_without_comments():
    data = OpusTags("v").to_bytes()
    assert data == b"OpusTags" + struct.pack("<I", 1) + b"v" + struct.pack("<I", 0)