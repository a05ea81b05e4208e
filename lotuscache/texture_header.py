"""Texture headers stored in the header cache and the DDS headers built from them."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from typing import Optional

_DDS_MAGIC = b"DDS "
_DDS_HEADER_SIZE = 124
_PIXEL_FORMAT_SIZE = 32

_FLAGS_DEFAULT = 0x1 | 0x2 | 0x4 | 0x1000  # CAPS | HEIGHT | WIDTH | PIXELFORMAT
_FLAG_LINEAR_SIZE = 0x80000

_PF_ALPHA_PIXELS = 0x1
_PF_FOURCC = 0x4
_PF_RGB = 0x40

_CAPS_TEXTURE = 0x1000
_RESOURCE_DIMENSION_TEXTURE2D = 3
_ALPHA_MODE_UNKNOWN = 0

# Block size and bits per pixel of the formats written with a DX10 header.
_DX10_BLOCK_SIZE = 16
_DX10_BITS_PER_PIXEL = 8


class DDSFormat(enum.IntEnum):
    """Pixel format of a texture, keyed by its code in the texture header."""

    BC1_UNORM = 0x01
    BC2_UNORM = 0x02
    BC3_UNORM = 0x03
    BC4_UNORM = 0x06
    BC5_UNORM = 0x07
    BC6H_UF16 = 0x23
    BC7_UNORM = 0x22
    UNCOMPRESSED = 0x0A

    @classmethod
    def _missing_(cls, value):
        if value == 0x00:
            return cls.BC1_UNORM
        return None

    def bits_per_pixel(self) -> int:
        """Bits per pixel used to size the image data."""
        return _BITS_PER_PIXEL[self]

    def dxgi_format(self) -> int:
        """The matching ``DXGI_FORMAT`` code."""
        return _DXGI_FORMATS[self]

    def fourcc(self) -> bytes:
        """The four-character code; raises ``ValueError`` for uncompressed data."""
        code = _FOURCCS.get(self)
        if code is None:
            raise ValueError("Uncompressed format has no FourCC")
        return code


_BITS_PER_PIXEL = {
    DDSFormat.BC1_UNORM: 8,
    DDSFormat.BC2_UNORM: 16,
    DDSFormat.BC3_UNORM: 16,
    DDSFormat.BC4_UNORM: 8,
    DDSFormat.BC5_UNORM: 16,
    DDSFormat.BC6H_UF16: 16,
    DDSFormat.BC7_UNORM: 16,
    DDSFormat.UNCOMPRESSED: 64,
}

_DXGI_FORMATS = {
    DDSFormat.BC1_UNORM: 71,
    DDSFormat.BC2_UNORM: 74,
    DDSFormat.BC3_UNORM: 77,
    DDSFormat.BC4_UNORM: 80,
    DDSFormat.BC5_UNORM: 83,
    DDSFormat.BC6H_UF16: 95,
    DDSFormat.BC7_UNORM: 98,
    DDSFormat.UNCOMPRESSED: 28,
}

_FOURCC_DX10 = b"DX10"

_FOURCCS = {
    DDSFormat.BC1_UNORM: b"DXT1",
    DDSFormat.BC2_UNORM: b"DXT3",
    DDSFormat.BC3_UNORM: b"DXT5",
    DDSFormat.BC4_UNORM: b"ATI1",
    DDSFormat.BC5_UNORM: b"ATI2",
    DDSFormat.BC6H_UF16: _FOURCC_DX10,
    DDSFormat.BC7_UNORM: _FOURCC_DX10,
}


class TextureKind(enum.IntEnum):
    """Known texture file types."""

    DIFFUSE_EMISSION_TINT = 0xA3
    BILLBOARD_SPRITEMAP_DIFFUSE = 0xA4
    BILLBOARD_SPRITEMAP_NORMAL = 0xA5
    ROUGHNESS = 0xA7
    SKYBOX = 0xAB
    TEXTURE_174 = 0xAE
    TEXTURE_176 = 0xB0
    CUBEMAP = 0xB1
    NORMAL_MAP = 0xB8
    PACKMAP = 0xBC
    TEXTURE_194 = 0xC2
    DETAILS_PACK = 0xC3


class _Reader:
    def __init__(self, data: bytes) -> None:
        self.data = bytes(data)
        self.offset = 0

    def take(self, size: int) -> bytes:
        end = self.offset + size
        if end > len(self.data):
            raise ValueError(
                f"Texture header truncated: need {end} bytes, have {len(self.data)}"
            )
        chunk = self.data[self.offset : end]
        self.offset = end
        return chunk

    def unpack(self, fmt: str) -> tuple:
        layout = struct.Struct("<" + fmt)
        return layout.unpack(self.take(layout.size))

    def u32(self) -> int:
        return self.unpack("I")[0]

    def text(self, size: int) -> str:
        return self.take(size).decode("utf-8")


@dataclass(frozen=True)
class RawTextureHeader:
    """All fields of a texture header as stored in the header cache."""

    hash: bytes
    merged_file_count: int
    file_paths: list[str]
    arguments_length: int
    arguments: str
    file_type: int
    unknown1: int
    f_cache_image_count: int
    unknown2: int
    dds_format: int
    mip_map_count: int
    f_cache_image_offsets: list[int]
    width_ratio: int
    height_ratio: int
    b_cache_max_width: int
    b_cache_max_height: int
    max_side_length: int
    offset: int

    @classmethod
    def parse(cls, data: bytes) -> "RawTextureHeader":
        """Parse a header; raises ``ValueError`` on truncated or malformed data."""
        reader = _Reader(data)
        hash_ = reader.take(16)
        merged_file_count = reader.u32()
        file_paths = [reader.text(reader.u32()) for _ in range(merged_file_count)]

        arguments_length = reader.u32()
        arguments = reader.text(arguments_length)
        if arguments_length > 0:
            reader.take(1)  # NUL terminator

        file_type = reader.u32()
        unknown1, f_cache_image_count, unknown2, dds_format = reader.unpack("BBBB")
        mip_map_count = reader.u32()
        f_cache_image_offsets = [reader.u32() for _ in range(mip_map_count)]
        width_ratio, height_ratio = reader.unpack("HH")
        b_cache_max_width, b_cache_max_height = reader.unpack("HH")
        max_side_length = reader.u32()

        return cls(
            hash=hash_,
            merged_file_count=merged_file_count,
            file_paths=file_paths,
            arguments_length=arguments_length,
            arguments=arguments,
            file_type=file_type,
            unknown1=unknown1,
            f_cache_image_count=f_cache_image_count,
            unknown2=unknown2,
            dds_format=dds_format,
            mip_map_count=mip_map_count,
            f_cache_image_offsets=f_cache_image_offsets,
            width_ratio=width_ratio,
            height_ratio=height_ratio,
            b_cache_max_width=b_cache_max_width,
            b_cache_max_height=b_cache_max_height,
            max_side_length=max_side_length,
            offset=reader.offset,
        )


def _pixel_format(
    flags: int,
    fourcc: bytes = bytes(4),
    rgb_bit_count: int = 0,
    masks: tuple[int, int, int, int] = (0, 0, 0, 0),
) -> bytes:
    return struct.pack("<II4s5I", _PIXEL_FORMAT_SIZE, flags, fourcc, rgb_bit_count, *masks)


def _dds_header(
    width: int, height: int, flags: int, pitch_or_linear_size: int, pixel_format: bytes
) -> bytes:
    return (
        struct.pack(
            "<7I",
            _DDS_HEADER_SIZE,
            flags,
            height,
            width,
            pitch_or_linear_size & 0xFFFFFFFF,
            0,  # depth
            0,  # mip map count
        )
        + bytes(11 * 4)
        + pixel_format
        + struct.pack("<5I", _CAPS_TEXTURE, 0, 0, 0, 0)
    )


@dataclass(frozen=True)
class TextureHeader:
    """Texture dimensions and layout needed to write a DDS file."""

    width: int
    height: int
    dds_format: DDSFormat
    f_cache_image_count: int
    f_cache_image_offsets: tuple[int, ...]
    size: int

    @classmethod
    def parse(cls, data: bytes) -> "TextureHeader":
        """Parse a header; raises ``ValueError`` for bad data or an unknown format."""
        raw = RawTextureHeader.parse(data)

        if raw.width_ratio == 0 and raw.height_ratio == 0:
            raise ValueError("Texture header has no aspect ratio")
        if raw.width_ratio > raw.height_ratio:
            width = raw.max_side_length
            height = raw.max_side_length * raw.height_ratio // raw.width_ratio
        else:
            width = raw.max_side_length * raw.width_ratio // raw.height_ratio
            height = raw.max_side_length

        dds_format = DDSFormat(raw.dds_format)
        size = max(1, width >> 2) * max(1, height >> 2) * dds_format.bits_per_pixel()

        return cls(
            width=width,
            height=height,
            dds_format=dds_format,
            f_cache_image_count=raw.f_cache_image_count,
            f_cache_image_offsets=tuple(raw.f_cache_image_offsets),
            size=size,
        )

    @property
    def fourcc(self) -> Optional[bytes]:
        """The FourCC of the pixel format, ``None`` for uncompressed data."""
        if self.dds_format is DDSFormat.UNCOMPRESSED:
            return None
        return self.dds_format.fourcc()

    def to_bytes(self) -> bytes:
        """The DDS file header: magic, header and, where needed, the DX10 header."""
        fourcc = self.fourcc

        if fourcc is None:
            pitch = (self.width * self.dds_format.bits_per_pixel()) >> 3
            pixel_format = _pixel_format(
                _PF_ALPHA_PIXELS | _PF_RGB,
                rgb_bit_count=32,
                masks=(0x00FF0000, 0x0000FF00, 0x000000FF, 0xFF000000),
            )
            return _DDS_MAGIC + _dds_header(
                self.width, self.height, _FLAGS_DEFAULT, pitch, pixel_format
            )

        if fourcc != _FOURCC_DX10:
            return _DDS_MAGIC + _dds_header(
                self.width, self.height, _FLAGS_DEFAULT, 0, _pixel_format(_PF_FOURCC, fourcc)
            )

        pitch = max(1, (self.width + 3) // 4) * _DX10_BLOCK_SIZE
        linear_size = pitch * ((self.height + 3) // 4)
        pixel_format = _pixel_format(
            _PF_RGB | _PF_FOURCC, _FOURCC_DX10, rgb_bit_count=_DX10_BITS_PER_PIXEL
        )
        header10 = struct.pack(
            "<5I",
            self.dds_format.dxgi_format(),
            _RESOURCE_DIMENSION_TEXTURE2D,
            0,  # misc flags
            1,  # array size
            _ALPHA_MODE_UNKNOWN,
        )
        return (
            _DDS_MAGIC
            + _dds_header(
                self.width,
                self.height,
                _FLAGS_DEFAULT | _FLAG_LINEAR_SIZE,
                linear_size,
                pixel_format,
            )
            + header10
        )