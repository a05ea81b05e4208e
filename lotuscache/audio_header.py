"""Audio file headers stored in the header cache and the file headers built from them."""

from __future__ import annotations

import enum
import random
import struct
from dataclasses import dataclass

from lotuscache.ogg import OggPage, OpusHead, OpusTags, get_segment_table

_ADPCM_COEFFICIENTS = (
    (256, 0),
    (512, -256),
    (0, 0),
    (192, 64),
    (240, 0),
    (460, -208),
    (392, -232),
)


class CompressionFormat(enum.IntEnum):
    """How the audio samples are encoded."""

    PCM = 0x00
    ADPCM = 0x05
    OPUS = 0x07


class AudioKind(enum.IntEnum):
    """Known audio file types."""

    AUDIO_139 = 0x8B


class _Cursor:
    def __init__(self, data: bytes) -> None:
        self.data = bytes(data)
        self.offset = 0

    def take(self, size: int) -> bytes:
        end = self.offset + size
        if end > len(self.data):
            raise ValueError(
                f"Audio header truncated: need {end} bytes, have {len(self.data)}"
            )
        chunk = self.data[self.offset : end]
        self.offset = end
        return chunk

    def skip(self, size: int) -> None:
        self.take(size)

    def u8(self) -> int:
        return self.take(1)[0]

    def u16(self) -> int:
        return struct.unpack("<H", self.take(2))[0]

    def u32(self) -> int:
        return struct.unpack("<I", self.take(4))[0]

    def text(self, size: int) -> str:
        return self.take(size).decode("utf-8")


@dataclass(frozen=True)
class RawAudioHeader:
    """All fields of an audio header as stored in the header cache."""

    hash: bytes
    merged_file_count: int
    file_paths: list[str]
    arguments_length: int
    arguments: str
    file_type: int
    format_tag: int
    unknown1: int
    unknown2: bytes
    samples_per_second: int
    bits_per_sample: int
    channels: int
    unknown3: int
    average_bytes_per_second: int
    block_align: int
    samples_per_block: int
    unknown4: bytes
    size: int

    @classmethod
    def parse(cls, data: bytes) -> "RawAudioHeader":
        """Parse a header; raises ``ValueError`` on truncated or malformed data."""
        cursor = _Cursor(data)
        hash_ = cursor.take(16)
        merged_file_count = cursor.u32()
        file_paths = [cursor.text(cursor.u32()) for _ in range(merged_file_count)]

        arguments_length = cursor.u32()
        arguments = cursor.text(arguments_length)
        if arguments_length > 0:
            cursor.skip(1)  # NUL terminator

        file_type = cursor.u32()
        format_tag = cursor.u32()
        unknown1 = cursor.u32()
        unknown2 = cursor.take(24)
        samples_per_second = cursor.u32()
        bits_per_sample = cursor.u8()
        channels = cursor.u8()
        unknown3 = cursor.u32()
        average_bytes_per_second = cursor.u32()
        block_align = cursor.u16()
        samples_per_block = cursor.u16()
        unknown4 = cursor.take(12)
        size = cursor.u32()

        return cls(
            hash=hash_,
            merged_file_count=merged_file_count,
            file_paths=file_paths,
            arguments_length=arguments_length,
            arguments=arguments,
            file_type=file_type,
            format_tag=format_tag,
            unknown1=unknown1,
            unknown2=unknown2,
            samples_per_second=samples_per_second,
            bits_per_sample=bits_per_sample,
            channels=channels,
            unknown3=unknown3,
            average_bytes_per_second=average_bytes_per_second,
            block_align=block_align,
            samples_per_block=samples_per_block,
            unknown4=unknown4,
            size=size,
        )


@dataclass(frozen=True)
class AudioHeader:
    """The audio parameters needed to write a playable file."""

    format_tag: CompressionFormat
    stream_serial_number: int
    samples_per_second: int
    bits_per_sample: int
    channels: int
    average_bytes_per_second: int
    block_align: int
    samples_per_block: int
    size: int

    @classmethod
    def parse(cls, data: bytes) -> "AudioHeader":
        """Parse a header; the Ogg stream serial number is chosen at random."""
        raw = RawAudioHeader.parse(data)
        return cls(
            format_tag=CompressionFormat(raw.format_tag),
            stream_serial_number=random.getrandbits(32),
            samples_per_second=raw.samples_per_second,
            bits_per_sample=raw.bits_per_sample,
            channels=raw.channels,
            average_bytes_per_second=raw.average_bytes_per_second,
            block_align=raw.block_align,
            samples_per_block=raw.samples_per_block,
            size=raw.size,
        )

    def to_wav_pcm(self) -> bytes:
        """The 44-byte WAV header for PCM data of ``size`` bytes."""
        block_align = (self.channels * self.bits_per_sample) >> 3
        average_bytes_per_second = self.samples_per_second * block_align
        return (
            b"RIFF"
            + struct.pack("<I", self.size + 32)
            + b"WAVE"
            + b"fmt "
            + struct.pack(
                "<IHHIIHH",
                16,
                0x01,
                self.channels,
                self.samples_per_second,
                average_bytes_per_second,
                block_align,
                self.bits_per_sample,
            )
            + b"data"
            + struct.pack("<I", self.size)
        )

    def to_wav_adpcm(self) -> bytes:
        """The 78-byte WAV header for MS ADPCM data of ``size`` bytes."""
        coefficients = b"".join(struct.pack("<hh", a, b) for a, b in _ADPCM_COEFFICIENTS)
        return (
            b"RIFF"
            + struct.pack("<I", self.size + 66)
            + b"WAVE"
            + b"fmt "
            + struct.pack(
                "<IHHIIHHHHH",
                50,
                0x02,
                self.channels,
                self.samples_per_second,
                self.average_bytes_per_second,
                self.block_align,
                self.bits_per_sample,
                32,
                self.samples_per_block,
                len(_ADPCM_COEFFICIENTS),
            )
            + coefficients
            + b"data"
            + struct.pack("<I", self.size)
        )

    def to_opus(self) -> bytes:
        """The two Ogg pages holding the Opus identification and comment headers."""
        head = OpusHead(1, self.channels, 312, self.samples_per_second, 0, 0).to_bytes()
        head_page = OggPage.create(
            0x02, 0, self.stream_serial_number, 0, get_segment_table(head, 255), head
        )

        tags = OpusTags("Warframe", ["ARTIST=Warframe"]).to_bytes()
        tags_page = OggPage.create(
            0x00, 0, self.stream_serial_number, 1, get_segment_table(tags, 255), tags
        )
        return head_page.to_bytes() + tags_page.to_bytes()