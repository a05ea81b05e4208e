"""Read Warframe cache packages and extract their audio and texture assets."""

__version__ = "0.1.0"

__all__ = [
    "audio",
    "audio_header",
    "cache_pair",
    "compression",
    "ogg",
    "package",
    "texture",
    "texture_header",
    "toc",
]