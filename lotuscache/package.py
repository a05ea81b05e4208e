"""Packages of header, file and binary cache pairs, and collections of them."""

from __future__ import annotations

import enum
import os
from pathlib import Path
from typing import Optional, Union

from lotuscache.cache_pair import CachePairReader
from lotuscache.compression import OodleDecoder
from lotuscache.toc import PathLike


class PackageType(enum.Enum):
    """The three cache pairs that make up a package."""

    #: Header package, usually file headers and metadata.
    H = "H"
    #: File package, usually compressed sound and texture assets.
    F = "F"
    #: Binary package, compiled binary data.
    B = "B"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: Union["PackageType", str]) -> "PackageType":
        """Convert a single letter (any case) or a ``PackageType`` to a ``PackageType``."""
        if isinstance(value, PackageType):
            return value
        if isinstance(value, str) and len(value) == 1:
            try:
                return cls(value.upper())
            except ValueError:
                pass
        raise ValueError("Invalid package trio type")


def _try_parse(package_type: Union[PackageType, str]) -> Optional[PackageType]:
    try:
        return PackageType.parse(package_type)
    except ValueError:
        return None


class Package:
    """A named package with up to three cache pairs, one per ``PackageType``."""

    def __init__(
        self,
        directory: PathLike,
        name: str,
        is_post_ensmallening: bool,
        oodle: Optional[OodleDecoder] = None,
    ) -> None:
        self.directory = Path(directory)
        self.name = name
        self.is_post_ensmallening = is_post_ensmallening
        self._pairs: dict[PackageType, Optional[CachePairReader]] = {
            package_type: self._open_pair(package_type, oodle)
            for package_type in PackageType
        }

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(directory={str(self.directory)!r}, "
            f"name={self.name!r}, is_post_ensmallening={self.is_post_ensmallening!r})"
        )

    def _open_pair(
        self, package_type: PackageType, oodle: Optional[OodleDecoder]
    ) -> Optional[CachePairReader]:
        toc_path = self.directory / f"{package_type}.{self.name}.toc"
        cache_path = self.directory / f"{package_type}.{self.name}.cache"
        if not toc_path.exists() and not cache_path.exists():
            return None
        return CachePairReader(toc_path, cache_path, self.is_post_ensmallening, oodle)

    def borrow(self, package_type: Union[PackageType, str]) -> Optional[CachePairReader]:
        """Return the cache pair of the given type, or ``None`` if absent or invalid."""
        parsed = _try_parse(package_type)
        if parsed is None:
            return None
        return self._pairs[parsed]

    def take(self, package_type: Union[PackageType, str]) -> Optional[CachePairReader]:
        """Remove and return the cache pair of the given type, or ``None``."""
        parsed = _try_parse(package_type)
        if parsed is None:
            return None
        pair = self._pairs[parsed]
        self._pairs[parsed] = None
        return pair


class PackageCollection:
    """All packages found in a cache directory, discovered by their ``H.<name>.toc`` files."""

    def __init__(
        self,
        directory: PathLike,
        is_post_ensmallening: bool,
        oodle: Optional[OodleDecoder] = None,
    ) -> None:
        self.directory = Path(directory)
        self.is_post_ensmallening = is_post_ensmallening
        self.packages: list[Package] = [
            Package(self.directory, file_name[2:-4], is_post_ensmallening, oodle)
            for file_name in sorted(os.listdir(self.directory))
            # "H.1.toc" is the shortest possible header TOC name.
            if len(file_name) >= 7
            and file_name.startswith("H.")
            and file_name.endswith(".toc")
        ]

    def __iter__(self):
        return iter(self.packages)

    def __len__(self) -> int:
        return len(self.packages)

    def borrow(self, package_name: str) -> Optional[Package]:
        """Return the package with the given name, or ``None``."""
        return next((p for p in self.packages if p.name == package_name), None)

    def take(self, package_name: str) -> Optional[Package]:
        """Remove and return the package with the given name, or ``None``."""
        package = self.borrow(package_name)
        if package is not None:
            self.packages.remove(package)
        return package