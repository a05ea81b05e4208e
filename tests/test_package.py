import struct

import pytest

from lotuscache.cache_pair import CachePairReader
from lotuscache.package import Package, PackageCollection, PackageType
from lotuscache.toc import TocEntry


def _touch(directory, *names):
    for name in names:
        (directory / name).write_bytes(b"")


@pytest.mark.parametrize(
    "value, expected",
    [
        ("H", PackageType.H),
        ("h", PackageType.H),
        ("F", PackageType.F),
        ("f", PackageType.F),
        ("B", PackageType.B),
        ("b", PackageType.B),
        (PackageType.F, PackageType.F),
    ],
)
def test_parse_package_type(value, expected):
    assert PackageType.parse(value) is expected


@pytest.mark.parametrize("value", ["", "HF", "x", "Z", 3])
def test_parse_invalid_package_type(value):
    with pytest.raises(ValueError):
        PackageType.parse(value)


def test_package_type_letters():
    assert [str(PackageType.parse(letter)) for letter in "hfb"] == ["H", "F", "B"]


def test_package_opens_existing_pairs(tmp_path):
    _touch(tmp_path, "H.Misc.toc", "H.Misc.cache", "F.Misc.cache")
    package = Package(tmp_path, "Misc", True)
    header = package.borrow("H")
    assert isinstance(header, CachePairReader)
    assert header.toc_path == tmp_path / "H.Misc.toc"
    assert header.cache_path == tmp_path / "H.Misc.cache"
    assert header.is_post_ensmallening is True
    assert package.borrow(PackageType.F).cache_path == tmp_path / "F.Misc.cache"
    assert package.borrow("b") is None
    assert package.borrow("q") is None


def test_package_take_removes_pair(tmp_path):
    _touch(tmp_path, "H.Misc.toc")
    package = Package(tmp_path, "Misc", False)
    taken = package.take("h")
    assert taken.toc_path == tmp_path / "H.Misc.toc"
    assert package.borrow("H") is None
    assert package.take("H") is None
    assert package.take("nope") is None


def test_collection_discovers_header_tocs(tmp_path):
    _touch(
        tmp_path,
        "H.Misc.toc",
        "H.Texture.toc",
        "F.Texture.cache",
        "H.toc",
        "F.Other.toc",
        "H.Foo.cache",
    )
    collection = PackageCollection(tmp_path, True)
    assert [p.name for p in collection.packages] == ["Misc", "Texture"]
    assert len(collection) == 2
    assert collection.is_post_ensmallening is True
    assert collection.directory == tmp_path


def test_collection_accepts_shortest_name(tmp_path):
    _touch(tmp_path, "H.1.toc")
    collection = PackageCollection(tmp_path, False)
    assert [p.name for p in collection] == ["1"]


def test_collection_borrow_and_take(tmp_path):
    _touch(tmp_path, "H.Misc.toc", "H.Texture.toc")
    collection = PackageCollection(tmp_path, False)
    assert collection.borrow("Misc").name == "Misc"
    assert collection.borrow("Missing") is None
    taken = collection.take("Texture")
    assert taken.name == "Texture"
    assert collection.borrow("Texture") is None
    assert [p.name for p in collection] == ["Misc"]
    assert collection.take("Texture") is None


def test_collection_missing_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        PackageCollection(tmp_path / "absent", False)


def test_collection_reads_files_through_packages(tmp_path):
    data = b"file contents"
    entries = [
        TocEntry(-1, 1, 0, 0, 0, 0, b"Misc"),
        TocEntry(0, 1, len(data), len(data), 0, 1, b"note.txt"),
    ]
    (tmp_path / "H.Misc.toc").write_bytes(
        struct.pack("<II", 0x1867C64E, 20) + b"".join(e.pack() for e in entries)
    )
    (tmp_path / "H.Misc.cache").write_bytes(data)
    header = PackageCollection(tmp_path, False).borrow("Misc").borrow("H")
    header.read_toc()
    node = header.get_file_node("/Misc/note.txt")
    assert header.decompress_data(node) == data