# lotuscache

Read the packages in Warframe's `Cache.Windows` directory.

A package is a trio of cache pairs, `H.<name>`, `F.<name>` and `B.<name>`,
each made of a `.toc` file describing a directory tree and a `.cache` file
holding the (usually compressed) file data. `lotuscache` lets you:

- find every package in a cache directory (`PackageCollection`);
- open a package and pick its header, file or binary cache pair
  (`Package`, `PackageType`);
- load a table of contents and walk it as a tree of directory and file
  nodes (`Toc`, `Node`, `NodeKind`);
- read raw or decompressed file data (`CachePairReader`), with LZ4 block
  decompression for data from before and after "The Great Ensmallening";
- turn audio assets into WAV (PCM or ADPCM) or Ogg Opus files
  (`is_audio`, `decompress_audio`);
- turn texture assets into DDS files (`is_texture`, `decompress_texture`).

## Installation

```
pip install lotuscache
```

The only runtime dependency is `lz4`.

## Usage

Find the packages in a cache directory and open one of them. The second
argument says whether the data uses the post-ensmallening block format:

```python
from lotuscache.package import PackageCollection, PackageType

collection = PackageCollection("/path/to/Cache.Windows", True)
misc = collection.borrow("Misc")

header_cache = misc.borrow(PackageType.H)
header_cache.read_toc()
```

A collection is built from every `H.<name>.toc` file in the directory, in
sorted order; it can be iterated and has a length. `borrow` returns `None`
when no package or cache pair of that name or type exists, and `take`
removes it and hands it over.

Look nodes up by absolute path inside the tree and read their data:

```python
directory = header_cache.get_directory_node("/Lotus/Sounds")
node = header_cache.get_file_node("/Lotus/Sounds/Example.wav")

raw = header_cache.get_data(node)            # bytes as stored in the cache
data = header_cache.decompress_data(node)    # decompressed bytes
print(node.path(), len(data))
```

`get_file_node` and `get_directory_node` return `None` when nothing of that
kind is found at the path (or when the table of contents is not loaded);
a relative path raises `ValueError`. Paths may use `.` and `..`.

A `Node` carries `name`, `kind`, `parent` and `children`; file nodes also
carry `cache_offset`, `timestamp`, `comp_len` and `length`. All directory
and file nodes of a loaded table of contents are in
`CachePairReader.directories` (root first) and `CachePairReader.files`.

Package types can be parsed from a single letter in either case:

```python
PackageType.parse("f")   # PackageType.F
```

### Audio

The header, file and binary caches all need their tables of contents
loaded:

```python
from lotuscache.audio import is_audio, decompress_audio

for cache in (misc.borrow(PackageType.F), misc.borrow(PackageType.B)):
    if cache is not None:
        cache.read_toc()

if is_audio(misc, node):
    content, file_name = decompress_audio(misc, node)
    with open(file_name, "wb") as out:
        out.write(content)
```

PCM and ADPCM sounds come out as `.wav`, Opus sounds as `.opus` in an Ogg
container. A missing header cache raises `FileNotFoundError`.

### Textures

```python
from lotuscache.texture import is_texture, decompress_texture

texture_node = header_cache.get_file_node("/Lotus/Textures/Example.png")
if is_texture(misc, texture_node):
    content, file_name = decompress_texture(misc, texture_node)
    with open(file_name, "wb") as out:
        out.write(content)
```

Textures are written as `.dds` files with a DX10 extension header where the
format needs one (BC6H, BC7). The file name is the node's name with `.png`
replaced by `.dds`.

### Oodle-compressed blocks

Newer cache data may contain Oodle-compressed blocks. No Oodle decoder
ships with this package. `PackageCollection`, `Package` and
`CachePairReader` accept an `oodle` argument, as do
`decompress_oodle` and `decompress_post_ensmallening` in
`lotuscache.compression`: a callable taking the compressed bytes and the
expected decompressed length and returning the decompressed bytes. Without
it, Oodle blocks raise `DecompressionError`; LZ4 and stored blocks are
handled on their own.

## Lower-level pieces

- `lotuscache.compression`: `decompress_lz`, `decompress_oodle`,
  `get_block_lengths`, `is_oodle_block`, `decompress_post_ensmallening`,
  `decompress_pre_ensmallening`, `DecompressionError`.
- `lotuscache.toc`: `Toc`, `TocEntry`, `Node`, `NodeKind`.
- `lotuscache.ogg`: `OggPage`, `OggHeader`, `OpusHead`, `OpusTags`,
  `get_segment_table`, `ogg_crc32`.
- `lotuscache.audio_header` and `lotuscache.texture_header`: parsers for
  the asset headers stored in the `H` cache (`RawAudioHeader`,
  `AudioHeader`, `CompressionFormat`, `AudioKind`, `RawTextureHeader`,
  `TextureHeader`, `DDSFormat`, `TextureKind`).
- `lotuscache.texture.get_real_cache_image_offset` and
  `get_texture_file_name`.

## What it does not do

- It is a library only: there is no command-line tool.
- It reads caches but never writes or modifies them.
- It decodes no Oodle data itself (see above) and does not decode audio
  samples or texture pixels; it only wraps them in WAV, Ogg or DDS
  containers.

## Running the tests

```
pip install "lotuscache[test]"
pytest
```