[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lotuscache"
version = "0.1.0"
description = "Read Warframe Cache.Windows packages: table-of-contents trees, compressed cache data, audio and texture extraction"
requires-python = ">=3.10"
keywords = [
    "warframe",
    "cache",
    "toc",
    "lz4",
    "oodle",
    "dds",
    "opus",
    "ogg",
    "wav",
    "extraction",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Archiving :: Compression",
    "Topic :: Multimedia :: Sound/Audio :: Conversion",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
]
dependencies = [
    "lz4",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["lotuscache"]

[tool.hatch.build.targets.sdist]
include = [
    "lotuscache",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
