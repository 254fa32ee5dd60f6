[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hextrixfs"
version = "0.1.0"
description = "In-memory block devices, MBR partition tables, FAT32 formatting and a node file system with a write-back sector cache"
requires-python = ">=3.10"
dependencies = []
keywords = ["filesystem", "mbr", "partition", "fat32", "block-device", "cache", "scancode"]
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
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["hextrixfs"]

[tool.pytest.ini_options]
addopts = "-ra"
