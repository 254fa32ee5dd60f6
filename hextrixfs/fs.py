"""Hierarchical in-memory file table with a write-back sector cache."""

from __future__ import annotations

import posixpath
import sys
import time
from dataclasses import dataclass, field, replace
from enum import IntEnum

from .blockdev import DiskError

MAX_FILES = 64
MAX_FILENAME = 32
MAX_PATH = 128
MAX_FILESIZE = 8192
CACHE_SIZE = 32
CACHE_BLOCK_SIZE = 512
TOP_BLOCKS_SHOWN = 5

_LINK_NAMES = (".", "..")


class NodeType(IntEnum):
    """Kind of entry in the file table."""

    FILE = 1
    DIRECTORY = 2


class CacheState(IntEnum):
    """State of a block in the sector cache."""

    EMPTY = 0
    CLEAN = 1
    DIRTY = 2


class FileSystemError(Exception):
    """Raised when a file system operation cannot be carried out."""


@dataclass
class FsNode:
    """One slot of the file table."""

    name: str = ""
    path: str = ""
    type: NodeType = NodeType.FILE
    data: bytes = b""
    parent_index: int = -1
    in_use: bool = False
    permissions: int = 0
    created_time: int = 0
    modified_time: int = 0

    @property
    def size(self):
        """Number of bytes of data held by the node."""
        return len(self.data)

    @property
    def is_directory(self):
        return self.type == NodeType.DIRECTORY


@dataclass
class CacheBlock:
    """A cached disk sector."""

    sector: int = 0
    state: CacheState = CacheState.EMPTY
    last_access: int = 0
    access_count: int = 0
    data: bytearray = field(default_factory=lambda: bytearray(CACHE_BLOCK_SIZE))


@dataclass
class FsStats:
    """Counters of cache and file operations."""

    cache_hits: int = 0
    cache_misses: int = 0
    cache_flushes: int = 0
    file_opens: int = 0
    file_closes: int = 0
    file_reads: int = 0
    file_writes: int = 0
    dir_operations: int = 0

    @property
    def hit_rate(self):
        """Percentage of cache lookups that were hits."""
        total = self.cache_hits + self.cache_misses
        return self.cache_hits * 100.0 / total if total else 0.0


def _now():
    return int(time.time())


class FileSystem:
    """A fixed-size file table with a sector cache in front of a block device.

    ``storage`` is any object with ``read_sector(sector)`` and
    ``write_sector(sector, data)``; ``output`` is a text stream that receives
    the messages and reports (standard output when not given).
    """

    def __init__(self, storage=None, output=None):
        self.storage = storage
        self._output = output
        now = _now()
        self._nodes = [FsNode() for _ in range(MAX_FILES)]
        self._nodes[0] = FsNode(
            name="/",
            path="/",
            type=NodeType.DIRECTORY,
            parent_index=-1,
            in_use=True,
            permissions=0o755,
            created_time=now,
            modified_time=now,
        )
        self._cwd = "/"
        self._cache = [CacheBlock() for _ in range(CACHE_SIZE)]
        self._cache_timer = 0
        self.stats = FsStats()
        self._emit("File system initialized\n")

    # ------------------------------------------------------------------ output

    def _emit(self, text):
        stream = self._output if self._output is not None else sys.stdout
        stream.write(text)

    # ------------------------------------------------------------------ paths

    def _resolve(self, path):
        if not path:
            raise FileSystemError("empty path")
        if not path.startswith("/"):
            path = posixpath.join(self._cwd, path)
        resolved = posixpath.normpath(path)
        if resolved.startswith("//"):
            resolved = "/" + resolved.lstrip("/")
        if len(resolved) >= MAX_PATH:
            raise FileSystemError(f"{resolved}: path too long")
        return resolved

    def _find(self, resolved):
        return next(
            (i for i, node in enumerate(self._nodes) if node.in_use and node.path == resolved),
            None,
        )

    def _require(self, path):
        resolved = self._resolve(path)
        index = self._find(resolved)
        if index is None:
            raise FileSystemError(f"{resolved}: no such file or directory")
        return index

    def _free_slot(self):
        return next((i for i, node in enumerate(self._nodes) if not node.in_use), None)

    def _children(self, index):
        return [
            i for i, node in enumerate(self._nodes)
            if node.in_use and node.parent_index == index
        ]

    def _create_node(self, path, node_type):
        resolved = self._resolve(path)
        if self._find(resolved) is not None:
            raise FileSystemError(f"{resolved}: already exists")
        name = posixpath.basename(resolved)
        if len(name) >= MAX_FILENAME:
            raise FileSystemError(f"{name}: file name too long")
        parent_index = self._find(posixpath.dirname(resolved))
        if parent_index is None or not self._nodes[parent_index].is_directory:
            raise FileSystemError(f"{resolved}: parent directory does not exist")
        slot = self._free_slot()
        if slot is None:
            raise FileSystemError("file table is full")
        now = _now()
        self._nodes[slot] = FsNode(
            name=name,
            path=resolved,
            type=node_type,
            parent_index=parent_index,
            in_use=True,
            permissions=0o755 if node_type == NodeType.DIRECTORY else 0o644,
            created_time=now,
            modified_time=now,
        )
        return replace(self._nodes[slot])

    # ------------------------------------------------------------------ files

    def getcwd(self):
        """Return the current working directory."""
        return self._cwd

    def chdir(self, path):
        """Make ``path`` the current working directory."""
        index = self._require(path)
        node = self._nodes[index]
        if not node.is_directory:
            raise FileSystemError(f"{node.path}: not a directory")
        self._cwd = node.path

    def list(self, path="."):
        """Print and return the entries of a directory."""
        index = self._require(path)
        directory = self._nodes[index]
        if not directory.is_directory:
            raise FileSystemError(f"{directory.path}: not a directory")
        entries = [replace(self._nodes[i]) for i in self._children(index)]
        lines = [f"Directory listing of {directory.path}:\n"]
        for entry in entries:
            kind = "directory" if entry.is_directory else f"{entry.size} bytes"
            lines.append(f"  {entry.name}  ({kind})\n")
        self._emit("".join(lines))
        return entries

    def create(self, path, node_type=NodeType.FILE):
        """Create an empty file or directory and return its node."""
        node = self._create_node(path, NodeType(node_type))
        self.stats.file_opens += 1
        return node

    def mkdir(self, path):
        """Create a directory and return its node."""
        node = self._create_node(path, NodeType.DIRECTORY)
        self.stats.dir_operations += 1
        return node

    def _require_file(self, path):
        node = self._nodes[self._require(path)]
        if node.is_directory:
            raise FileSystemError(f"{node.path}: is a directory")
        return node

    def read(self, path):
        """Return the contents of a file."""
        node = self._require_file(path)
        self.stats.file_reads += 1
        return node.data

    def write(self, path, data):
        """Replace the contents of a file and return the number of bytes written."""
        data = bytes(data)
        if len(data) > MAX_FILESIZE:
            raise FileSystemError(f"file data larger than {MAX_FILESIZE} bytes")
        node = self._require_file(path)
        node.data = data
        node.modified_time = _now()
        self.stats.file_writes += 1
        return len(data)

    def delete(self, path):
        """Remove a file or an empty directory."""
        index = self._require(path)
        if index == 0:
            raise FileSystemError("cannot delete the root directory")
        node = self._nodes[index]
        if node.is_directory:
            children = self._children(index)
            if any(self._nodes[i].name not in _LINK_NAMES for i in children):
                raise FileSystemError(f"{node.path}: directory not empty")
            if self._cwd == node.path or self._cwd.startswith(node.path + "/"):
                raise FileSystemError(f"{node.path}: directory is in use")
            for child in children:
                self._nodes[child] = FsNode()
        self._nodes[index] = FsNode()
        self.stats.file_closes += 1

    def size(self, path):
        """Return the size of a file in bytes."""
        return self._nodes[self._require(path)].size

    def stat(self, path):
        """Return a copy of the node at ``path``."""
        return replace(self._nodes[self._require(path)])

    def _check_index(self, index):
        if not 0 <= index < MAX_FILES:
            raise FileSystemError(f"node index {index} out of range")

    def stat_by_index(self, index):
        """Return a copy of the node in table slot ``index``."""
        self._check_index(index)
        return replace(self._nodes[index])

    def update_node(self, index, node):
        """Store a copy of ``node`` in table slot ``index``."""
        self._check_index(index)
        self._nodes[index] = replace(node)

    # ------------------------------------------------------------------ cache

    def _device(self):
        if self.storage is None:
            raise FileSystemError("no storage device attached")
        return self.storage

    def _find_cache_block(self, sector):
        return next(
            (block for block in self._cache
             if block.state != CacheState.EMPTY and block.sector == sector),
            None,
        )

    def _lru_block(self):
        lru = self._cache[0]
        for block in self._cache[1:]:
            if block.state == CacheState.EMPTY:
                return block
            if block.last_access < lru.last_access:
                lru = block
        return lru

    def _flush_block(self, block):
        if block.state != CacheState.DIRTY:
            return
        try:
            self._device().write_sector(block.sector, bytes(block.data))
        except DiskError as exc:
            raise FileSystemError(f"cannot write sector {block.sector}: {exc}") from exc
        block.state = CacheState.CLEAN
        self.stats.cache_flushes += 1

    def _evict(self):
        block = self._lru_block()
        try:
            self._flush_block(block)
        except FileSystemError:
            pass
        return block

    def read_sector(self, sector):
        """Read one sector through the cache."""
        self._cache_timer += 1
        block = self._find_cache_block(sector)
        if block is not None:
            self.stats.cache_hits += 1
            block.last_access = self._cache_timer
            block.access_count += 1
            return bytes(block.data)

        self.stats.cache_misses += 1
        block = self._evict()
        try:
            data = self._device().read_sector(sector)
        except DiskError as exc:
            raise FileSystemError(f"cannot read sector {sector}: {exc}") from exc
        block.data[:] = data
        block.sector = sector
        block.state = CacheState.CLEAN
        block.last_access = self._cache_timer
        block.access_count = 1
        return bytes(block.data)

    def write_sector(self, sector, data):
        """Write one sector into the cache; it reaches the device on flush."""
        data = bytes(data)
        if len(data) != CACHE_BLOCK_SIZE:
            raise FileSystemError(f"a sector must be exactly {CACHE_BLOCK_SIZE} bytes")
        self._cache_timer += 1
        block = self._find_cache_block(sector)
        if block is not None:
            self.stats.cache_hits += 1
        else:
            self.stats.cache_misses += 1
            block = self._evict()
            block.sector = sector
        block.data[:] = data
        block.state = CacheState.DIRTY
        block.last_access = self._cache_timer
        block.access_count += 1

    def _flush_all(self):
        flushed = failed = 0
        for block in self._cache:
            if block.state != CacheState.DIRTY:
                continue
            try:
                self._flush_block(block)
            except FileSystemError:
                failed += 1
            else:
                flushed += 1
        return flushed, failed

    def sync(self):
        """Write every dirty cache block to the device; return how many were written."""
        flushed, failed = self._flush_all()
        if failed:
            raise FileSystemError(f"{failed} cache blocks could not be written")
        return flushed

    def cache_info(self):
        """Print and return a report on the cache and operation counters."""
        stats = self.stats
        counts = {state: 0 for state in CacheState}
        for block in self._cache:
            counts[block.state] += 1
        lines = [
            "File System Cache Information:\n",
            "----------------------------\n",
            f"Cache size: {CACHE_SIZE} blocks of {CACHE_BLOCK_SIZE} bytes\n",
            f"Cache hits: {stats.cache_hits}, misses: {stats.cache_misses} "
            f"({stats.hit_rate:.1f}% hit rate)\n",
            f"Cache flushes: {stats.cache_flushes}\n",
            f"Cache blocks: {counts[CacheState.EMPTY]} empty, "
            f"{counts[CacheState.CLEAN]} clean, {counts[CacheState.DIRTY]} dirty\n",
            f"File operations: {stats.file_opens} opens, {stats.file_closes} closes, "
            f"{stats.file_reads} reads, {stats.file_writes} writes\n",
            f"Directory operations: {stats.dir_operations}\n",
            "\nMost Active Cache Blocks:\n",
            "Block  Sector   State   Accesses\n",
            "----- -------- -------- --------\n",
        ]
        active = sorted(
            (
                (index, block) for index, block in enumerate(self._cache)
                if block.state != CacheState.EMPTY and block.access_count > 0
            ),
            key=lambda item: (-item[1].access_count, item[0]),
        )
        for index, block in active[:TOP_BLOCKS_SHOWN]:
            state = "Dirty" if block.state == CacheState.DIRTY else "Clean"
            lines.append(f"{index:5d} {block.sector:8d} {state:>8s} {block.access_count:8d}\n")
        report = "".join(lines)
        self._emit(report)
        return report

    # ------------------------------------------------------------------ checks

    @staticmethod
    def _needs_links(node):
        return node.in_use and node.is_directory and node.name not in _LINK_NAMES

    def _child_names(self, index):
        return {self._nodes[i].name for i in self._children(index)}

    def check(self):
        """Report inconsistencies in the file table and return their number."""
        self._emit("Performing file system consistency check...\n")
        self._flush_all()
        errors = 0

        for node in self._nodes:
            if not node.in_use or node.parent_index < 0:
                continue
            parent_ok = node.parent_index < MAX_FILES and (
                self._nodes[node.parent_index].in_use
                and self._nodes[node.parent_index].is_directory
            )
            if not parent_ok:
                self._emit(f"Error: {node.path} has invalid parent\n")
                errors += 1

        for index, node in enumerate(self._nodes):
            if not self._needs_links(node):
                continue
            names = self._child_names(index)
            for link in _LINK_NAMES:
                if link not in names:
                    self._emit(f"Error: Directory {node.path} missing {link} entry\n")
                    errors += 1

        if errors:
            self._emit(f"File system check completed: {errors} errors found\n")
        else:
            self._emit("File system check completed: No errors found\n")
        return errors

    def repair(self):
        """Add missing "." and ".." entries to directories; return the repairs made."""
        self._emit("Repairing file system...\n")
        self._flush_all()
        repairs = 0

        for index in range(MAX_FILES):
            node = self._nodes[index]
            if not self._needs_links(node):
                continue
            names = self._child_names(index)
            for link in _LINK_NAMES:
                if link in names:
                    continue
                slot = self._free_slot()
                if slot is None:
                    continue
                self._nodes[slot] = FsNode(
                    name=link,
                    path=f"{node.path}/{link}",
                    type=NodeType.DIRECTORY,
                    parent_index=index,
                    in_use=True,
                    permissions=node.permissions,
                    created_time=node.created_time,
                    modified_time=node.modified_time,
                )
                repairs += 1
                self._emit(f"Repaired: Created missing {link} entry for {node.path}\n")

        if repairs:
            self._emit(f"File system repair completed: Made {repairs} repairs\n")
        else:
            self._emit("No repairs needed\n")
        return repairs