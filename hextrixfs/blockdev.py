"""In-memory sector-addressed block device."""

from __future__ import annotations

SECTOR_SIZE = 512
MODEL_MAX_LENGTH = 40
MAX_SECTORS_PER_TRANSFER = 255


class DiskError(Exception):
    """Raised when a sector read or write cannot be carried out."""


class MemoryDisk:
    """A block device of fixed-size sectors kept in memory.

    It behaves like an ATA drive addressed by LBA: sectors are 512 bytes,
    unwritten sectors read back as zeros, and a single transfer moves at
    most 255 sectors.
    """

    sector_size = SECTOR_SIZE

    def __init__(self, sector_count, model="MEMORY DISK"):
        if sector_count <= 0:
            raise ValueError("sector_count must be positive")
        self.sector_count = sector_count
        self.model = model[:MODEL_MAX_LENGTH]
        self.present = True
        self._data = bytearray(sector_count * SECTOR_SIZE)

    def __repr__(self):
        return f"MemoryDisk(sector_count={self.sector_count!r}, model={self.model!r})"

    @property
    def size_bytes(self):
        """Capacity of the disk in bytes."""
        return len(self._data)

    def _check_range(self, lba, count):
        if count < 1 or count > MAX_SECTORS_PER_TRANSFER:
            raise DiskError(f"sector count {count} out of range")
        if lba < 0 or lba + count > self.sector_count:
            raise DiskError(
                f"sectors {lba}..{lba + count - 1} beyond end of disk "
                f"({self.sector_count} sectors)"
            )

    def read_sectors(self, lba, count):
        """Return ``count`` consecutive sectors starting at ``lba``."""
        self._check_range(lba, count)
        start = lba * SECTOR_SIZE
        return bytes(self._data[start:start + count * SECTOR_SIZE])

    def write_sectors(self, lba, data):
        """Write whole sectors from ``data`` starting at ``lba``."""
        data = bytes(data)
        if not data or len(data) % SECTOR_SIZE:
            raise DiskError(
                f"data length {len(data)} is not a positive multiple of {SECTOR_SIZE}"
            )
        count = len(data) // SECTOR_SIZE
        self._check_range(lba, count)
        start = lba * SECTOR_SIZE
        self._data[start:start + len(data)] = data

    def read_sector(self, sector):
        """Return one sector."""
        return self.read_sectors(sector, 1)

    def write_sector(self, sector, data):
        """Write exactly one sector."""
        if len(data) != SECTOR_SIZE:
            raise DiskError(f"a sector must be exactly {SECTOR_SIZE} bytes")
        self.write_sectors(sector, data)