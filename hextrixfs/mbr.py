"""Master boot record layout, partition entries and partition type codes."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum

SECTOR_SIZE = 512
BOOTSTRAP_SIZE = 446
PARTITION_ENTRY_SIZE = 16
PARTITION_SLOTS = 4
BOOT_SIGNATURE = 0xAA55
BOOTABLE_FLAG = 0x80
SECTORS_PER_MB = 2048

# Geometry used when an LBA is expressed in cylinder/head/sector form.
CHS_HEADS = 16
CHS_SECTORS_PER_TRACK = 63

_ENTRY = struct.Struct("<8BII")
_UINT32_MAX = 0xFFFFFFFF


class MbrError(Exception):
    """Raised when a master boot record or partition entry is malformed."""


class PartitionType(IntEnum):
    """System identifiers found in MBR partition entries."""

    UNKNOWN = 0x00
    FAT12 = 0x01
    FAT16 = 0x04
    EXTENDED = 0x05
    FAT16B = 0x06
    NTFS = 0x07
    FAT32 = 0x0B
    FAT32X = 0x0C
    FAT16X = 0x0E
    EXTENDED2 = 0x0F
    LINUX = 0x83


class FsType(IntEnum):
    """File systems a partition can hold."""

    UNKNOWN = 0
    FAT16 = 1
    FAT32 = 2
    EXT2 = 3
    RAMFS = 4


_FS_TYPES = {
    PartitionType.FAT12: FsType.FAT16,
    PartitionType.FAT16: FsType.FAT16,
    PartitionType.FAT16B: FsType.FAT16,
    PartitionType.FAT16X: FsType.FAT16,
    PartitionType.FAT32: FsType.FAT32,
    PartitionType.FAT32X: FsType.FAT32,
    PartitionType.LINUX: FsType.EXT2,
}

_TYPE_NAMES = {
    PartitionType.FAT12: "FAT12",
    PartitionType.FAT16: "FAT16",
    PartitionType.EXTENDED: "Extended",
    PartitionType.FAT16B: "FAT16B",
    PartitionType.NTFS: "NTFS",
    PartitionType.FAT32: "FAT32",
    PartitionType.FAT32X: "FAT32X",
    PartitionType.FAT16X: "FAT16X",
    PartitionType.LINUX: "Linux",
}


def fs_type_for(partition_type):
    """Return the file system expected on a partition of the given type."""
    return _FS_TYPES.get(partition_type, FsType.UNKNOWN)


def type_name(partition_type):
    """Return the display name of a partition type."""
    return _TYPE_NAMES.get(partition_type, "Unknown")


def lba_to_chs(lba):
    """Return the packed ``(head, sector, cylinder)`` bytes for an LBA.

    The sector byte holds the 1-based sector in bits 0-5 and bits 8-9 of
    the cylinder in bits 6-7; the cylinder byte holds its low eight bits.
    """
    if not 0 <= lba <= _UINT32_MAX:
        raise MbrError(f"LBA {lba} out of range")
    cylinder = lba // (CHS_HEADS * CHS_SECTORS_PER_TRACK)
    head = (lba // CHS_SECTORS_PER_TRACK) % CHS_HEADS
    sector = lba % CHS_SECTORS_PER_TRACK + 1
    return head, sector | ((cylinder >> 2) & 0xC0), cylinder & 0xFF


@dataclass
class MbrPartition:
    """One 16-byte entry of the MBR partition table."""

    bootable: int = 0
    start_head: int = 0
    start_sector: int = 0
    start_cylinder: int = 0
    system_id: int = 0
    end_head: int = 0
    end_sector: int = 0
    end_cylinder: int = 0
    start_lba: int = 0
    total_sectors: int = 0

    @property
    def is_empty(self):
        """True if the entry describes no partition."""
        return self.system_id == 0

    @property
    def is_bootable(self):
        return self.bootable == BOOTABLE_FLAG

    @property
    def size_mb(self):
        """Size of the partition in whole megabytes."""
        return self.total_sectors // SECTORS_PER_MB

    def pack(self):
        """Return the entry in its on-disk form."""
        try:
            return _ENTRY.pack(
                self.bootable,
                self.start_head,
                self.start_sector,
                self.start_cylinder,
                self.system_id,
                self.end_head,
                self.end_sector,
                self.end_cylinder,
                self.start_lba,
                self.total_sectors,
            )
        except struct.error as exc:
            raise MbrError(f"partition entry field out of range: {exc}") from exc

    @classmethod
    def unpack(cls, data):
        """Parse an entry from its 16 on-disk bytes."""
        if len(data) != PARTITION_ENTRY_SIZE:
            raise MbrError(
                f"a partition entry is {PARTITION_ENTRY_SIZE} bytes, got {len(data)}"
            )
        return cls(*_ENTRY.unpack(bytes(data)))

    @classmethod
    def from_lba(cls, start_lba, size_sectors, system_id):
        """Build a non-bootable entry covering ``size_sectors`` from ``start_lba``."""
        if size_sectors < 1:
            raise MbrError("a partition must hold at least one sector")
        end_lba = start_lba + size_sectors - 1
        if start_lba < 0 or end_lba > _UINT32_MAX:
            raise MbrError(f"partition {start_lba}..{end_lba} out of LBA range")
        if not 0 <= system_id <= 0xFF:
            raise MbrError(f"partition type {system_id} out of range")
        start_head, start_sector, start_cylinder = lba_to_chs(start_lba)
        end_head, end_sector, end_cylinder = lba_to_chs(end_lba)
        return cls(
            bootable=0,
            start_head=start_head,
            start_sector=start_sector,
            start_cylinder=start_cylinder,
            system_id=system_id,
            end_head=end_head,
            end_sector=end_sector,
            end_cylinder=end_cylinder,
            start_lba=start_lba,
            total_sectors=size_sectors,
        )


def _empty_partitions():
    return [MbrPartition() for _ in range(PARTITION_SLOTS)]


@dataclass
class MasterBootRecord:
    """The first sector of a partitioned disk."""

    bootstrap: bytes = bytes(BOOTSTRAP_SIZE)
    partitions: list = field(default_factory=_empty_partitions)
    signature: int = BOOT_SIGNATURE

    @property
    def has_valid_signature(self):
        return self.signature == BOOT_SIGNATURE

    def check_signature(self):
        """Raise MbrError unless the boot signature is 0xAA55."""
        if not self.has_valid_signature:
            raise MbrError(f"Invalid MBR signature: 0x{self.signature:x}")

    @classmethod
    def from_bytes(cls, data):
        """Parse a 512-byte sector; the signature is kept as found."""
        data = bytes(data)
        if len(data) != SECTOR_SIZE:
            raise MbrError(f"an MBR is {SECTOR_SIZE} bytes, got {len(data)}")
        table = data[BOOTSTRAP_SIZE:BOOTSTRAP_SIZE + PARTITION_SLOTS * PARTITION_ENTRY_SIZE]
        partitions = [
            MbrPartition.unpack(table[offset:offset + PARTITION_ENTRY_SIZE])
            for offset in range(0, len(table), PARTITION_ENTRY_SIZE)
        ]
        (signature,) = struct.unpack_from("<H", data, SECTOR_SIZE - 2)
        return cls(
            bootstrap=data[:BOOTSTRAP_SIZE],
            partitions=partitions,
            signature=signature,
        )

    def to_bytes(self):
        """Return the record as a 512-byte sector."""
        bootstrap = bytes(self.bootstrap)
        if len(bootstrap) != BOOTSTRAP_SIZE:
            raise MbrError(f"bootstrap code must be {BOOTSTRAP_SIZE} bytes")
        if len(self.partitions) != PARTITION_SLOTS:
            raise MbrError(f"an MBR holds exactly {PARTITION_SLOTS} partition entries")
        table = b"".join(entry.pack() for entry in self.partitions)
        try:
            signature = struct.pack("<H", self.signature)
        except struct.error as exc:
            raise MbrError(f"signature out of range: {exc}") from exc
        return bootstrap + table + signature

    @classmethod
    def empty(cls):
        """Return a record with no partitions and a bootstrap that loops forever."""
        bootstrap = bytearray(BOOTSTRAP_SIZE)
        bootstrap[0] = 0xEB  # JMP
        bootstrap[1] = 0xFE  # to itself
        return cls(bootstrap=bytes(bootstrap))