"""Creation and mounting of FAT32 volumes inside a partition."""

from __future__ import annotations

import struct
from dataclasses import dataclass

from .blockdev import DiskError

SECTOR_SIZE = 512
SECTORS_PER_CLUSTER = 8
RESERVED_SECTORS = 32
NUMBER_OF_FATS = 2
ROOT_DIR_CLUSTER = 2
ROOT_DIR_CLUSTERS = 1
FSINFO_SECTOR = 1
BACKUP_BOOT_SECTOR = 6
BACKUP_FSINFO_SECTOR = BACKUP_BOOT_SECTOR + FSINFO_SECTOR
FAT_ENTRIES_PER_SECTOR = SECTOR_SIZE // 4

MEDIA_DESCRIPTOR = 0xF8
SECTORS_PER_TRACK = 63
HEADS = 255
DRIVE_NUMBER = 0x80
EXTENDED_BOOT_SIGNATURE = 0x29
VOLUME_ID = 0x12345678
OEM_ID = b"MSDOS5.0"
VOLUME_LABEL = b"NO NAME    "
FS_TYPE_LABEL = b"FAT32   "
JUMP_INSTRUCTION = b"\xEB\x58\x90"

FSINFO_LEAD_SIGNATURE = 0x41615252
FSINFO_STRUCT_SIGNATURE = 0x61417272
FSINFO_NEXT_FREE = 3
BOOT_SIGNATURE = 0xAA55

FAT_MEDIA_ENTRY = 0x0FFFFFF8
FAT_END_OF_CHAIN = 0x0FFFFFFF

_UINT32_MAX = 0xFFFFFFFF


class Fat32Error(Exception):
    """Raised when a FAT32 volume cannot be formatted or mounted."""


@dataclass(frozen=True)
class Fat32Volume:
    """Layout of a mounted FAT32 volume."""

    disk: object
    start_lba: int
    sectors: int
    reserved_sectors: int
    sectors_per_cluster: int
    root_dir_cluster: int
    fat_size: int
    first_data_sector: int


def fat_size_for(total_sectors):
    """Return the number of sectors each FAT occupies for a volume of this size."""
    if total_sectors < 0:
        raise Fat32Error("total_sectors must not be negative")
    return (total_sectors // SECTORS_PER_CLUSTER + FAT_ENTRIES_PER_SECTOR - 1) // FAT_ENTRIES_PER_SECTOR


def _check_u32(name, value):
    if not 0 <= value <= _UINT32_MAX:
        raise Fat32Error(f"{name} {value} out of range")


def build_boot_sector(start_lba, total_sectors):
    """Return the 512-byte FAT32 boot sector for a volume at ``start_lba``."""
    _check_u32("start_lba", start_lba)
    _check_u32("total_sectors", total_sectors)
    fat_size = fat_size_for(total_sectors)
    sector = bytearray(SECTOR_SIZE)
    sector[0:3] = JUMP_INSTRUCTION
    sector[3:11] = OEM_ID
    struct.pack_into("<H", sector, 11, SECTOR_SIZE)
    sector[13] = SECTORS_PER_CLUSTER
    struct.pack_into("<H", sector, 14, RESERVED_SECTORS)
    sector[16] = NUMBER_OF_FATS
    struct.pack_into("<H", sector, 17, 0)  # root entries, unused by FAT32
    struct.pack_into("<H", sector, 19, 0)  # 16-bit total sectors
    sector[21] = MEDIA_DESCRIPTOR
    struct.pack_into("<H", sector, 22, 0)  # 16-bit sectors per FAT
    struct.pack_into("<H", sector, 24, SECTORS_PER_TRACK)
    struct.pack_into("<H", sector, 26, HEADS)
    struct.pack_into("<I", sector, 28, start_lba)
    struct.pack_into("<I", sector, 32, total_sectors)
    struct.pack_into("<I", sector, 36, fat_size)
    struct.pack_into("<H", sector, 40, 0)  # flags
    struct.pack_into("<H", sector, 42, 0)  # version
    struct.pack_into("<I", sector, 44, ROOT_DIR_CLUSTER)
    struct.pack_into("<H", sector, 48, FSINFO_SECTOR)
    struct.pack_into("<H", sector, 50, BACKUP_BOOT_SECTOR)
    sector[64] = DRIVE_NUMBER
    sector[66] = EXTENDED_BOOT_SIGNATURE
    struct.pack_into("<I", sector, 67, VOLUME_ID)
    sector[71:82] = VOLUME_LABEL
    sector[82:90] = FS_TYPE_LABEL
    sector[510] = 0x55
    sector[511] = 0xAA
    return bytes(sector)


def build_fsinfo_sector(total_sectors, fat_size):
    """Return the 512-byte FSInfo sector for a freshly formatted volume."""
    _check_u32("total_sectors", total_sectors)
    _check_u32("fat_size", fat_size)
    free_count = (total_sectors - (NUMBER_OF_FATS * fat_size + RESERVED_SECTORS)) & _UINT32_MAX
    sector = bytearray(SECTOR_SIZE)
    struct.pack_into("<I", sector, 0, FSINFO_LEAD_SIGNATURE)
    struct.pack_into("<I", sector, 484, FSINFO_STRUCT_SIGNATURE)
    struct.pack_into("<I", sector, 488, free_count)
    struct.pack_into("<I", sector, 492, FSINFO_NEXT_FREE)
    struct.pack_into("<H", sector, 510, BOOT_SIGNATURE)
    return bytes(sector)


def _first_fat_sector():
    sector = bytearray(SECTOR_SIZE)
    struct.pack_into("<III", sector, 0, FAT_MEDIA_ENTRY, FAT_END_OF_CHAIN, FAT_END_OF_CHAIN)
    return bytes(sector)


def format_fat32(disk, start_lba, total_sectors):
    """Write an empty FAT32 file system to ``total_sectors`` from ``start_lba``.

    Returns the number of sectors in each FAT.
    """
    boot = build_boot_sector(start_lba, total_sectors)
    fat_size = fat_size_for(total_sectors)
    fsinfo = build_fsinfo_sector(total_sectors, fat_size)
    fat = _first_fat_sector()
    blank = bytes(SECTOR_SIZE)
    root_dir_sector = start_lba + RESERVED_SECTORS + NUMBER_OF_FATS * fat_size

    writes = [
        (start_lba, boot, "boot sector"),
        (start_lba + BACKUP_BOOT_SECTOR, boot, "backup boot sector"),
        (start_lba + FSINFO_SECTOR, fsinfo, "FSInfo sector"),
        (start_lba + BACKUP_FSINFO_SECTOR, fsinfo, "backup FSInfo sector"),
        (start_lba + RESERVED_SECTORS, fat, "FAT"),
        (start_lba + RESERVED_SECTORS + fat_size, fat, "second FAT"),
    ]
    writes.extend(
        (root_dir_sector + offset, blank, "root directory")
        for offset in range(SECTORS_PER_CLUSTER * ROOT_DIR_CLUSTERS)
    )
    for lba, data, what in writes:
        try:
            disk.write_sector(lba, data)
        except DiskError as exc:
            raise Fat32Error(f"Failed to write {what}: {exc}") from exc
    return fat_size


def mount_fat32(disk, start_lba, sectors):
    """Read the boot sector at ``start_lba`` and return the volume's layout."""
    try:
        boot = disk.read_sector(start_lba)
    except DiskError as exc:
        raise Fat32Error(f"Failed to read boot sector: {exc}") from exc
    if boot[510] != 0x55 or boot[511] != 0xAA:
        raise Fat32Error("Invalid boot sector signature")
    (reserved_sectors,) = struct.unpack_from("<H", boot, 14)
    (root_dir_cluster,) = struct.unpack_from("<I", boot, 44)
    (fat_size,) = struct.unpack_from("<I", boot, 36)
    return Fat32Volume(
        disk=disk,
        start_lba=start_lba,
        sectors=sectors,
        reserved_sectors=reserved_sectors,
        sectors_per_cluster=boot[13],
        root_dir_cluster=root_dir_cluster,
        fat_size=fat_size,
        first_data_sector=reserved_sectors + NUMBER_OF_FATS * fat_size,
    )