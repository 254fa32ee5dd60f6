"""Partition tables and mount points across the attached drives."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Optional

from .blockdev import DiskError
from .fat32 import Fat32Error, Fat32Volume, format_fat32, mount_fat32
from .mbr import (
    PARTITION_SLOTS,
    SECTORS_PER_MB,
    FsType,
    MasterBootRecord,
    MbrError,
    MbrPartition,
    fs_type_for,
    type_name,
)

MAX_DRIVES = 4
MAX_MOUNT_POINTS = 8

_TABLE_HEADER = (
    "Num  Boot  Type        Start       Size(MB)\n"
    "--------------------------------------------\n"
)

_FS_NAMES = {
    FsType.FAT32: "FAT32",
    FsType.FAT16: "FAT16",
    FsType.EXT2: "EXT2",
}


class PartitionError(Exception):
    """Raised when a partition or mount operation cannot be carried out."""


@dataclass
class PartitionInfo:
    """A partition found in, or added to, a drive's partition table."""

    drive: int
    partition_num: int
    type: int
    fs_type: FsType
    start_lba: int
    total_sectors: int
    bootable: bool = False

    @property
    def size_mb(self):
        """Size of the partition in whole megabytes."""
        return self.total_sectors // SECTORS_PER_MB

    @property
    def type_name(self):
        return type_name(self.type)


@dataclass
class MountPoint:
    """A partition attached at a path."""

    mount_point: str
    drive: int
    partition: int
    fs_type: FsType
    volume: Optional[Fat32Volume] = None


def _row(number, bootable, partition_type, start_lba, size_mb):
    return (
        f"{number}    {'Yes' if bootable else 'No'}    "
        f"{type_name(partition_type):<10s}  {start_lba:<10d}  {size_mb:<10d}\n"
    )


class VolumeManager:
    """Keeps the partition table of each drive and the mounted volumes.

    ``drives`` maps drive numbers 0-3 to block devices (a sequence is
    numbered from 0). ``output`` is a text stream that receives messages
    (standard output when not given). Partitions on every present drive are
    detected on construction; drives without a valid MBR are reported and
    skipped.
    """

    def __init__(self, drives=None, output=None):
        if drives is None:
            drives = {}
        elif not hasattr(drives, "items"):
            drives = dict(enumerate(drives))
        for number in drives:
            if not 0 <= number < MAX_DRIVES:
                raise ValueError(f"drive number {number} out of range 0..{MAX_DRIVES - 1}")
        self._drives = dict(drives)
        self._output = output
        self._partitions = {}
        self._mounts = []
        self._emit("Initializing extended file system...\n")
        for number in sorted(self._drives):
            if not getattr(self._drives[number], "present", True):
                continue
            try:
                self.detect_partitions(number)
            except PartitionError as exc:
                self._emit(f"{exc}\n")
        self._emit("Extended file system initialized\n")

    # ------------------------------------------------------------------ helpers

    def _emit(self, text):
        stream = self._output if self._output is not None else sys.stdout
        stream.write(text)

    def _device(self, drive):
        disk = self._drives.get(drive)
        if disk is None or not getattr(disk, "present", True):
            raise PartitionError("Drive not found")
        return disk

    def _require_partition(self, drive, partition):
        info = self.get_partition(drive, partition)
        if info is None:
            raise PartitionError("Invalid partition specified")
        return info

    def _is_mounted(self, drive, partition):
        return any(m.drive == drive and m.partition == partition for m in self._mounts)

    def _read_mbr(self, disk):
        try:
            return MasterBootRecord.from_bytes(disk.read_sector(0))
        except (DiskError, MbrError) as exc:
            raise PartitionError(f"Failed to read MBR: {exc}") from exc

    def _write_mbr(self, disk, mbr):
        try:
            disk.write_sector(0, mbr.to_bytes())
        except (DiskError, MbrError) as exc:
            raise PartitionError(f"Failed to write MBR: {exc}") from exc

    # ------------------------------------------------------------------ partitions

    def detect_partitions(self, drive):
        """Read the drive's MBR, record its partitions and return them."""
        disk = self._device(drive)
        mbr = self._read_mbr(disk)
        if not mbr.has_valid_signature:
            raise PartitionError(f"Invalid MBR signature: 0x{mbr.signature:x}")

        lines = [f"Partitions on drive {drive}:\n", _TABLE_HEADER]
        found = []
        for number, entry in enumerate(mbr.partitions):
            if entry.is_empty:
                continue
            info = PartitionInfo(
                drive=drive,
                partition_num=number,
                type=entry.system_id,
                fs_type=fs_type_for(entry.system_id),
                start_lba=entry.start_lba,
                total_sectors=entry.total_sectors,
                bootable=entry.is_bootable,
            )
            self._partitions[(drive, number)] = info
            found.append(info)
            lines.append(
                _row(number, info.bootable, info.type, info.start_lba, info.size_mb)
            )
        if not found:
            lines.append("No partitions found\n")
        self._emit("".join(lines))
        return found

    def get_partition(self, drive, partition):
        """Return the recorded partition, or None if there is none."""
        return self._partitions.get((drive, partition))

    def print_partitions(self, drive):
        """Print and return the recorded partition table of a drive."""
        disk = self._device(drive)
        model = getattr(disk, "model", "")
        lines = [f"Partitions on drive {drive} ({model}):\n", _TABLE_HEADER]
        rows = [
            self._partitions[(drive, number)]
            for number in range(PARTITION_SLOTS)
            if (drive, number) in self._partitions
        ]
        for info in rows:
            lines.append(
                _row(info.partition_num, info.bootable, info.type, info.start_lba, info.size_mb)
            )
        if not rows:
            lines.append("No partitions found\n")
        report = "".join(lines)
        self._emit(report)
        return report

    def create_partition_table(self, drive):
        """Write an empty MBR to the drive and forget its partitions."""
        disk = self._device(drive)
        if any(m.drive == drive for m in self._mounts):
            raise PartitionError("Cannot create partition table on mounted drive")
        self._write_mbr(disk, MasterBootRecord.empty())
        for number in range(PARTITION_SLOTS):
            self._partitions.pop((drive, number), None)
        self._emit("Created empty partition table\n")

    def add_partition(self, drive, start_lba, size_sectors, partition_type):
        """Add a partition in the first free slot and return the slot number."""
        disk = self._device(drive)
        free_slot = next(
            (n for n in range(PARTITION_SLOTS) if (drive, n) not in self._partitions),
            None,
        )
        if free_slot is None:
            raise PartitionError("No free partition slots available")

        try:
            entry = MbrPartition.from_lba(start_lba, size_sectors, partition_type)
        except MbrError as exc:
            raise PartitionError(str(exc)) from exc

        new_end = start_lba + size_sectors - 1
        for number in range(PARTITION_SLOTS):
            info = self._partitions.get((drive, number))
            if info is None:
                continue
            part_start = info.start_lba
            part_end = part_start + info.total_sectors - 1
            if (
                part_start <= start_lba <= part_end
                or part_start <= new_end <= part_end
                or (start_lba <= part_start and new_end >= part_end)
            ):
                raise PartitionError("Partition overlaps with existing partition")

        mbr = self._read_mbr(disk)
        if not mbr.has_valid_signature:
            raise PartitionError("Invalid MBR signature")
        mbr.partitions[free_slot] = entry
        self._write_mbr(disk, mbr)

        info = PartitionInfo(
            drive=drive,
            partition_num=free_slot,
            type=partition_type,
            fs_type=fs_type_for(partition_type),
            start_lba=start_lba,
            total_sectors=size_sectors,
        )
        self._partitions[(drive, free_slot)] = info
        self._emit(
            f"Added partition {free_slot} of type {int(partition_type):02X}, "
            f"starting at LBA {start_lba}, size {info.size_mb} MB\n"
        )
        return free_slot

    def delete_partition(self, drive, partition):
        """Remove a partition from the drive's MBR and from the table."""
        self._require_partition(drive, partition)
        if self._is_mounted(drive, partition):
            raise PartitionError("Cannot delete a mounted partition")
        disk = self._device(drive)
        mbr = self._read_mbr(disk)
        mbr.partitions[partition] = MbrPartition()
        self._write_mbr(disk, mbr)
        del self._partitions[(drive, partition)]
        self._emit(f"Deleted partition {partition}\n")

    def format_partition(self, drive, partition, fs_type):
        """Create a file system on a partition and return the partition."""
        info = self._require_partition(drive, partition)
        if self._is_mounted(drive, partition):
            raise PartitionError("Cannot format a mounted partition")
        if fs_type == FsType.FAT16:
            raise PartitionError("FAT16 formatting not implemented")
        if fs_type == FsType.EXT2:
            raise PartitionError("EXT2 formatting not implemented")
        if fs_type != FsType.FAT32:
            raise PartitionError("Unknown file system type")

        disk = self._device(drive)
        self._emit("Formatting partition as FAT32...\n")
        try:
            format_fat32(disk, info.start_lba, info.total_sectors)
        except Fat32Error as exc:
            raise PartitionError(str(exc)) from exc
        self._emit("FAT32 formatting complete\n")
        info.fs_type = FsType.FAT32
        return info

    # ------------------------------------------------------------------ mounts

    def mount(self, mount_point, drive, partition):
        """Attach a partition's file system at ``mount_point``."""
        info = self._require_partition(drive, partition)
        if any(m.mount_point == mount_point for m in self._mounts):
            raise PartitionError("Mount point already in use")
        if len(self._mounts) >= MAX_MOUNT_POINTS:
            raise PartitionError("No free mount points available")

        if info.fs_type == FsType.FAT16:
            raise PartitionError("FAT16 mounting not implemented")
        if info.fs_type == FsType.EXT2:
            raise PartitionError("EXT2 mounting not implemented")
        if info.fs_type != FsType.FAT32:
            raise PartitionError("Unknown file system type")

        disk = self._device(drive)
        try:
            volume = mount_fat32(disk, info.start_lba, info.total_sectors)
        except Fat32Error as exc:
            raise PartitionError(f"Failed to mount FAT32 file system: {exc}") from exc

        mount = MountPoint(
            mount_point=mount_point,
            drive=drive,
            partition=partition,
            fs_type=info.fs_type,
            volume=volume,
        )
        self._mounts.append(mount)
        self._emit(f"Mounted {mount_point} on {_FS_NAMES.get(info.fs_type, 'Unknown')}\n")
        return mount

    def unmount(self, mount_point):
        """Detach the file system mounted at ``mount_point``."""
        mount = next((m for m in self._mounts if m.mount_point == mount_point), None)
        if mount is None:
            raise PartitionError("Mount point not found")
        if mount.fs_type == FsType.FAT16:
            raise PartitionError("FAT16 unmounting not implemented")
        if mount.fs_type == FsType.EXT2:
            raise PartitionError("EXT2 unmounting not implemented")
        if mount.fs_type != FsType.FAT32:
            raise PartitionError("Unknown file system type")
        self._mounts.remove(mount)
        self._emit(f"Unmounted {mount_point}\n")

    def get_mount_point(self, path):
        """Return the mount holding ``path`` (longest match), or None."""
        best = None
        for mount in self._mounts:
            prefix = mount.mount_point
            if not path.startswith(prefix):
                continue
            if len(path) != len(prefix) and path[len(prefix)] != "/":
                continue
            if best is None or len(prefix) > len(best.mount_point):
                best = mount
        return best