"""In-memory disks, MBR partitioning, FAT32 formatting and a node file system with a sector cache."""

__version__ = "0.1.0"
__all__ = ["blockdev", "keymap", "fs", "mbr", "fat32", "partitions"]