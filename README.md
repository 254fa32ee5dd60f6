# hextrixfs

hextrixfs works with disks that are held in memory. It can:

- partition a disk with a Master Boot Record;
- write an empty FAT32 file system to a partition and mount it;
- keep a small hierarchical file table, with a write-back sector cache in front of a disk.

It uses only the standard library.

## Modules

- `hextrixfs.blockdev`
  - `MemoryDisk(sector_count, model="MEMORY DISK")` is a disk of 512-byte sectors addressed by LBA.
  - Sectors that were never written read back as zeros.
  - `read_sectors(lba, count)` and `write_sectors(lba, data)` move up to 255 sectors at a time. `read_sector` and `write_sector` move exactly one.
  - Any access outside the disk, and any data that is not made of whole sectors, raises `DiskError`.
- `hextrixfs.keymap`
  - `Key` holds the scancode set 1 make codes.
  - `scancode_to_ascii(scancode)` returns the key's character, or `""` if the key has none. It ignores the release bit.
  - `is_release(scancode)` tells whether the scancode is a key release.
- `hextrixfs.mbr`
  - `MasterBootRecord` and `MbrPartition` convert the 512-byte MBR and its 16-byte entries to and from bytes: `from_bytes`/`to_bytes` and `pack`/`unpack`.
  - `MasterBootRecord.empty()` builds a table with no partitions.
  - `MbrPartition.from_lba(start_lba, size_sectors, system_id)` fills in the CHS fields as well.
  - Helpers: `lba_to_chs`, `type_name`, and `fs_type_for`, which maps a `PartitionType` to an `FsType`.
  - Malformed input raises `MbrError`.
- `hextrixfs.fat32`
  - `build_boot_sector`, `build_fsinfo_sector` and `fat_size_for` compute the on-disk structures of a FAT32 volume with 4 KiB clusters.
  - `format_fat32(disk, start_lba, total_sectors)` writes these sectors to a partition:
    - the boot sector and its backup;
    - the FSInfo sector and its backup;
    - the first sector of both FATs;
    - a cleared root directory cluster.
  - `mount_fat32(disk, start_lba, sectors)` reads the boot sector back and returns a `Fat32Volume` that describes the layout.
  - Errors raise `Fat32Error`.
- `hextrixfs.partitions`
  - `VolumeManager(drives, output)` keeps the partition table of up to four drives (numbers 0–3) and up to eight mount points.
  - It reads each drive's MBR when it is created.
  - Partition methods: `detect_partitions`, `print_partitions`, `create_partition_table`, `add_partition` and `delete_partition`.
  - Volume methods: `format_partition`, `mount` and `unmount`.
  - Lookups: `get_partition` returns a `PartitionInfo`. `get_mount_point` returns the `MountPoint` that holds a path, choosing the longest matching mount point.
  - Errors raise `PartitionError`.
- `hextrixfs.fs`
  - `FileSystem(storage, output)` is a table of 64 nodes that starts with the root directory `/`.
  - It keeps a current directory: `getcwd` and `chdir`.
  - File operations: `create`, `mkdir`, `write`, `read`, `size`, `delete`, `list` and `stat`. Files hold at most 8192 bytes.
  - `read_sector` and `write_sector` go through a 32-block LRU cache over `storage`. `sync` writes the dirty blocks to the device.
  - `cache_info` reports the cache and operation counters.
  - `check` counts two kinds of problem: nodes with an invalid parent, and directories without `.` and `..` entries. `repair` adds the missing entries.
  - Errors raise `FileSystemError`.

`VolumeManager` and `FileSystem` write their messages and reports to the `output` text stream, or to standard output when none is given.

## Partitioning and formatting

```python
from hextrixfs.blockdev import MemoryDisk
from hextrixfs.mbr import PartitionType, FsType
from hextrixfs.partitions import VolumeManager

disk = MemoryDisk(sector_count=65536, model="Scratch disk")
manager = VolumeManager(drives={0: disk})

manager.create_partition_table(0)
slot = manager.add_partition(0, 2048, 32768, PartitionType.FAT32)
manager.format_partition(0, slot, FsType.FAT32)
mount = manager.mount("/mnt", 0, slot)

print(mount.volume.fat_size)                              # 32
print(manager.get_mount_point("/mnt/data").mount_point)   # /mnt
manager.unmount("/mnt")
```

## File table and sector cache

```python
import io
from hextrixfs.blockdev import MemoryDisk
from hextrixfs.fs import FileSystem

fs = FileSystem(storage=MemoryDisk(64), output=io.StringIO())
fs.mkdir("/docs")
fs.create("/docs/notes.txt")
fs.write("/docs/notes.txt", b"hello")
print(fs.read("/docs/notes.txt"))   # b'hello'

fs.write_sector(5, bytes(512))      # held in the cache as a dirty block
print(fs.sync())                    # 1 block written to the disk
```

## What it does not do

- The FAT32 support stops at formatting and mounting. A mounted volume gives its layout only. There is no reading, writing or listing of files or directories inside it.
- FAT16 and EXT2 partitions are recognised by type, but they cannot be formatted, mounted or unmounted.
- The `FileSystem` node table lives only in memory. File contents are never stored on the disk, so the sector cache is the only part that touches `storage`.
- There is no command-line tool. Everything is used from Python.

## Tests

```
pip install .[test]
pytest
```