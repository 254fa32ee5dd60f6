import pytest

from hextrixfs.blockdev import SECTOR_SIZE, DiskError, MemoryDisk


def _pattern(fill, sectors=1):
    return bytes([fill]) * (SECTOR_SIZE * sectors)


def test_unwritten_sector_reads_zero():
    disk = MemoryDisk(8)
    assert disk.read_sector(3) == bytes(SECTOR_SIZE)


def test_single_sector_round_trip():
    disk = MemoryDisk(8)
    data = bytes(range(256)) * 2
    disk.write_sector(5, data)
    assert disk.read_sector(5) == data
    assert disk.read_sector(4) == bytes(SECTOR_SIZE)


def test_multi_sector_round_trip():
    disk = MemoryDisk(16)
    data = _pattern(0x11) + _pattern(0x22) + _pattern(0x33)
    disk.write_sectors(2, data)
    assert disk.read_sectors(2, 3) == data
    assert disk.read_sector(3) == _pattern(0x22)


def test_read_sectors_length_matches_count():
    disk = MemoryDisk(16)
    assert len(disk.read_sectors(0, 4)) == 4 * SECTOR_SIZE


def test_read_beyond_end_raises():
    disk = MemoryDisk(4)
    with pytest.raises(DiskError):
        disk.read_sector(4)
    with pytest.raises(DiskError):
        disk.read_sectors(3, 2)


def test_negative_lba_raises():
    disk = MemoryDisk(4)
    with pytest.raises(DiskError):
        disk.read_sector(-1)


def test_write_beyond_end_raises_and_leaves_disk_unchanged():
    disk = MemoryDisk(4)
    with pytest.raises(DiskError):
        disk.write_sectors(3, _pattern(0xAA, 2))
    assert disk.read_sector(3) == bytes(SECTOR_SIZE)


def test_partial_sector_write_raises():
    disk = MemoryDisk(4)
    with pytest.raises(DiskError):
        disk.write_sectors(0, b"\x01" * (SECTOR_SIZE + 1))
    with pytest.raises(DiskError):
        disk.write_sector(0, b"\x01" * 10)


def test_empty_write_raises():
    disk = MemoryDisk(4)
    with pytest.raises(DiskError):
        disk.write_sectors(0, b"")


def test_zero_count_read_raises():
    disk = MemoryDisk(4)
    with pytest.raises(DiskError):
        disk.read_sectors(0, 0)


def test_transfer_count_limit():
    disk = MemoryDisk(300)
    assert len(disk.read_sectors(0, 255)) == 255 * SECTOR_SIZE
    with pytest.raises(DiskError):
        disk.read_sectors(0, 256)


def test_size_and_model():
    disk = MemoryDisk(10, model="TEST DRIVE")
    assert disk.size_bytes == 10 * SECTOR_SIZE
    assert disk.model == "TEST DRIVE"
    assert disk.present is True


def test_model_truncated_to_forty_characters():
    disk = MemoryDisk(1, model="M" * 60)
    assert disk.model == "M" * 40


def test_invalid_sector_count():
    with pytest.raises(ValueError):
        MemoryDisk(0)