import pytest

from hextrixfs.mbr import (
    FsType,
    MasterBootRecord,
    MbrError,
    MbrPartition,
    PartitionType,
    fs_type_for,
    lba_to_chs,
    type_name,
)


def test_empty_record_layout():
    data = MasterBootRecord.empty().to_bytes()
    assert len(data) == 512
    assert data[0] == 0xEB
    assert data[1] == 0xFE
    assert data[510] == 0x55
    assert data[511] == 0xAA
    assert data[446:510] == bytes(64)


def test_empty_record_has_no_partitions():
    record = MasterBootRecord.empty()
    assert record.has_valid_signature
    assert all(entry.is_empty for entry in record.partitions)
    assert len(record.partitions) == 4


def test_record_round_trip():
    record = MasterBootRecord.empty()
    record.partitions[1] = MbrPartition.from_lba(2048, 4096, PartitionType.FAT32X)
    parsed = MasterBootRecord.from_bytes(record.to_bytes())
    assert parsed == record


def test_partition_entry_position_in_sector():
    record = MasterBootRecord.empty()
    record.partitions[0] = MbrPartition.from_lba(2048, 8192, PartitionType.LINUX)
    data = record.to_bytes()
    assert data[446 + 4] == PartitionType.LINUX
    assert int.from_bytes(data[446 + 8:446 + 12], "little") == 2048
    assert int.from_bytes(data[446 + 12:446 + 16], "little") == 8192


def test_from_bytes_rejects_wrong_length():
    with pytest.raises(MbrError):
        MasterBootRecord.from_bytes(bytes(511))


def test_bad_signature_is_kept_and_reported():
    record = MasterBootRecord.from_bytes(bytes(512))
    assert record.signature == 0
    assert not record.has_valid_signature
    with pytest.raises(MbrError):
        record.check_signature()


def test_valid_signature_passes_check():
    record = MasterBootRecord.from_bytes(MasterBootRecord.empty().to_bytes())
    record.check_signature()
    assert record.signature == 0xAA55


def test_to_bytes_requires_four_entries():
    record = MasterBootRecord.empty()
    record.partitions.pop()
    with pytest.raises(MbrError):
        record.to_bytes()


def test_partition_pack_round_trip():
    entry = MbrPartition(0x80, 1, 2, 3, 0x0B, 4, 5, 6, 63, 1000)
    packed = entry.pack()
    assert len(packed) == 16
    assert MbrPartition.unpack(packed) == entry
    assert entry.is_bootable


def test_partition_unpack_rejects_wrong_length():
    with pytest.raises(MbrError):
        MbrPartition.unpack(bytes(15))


def test_pack_rejects_out_of_range_field():
    with pytest.raises(MbrError):
        MbrPartition(system_id=300).pack()


def test_from_lba_fields():
    entry = MbrPartition.from_lba(2048, 4096, PartitionType.FAT32)
    assert entry.bootable == 0
    assert entry.system_id == PartitionType.FAT32
    assert entry.start_lba == 2048
    assert entry.total_sectors == 4096
    assert (entry.start_head, entry.start_sector, entry.start_cylinder) == lba_to_chs(2048)
    assert (entry.end_head, entry.end_sector, entry.end_cylinder) == lba_to_chs(2048 + 4096 - 1)
    assert entry.size_mb == 4096 // 2048


def test_from_lba_rejects_empty_partition():
    with pytest.raises(MbrError):
        MbrPartition.from_lba(100, 0, PartitionType.FAT32)


def test_from_lba_rejects_past_lba_range():
    with pytest.raises(MbrError):
        MbrPartition.from_lba(0xFFFFFFFF, 2, PartitionType.FAT32)


def test_lba_zero_is_first_sector():
    assert lba_to_chs(0) == (0, 1, 0)


@pytest.mark.parametrize("lba", [0, 1, 62, 63, 1007, 1008, 300000, 2_000_000])
def test_lba_to_chs_invariants(lba):
    head, sector, cylinder = lba_to_chs(lba)
    assert 0 <= head < 16
    assert 1 <= sector & 0x3F <= 63
    assert 0 <= cylinder <= 0xFF


def test_lba_to_chs_rejects_negative():
    with pytest.raises(MbrError):
        lba_to_chs(-1)


@pytest.mark.parametrize(
    "partition_type, expected",
    [
        (PartitionType.FAT12, FsType.FAT16),
        (PartitionType.FAT16, FsType.FAT16),
        (PartitionType.FAT16B, FsType.FAT16),
        (PartitionType.FAT16X, FsType.FAT16),
        (PartitionType.FAT32, FsType.FAT32),
        (PartitionType.FAT32X, FsType.FAT32),
        (PartitionType.LINUX, FsType.EXT2),
        (PartitionType.NTFS, FsType.UNKNOWN),
        (PartitionType.EXTENDED, FsType.UNKNOWN),
        (0x42, FsType.UNKNOWN),
    ],
)
def test_fs_type_for(partition_type, expected):
    assert fs_type_for(partition_type) == expected


@pytest.mark.parametrize(
    "partition_type, expected",
    [
        (PartitionType.FAT12, "FAT12"),
        (PartitionType.EXTENDED, "Extended"),
        (PartitionType.NTFS, "NTFS"),
        (PartitionType.FAT32X, "FAT32X"),
        (PartitionType.LINUX, "Linux"),
        (PartitionType.EXTENDED2, "Unknown"),
        (0x42, "Unknown"),
    ],
)
def test_type_name(partition_type, expected):
    assert type_name(partition_type) == expected


@pytest.mark.parametrize(
    "raw_code, expected_fs, expected_name",
    [
        (0x0B, FsType.FAT32, "FAT32"),
        (0x0C, FsType.FAT32, "FAT32X"),
        (0x83, FsType.EXT2, "Linux"),
        (0x06, FsType.FAT16, "FAT16B"),
    ],
)
def test_raw_partition_type_codes(raw_code, expected_fs, expected_name):
    assert fs_type_for(raw_code) == expected_fs
    assert type_name(raw_code) == expected_name