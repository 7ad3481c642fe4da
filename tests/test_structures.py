import struct

import pytest

from fvemeta.structures import (
    BITLOCKER_SIGNATURE,
    BITLOCKER_TO_GO_SIGNATURE,
    NTFS_SIGNATURE,
    Dataset,
    EowInformation,
    Information,
    Region,
    State,
    Version,
    VolumeHeader,
    check_state,
    is_overwritten,
    metafiles_size,
    state_name,
    vista_vbr_fve_to_ntfs,
    vista_vbr_ntfs_to_fve,
)


def make_vbr(signature=BITLOCKER_SIGNATURE, sector_size=512, spc=8, lcn=0,
             n16=0, n32=0, n64=0):
    buf = bytearray(512)
    buf[3:11] = signature
    struct.pack_into("<H", buf, 0x0B, sector_size)
    buf[0x0D] = spc
    struct.pack_into("<H", buf, 0x13, n16)
    struct.pack_into("<I", buf, 0x20, n32)
    struct.pack_into("<QQQ", buf, 0x28, n64, 4, lcn)
    buf[0xA0:0xB0] = bytes(range(16))
    struct.pack_into("<3Q", buf, 0xB0, 0x1000, 0x2000, 0x3000)
    struct.pack_into("<2Q", buf, 0xC8, 0x4000, 0x5000)
    buf[0x1A8:0x1B8] = bytes(range(16, 32))
    struct.pack_into("<3Q", buf, 0x1B8, 0x6000, 0x7000, 0x8000)
    struct.pack_into("<H", buf, 0x1FE, 0xAA55)
    return bytes(buf)


def make_dataset(size=0x100, header_size=0x30, copy_size=0x100):
    return struct.pack("<IIII16sIHHQ", size, 1, header_size, copy_size,
                       bytes(16), 3, 0x8000, 0, 42)


def make_information(version=2, size=0x20, curr=State.ENCRYPTED, nxt=State.ENCRYPTED):
    head = struct.pack("<8sHHHHQII3QQ", BITLOCKER_SIGNATURE, size, version, curr, nxt,
                       0x123456, 7, 16, 0x10, 0x20, 0x30, 0x40)
    return head + make_dataset()


def test_volume_header_fields():
    header = VolumeHeader.parse(make_vbr())
    assert header.signature == BITLOCKER_SIGNATURE
    assert header.sector_size == 512
    assert header.sectors_per_cluster == 8
    assert header.guid == bytes(range(16))
    assert header.information_off == (0x1000, 0x2000, 0x3000)
    assert header.eow_information_off == (0x4000, 0x5000)
    assert header.bltg_guid == bytes(range(16, 32))
    assert header.bltg_header == (0x6000, 0x7000, 0x8000)
    assert header.boot_partition_identifier == 0xAA55
    assert header.mft_start_cluster == 4


def test_volume_header_too_short():
    with pytest.raises(ValueError):
        VolumeHeader.parse(bytes(100))


def test_volume_header_version():
    assert VolumeHeader.parse(make_vbr()).version() is Version.SEVEN
    assert VolumeHeader.parse(make_vbr(lcn=5)).version() is Version.VISTA
    assert VolumeHeader.parse(make_vbr(signature=BITLOCKER_TO_GO_SIGNATURE)).version() is None


def test_volume_size_prefers_smallest_field():
    assert VolumeHeader.parse(make_vbr(n16=10, n32=20, n64=30)).volume_size() == 512 * 10
    assert VolumeHeader.parse(make_vbr(n32=20, n64=30)).volume_size() == 512 * 20
    assert VolumeHeader.parse(make_vbr(n64=30)).volume_size() == 512 * 30
    assert VolumeHeader.parse(make_vbr()).volume_size() == 0


def test_information_parse():
    info = Information.parse(make_information())
    assert info.signature == BITLOCKER_SIGNATURE
    assert info.version == Version.SEVEN
    assert info.encrypted_volume_size == 0x123456
    assert info.information_off == (0x10, 0x20, 0x30)
    assert info.boot_sectors_backup == 0x40
    assert info.mftmirror_backup == 0x40
    assert info.dataset.algorithm == 0x8000
    assert info.dataset.timestamp == 42


def test_information_metadata_size():
    assert Information.parse(make_information(version=2, size=0x20)).metadata_size() == 0x20 << 4
    assert Information.parse(make_information(version=1, size=0x20)).metadata_size() == 0x20


def test_information_too_short():
    with pytest.raises(ValueError):
        Information.parse(make_information()[:0x50])


def test_dataset_validity():
    assert Dataset.parse(make_dataset()).is_valid()
    assert not Dataset.parse(make_dataset(copy_size=0x20)).is_valid()
    assert not Dataset.parse(make_dataset(size=0x200)).is_valid()
    assert not Dataset.parse(make_dataset(size=0x34, copy_size=0x34)).is_valid()


def test_dataset_parse_at_offset():
    data = b"\xff" * 5 + make_dataset(size=0x80, copy_size=0x90)
    dataset = Dataset.parse(data, 5)
    assert dataset.size == 0x80
    assert dataset.copy_size == 0x90


def test_eow_parse():
    raw = struct.pack("<8sHHIIIIIIIQ", b"FVE-EOW\x00", 0x30, 0x40, 512, 512,
                      1, 2, 3, 2, 0xDEADBEEF, 0x9000)
    eow = EowInformation.parse(raw)
    assert eow.infos_size == 0x40
    assert eow.nb_regions == 2
    assert eow.crc32 == 0xDEADBEEF
    assert eow.disk_offsets == 0x9000
    with pytest.raises(ValueError):
        EowInformation.parse(raw[:10])


def test_state_name():
    assert state_name(State.DECRYPTED) == "DECRYPTED"
    assert state_name(State.SWITCH_ENCRYPTION_PAUSED) == "SWITCHING ENCRYPTION PAUSED"
    assert state_name(99) == "UNKNOWN STATE (too big)"


def test_metafiles_size():
    assert metafiles_size(Version.SEVEN, 512, 8) == 0x10000
    assert metafiles_size(Version.VISTA, 512, 8) == 0x4000
    assert metafiles_size(7, 512, 8) == 0


def test_is_overwritten():
    regions = [Region(0x1000, 0x100), Region(0x5000, 0)]
    assert is_overwritten(regions, 0x1000, 512)
    assert is_overwritten(regions, 0x10FF, 1)
    assert is_overwritten(regions, 0xF00, 0x200)
    assert not is_overwritten(regions, 0x1100, 512)
    assert not is_overwritten(regions, 0xE00, 0x200)
    assert not is_overwritten(regions, 0x5000, 512)


def test_check_state():
    unstable = Information.parse(make_information(curr=State.SWITCHING_ENCRYPTION))
    assert check_state(unstable) is False
    paused = Information.parse(make_information(curr=State.SWITCH_ENCRYPTION_PAUSED, nxt=9))
    assert check_state(paused) is True
    assert check_state(Information.parse(make_information())) is True


def test_vista_vbr_round_trip():
    vbr = make_vbr(lcn=3)
    ntfs = vista_vbr_fve_to_ntfs(vbr, 0x77)
    assert ntfs[3:11] == NTFS_SIGNATURE
    assert VolumeHeader.parse(ntfs).mft_mirror == 0x77
    cluster = 512 * 8
    back = vista_vbr_ntfs_to_fve(ntfs, 3 * cluster)
    assert back == vbr


def test_vista_vbr_null_cluster():
    with pytest.raises(ValueError):
        vista_vbr_ntfs_to_fve(make_vbr(spc=0), 0x1000)