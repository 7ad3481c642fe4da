"""On-disk BitLocker structures: volume header, information block, dataset, EOW info."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar

from fvemeta.logs import LogLevel, log

Buffer = bytes | bytearray | memoryview

BITLOCKER_SIGNATURE = b"-FVE-FS-"
BITLOCKER_TO_GO_SIGNATURE = b"MSWIN4.1"
NTFS_SIGNATURE = b"NTFS    "
SIGNATURE_SIZE = 8

_PROGRAM = "fvemeta"


class Version(IntEnum):
    VISTA = 1
    SEVEN = 2


class State(IntEnum):
    NULL = 0
    DECRYPTED = 1
    SWITCHING_ENCRYPTION = 2
    EOW_ACTIVATED = 3
    ENCRYPTED = 4
    SWITCH_ENCRYPTION_PAUSED = 5


_STATE_NAMES = (
    "NULL",
    "DECRYPTED",
    "SWITCHING ENCRYPTION",
    "EOW ACTIVATED",
    "ENCRYPTED",
    "SWITCHING ENCRYPTION PAUSED",
)
_STATE_TOO_BIG = "UNKNOWN STATE (too big)"


def state_name(state: int) -> str:
    """Name of a BitLocker state; out-of-range values get a fixed label."""
    state = int(state)
    if 0 <= state < len(_STATE_NAMES):
        return _STATE_NAMES[state]
    return _STATE_TOO_BIG


def _need(data: Buffer, offset: int, size: int, what: str) -> None:
    if offset < 0 or len(data) - offset < size:
        raise ValueError(
            f"{what} needs {size:#x} bytes at offset {offset:#x}, buffer has {len(data):#x}"
        )


@dataclass(frozen=True)
class Region:
    """A range of the volume that is reported as zeroes."""

    addr: int
    size: int = 0


@dataclass(frozen=True)
class VolumeHeader:
    """The 512-byte boot record of a BitLocker volume (FVE or NTFS/FAT form)."""

    jump: bytes
    signature: bytes
    sector_size: int
    sectors_per_cluster: int
    reserved_clusters: int
    fat_count: int
    root_entries: int
    nb_sectors_16b: int
    media_descriptor: int
    sectors_per_fat: int
    sectors_per_track: int
    nb_of_heads: int
    hidden_sectors: int
    nb_sectors_32b: int
    nb_sectors_64b: int
    mft_start_cluster: int
    metadata_lcn: int
    guid: bytes
    information_off: tuple[int, int, int]
    eow_information_off: tuple[int, int]
    bltg_guid: bytes
    bltg_header: tuple[int, int, int]
    boot_partition_identifier: int

    SIZE: ClassVar[int] = 512
    _BASE: ClassVar[struct.Struct] = struct.Struct("<3s8sHBHBHHBHHHII")

    @classmethod
    def parse(cls, data: Buffer) -> VolumeHeader:
        """Read a volume header from the first 512 bytes of data."""
        _need(data, 0, cls.SIZE, "volume header")
        base = cls._BASE.unpack_from(data, 0)
        nb64, mft_start, lcn = struct.unpack_from("<QQQ", data, 0x28)
        guid = bytes(data[0xA0:0xB0])
        info = struct.unpack_from("<3Q", data, 0xB0)
        eow = struct.unpack_from("<2Q", data, 0xC8)
        bltg_guid = bytes(data[0x1A8:0x1B8])
        bltg = struct.unpack_from("<3Q", data, 0x1B8)
        (boot_id,) = struct.unpack_from("<H", data, 0x1FE)
        return cls(
            *base[:2],
            *base[2:],
            nb_sectors_64b=nb64,
            mft_start_cluster=mft_start,
            metadata_lcn=lcn,
            guid=guid,
            information_off=info,
            eow_information_off=eow,
            bltg_guid=bltg_guid,
            bltg_header=bltg,
            boot_partition_identifier=boot_id,
        )

    @property
    def mft_mirror(self) -> int:
        """The MFT mirror field, which shares its place with the metadata LCN."""
        return self.metadata_lcn

    def version(self) -> Version | None:
        """SEVEN or VISTA for an FVE signature (by metadata LCN), else None."""
        if self.signature[:SIGNATURE_SIZE] != BITLOCKER_SIGNATURE:
            return None
        return Version.SEVEN if self.metadata_lcn == 0 else Version.VISTA

    def volume_size(self) -> int:
        """Volume size in bytes from the sector counts, or 0 if none is set."""
        for count in (self.nb_sectors_16b, self.nb_sectors_32b, self.nb_sectors_64b):
            if count:
                return (self.sector_size * count) & 0xFFFFFFFFFFFFFFFF
        return 0


@dataclass(frozen=True)
class Dataset:
    """Header of the dataset that holds the datums."""

    size: int
    unknown1: int
    header_size: int
    copy_size: int
    guid: bytes
    next_counter: int
    algorithm: int
    trash: int
    timestamp: int

    _FORMAT: ClassVar[struct.Struct] = struct.Struct("<IIII16sIHHQ")
    SIZE: ClassVar[int] = _FORMAT.size

    @classmethod
    def parse(cls, data: Buffer, offset: int = 0) -> Dataset:
        """Read a dataset header at offset."""
        _need(data, offset, cls.SIZE, "dataset header")
        return cls(*cls._FORMAT.unpack_from(data, offset))

    def is_valid(self) -> bool:
        """Whether the sizes in the header are consistent."""
        return not (
            self.copy_size < self.header_size
            or self.size > self.copy_size
            or self.copy_size - self.header_size < 8
        )


@dataclass(frozen=True)
class Information:
    """The BitLocker information block that begins each metadata copy."""

    signature: bytes
    size: int
    version: int
    curr_state: int
    next_state: int
    encrypted_volume_size: int
    convert_size: int
    nb_backup_sectors: int
    information_off: tuple[int, int, int]
    boot_sectors_backup: int
    dataset: Dataset

    _FORMAT: ClassVar[struct.Struct] = struct.Struct("<8sHHHHQII3QQ")
    DATASET_OFFSET: ClassVar[int] = _FORMAT.size
    SIZE: ClassVar[int] = _FORMAT.size + Dataset.SIZE

    @classmethod
    def parse(cls, data: Buffer) -> Information:
        """Read the information block and its dataset header from the start of data."""
        _need(data, 0, cls.SIZE, "information block")
        fields = cls._FORMAT.unpack_from(data, 0)
        return cls(
            signature=fields[0],
            size=fields[1],
            version=fields[2],
            curr_state=fields[3],
            next_state=fields[4],
            encrypted_volume_size=fields[5],
            convert_size=fields[6],
            nb_backup_sectors=fields[7],
            information_off=tuple(fields[8:11]),
            boot_sectors_backup=fields[11],
            dataset=Dataset.parse(data, cls.DATASET_OFFSET),
        )

    @property
    def mftmirror_backup(self) -> int:
        """The Vista MFT mirror address, stored where Seven keeps the boot sectors backup."""
        return self.boot_sectors_backup

    def metadata_size(self) -> int:
        """Total metadata size; Seven stores it in units of 16 bytes."""
        return self.size << 4 if self.version == Version.SEVEN else self.size


@dataclass(frozen=True)
class EowInformation:
    """Header of the encrypt-on-write information block."""

    signature: bytes
    header_size: int
    infos_size: int
    sector_size1: int
    sector_size2: int
    unknown_14: int
    convlog_size: int
    unknown_1c: int
    nb_regions: int
    crc32: int
    disk_offsets: int

    _FORMAT: ClassVar[struct.Struct] = struct.Struct("<8sHHIIIIIIIQ")
    SIZE: ClassVar[int] = _FORMAT.size
    CRC32_OFFSET: ClassVar[int] = 0x24

    @classmethod
    def parse(cls, data: Buffer) -> EowInformation:
        """Read an EOW information header from the start of data."""
        _need(data, 0, cls.SIZE, "EOW information")
        return cls(*cls._FORMAT.unpack_from(data, 0))


def metafiles_size(version: int, sector_size: int, sectors_per_cluster: int) -> int:
    """Size of each metadata file as seen by the filesystem layer.

    Vista aligns a cluster plus 0x3fff on the cluster size; Seven aligns a
    sector plus 0xffff on the sector size. Other versions give 0.
    """
    if version == Version.VISTA:
        cluster_size = (sector_size * sectors_per_cluster) & 0xFFFFFFFF
        mask = ~((cluster_size - 1) & 0xFFFFFFFF) & 0xFFFFFFFF
        return (cluster_size + 0x3FFF) & mask
    if version == Version.SEVEN:
        return ~(sector_size - 1) & (sector_size + 0xFFFF)
    return 0


def is_overwritten(regions: list[Region] | tuple[Region, ...], offset: int, size: int) -> bool:
    """Whether [offset, offset+size) starts in or overlaps one of the regions."""
    for region in regions:
        if region.size == 0:
            continue
        if region.addr <= offset < region.addr + region.size:
            log(LogLevel.DEBUG, f"In metadata file (1:{offset:#x})\n")
            return True
        if offset < region.addr < offset + size:
            log(LogLevel.DEBUG, f"In metadata file (2:{offset:#x}+ {size:#x})\n")
            return True
    return False


def check_state(information: Information) -> bool:
    """False when the volume is mid-conversion and unsafe to use; warns otherwise."""
    if information.next_state == State.DECRYPTED:
        next_state = "dec"
    elif information.next_state == State.ENCRYPTED:
        next_state = "enc"
    else:
        next_state = "unknown-"
        log(
            LogLevel.WARNING,
            f"The next state of the volume is currently unknown of {_PROGRAM}, "
            f"but it would be awesome if you could spare some time to report this "
            f"state ({information.next_state}) and how did you do to have this. "
            "Many thanks.\n",
        )

    if information.curr_state == State.SWITCHING_ENCRYPTION:
        log(
            LogLevel.ERROR,
            f"The volume is currently being {next_state}rypted, which is an unstable "
            "state. If you know what you're doing, pass `-s' to the command line, "
            "but be aware it may result in data corruption.\n",
        )
        return False
    if information.curr_state == State.SWITCH_ENCRYPTION_PAUSED:
        log(
            LogLevel.WARNING,
            f"The volume is currently in a secure state, but don't resume the "
            f"{next_state}ryption while using {_PROGRAM} for the volume would become "
            "instable, resulting in data corruption.\n",
        )
    elif information.curr_state == State.DECRYPTED:
        log(
            LogLevel.WARNING,
            f"The disk is about to get encrypted. Using {_PROGRAM} while encrypting "
            "the disk in parallel, this may corrupt your data.\n",
        )
    return True


_SIGNATURE_OFFSET = 3
_LCN_OFFSET = 0x38


def vista_vbr_fve_to_ntfs(vbr: Buffer, mft_mirror: int) -> bytes:
    """Turn a Vista FVE boot sector into its NTFS form."""
    _need(vbr, 0, _LCN_OFFSET + 8, "boot sector")
    out = bytearray(vbr)
    log(
        LogLevel.DEBUG,
        "  Fixing sector (Vista): replacing signature and MFTMirror field by: "
        f"{mft_mirror:#x}\n",
    )
    out[_SIGNATURE_OFFSET : _SIGNATURE_OFFSET + SIGNATURE_SIZE] = NTFS_SIGNATURE
    struct.pack_into("<Q", out, _LCN_OFFSET, mft_mirror)
    return bytes(out)


def vista_vbr_ntfs_to_fve(vbr: Buffer, information_offset: int) -> bytes:
    """Turn an NTFS boot sector back into the Vista FVE form.

    The metadata LCN is the first information offset divided by the cluster
    size read from the sector itself.
    """
    _need(vbr, 0, _LCN_OFFSET + 8, "boot sector")
    out = bytearray(vbr)
    (sector_size,) = struct.unpack_from("<H", out, 0x0B)
    sectors_per_cluster = out[0x0D]
    cluster_size = sector_size * sectors_per_cluster
    if cluster_size == 0:
        raise ValueError("boot sector has a null cluster size")
    out[_SIGNATURE_OFFSET : _SIGNATURE_OFFSET + SIGNATURE_SIZE] = BITLOCKER_SIGNATURE
    lcn = information_offset // cluster_size
    struct.pack_into("<Q", out, _LCN_OFFSET, lcn)
    log(
        LogLevel.DEBUG,
        f"  Fixing sector (Vista): replacing signature and MFTMirror field by: {lcn:#x}\n",
    )
    return bytes(out)