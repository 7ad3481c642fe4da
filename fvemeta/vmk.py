"""Locating VMK datums in a dataset and loading a VMK from a file."""

from __future__ import annotations

import os
import struct

from fvemeta.datum_search import find_next_datum
from fvemeta.datums import Cipher, DatumError, DatumHeader, EntryType, ValueType
from fvemeta.guid import GUID_SIZE, guids_match

Buffer = bytes | bytearray | memoryview

_VMK_GUID_OFFSET = 8
_VMK_RANGE_OFFSET = 8 + GUID_SIZE + 10
_VMK_FIXED_SIZE = 36
_VMK_FILE_SIZE = 32
_KEY_FIXED_SIZE = 12


def _vmk_datums(dataset: Buffer, previous: int | None = None):
    position = previous
    while True:
        position = find_next_datum(dataset, EntryType.VMK, ValueType.VMK, position)
        if position is None:
            return
        if position + _VMK_FIXED_SIZE > len(dataset):
            raise DatumError(f"VMK datum at {position:#x} is truncated")
        yield position


def find_vmk_by_guid(dataset: Buffer, guid: Buffer) -> int | None:
    """Offset of the VMK datum carrying the given GUID, or None."""
    for position in _vmk_datums(dataset):
        start = position + _VMK_GUID_OFFSET
        if guids_match(dataset[start : start + GUID_SIZE], guid):
            return position
    return None


def find_vmk_by_range(
    dataset: Buffer, min_range: int, max_range: int, previous: int | None = None
) -> int | None:
    """Offset of the next VMK datum whose priority lies in [min_range, max_range].

    The priority is the last two bytes of the datum's nonce. The search starts
    after the datum at previous when it is given.
    """
    for position in _vmk_datums(dataset, previous):
        (priority,) = struct.unpack_from("<H", dataset, position + _VMK_RANGE_OFFSET)
        if min_range <= priority <= max_range:
            return position
    return None


def has_clear_key(dataset: Buffer) -> bool:
    """Whether the dataset holds a VMK protected by a clear key (priority 0x00-0xff)."""
    return find_vmk_by_range(dataset, 0x00, 0xFF) is not None


def vmk_from_file(path: str | os.PathLike[str]) -> bytes:
    """Build a KEY datum from a file holding exactly 32 bytes of VMK."""
    with open(path, "rb") as handle:
        keys = handle.read()
    if len(keys) != _VMK_FILE_SIZE:
        raise ValueError(
            f"Wrong VMK file size, expected {_VMK_FILE_SIZE} but has {len(keys)}"
        )
    header = DatumHeader(
        datum_size=_KEY_FIXED_SIZE + _VMK_FILE_SIZE,
        entry_type=EntryType.FVEK,
        value_type=ValueType.KEY,
        error_status=1,
    )
    return (
        struct.pack(
            "<HHHHHH",
            header.datum_size,
            header.entry_type,
            header.value_type,
            header.error_status,
            Cipher.AES_256_DIFFUSER,
            0,
        )
        + keys
    )