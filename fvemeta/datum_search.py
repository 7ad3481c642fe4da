"""Walking and searching datums inside a dataset or inside another datum."""

from __future__ import annotations

import struct
from collections.abc import Iterator

from fvemeta.datums import DatumError, DatumHeader, has_nested, header_size

ANY = 0xFFFF

_DATASET_PREFIX = struct.Struct("<III")  # size, unknown, header size

Buffer = bytes | bytearray | memoryview


def _dataset_bounds(dataset: Buffer) -> tuple[int, int]:
    if len(dataset) < _DATASET_PREFIX.size:
        raise DatumError(f"dataset buffer too short: {len(dataset)} bytes")
    size, _unknown, first = _DATASET_PREFIX.unpack_from(dataset, 0)
    return first, min(size, len(dataset))


def _matches(wanted: int | None, actual: int) -> bool:
    return wanted is None or int(wanted) == ANY or int(wanted) == actual


def nested_datum_offset(data: Buffer, offset: int = 0) -> int | None:
    """Offset of the first datum nested in the datum at offset, or None."""
    try:
        header = DatumHeader.parse(data, offset)
        if not has_nested(header.value_type):
            return None
        return offset + header_size(header.value_type)
    except DatumError:
        return None


def find_nested(data: Buffer, value_type: int, offset: int = 0) -> int | None:
    """Offset of the first nested datum of value_type within the datum at offset."""
    nested = nested_datum_offset(data, offset)
    if nested is None:
        return None
    end = offset + DatumHeader.parse(data, offset).datum_size
    try:
        nested_header = DatumHeader.parse(data, nested)
    except DatumError:
        return None
    while nested_header.value_type != int(value_type):
        nested += nested_header.datum_size
        if end <= nested:
            return None
        try:
            nested_header = DatumHeader.parse(data, nested)
        except DatumError:
            return None
    return nested


def find_next_datum(
    dataset: Buffer,
    entry_type: int | None = None,
    value_type: int | None = None,
    after: int | None = None,
) -> int | None:
    """Offset of the next datum matching both types, searching after a previous one.

    The dataset buffer starts with the dataset header. A type of None or ANY
    matches everything. Returns None when no datum matches.
    """
    start, limit = _dataset_bounds(dataset)
    position = start if after is None else after + DatumHeader.parse(dataset, after).datum_size

    while position + DatumHeader.SIZE < limit:
        try:
            header = DatumHeader.parse(dataset, position)
        except DatumError:
            return None
        if _matches(entry_type, header.entry_type) and _matches(value_type, header.value_type):
            return position
        position += header.datum_size
    return None


def iter_datums(dataset: Buffer) -> Iterator[tuple[int, DatumHeader]]:
    """Yield (offset, header) for each complete top-level datum of a dataset."""
    position, end = _dataset_bounds(dataset)
    while position < end:
        try:
            header = DatumHeader.parse(dataset, position)
        except DatumError:
            return
        if position + header.datum_size > end:
            return
        yield position, header
        position += header.datum_size