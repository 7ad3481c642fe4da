"""GUID formatting and comparison for BitLocker metadata."""

from __future__ import annotations

import uuid

GUID_SIZE = 16

INFORMATION_OFFSET_GUID = bytes(
    [
        0x3B, 0xD6, 0x67, 0x49, 0x29, 0x2E, 0xD8, 0x4A,
        0x83, 0x99, 0xF6, 0xA3, 0x39, 0xE3, 0xD0, 0x01,
    ]
)

EOW_INFORMATION_OFFSET_GUID = bytes(
    [
        0x3B, 0x4D, 0xA8, 0x92, 0x80, 0xDD, 0x0E, 0x4D,
        0x9E, 0x4E, 0xB1, 0xE3, 0x28, 0x4E, 0xAE, 0xD8,
    ]
)


def _take(raw: bytes | bytearray | memoryview) -> bytes:
    data = bytes(raw)
    if len(data) < GUID_SIZE:
        raise ValueError(f"a GUID needs {GUID_SIZE} bytes, got {len(data)}")
    return data[:GUID_SIZE]


def format_guid(raw: bytes | bytearray | memoryview) -> str:
    """Render 16 raw GUID bytes in the upper-case dashed form."""
    return str(uuid.UUID(bytes_le=_take(raw))).upper()


def guids_match(
    first: bytes | bytearray | memoryview, second: bytes | bytearray | memoryview
) -> bool:
    """Return True when the first 16 bytes of both GUIDs are equal."""
    return _take(first) == _take(second)