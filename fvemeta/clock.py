"""NTFS timestamp conversion."""

from __future__ import annotations

_TICKS_PER_SECOND = 10_000_000
_UINT64 = 1 << 64

# 100-nanosecond intervals between 1601-01-01 and 1970-01-01.
NTFS_TIME_OFFSET = (369 * 365 + 89) * 24 * 3600 * _TICKS_PER_SECOND


def ntfs_to_utc(timestamp: int) -> int:
    """Convert an NTFS timestamp to seconds since the Unix epoch.

    The arithmetic is unsigned 64-bit, so timestamps before the epoch wrap.
    """
    if not 0 <= timestamp < _UINT64:
        raise ValueError(f"NTFS timestamp out of range: {timestamp}")
    return ((timestamp - NTFS_TIME_OFFSET) % _UINT64) // _TICKS_PER_SECOND