from datetime import datetime, timezone

import pytest

from fvemeta.clock import NTFS_TIME_OFFSET, ntfs_to_utc


def test_epoch_maps_to_zero():
    assert ntfs_to_utc(NTFS_TIME_OFFSET) == 0


def test_one_day_after_epoch():
    seconds = ntfs_to_utc(116444736000000000 + 10_000_000 * 86400)
    assert datetime.fromtimestamp(seconds, timezone.utc) == datetime(
        1970, 1, 2, tzinfo=timezone.utc
    )


def test_whole_seconds():
    assert ntfs_to_utc(NTFS_TIME_OFFSET + 5 * 10_000_000) == 5


def test_fraction_is_truncated():
    assert ntfs_to_utc(NTFS_TIME_OFFSET + 9_999_999) == 0


def test_monotonic_after_epoch():
    early = ntfs_to_utc(NTFS_TIME_OFFSET + 10_000_000)
    late = ntfs_to_utc(NTFS_TIME_OFFSET + 20_000_000)
    assert late > early


def test_before_epoch_wraps_unsigned():
    assert ntfs_to_utc(0) > ntfs_to_utc(NTFS_TIME_OFFSET + 10_000_000)


@pytest.mark.parametrize("value", [-1, 1 << 64])
def test_out_of_range(value):
    with pytest.raises(ValueError):
        ntfs_to_utc(value)