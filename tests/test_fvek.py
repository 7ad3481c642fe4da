import struct

import pytest

from fvemeta.datums import DatumHeader, EntryType, ValueType, get_payload, value_type_is
from fvemeta.fvek import fvek_from_file


def _write(tmp_path, content):
    path = tmp_path / "fvek.bin"
    path.write_bytes(content)
    return path


def test_round_trip(tmp_path):
    keys = bytes(range(64))
    path = _write(tmp_path, struct.pack("<H", 0x8001) + keys)
    datum = fvek_from_file(path)
    header = DatumHeader.parse(datum)
    assert header.datum_size == len(datum)
    assert header.entry_type == EntryType.FVEK
    assert header.value_type == ValueType.KEY
    assert header.error_status == 1
    assert get_payload(datum) == keys
    assert struct.unpack_from("<HH", datum, 8) == (0x8001, 0)


def test_datum_is_key_type(tmp_path):
    path = _write(tmp_path, struct.pack("<H", 0x8004) + b"\xaa" * 64)
    assert value_type_is(fvek_from_file(path), ValueType.KEY)


def test_accepts_str_path(tmp_path):
    path = _write(tmp_path, struct.pack("<H", 0x8000) + b"\x11" * 64)
    assert fvek_from_file(str(path)) == fvek_from_file(path)


@pytest.mark.parametrize("size", [0, 2, 65, 67, 130])
def test_wrong_size_rejected(tmp_path, size):
    path = _write(tmp_path, b"\x00" * size)
    with pytest.raises(ValueError, match="Wrong FVEK file size"):
        fvek_from_file(path)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        fvek_from_file(tmp_path / "absent.bin")