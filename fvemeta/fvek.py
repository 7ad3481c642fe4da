"""Loading a full volume encryption key from a file."""

from __future__ import annotations

import os
import struct

from fvemeta.datums import EntryType, ValueType

_METHOD_SIZE = 2
_KEYS_SIZE = 64
_FVEK_FILE_SIZE = _METHOD_SIZE + _KEYS_SIZE
_KEY_FIXED_SIZE = 12


def fvek_from_file(path: str | os.PathLike[str]) -> bytes:
    """Build a KEY datum from an FVEK file.

    The file holds exactly 66 bytes: a little-endian 2-byte encryption method
    followed by 64 bytes of key material.
    """
    with open(path, "rb") as handle:
        content = handle.read()
    if len(content) != _FVEK_FILE_SIZE:
        raise ValueError(
            f"Wrong FVEK file size, expected {_FVEK_FILE_SIZE} but has {len(content)}"
        )
    (method,) = struct.unpack_from("<H", content, 0)
    keys = content[_METHOD_SIZE:]
    return (
        struct.pack(
            "<HHHHHH",
            _KEY_FIXED_SIZE + _KEYS_SIZE,
            EntryType.FVEK,
            ValueType.KEY,
            1,
            method,
            0,
        )
        + keys
    )