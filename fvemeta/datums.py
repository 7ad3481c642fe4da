"""Datum headers, type tables and payload extraction for BitLocker metadata."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar


class DatumError(ValueError):
    """Raised when a datum is malformed or cannot be read."""


class ValueType(IntEnum):
    ERASED = 0x0000
    KEY = 0x0001
    UNICODE = 0x0002
    STRETCH_KEY = 0x0003
    USE_KEY = 0x0004
    AES_CCM = 0x0005
    TPM_ENCODED = 0x0006
    VALIDATION = 0x0007
    VMK = 0x0008
    EXTERNAL_KEY = 0x0009
    UPDATE = 0x000A
    ERROR = 0x000B
    ASYM_ENC = 0x000C
    EXPORTED_KEY = 0x000D
    PUBLIC_KEY = 0x000E
    VIRTUALIZATION_INFO = 0x000F
    SIMPLE_1 = 0x0010
    SIMPLE_2 = 0x0011
    CONCAT_HASH_KEY = 0x0012
    SIMPLE_3 = 0x0013


class EntryType(IntEnum):
    UNKNOWN1 = 0x0000
    UNKNOWN2 = 0x0001
    VMK = 0x0002
    FVEK = 0x0003
    UNKNOWN3 = 0x0004
    UNKNOWN4 = 0x0005
    UNKNOWN5 = 0x0006
    UNKNOWN6 = 0x0007
    UNKNOWN7 = 0x0008
    UNKNOWN8 = 0x0009
    UNKNOWN9 = 0x000A
    FVEK_2 = 0x000B


class Cipher(IntEnum):
    STRETCH_KEY = 0x1000
    AES_CCM_256_0 = 0x2000
    AES_CCM_256_1 = 0x2001
    EXTERN_KEY = 0x2002
    VMK = 0x2003
    AES_CCM_256_2 = 0x2004
    HASH_256 = 0x2005
    AES_128_DIFFUSER = 0x8000
    AES_256_DIFFUSER = 0x8001
    AES_128_NO_DIFFUSER = 0x8002
    AES_256_NO_DIFFUSER = 0x8003
    AES_XTS_128 = 0x8004
    AES_XTS_256 = 0x8005


_VALUE_TYPE_NAMES = (
    "ERASED",
    "KEY",
    "UNICODE",
    "STRETCH KEY",
    "USE",
    "AES-CCM",
    "TPM_ENCODED",
    "VALIDATION",
    "VMK",
    "EXTERNAL KEY",
    "UPDATE",
    "ERROR",
    "ASYM ENC",
    "EXPORTED KEY",
    "PUBLIC KEY",
    "VIRTUALIZATION INFO",
    "SIMPLE 1",
    "SIMPLE 2",
    "CONCAT HASH KEY",
    "SIMPLE 3",
)

_ENTRY_TYPE_NAMES = (
    "ENTRY TYPE UNKNOWN 1",
    "ENTRY TYPE UNKNOWN 2",
    "ENTRY TYPE VMK",
    "ENTRY TYPE FVEK (FveDatasetVmkGetFvek)",
    "ENTRY TYPE UNKNOWN",
    "ENTRY TYPE UNKNOWN",
    "ENTRY TYPE UNKNOWN",
    "ENTRY TYPE UNKNOWN",
    "ENTRY TYPE UNKNOWN",
    "ENTRY TYPE UNKNOWN",
    "ENTRY TYPE UNKNOWN",
    "ENTRY TYPE FVEK (TryObtainKey)",
)

# (size of the fixed part including the common header, holds nested datums)
_VALUE_TYPE_PROPS = (
    (8, False),   # ERASED
    (12, False),  # KEY: algo, padding
    (8, False),   # UNICODE
    (28, True),   # STRETCH KEY: algo, padding, salt
    (12, True),   # USE KEY: algo, padding
    (36, False),  # AES-CCM: nonce, MAC
    (12, False),  # TPM ENCODED
    (8, False),   # VALIDATION
    (36, True),   # VMK: GUID, nonce
    (32, True),   # EXTERNAL KEY: GUID, timestamp
    (8, False),   # UPDATE
    (8, False),   # ERROR
    (8, False),   # ASYM ENC
    (8, False),   # EXPORTED KEY
    (8, False),   # PUBLIC KEY
    (24, False),  # VIRTUALIZATION INFO: boot sectors address, byte count
    (8, False),   # SIMPLE 1
    (8, False),   # SIMPLE 2
    (8, False),   # CONCAT HASH KEY
    (8, False),   # SIMPLE 3
)

_CIPHER_NAMES = {
    0: "NULL",
    Cipher.STRETCH_KEY: "STRETCH KEY",
    Cipher.AES_CCM_256_0: "AES-CCM-256",
    Cipher.AES_CCM_256_1: "AES-CCM-256",
    Cipher.AES_CCM_256_2: "AES-CCM-256",
    Cipher.EXTERN_KEY: "EXTERN KEY",
    Cipher.VMK: "VMK",
    Cipher.HASH_256: "VALIDATION HASH 256",
    Cipher.AES_128_DIFFUSER: "AES-128-DIFFUSER",
    Cipher.AES_256_DIFFUSER: "AES-256-DIFFUSER",
    Cipher.AES_128_NO_DIFFUSER: "AES-128-NODIFFUSER",
    Cipher.AES_256_NO_DIFFUSER: "AES-256-NODIFFUSER",
    Cipher.AES_XTS_128: "AES-XTS-128",
    Cipher.AES_XTS_256: "AES-XTS-256",
}


def cipher_name(code: int) -> str:
    """Return the name of an algorithm code, or 'UNKNOWN CIPHER!'."""
    return _CIPHER_NAMES.get(int(code), "UNKNOWN CIPHER!")


def value_type_name(value_type: int) -> str | None:
    """Return the name of a datum value type, or None if it is unknown."""
    value_type = int(value_type)
    if 0 <= value_type < len(_VALUE_TYPE_NAMES):
        return _VALUE_TYPE_NAMES[value_type]
    return None


def entry_type_name(entry_type: int) -> str | None:
    """Return the name of a datum entry type, or None if it is unknown."""
    entry_type = int(entry_type)
    if 0 <= entry_type < len(_ENTRY_TYPE_NAMES):
        return _ENTRY_TYPE_NAMES[entry_type]
    return None


def _props(value_type: int) -> tuple[int, bool]:
    value_type = int(value_type)
    if not 0 <= value_type < len(_VALUE_TYPE_PROPS):
        raise DatumError(f"unknown datum value type: {value_type:#x}")
    return _VALUE_TYPE_PROPS[value_type]


def header_size(value_type: int) -> int:
    """Size in bytes of the fixed part of a datum of this value type."""
    return _props(value_type)[0]


def has_nested(value_type: int) -> bool:
    """Whether a datum of this value type holds nested datums after its fixed part."""
    return _props(value_type)[1]


@dataclass(frozen=True)
class DatumHeader:
    datum_size: int
    entry_type: int
    value_type: int
    error_status: int

    _FORMAT: ClassVar[struct.Struct] = struct.Struct("<HHHH")
    SIZE: ClassVar[int] = _FORMAT.size

    @classmethod
    def parse(cls, data: bytes | bytearray | memoryview, offset: int = 0) -> DatumHeader:
        """Read a datum header at offset; DatumError if short or inconsistent."""
        if offset < 0 or len(data) - offset < cls.SIZE:
            raise DatumError(
                f"datum header needs {cls.SIZE} bytes at offset {offset}, "
                f"buffer has {len(data)}"
            )
        header = cls(*cls._FORMAT.unpack_from(data, offset))
        if header.datum_size < cls.SIZE:
            raise DatumError(f"datum size {header.datum_size:#x} is smaller than its header")
        return header


def get_payload(data: bytes | bytearray | memoryview, offset: int = 0) -> bytes:
    """Return the bytes of a datum that follow its fixed part."""
    header = DatumHeader.parse(data, offset)
    fixed = header_size(header.value_type)
    if header.datum_size <= fixed:
        raise DatumError(
            f"datum of size {header.datum_size:#x} has no payload after {fixed:#x} bytes"
        )
    end = offset + header.datum_size
    if end > len(data):
        raise DatumError(f"datum ends at {end:#x}, past the buffer of {len(data):#x} bytes")
    return bytes(data[offset + fixed : end])


def value_type_is(
    data: bytes | bytearray | memoryview, value_type: int, offset: int = 0
) -> bool:
    """True if a valid datum at offset has the given value type."""
    try:
        header = DatumHeader.parse(data, offset)
    except DatumError:
        return False
    return header.value_type == int(value_type)