"""UTF-16 string helpers for metadata payloads."""

from __future__ import annotations


def utf16_to_str(data: bytes | bytearray | memoryview) -> str:
    """Decode a little-endian UTF-16 buffer, stopping at the first NUL.

    A trailing odd byte is ignored; unpaired surrogates are kept as is.
    """
    raw = bytes(data)
    raw = raw[: len(raw) // 2 * 2]
    text = raw.decode("utf-16-le", errors="surrogatepass")
    end = text.find("\x00")
    return text if end < 0 else text[:end]


def ascii_to_utf16(text: str | bytes | bytearray) -> bytes:
    """Widen an ASCII string to NUL-terminated little-endian UTF-16.

    Bytes are widened one by one up to the first NUL byte; a str must be ASCII.
    """
    raw = text.encode("ascii") if isinstance(text, str) else bytes(text)
    end = raw.find(b"\x00")
    if end >= 0:
        raw = raw[:end]
    return raw.decode("latin-1").encode("utf-16-le") + b"\x00\x00"