"""Fixed-offset little-endian reads over raw program-account buffers.

Module-level ``read_*`` helpers decode one primitive at an absolute offset.
``AccountReader`` walks a layout field by field with a cursor, which is how
the record decoders in ``fundhub_indexer.state`` consume account data.
"""

from __future__ import annotations

import struct

import base58  # type: ignore[import-untyped]

PUBKEY_SIZE = 32


def _check(data: bytes, offset: int, width: int, what: str) -> None:
    if offset < 0 or offset + width > len(data):
        raise ValueError(
            f"not enough data for {what} at offset {offset} (buffer is {len(data)} bytes)"
        )


def read_u8(data: bytes, offset: int) -> int:
    _check(data, offset, 1, "u8")
    return data[offset]


def read_u16(data: bytes, offset: int) -> int:
    _check(data, offset, 2, "u16")
    return struct.unpack_from("<H", data, offset)[0]


def read_u32(data: bytes, offset: int) -> int:
    _check(data, offset, 4, "u32")
    return struct.unpack_from("<I", data, offset)[0]


def read_u64(data: bytes, offset: int) -> int:
    _check(data, offset, 8, "u64")
    return struct.unpack_from("<Q", data, offset)[0]


def read_i64(data: bytes, offset: int) -> int:
    _check(data, offset, 8, "i64")
    return struct.unpack_from("<q", data, offset)[0]


def read_pubkey_raw(data: bytes, offset: int) -> bytes:
    _check(data, offset, PUBKEY_SIZE, "pubkey")
    return bytes(data[offset : offset + PUBKEY_SIZE])


def read_pubkey(data: bytes, offset: int) -> str:
    """Read a 32-byte public key and return its base58 text form."""
    return encode_base58(read_pubkey_raw(data, offset))


def encode_base58(raw: bytes) -> str:
    """Encode bytes with the Bitcoin base58 alphabet.

    Every leading zero byte becomes a leading ``'1'`` and empty input
    encodes to the empty string.
    """
    if not raw:
        return ""
    return base58.b58encode(bytes(raw)).decode("ascii")


class AccountReader:
    """Cursor-based reader that walks a fixed account layout in field order."""

    def __init__(self, data: bytes, offset: int = 0) -> None:
        self._data = data
        self._offset = offset

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def skip(self, n: int) -> None:
        _check(self._data, self._offset, n, f"{n} skipped bytes")
        self._offset += n

    def read_u8(self) -> int:
        v = read_u8(self._data, self._offset)
        self._offset += 1
        return v

    def read_u16(self) -> int:
        v = read_u16(self._data, self._offset)
        self._offset += 2
        return v

    def read_u32(self) -> int:
        v = read_u32(self._data, self._offset)
        self._offset += 4
        return v

    def read_u64(self) -> int:
        v = read_u64(self._data, self._offset)
        self._offset += 8
        return v

    def read_i64(self) -> int:
        v = read_i64(self._data, self._offset)
        self._offset += 8
        return v

    def read_pubkey(self) -> str:
        v = read_pubkey(self._data, self._offset)
        self._offset += PUBKEY_SIZE
        return v
