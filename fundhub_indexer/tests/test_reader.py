import struct

import pytest

from fundhub_indexer.reader import (
    AccountReader,
    encode_base58,
    read_i64,
    read_pubkey,
    read_pubkey_raw,
    read_u8,
    read_u16,
    read_u32,
    read_u64,
)

TOKEN_PROGRAM_HEX = "06ddf6e1d765a193d9cbe146ceeb79ac1cb485ed5f5b37913a8cf5857eff00a9"
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"


# ===========================================================================
# 1. Fixed-offset reads
# ===========================================================================

class TestReadAtOffset:
    def test_read_u8(self):
        assert read_u8(bytes([0, 42]), 1) == 42

    def test_read_u16_little_endian(self):
        assert read_u16(bytes([0x34, 0x12]), 0) == 0x1234

    def test_read_u32(self):
        data = b"\xff" + struct.pack("<I", 123456)
        assert read_u32(data, 1) == 123456

    def test_read_u64_max(self):
        assert read_u64(b"\xff" * 8, 0) == 2**64 - 1

    def test_read_u64_above_float_precision(self):
        v = 2**53 + 1
        assert read_u64(struct.pack("<Q", v), 0) == v

    def test_read_i64_negative(self):
        assert read_i64(struct.pack("<q", -86400), 0) == -86400

    def test_read_i64_min(self):
        assert read_i64(struct.pack("<q", -(2**63)), 0) == -(2**63)

    def test_read_pubkey_raw(self):
        buf = bytes(range(40))
        assert read_pubkey_raw(buf, 8) == bytes(range(8, 40))

    def test_read_pubkey_base58(self):
        buf = b"\x00" * 4 + bytes.fromhex(TOKEN_PROGRAM_HEX)
        assert read_pubkey(buf, 4) == TOKEN_PROGRAM_ID


class TestReadOutOfRange:
    @pytest.mark.parametrize(
        "fn,size",
        [(read_u8, 1), (read_u16, 2), (read_u32, 4), (read_u64, 8), (read_i64, 8), (read_pubkey, 32)],
    )
    def test_one_byte_short(self, fn, size):
        with pytest.raises(ValueError, match="not enough data"):
            fn(b"\x00" * (size - 1), 0)

    def test_offset_past_end(self):
        with pytest.raises(ValueError):
            read_u64(b"\x00" * 16, 9)

    def test_negative_offset(self):
        with pytest.raises(ValueError):
            read_u8(b"\x00", -1)

    def test_exact_fit(self):
        assert read_u32(b"\x00" * 4 + struct.pack("<I", 7), 4) == 7


# ===========================================================================
# 2. Base58
# ===========================================================================

class TestBase58:
    def test_all_zero_key(self):
        assert encode_base58(b"\x00" * 32) == "1" * 32

    def test_empty(self):
        assert encode_base58(b"") == ""

    def test_known_program_id(self):
        assert encode_base58(bytes.fromhex(TOKEN_PROGRAM_HEX)) == TOKEN_PROGRAM_ID

    def test_leading_zeros_become_ones(self):
        assert encode_base58(b"\x00\x00\x01") == "112"

    def test_single_bytes(self):
        assert encode_base58(b"\x00") == "1"
        assert encode_base58(b"\x39") == "z"
        assert encode_base58(b"\x3a") == "21"

    def test_pure(self):
        key = bytes(range(32))
        assert encode_base58(key) == encode_base58(key)

    def test_alphabet_excludes_ambiguous(self):
        out = encode_base58(bytes(range(256)))
        assert not set(out) & set("0OIl")


# ===========================================================================
# 3. Cursor reader
# ===========================================================================

class TestAccountReader:
    def test_walks_fields_in_order(self):
        data = (
            b"\xaa" * 8
            + struct.pack("<Q", 5)
            + struct.pack("<q", -1)
            + struct.pack("<H", 850)
            + struct.pack("<I", 9)
            + bytes([2])
            + b"\x00" * 32
        )
        r = AccountReader(data)
        r.skip(8)
        assert r.read_u64() == 5
        assert r.read_i64() == -1
        assert r.read_u16() == 850
        assert r.read_u32() == 9
        assert r.read_u8() == 2
        assert r.read_pubkey() == "1" * 32
        assert r.offset == len(data)
        assert r.remaining == 0

    def test_start_offset(self):
        r = AccountReader(b"\x00\x07", offset=1)
        assert r.read_u8() == 7

    def test_skip_past_end_raises(self):
        r = AccountReader(b"\x00" * 4)
        with pytest.raises(ValueError):
            r.skip(5)

    def test_failed_read_does_not_advance(self):
        r = AccountReader(b"\x00" * 4)
        with pytest.raises(ValueError):
            r.read_u64()
        assert r.offset == 0
        assert r.read_u32() == 0
