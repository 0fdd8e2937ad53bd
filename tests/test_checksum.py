"""Tests for the CRC-32 engine."""

import os
import zlib

from common.checksum import CRC32_SEED, crc32, update_crc32


def test_crc32_empty_buffer():
    assert crc32(b'') == 0x00000000


def test_crc32_reference_check_value():
    assert crc32(b'123456789') == 0xCBF43926


def test_crc32_matches_zlib():
    data = os.urandom(4096)
    assert crc32(data) == zlib.crc32(data)
    assert crc32(b'hello') == 0x3610A686


def test_crc32_is_unsigned_32_bit():
    for sample in (b'\xff' * 64, b'\x00', b'The quick brown fox'):
        value = crc32(sample)
        assert 0 <= value <= 0xFFFFFFFF


def test_update_crc32_in_pieces():
    data = b'incremental checksum over several pieces'
    register = CRC32_SEED
    for i in range(0, len(data), 7):
        register = update_crc32(register, data[i:i + 7])
    assert register ^ 0xFFFFFFFF == crc32(data)
