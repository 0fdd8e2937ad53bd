"""Table-driven CRC-32 (PKWARE/zlib variant) used by the ZIP writer."""

from typing import List

CRC32_POLYNOMIAL = 0xEDB88320
CRC32_SEED = 0xFFFFFFFF


def _make_crc_table() -> List[int]:
    """
    Build the 256-entry lookup table for the reflected CRC-32 polynomial.

    Returns:
        List of 256 table entries
    """
    table = []
    for n in range(256):
        c = n
        for _ in range(8):
            if c & 1:
                c = CRC32_POLYNOMIAL ^ (c >> 1)
            else:
                c >>= 1
        table.append(c)
    return table


_CRC_TABLE = _make_crc_table()


def update_crc32(crc: int, data: bytes) -> int:
    """
    Feed more bytes into a running CRC register.

    The register is the raw (pre-inverted) value: start from CRC32_SEED and
    XOR with 0xFFFFFFFF once all data has been fed.

    Args:
        crc: Current register value
        data: Bytes to add

    Returns:
        Updated register value
    """
    table = _CRC_TABLE
    for byte in data:
        crc = table[(crc ^ byte) & 0xFF] ^ (crc >> 8)
    return crc


def crc32(data: bytes) -> int:
    """
    Compute the CRC-32 checksum of a buffer.

    Args:
        data: Bytes to checksum

    Returns:
        Unsigned 32-bit checksum
    """
    return update_crc32(CRC32_SEED, data) ^ 0xFFFFFFFF
