"""CRC-32 checksum (IEEE 802.3, reflected polynomial 0xEDB88320)."""

from __future__ import annotations

__all__ = ["POLYNOMIAL", "crc32"]

POLYNOMIAL = 0xEDB88320
_MASK = 0xFFFFFFFF


def _build_table() -> tuple[int, ...]:
    table = []
    for value in range(256):
        crc = value
        for _ in range(8):
            crc = (crc >> 1) ^ (POLYNOMIAL if crc & 1 else 0)
        table.append(crc)
    return tuple(table)


_TABLE = _build_table()


def crc32(data: bytes | bytearray | memoryview, previous: int = 0) -> int:
    """Return the CRC-32 of ``data``, continuing from the checksum ``previous``.

    Feeding a stream in pieces, passing each result as ``previous`` for the
    next piece, gives the same value as checksumming the whole stream at once.
    """
    view = memoryview(data).cast("B")
    crc = ~previous & _MASK
    table = _TABLE
    for byte in view:
        crc = (crc >> 8) ^ table[(crc ^ byte) & 0xFF]
    return ~crc & _MASK