"""Block transfer protocol used to move files to and from the Pi."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum

from pitools.uart import Uart

__all__ = [
    "MAX_BLOCK_SIZE",
    "RETRIES",
    "BlockStatus",
    "NbnHeader",
    "checksum",
    "get_header",
    "receive_block",
    "send_block",
    "send_header",
]

MAX_BLOCK_SIZE = 16384
RETRIES = 3

_HEADER = struct.Struct(">IIH")


class BlockStatus(IntEnum):
    """Acknowledgement byte sent after each block."""

    SUCCESS = ord("!")
    FAIL = ord("?")


def checksum(data: bytes | bytearray) -> int:
    """Return the 8-bit additive checksum of ``data``."""
    return sum(data) & 0xFF


@dataclass(frozen=True)
class NbnHeader:
    """File size, number of full blocks and size of the final partial block."""

    size: int
    blocks: int
    remainder: int

    @classmethod
    def for_size(cls, size: int) -> NbnHeader:
        """Return the header describing a file of ``size`` bytes."""
        if not 0 <= size <= 0xFFFFFFFF:
            raise ValueError(f"file size out of range: {size}")
        blocks, remainder = divmod(size, MAX_BLOCK_SIZE)
        return cls(size, blocks, remainder)

    def encode(self, name: str) -> bytes:
        """Return the header bytes followed by the NUL-terminated ``name``."""
        return _HEADER.pack(self.size, self.blocks, self.remainder) + name.encode("latin-1") + b"\0"


def get_header(uart: Uart) -> NbnHeader:
    """Read a header; an empty file yields a header of zeros and nothing more is read."""
    (size,) = struct.unpack(">I", uart.read_bytes(4))
    if size == 0:
        return NbnHeader(0, 0, 0)
    blocks, remainder = struct.unpack(">IH", uart.read_bytes(6))
    return NbnHeader(size, blocks, remainder)


def send_header(uart: Uart, size: int, name: str) -> None:
    """Send the header for a file of ``size`` bytes called ``name``."""
    uart.write(NbnHeader.for_size(size).encode(name))


def receive_block(uart: Uart, size: int) -> tuple[BlockStatus, bytes]:
    """Read ``size`` bytes and their checksum; return the status and the data."""
    data = uart.read_bytes(size)
    expected = uart.get_chr()
    status = BlockStatus.SUCCESS if expected == checksum(data) else BlockStatus.FAIL
    return status, data


def send_block(uart: Uart, data: bytes | bytearray) -> BlockStatus:
    """Send a block and its checksum; any reply other than ``?`` counts as success."""
    uart.write(bytes(data) + bytes([checksum(data)]))
    reply = uart.get_chr()
    return BlockStatus.FAIL if reply == BlockStatus.FAIL else BlockStatus.SUCCESS