"""Command that prints the CRC-32 checksum of a file."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from os import PathLike

from pitools.crc32 import crc32
from pitools.help import format_help

__all__ = ["BUFFER_SIZE", "HELP_TEXT", "NAME", "file_crc32", "main"]

NAME = "CRC32"
BUFFER_SIZE = 4096
HELP_TEXT = (
    " Usage examples",
    "\nCompute CRC32 checksum of a file",
    "\n\t.CRC32 /path/to/file.ext",
)


def file_crc32(path: str | PathLike[str], chunk_size: int = BUFFER_SIZE) -> int:
    """Return the CRC-32 of the file at ``path``, read ``chunk_size`` bytes at a time."""
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    checksum = 0
    with open(path, "rb") as stream:
        while chunk := stream.read(chunk_size):
            checksum = crc32(chunk, checksum)
    return checksum


def main(argv: Sequence[str] | None = None) -> int:
    """Print the checksum of the file named by the first argument in hex."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args or args[0] == "-h":
        sys.stdout.write(format_help(HELP_TEXT))
        return 0
    try:
        checksum = file_crc32(args[0])
    except OSError as exc:
        print(f"{NAME}: {exc.strerror or exc}", file=sys.stderr)
        return exc.errno or 1
    print(format(checksum, "x"))
    return 0


if __name__ == "__main__":
    sys.exit(main())