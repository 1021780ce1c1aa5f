"""Command that reports the version of the Pi's software stack."""

from __future__ import annotations

import os
import sys
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from os import PathLike
from pathlib import Path

from pitools.cli import DEFAULT_DEVICE, DEFAULT_SPEED_CODE, DEVICE_ENV, SPEED_ENV
from pitools.help import VERSION, format_help
from pitools.uart import PiError, Uart, UartTimeout, baud_for_speed_code

__all__ = [
    "CACHE_ENV",
    "CACHE_SIZE",
    "DEFAULT_CACHE_PATH",
    "HELP_TEXT",
    "NAME",
    "VERSION_COMMAND",
    "VER_MAXLEN",
    "PiverOptions",
    "fetch_version",
    "main",
    "parse_options",
    "parse_version",
    "read_cache",
    "write_cache",
]

NAME = "PIVER"
VERSION_COMMAND = "nextpi-admin_version\n"
VER_MAXLEN = 16
CACHE_SIZE = 16
CACHE_ENV = "PITOOLS_PIVER_CACHE"
DEFAULT_CACHE_PATH = str(Path(tempfile.gettempdir()) / "piver.cache")
_RETRIEVE_ERROR = "ERROR retrieving version"

HELP_TEXT = (
    " Usage examples",
    "\n .PIVER -p        print version",
    "\n .PIVER -q       save at RAMTOP",
    "\n .PIVER -b        do both above",
    "\n .PIVER -p -d     print & debug",
    "\n .PIVER -c   force update cache",
)


@dataclass
class PiverOptions:
    """What the command was asked to do."""

    memdump: bool = False
    verbose: bool = False
    debug: bool = False
    use_cache: bool = True
    show_help: bool = False
    show_version: bool = False


def parse_options(argv: Sequence[str]) -> PiverOptions:
    """Parse the flags; raise PiError (exit 13) when no return method is chosen."""
    options = PiverOptions()
    args = list(argv)
    if not args:
        options.show_help = True
        return options
    for arg in args:
        if not arg.startswith("-"):
            options.show_help = True
            return options
        flag = arg[1:2]
        if flag == "d":
            options.debug = True
        elif flag == "b":
            options.verbose = True
            options.memdump = True
        elif flag == "p":
            options.verbose = True
        elif flag == "q":
            options.memdump = True
        elif flag == "c":
            options.use_cache = False
        elif flag == "v":
            options.show_version = True
            return options
        else:
            options.show_help = True
            return options
    if not options.memdump and not options.verbose:
        raise PiError("No return method set (-b/-p/-q)", exit_code=13)
    return options


def parse_version(text: str) -> tuple[int, int, int]:
    """Return ``(major, minor, patch)`` from a version such as ``1.18A``.

    The patch is the character code of the fifth character.
    """
    if len(text) < 5:
        raise ValueError(f"version string too short: {text!r}")
    digit = ord("0")
    major = (ord(text[0]) - digit) & 0xFF
    minor = ((ord(text[2]) - digit) * 10 + ord(text[3]) - digit) & 0xFF
    patch = ord(text[4]) & 0xFF
    return major, minor, patch


def read_cache(path: str | PathLike[str]) -> str | None:
    """Return the cached version, or None if there is no usable cache."""
    try:
        with open(path, "rb") as stream:
            data = stream.read(CACHE_SIZE)
    except OSError:
        return None
    text = data.split(b"\0", 1)[0].decode("latin-1")
    return text or None


def write_cache(path: str | PathLike[str], text: str) -> None:
    """Store ``text`` in a fixed-size cache record at ``path``."""
    record = text.encode("latin-1")[:CACHE_SIZE].ljust(CACHE_SIZE, b"\0")
    with open(path, "wb") as stream:
        stream.write(record)


def fetch_version(uart: Uart) -> str:
    """Ask the Pi for its version and return the reply line."""
    uart.send_cmd(VERSION_COMMAND)
    received = bytearray()
    try:
        while len(received) <= VER_MAXLEN:
            byte = uart.get_chr()
            if byte == 13:
                break
            received.append(byte)
    except UartTimeout:
        raise PiError(_RETRIEVE_ERROR, exit_code=13) from None
    text = received.decode("latin-1")
    if text.startswith("b"):
        raise PiError(_RETRIEVE_ERROR, exit_code=13)
    return text


def _speed_code() -> int:
    try:
        return int(os.environ.get(SPEED_ENV, DEFAULT_SPEED_CODE))
    except ValueError:
        return -1


def main(argv: Sequence[str] | None = None) -> int:
    """Print the Pi's version and/or its numeric form, caching the answer."""
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        options = parse_options(args)
    except PiError as exc:
        print(VERSION)
        print(f"\n{exc}")
        return exc.exit_code
    if options.show_version:
        print(VERSION)
        return 0
    if options.show_help:
        print(VERSION)
        sys.stdout.write(format_help(HELP_TEXT))
        return 0

    try:
        baud = baud_for_speed_code(_speed_code())
    except PiError as exc:
        if options.debug:
            print(exc)
        return exc.exit_code

    cache_path = Path(os.environ.get(CACHE_ENV, DEFAULT_CACHE_PATH))
    text = read_cache(cache_path) if options.use_cache else None
    cache_used = text is not None
    if cache_used:
        if options.debug:
            print(f"cache used: {text}, {len(text)} bytes")
    else:
        try:
            with Uart.open(os.environ.get(DEVICE_ENV, DEFAULT_DEVICE), baud) as uart:
                uart.sup_reset(options.debug)
                text = fetch_version(uart)
        except PiError as exc:
            print(exc)
            return exc.exit_code
        except OSError as exc:
            print(exc.strerror or exc)
            return exc.errno or 1

    if text.startswith("b"):
        print(_RETRIEVE_ERROR)
        return 13
    if options.verbose:
        print(text)
    if options.memdump:
        try:
            major, minor, patch = parse_version(text)
        except ValueError:
            print(_RETRIEVE_ERROR)
            return 13
        print(f"{major} {minor} {patch}")
    if not cache_used:
        try:
            write_cache(cache_path, text)
        except OSError as exc:
            print("ERROR creating cache file")
            return exc.errno or 1
    return 0


if __name__ == "__main__":
    sys.exit(main())