"""Commands that copy files to and from the Pi over its serial link."""

from __future__ import annotations

import os
import sys
from collections.abc import Sequence

from pitools.help import VERSION, format_help
from pitools.transfer import download, upload
from pitools.uart import PiError, Uart, baud_for_speed_code

__all__ = [
    "DEFAULT_DEVICE",
    "DEFAULT_SPEED_CODE",
    "DEVICE_ENV",
    "PIGET_HELP",
    "PIGET_NAME",
    "PIPUT_HELP",
    "PIPUT_NAME",
    "SPEED_ENV",
    "parse_transfer_args",
    "piget_main",
    "piput_main",
]

DEVICE_ENV = "PITOOLS_DEVICE"
SPEED_ENV = "PITOOLS_SPEED"
DEFAULT_DEVICE = "/dev/ttyUSB0"
DEFAULT_SPEED_CODE = "2"

PIGET_NAME = "PIGET"
PIPUT_NAME = "PIPUT"

PIGET_HELP = (
    " Usage examples",
    "\nDownload with progress bar",
    "\n .PIGET /path/to/file.ext",
    "\nDownload without progress bar",
    "\n .PIGET -q /path/to/file.ext",
)
PIPUT_HELP = (
    " Usage examples",
    "\nUpload to pi & show progress bar",
    "\n    .PIPUT /path/to/file.ext",
    "\nUpload to pi & hide progress bar",
    "\n    .PIPUT -q /path/to/file.ext",
)


def _args(argv: Sequence[str] | None) -> list[str]:
    return list(sys.argv[1:] if argv is None else argv)


def _device() -> str:
    return os.environ.get(DEVICE_ENV, DEFAULT_DEVICE)


def _speed_code() -> int:
    try:
        return int(os.environ.get(SPEED_ENV, DEFAULT_SPEED_CODE))
    except ValueError:
        return -1


def _print_help(name: str, lines: Sequence[str]) -> None:
    print(f"{name} version {VERSION}")
    sys.stdout.write(format_help(lines))


def parse_transfer_args(argv: Sequence[str]) -> tuple[bool, str] | None:
    """Return ``(verbose, path)``, or None when help should be shown instead."""
    args = list(argv)
    if not args or args[0] == "-h":
        return None
    verbose = True
    if args[0] == "-q":
        verbose = False
        args = args[1:]
    if not args:
        return None
    return verbose, args[0]


def _report(verbose: bool, message: object) -> None:
    if verbose:
        print(message)


def piget_main(argv: Sequence[str] | None = None) -> int:
    """Download a file from the Pi into the current directory."""
    parsed = parse_transfer_args(_args(argv))
    if parsed is None:
        _print_help(PIGET_NAME, PIGET_HELP)
        return 0
    verbose, remote_path = parsed
    try:
        baud = baud_for_speed_code(_speed_code())
        with Uart.open(_device(), baud) as uart:
            download(uart, remote_path, ".", verbose)
    except PiError as exc:
        _report(verbose, exc)
        return exc.exit_code
    except OSError as exc:
        _report(verbose, exc.strerror or exc)
        return exc.errno or 1
    return 0


def piput_main(argv: Sequence[str] | None = None) -> int:
    """Upload a local file to the Pi."""
    parsed = parse_transfer_args(_args(argv))
    if parsed is None:
        _print_help(PIPUT_NAME, PIPUT_HELP)
        return 0
    verbose, path = parsed
    try:
        with open(path, "rb"):
            pass
    except OSError as exc:
        _report(verbose, exc.strerror or exc)
        return exc.errno or 1
    try:
        baud = baud_for_speed_code(_speed_code())
        with Uart.open(_device(), baud) as uart:
            upload(uart, path, verbose)
    except PiError as exc:
        _report(verbose, exc)
        return exc.exit_code
    except OSError as exc:
        _report(verbose, exc.strerror or exc)
        return exc.errno or 1
    return 0


if __name__ == "__main__":
    sys.exit(piget_main())