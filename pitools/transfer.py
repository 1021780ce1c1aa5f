"""Uploading files to the Pi and downloading them from it, with a progress bar."""

from __future__ import annotations

import sys
from os import PathLike
from pathlib import Path
from typing import TextIO

from pitools.nbn import (
    MAX_BLOCK_SIZE,
    RETRIES,
    BlockStatus,
    NbnHeader,
    get_header,
    receive_block,
    send_block,
    send_header,
)
from pitools.uart import PiError, Uart

__all__ = [
    "BAR_WIDTH",
    "RECEIVE_COMMAND",
    "TRANSMIT_COMMAND",
    "ProgressBar",
    "TransferError",
    "download",
    "upload",
]

BAR_WIDTH = 20
RECEIVE_COMMAND = "nextpi-file_receive -nbn 256\n"
TRANSMIT_COMMAND = "nextpi-file_transmit -nbn\n"


class TransferError(PiError):
    """A file transfer could not be completed."""


class ProgressBar:
    """A fixed-width bar advanced once per full block.

    With fewer than 21 blocks every block draws an equal share of the bar;
    with more, cells are drawn as the running count passes each threshold.
    After a failed attempt the next cells drawn show the retries left.
    """

    def __init__(self, blocks: int, out: TextIO | None = None, fill: str = "#") -> None:
        self.blocks = blocks
        self.fill = fill
        self.drawn = 0
        self._out = out
        self._parts = blocks + 1
        self._progress = 0
        self._marker = fill
        self.fast = blocks < 21
        if self.fast:
            self._part = BAR_WIDTH // blocks if blocks else 0
        else:
            self._part = blocks // BAR_WIDTH - 1

    def _emit(self, text: str) -> str:
        if self._out is not None and text:
            self._out.write(text)
            self._out.flush()
        return text

    def advance(self) -> str:
        """Record one finished block; return the cells drawn for it."""
        if self.fast:
            cells = self._marker * self._part
        else:
            self._progress += 1
            if self._progress >= self._parts * (self._part / BAR_WIDTH):
                self._part += 1
                cells = self._marker
            else:
                cells = ""
        self._marker = self.fill
        self.drawn += len(cells)
        return self._emit(cells)

    def retry(self, retries_left: int) -> str:
        """Mark the next cells with the number of retries left; return the marker."""
        self._marker = str(retries_left)
        return self._marker

    def finish(self) -> str:
        """Fill the rest of the bar and end the line; return what was drawn."""
        rest = self.fill * max(0, BAR_WIDTH - self.drawn) + "\n"
        self.drawn = max(self.drawn, BAR_WIDTH)
        return self._emit(rest)


def _console(verbose: bool, out: TextIO | None) -> TextIO | None:
    if not verbose:
        return None
    return out if out is not None else sys.stdout


def _send_with_retries(uart: Uart, data: bytes, bar: ProgressBar | None) -> None:
    retries = RETRIES
    while send_block(uart, data) == BlockStatus.FAIL:
        retries -= 1
        if not retries:
            raise TransferError("block upload failed after retries")
        if bar is not None:
            bar.retry(retries)


def upload(
    uart: Uart,
    path: str | PathLike[str],
    verbose: bool = True,
    out: TextIO | None = None,
) -> NbnHeader:
    """Send the file at ``path`` to the Pi under its base name; return the header sent.

    The Pi is first brought back to its supervisor prompt.
    """
    source = Path(path)
    console = _console(verbose, out)
    with open(source, "rb") as stream:
        size = source.stat().st_size
        header = NbnHeader.for_size(size)
        uart.sup_reset(verbose)
        if console is not None:
            console.write(f" Uploading... {source.name}\n")
        bar = ProgressBar(header.blocks, console)

        uart.send_cmd(RECEIVE_COMMAND)
        uart.wait_ok(False)
        send_header(uart, size, source.name)
        uart.wait_ok(False)

        for _ in range(header.blocks):
            _send_with_retries(uart, stream.read(MAX_BLOCK_SIZE), bar)
            bar.advance()

        _send_with_retries(uart, stream.read(header.remainder), bar)
        bar.finish()
    return header


def download(
    uart: Uart,
    remote_path: str,
    dest_dir: str | PathLike[str] = ".",
    verbose: bool = True,
    out: TextIO | None = None,
) -> Path:
    """Fetch ``remote_path`` from the Pi into ``dest_dir``; return the written path.

    The local file takes the base name of ``remote_path`` and is truncated
    first. The Pi is first brought back to its supervisor prompt.
    """
    console = _console(verbose, out)
    uart.sup_reset(verbose)
    filename = remote_path.rsplit("/", 1)[-1]
    if console is not None:
        console.write(f" Downloading... {filename}\n")

    uart.send_cmd(TRANSMIT_COMMAND)
    uart.wait_ok(False)
    uart.send_chr(0)
    uart.send_str(remote_path)
    uart.send_chr(0)

    header = get_header(uart)
    if not header.size:
        raise TransferError(f"no such file on the Pi: {remote_path}", exit_code=5)

    target = Path(dest_dir) / filename
    bar = ProgressBar(header.blocks, console)
    with open(target, "wb") as stream:
        status = BlockStatus.SUCCESS
        for _ in range(header.blocks):
            retries = RETRIES
            while True:
                uart.send_chr(status)
                status, data = receive_block(uart, MAX_BLOCK_SIZE)
                if status != BlockStatus.FAIL:
                    break
                retries -= 1
                if not retries:
                    raise TransferError("block download failed after retries")
                bar.retry(retries)
            stream.write(data)
            bar.advance()

        retries = RETRIES
        uart.send_chr(BlockStatus.SUCCESS)
        while True:
            status, data = receive_block(uart, header.remainder)
            if status != BlockStatus.FAIL:
                break
            retries -= 1
            if not retries:
                raise TransferError("final block download failed after retries")
            uart.send_chr(status)
        stream.write(data)
        bar.finish()
    return target