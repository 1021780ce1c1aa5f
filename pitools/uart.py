"""Serial link to the Raspberry Pi and its supervisor prompt."""

from __future__ import annotations

import sys
import time
from collections import deque
from collections.abc import Callable
from typing import Protocol, TextIO

import serial

__all__ = [
    "DEFAULT_TIMEOUT",
    "DRAIN_POLLS",
    "DUMP_POLLS",
    "SPEED_CODES",
    "SUP_PROMPT",
    "PiError",
    "Port",
    "Uart",
    "UartTimeout",
    "baud_for_speed_code",
]

SPEED_CODES = {2: 115200, 8: 2_000_000}
DEFAULT_TIMEOUT = 2.0
DEFAULT_POLL_INTERVAL = 0.001
DRAIN_POLLS = 100
DUMP_POLLS = 255
SUP_PROMPT = "SUP>"

_CR = 13
_LF = 10
_CTRL_D = 4


class PiError(Exception):
    """A failure talking to the Pi; ``exit_code`` is the status a command exits with."""

    def __init__(self, message: str, exit_code: int = 1) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class UartTimeout(PiError):
    """No byte arrived from the Pi in time."""

    def __init__(self, message: str = "timed out waiting for Pi") -> None:
        super().__init__(message, exit_code=31)


class Port(Protocol):
    """The part of a serial port the link needs."""

    in_waiting: int

    def read(self, size: int = 1) -> bytes: ...

    def write(self, data: bytes) -> int | None: ...

    def close(self) -> None: ...


def baud_for_speed_code(code: int) -> int:
    """Return the baud rate for the speed code left by the speed-setting tool."""
    try:
        return SPEED_CODES[code]
    except KeyError:
        raise PiError("Use .pisend -q to set speed", exit_code=20) from None


class Uart:
    """Byte-level conversation with the Pi over a serial port."""

    def __init__(
        self,
        port: Port,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        console: TextIO | None = None,
    ) -> None:
        self._port = port
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._console = console

    @classmethod
    def open(cls, device: str, baudrate: int, **kwargs) -> Uart:
        """Open ``device`` (a path or a serial URL) at ``baudrate``."""
        port = serial.serial_for_url(device, baudrate=baudrate, timeout=0.01)
        return cls(port, **kwargs)

    def close(self) -> None:
        self._port.close()

    def __enter__(self) -> Uart:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def console(self) -> TextIO:
        return self._console if self._console is not None else sys.stdout

    def get_chr(self) -> int:
        """Return the next received byte, raising UartTimeout if none arrives."""
        deadline = time.monotonic() + self.timeout
        while True:
            data = self._port.read(1)
            if data:
                return data[0]
            if time.monotonic() >= deadline:
                raise UartTimeout()

    def read_bytes(self, count: int) -> bytes:
        """Return exactly ``count`` received bytes."""
        return bytes(self.get_chr() for _ in range(count))

    def write(self, data: bytes | bytearray) -> None:
        """Send raw bytes."""
        self._port.write(bytes(data))

    def send_chr(self, value: int | str) -> None:
        """Send one byte, given as an integer or a one-character string."""
        if isinstance(value, str):
            value = ord(value)
        if not 0 <= value <= 0xFF:
            raise ValueError(f"byte value out of range: {value}")
        self.write(bytes([value]))

    def send_str(self, text: str | bytes) -> None:
        """Send a string, encoded as Latin-1."""
        self.write(text.encode("latin-1") if isinstance(text, str) else text)

    def _poll(self, polls: int, sink: Callable[[bytes], object]) -> bool:
        taken = False
        for _ in range(polls):
            if self.poll_interval:
                time.sleep(self.poll_interval)
            while waiting := self._port.in_waiting:
                chunk = self._port.read(waiting)
                if not chunk:
                    break
                taken = True
                sink(chunk)
        return taken

    def drain(self) -> bool:
        """Discard pending input; return whether there was any."""
        return self._poll(DRAIN_POLLS, lambda chunk: None)

    def dump(self, out: TextIO | None = None) -> bool:
        """Copy pending input to ``out``; return whether there was any."""
        target = out if out is not None else self.console
        return self._poll(DUMP_POLLS, lambda chunk: target.write(chunk.decode("latin-1")))

    def wait_str(self, text: str) -> None:
        """Consume input until ``text`` has been seen, ignoring carriage returns."""
        target = text.encode("latin-1")
        matched = 0
        while True:
            byte = self.get_chr()
            if byte == _CR:
                continue
            if matched < len(target) and byte == target[matched]:
                matched += 1
            else:
                matched = 0
            if matched == len(target):
                return

    def wait_ok(self, local_echo: bool = False) -> bool:
        """Wait for an ``OK`` line (True) or an ``ERROR`` line (False)."""
        window = deque([0, 0, 0, 0], maxlen=4)
        ok_crlf = [ord("O"), ord("K"), _CR, _LF]
        err_crlf = [ord("O"), ord("R"), _CR, _LF]
        ok_lf = [ord("O"), ord("K"), _LF]
        while True:
            byte = self.get_chr()
            window.append(byte)
            if local_echo:
                self.console.write(chr(byte))
            recent = list(window)
            if recent == ok_crlf or recent[1:] == ok_lf:
                if local_echo:
                    self.console.write(" OK! \n")
                return True
            if recent == err_crlf:
                if local_echo:
                    self.console.write(" ER? \n")
                return False

    def send_cmd(self, cmd: str) -> None:
        """Send a command line and wait for the Pi to echo it back."""
        self.drain()
        self.send_str(cmd)
        self.wait_str(cmd)

    def sup_reset(self, verbose: bool = False) -> None:
        """Bring the Pi back to its supervisor prompt."""
        resets = 0
        first = True
        while True:
            if not first:
                self.send_chr("3")
            first = False
            if not self.drain():
                resets += 1
                if verbose:
                    self.console.write("\nResetting SUPervisor... \n")
                self.send_chr(_CTRL_D)
                if not self.drain():
                    continue
            elif resets == 2:
                if verbose:
                    self.console.write("\nERROR draining UART\n")
                raise PiError("error draining UART", exit_code=1)
            break
        self.send_chr("\n")
        self.wait_str(SUP_PROMPT)