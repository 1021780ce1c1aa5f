# pitools

Command-line tools for talking to a Raspberry Pi over a serial UART link:
copying files to and from the Pi, asking the Pi for its software version,
and computing CRC32 checksums of local files.

Files travel with the block-oriented NBN protocol: a header holding the file
size, the number of full blocks and the length of the final block, followed
by 16 KiB blocks, each with a one-byte additive checksum. The receiver
answers each block with `!` on success or `?` on failure, and a block is
tried at most three times before the transfer is abandoned.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Configuration

The serial commands take their settings from the environment:

- `PITOOLS_DEVICE`: the serial device, or any URL pyserial's
  `serial_for_url` accepts (default `/dev/ttyUSB0`).
- `PITOOLS_SPEED`: the speed code, `2` for 115200 baud or `8` for
  2000000 baud (default `2`). Any other value makes the command exit with
  status 20.
- `PITOOLS_PIVER_CACHE`: where `piver` keeps its cache (default
  `piver.cache` in the system temporary directory).

## Commands

### piput: upload a file to the Pi

```
piput /path/to/file.ext
piput -q /path/to/file.ext
```

Resets the Pi to its supervisor prompt, then sends the file under its base
name, drawing a progress bar as blocks go out. `-q` hides the progress bar
and messages. `-h` or no arguments prints usage.

### piget: download a file from the Pi

```
piget /path/to/file.ext
piget -q /path/to/file.ext
```

Asks the Pi for the named file and writes it to the current directory under
its base name, truncating any existing file. If the Pi reports an empty or
missing file the command exits with status 5. `-q` hides the progress bar.

### piver: query the Pi's software version

```
piver -p        print the version
piver -q        print the version as "major minor patch"
piver -b        do both of the above
piver -p -d     print, with debug output
piver -c        ignore and refresh the cached version
piver -v        print this tool's version
```

At least one of `-p`, `-q` or `-b` is required; without one the command
exits with status 13. The version reported by the Pi is cached in a 16-byte
record and the cache is used on later runs unless `-c` is given. With `-q`
the numeric form is the first digit, the two digits after the dot, and the
character code of the fifth character (so `1.18A` gives `1 18 65`).

### pitools-crc32: checksum a file

```
pitools-crc32 /path/to/file.ext
```

Prints the standard (zlib-compatible) CRC32 of the file in lower-case hex.
`-h` or no arguments prints usage.

Exit statuses: timeouts waiting for the Pi give 31; file errors give the
operating system's error number.

## Library use

```python
from pitools.crc32 import crc32

crc32(b"123456789", 0)   # 0xCBF43926
```

- `pitools.crc32.crc32(data, previous)` computes or continues a CRC32.
- `pitools.crc32cli.file_crc32(path, chunk_size)` checksums a file in chunks.
- `pitools.help.format_help(lines)` and `pitools.help.logo(name)` build the
  usage text and the block-graphics banner.
- `pitools.uart.Uart` wraps the serial link (`Uart.open(device, baudrate)`
  or any object with `read`, `write`, `in_waiting` and `close`): `get_chr`,
  `send_chr`, `send_str`, `drain`, `dump`, `wait_str`, `wait_ok`, `send_cmd`
  and `sup_reset`. It is a context manager. `baud_for_speed_code(code)` maps
  a speed code to a baud rate. Failures raise `PiError`, which carries an
  `exit_code`; timeouts raise its subclass `UartTimeout`.
- `pitools.nbn` holds the protocol: `NbnHeader` (with `for_size` and
  `encode`), `checksum`, `get_header`, `send_header`, `receive_block`,
  `send_block` and the `BlockStatus` replies.
- `pitools.transfer.upload` and `pitools.transfer.download` perform whole
  transfers, reporting through `ProgressBar` and raising `TransferError`
  when a block keeps failing.
- `pitools.cli.parse_transfer_args` parses the `piget`/`piput` arguments.
- `pitools.piver` has `parse_options`, `parse_version`, `read_cache`,
  `write_cache` and `fetch_version`.

## What it does not do

The serial speed is not detected: it comes from `PITOOLS_SPEED`, and no
command here sets the Pi's speed. `piver -q` prints the numeric version
rather than storing it in memory for another program to pick up.