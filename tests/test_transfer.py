import io

import pytest

from pitools.nbn import MAX_BLOCK_SIZE, BlockStatus, NbnHeader, checksum
from pitools.transfer import (
    BAR_WIDTH,
    RECEIVE_COMMAND,
    TRANSMIT_COMMAND,
    ProgressBar,
    TransferError,
    download,
    upload,
)
from pitools.uart import UartTimeout


class FakeUart:
    def __init__(self, incoming=b""):
        self.incoming = bytearray(incoming)
        self.sent = bytearray()
        self.commands = []
        self.resets = []

    def get_chr(self):
        if not self.incoming:
            raise UartTimeout()
        return self.incoming.pop(0)

    def read_bytes(self, count):
        return bytes(self.get_chr() for _ in range(count))

    def write(self, data):
        self.sent += bytes(data)

    def send_chr(self, value):
        self.sent.append(ord(value) if isinstance(value, str) else int(value))

    def send_str(self, text):
        self.sent += text.encode("latin-1")

    def send_cmd(self, cmd):
        self.commands.append(cmd)

    def wait_ok(self, local_echo=False):
        return True

    def sup_reset(self, verbose=False):
        self.resets.append(verbose)


def _payload(size):
    return bytes((i * 7 + 3) & 0xFF for i in range(size))


def _framed(data):
    return data + bytes([checksum(data)])


def test_progress_single_block_fills_whole_bar():
    bar = ProgressBar(1)
    assert bar.advance() == "#" * BAR_WIDTH


def test_progress_fast_mode_equal_shares_within_width():
    bar = ProgressBar(6)
    drawn = [bar.advance() for _ in range(6)]
    assert len({len(cells) for cells in drawn}) == 1
    assert sum(len(cells) for cells in drawn) <= BAR_WIDTH


def test_progress_retry_marks_next_cells_then_resets():
    bar = ProgressBar(2)
    assert bar.retry(2) == "2"
    marked = bar.advance()
    assert set(marked) == {"2"}
    assert set(bar.advance()) == {"#"}


def test_progress_finish_completes_bar_and_writes_output():
    out = io.StringIO()
    bar = ProgressBar(3, out)
    for _ in range(3):
        bar.advance()
    bar.finish()
    assert out.getvalue() == "#" * BAR_WIDTH + "\n"


def test_progress_slow_mode_draws_first_cell():
    bar = ProgressBar(21)
    assert not bar.fast
    assert bar.advance() == "#"


def test_upload_sends_header_and_blocks(tmp_path):
    data = _payload(MAX_BLOCK_SIZE + 10)
    path = tmp_path / "file.bin"
    path.write_bytes(data)
    uart = FakeUart(b"!!")
    header = upload(uart, path, verbose=False)
    assert header == NbnHeader.for_size(len(data))
    assert uart.commands == [RECEIVE_COMMAND]
    assert uart.resets == [False]
    expected = (
        NbnHeader.for_size(len(data)).encode("file.bin")
        + _framed(data[:MAX_BLOCK_SIZE])
        + _framed(data[MAX_BLOCK_SIZE:])
    )
    assert bytes(uart.sent) == expected


def test_upload_retries_failed_block(tmp_path):
    data = _payload(MAX_BLOCK_SIZE)
    path = tmp_path / "a.bin"
    path.write_bytes(data)
    uart = FakeUart(b"?!!")
    upload(uart, path, verbose=False)
    block = _framed(data)
    assert bytes(uart.sent).count(block) == 2


def test_upload_gives_up_after_retries(tmp_path):
    data = _payload(100)
    path = tmp_path / "b.bin"
    path.write_bytes(data)
    uart = FakeUart(b"???")
    with pytest.raises(TransferError):
        upload(uart, path, verbose=False)
    assert bytes(uart.sent).count(_framed(data)) == 3


def test_upload_verbose_names_file(tmp_path):
    path = tmp_path / "shown.bin"
    path.write_bytes(_payload(5))
    out = io.StringIO()
    upload(FakeUart(b"!"), path, verbose=True, out=out)
    assert "shown.bin" in out.getvalue()


def test_upload_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        upload(FakeUart(), tmp_path / "missing.bin", verbose=False)


def test_download_writes_file(tmp_path):
    data = _payload(MAX_BLOCK_SIZE + 7)
    incoming = (
        NbnHeader.for_size(len(data)).encode("")[:10]
        + _framed(data[:MAX_BLOCK_SIZE])
        + _framed(data[MAX_BLOCK_SIZE:])
    )
    uart = FakeUart(incoming)
    target = download(uart, "/home/pi/dir/got.bin", tmp_path, verbose=False)
    assert target == tmp_path / "got.bin"
    assert target.read_bytes() == data
    assert uart.commands == [TRANSMIT_COMMAND]
    assert bytes(uart.sent) == b"\0/home/pi/dir/got.bin\0!!"


def test_download_retries_bad_block(tmp_path):
    data = _payload(MAX_BLOCK_SIZE)
    bad = data + bytes([(checksum(data) + 1) & 0xFF])
    incoming = NbnHeader.for_size(len(data)).encode("")[:10] + bad + _framed(data) + _framed(b"")
    uart = FakeUart(incoming)
    target = download(uart, "x.bin", tmp_path, verbose=False)
    assert target.read_bytes() == data
    assert bytes(uart.sent).endswith(bytes([BlockStatus.SUCCESS, BlockStatus.FAIL, BlockStatus.SUCCESS]))


def test_download_empty_remote_raises(tmp_path):
    uart = FakeUart(b"\0\0\0\0")
    with pytest.raises(TransferError) as info:
        download(uart, "none.bin", tmp_path, verbose=False)
    assert info.value.exit_code == 5
    assert not (tmp_path / "none.bin").exists()


def test_download_gives_up_on_final_block(tmp_path):
    data = _payload(4)
    bad = data + bytes([(checksum(data) + 1) & 0xFF])
    incoming = NbnHeader.for_size(len(data)).encode("")[:10] + bad * 3
    with pytest.raises(TransferError):
        download(FakeUart(incoming), "y.bin", tmp_path, verbose=False)