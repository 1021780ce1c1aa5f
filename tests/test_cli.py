import errno

import pytest

from pitools.cli import (
    DEVICE_ENV,
    SPEED_ENV,
    parse_transfer_args,
    piget_main,
    piput_main,
)


@pytest.mark.parametrize("argv", [[], ["-h"], ["-q"], ["-h", "file.txt"]])
def test_parse_transfer_args_asks_for_help(argv):
    assert parse_transfer_args(argv) is None


def test_parse_transfer_args_verbose_by_default():
    assert parse_transfer_args(["/path/to/file.ext"]) == (True, "/path/to/file.ext")


def test_parse_transfer_args_quiet():
    assert parse_transfer_args(["-q", "/path/to/file.ext"]) == (False, "/path/to/file.ext")


def test_piget_help(capsys):
    assert piget_main(["-h"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("PIGET version 1.18A\n")
    assert "Usage examples" in out
    assert ".PIGET -q /path/to/file.ext" in out


def test_piput_help_without_args(capsys):
    assert piput_main([]) == 0
    out = capsys.readouterr().out
    assert out.startswith("PIPUT version 1.18A\n")
    assert ".PIPUT /path/to/file.ext" in out


def test_piget_unknown_speed(monkeypatch, capsys):
    monkeypatch.setenv(SPEED_ENV, "5")
    assert piget_main(["remote.bin"]) == 20
    assert "Use .pisend -q to set speed" in capsys.readouterr().out


def test_piget_unknown_speed_quiet(monkeypatch, capsys):
    monkeypatch.setenv(SPEED_ENV, "5")
    assert piget_main(["-q", "remote.bin"]) == 20
    assert capsys.readouterr().out == ""


def test_piput_missing_file(tmp_path, monkeypatch):
    monkeypatch.setenv(SPEED_ENV, "2")
    assert piput_main(["-q", str(tmp_path / "missing.bin")]) == errno.ENOENT


def test_piput_unknown_speed(tmp_path, monkeypatch):
    source = tmp_path / "data.bin"
    source.write_bytes(b"abc")
    monkeypatch.setenv(SPEED_ENV, "nope")
    assert piput_main(["-q", str(source)]) == 20


def test_piget_times_out_without_supervisor(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv(DEVICE_ENV, "loop://")
    monkeypatch.setenv(SPEED_ENV, "2")
    assert piget_main(["-q", "/remote/file.bin"]) == 31
    assert list(tmp_path.iterdir()) == []


def test_piput_times_out_without_supervisor(tmp_path, monkeypatch):
    source = tmp_path / "data.bin"
    source.write_bytes(b"payload")
    monkeypatch.setenv(DEVICE_ENV, "loop://")
    monkeypatch.setenv(SPEED_ENV, "8")
    assert piput_main(["-q", str(source)]) == 31