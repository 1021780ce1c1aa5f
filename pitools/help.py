"""Help text and banner shared by the command-line tools."""

from __future__ import annotations

from collections.abc import Iterable

__all__ = ["VERSION", "format_help", "logo"]

VERSION = "1.18A"

_TOP = "\x8c" * 7 + " " + "\x8b\x83\x88\x81\x87\x83\x80\x80\x80\x80\x80\x80\x85\x80\x80\x80" + " " + "\x8c" * 7
_ROW1 = "\x8a\x80\x8a\x88\x85\x80\x80\x8c\x88\x80\x8c\x88\x85\x80\x8c\x88"
_ROW2 = "\x8b\x83\x80\x88\x85\x80\x85\x80\x85\x85\x80\x85\x85\x85\x8c\x81"
_ROW3 = "\x8a\x80\x80\x8a\x85\x80\x85\x80\x85\x85\x80\x85\x85\x84\x81\x87"
_BOTTOM = "\x83" * 7 + " " + "\x82\x80\x80\x82\x81\x80\x80\x83\x82\x80\x83\x82\x81\x80\x83\x82" + " " + "\x83" * 7
_LABEL_WIDTH = 8


def format_help(lines: Iterable[str]) -> str:
    """Return the help lines, each followed by a newline."""
    return "".join(f"{line}\n" for line in lines)


def logo(name: str) -> str:
    """Return the block-graphics banner showing the tool ``name`` and version."""
    blank = " " * _LABEL_WIDTH
    return (
        _TOP
        + blank + _ROW1 + f"{name:>{_LABEL_WIDTH}}"
        + blank + _ROW2 + " version\n"
        + "pitools ".ljust(_LABEL_WIDTH) + _ROW3 + f"{VERSION:>{_LABEL_WIDTH}}"
        + _BOTTOM
    )