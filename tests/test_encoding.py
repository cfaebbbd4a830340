# tests/test_encoding.py

from __future__ import annotations

import pytest

from gedcom_transport.core.exceptions import GedcomIOError, UnsupportedEncodingError
from gedcom_transport.io.encoding import (
    Encoding,
    LineTerminator,
    confirm_or_reject,
    detect_provisional,
    encodings_for_charset,
    find_declared_charset,
    resolve_from_header,
)


def test_detects_utf16_big_endian_without_bom() -> None:
    assert detect_provisional(bytes([0x00, 0x30, 0x00, 0x20, 0x00, 0x48])) is Encoding.UTF16_BE


def test_detects_utf16_little_endian_without_bom() -> None:
    assert detect_provisional(bytes([0x30, 0x00, 0x20, 0x00, 0x48, 0x00])) is Encoding.UTF16_LE


@pytest.mark.parametrize(
    "prefix, expected",
    [
        (b"\xfe\xff\x00\x30", Encoding.UTF16_BE),
        (b"\xff\xfe\x30\x00", Encoding.UTF16_LE),
        (b"\xef\xbb\xbf0 HEAD", Encoding.UTF8),
        (b"0 HEAD", Encoding.ASCII),
    ],
)
def test_detects_byte_order_marks_and_default(prefix: bytes, expected: Encoding) -> None:
    assert detect_provisional(prefix) is expected



@pytest.mark.parametrize("prefix", [b"", b"0", b"0 H"])
def test_short_prefix_raises_io_error(prefix: bytes) -> None:
    with pytest.raises(GedcomIOError):
        detect_provisional(prefix)


def test_io_error_is_an_os_error() -> None:
    with pytest.raises(OSError):
        detect_provisional(b"")


def test_encoding_widths() -> None:
    assert Encoding.ASCII.bytes_per_char == 1
    assert Encoding.ANSEL.bytes_per_char == 1
    assert Encoding.UTF8.bytes_per_char is None
    assert Encoding.UTF16_BE.bytes_per_char == 2
    assert Encoding.UTF16_LE.bytes_per_char == 2


@pytest.mark.parametrize(
    "name, expected",
    [
        ("ANSEL", (Encoding.ANSEL,)),
        ("ansel", (Encoding.ANSEL,)),
        ("ASCII", (Encoding.ASCII,)),
        ("ANSI", (Encoding.ASCII,)),
        ("IBM  WINDOWS", (Encoding.ASCII,)),
        ("UTF-8", (Encoding.UTF8,)),
        ("UNICODE", (Encoding.UTF16_BE, Encoding.UTF16_LE)),
    ],
)
def test_charset_names(name: str, expected: tuple) -> None:
    assert encodings_for_charset(name) == expected


def test_unknown_charset_is_unsupported() -> None:
    with pytest.raises(UnsupportedEncodingError):
        encodings_for_charset("EBCDIC")


def test_confirm_refines_single_byte_guess() -> None:
    assert confirm_or_reject(Encoding.ASCII, "ANSEL") is Encoding.ANSEL
    assert confirm_or_reject(Encoding.ASCII, "ASCII") is Encoding.ASCII
    assert confirm_or_reject(Encoding.ASCII, "UTF-8") is Encoding.UTF8


def test_confirm_keeps_detected_utf16_byte_order() -> None:
    assert confirm_or_reject(Encoding.UTF16_LE, "UNICODE") is Encoding.UTF16_LE
    assert confirm_or_reject(Encoding.UTF16_BE, "UNICODE") is Encoding.UTF16_BE


def test_confirm_accepts_ascii_declaration_on_utf8_bom() -> None:
    assert confirm_or_reject(Encoding.UTF8, "ASCII") is Encoding.UTF8


@pytest.mark.parametrize(
    "provisional, declared",
    [
        (Encoding.UTF16_BE, "ANSEL"),
        (Encoding.UTF16_LE, "UTF-8"),
        (Encoding.ASCII, "UNICODE"),
        (Encoding.UTF8, "ANSEL"),
        (Encoding.ASCII, "KLINGON"),
    ],
)
def test_confirm_rejects_disagreement(provisional: Encoding, declared: str) -> None:
    with pytest.raises(UnsupportedEncodingError):
        confirm_or_reject(provisional, declared)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("CRLF", LineTerminator.CRLF),
        ("lf", LineTerminator.LF),
        ("\r", LineTerminator.CR),
        (LineTerminator.LF, LineTerminator.LF),
    ],
)
def test_line_terminator_parse(value, expected) -> None:
    assert LineTerminator.parse(value) is expected


def test_line_terminator_parse_rejects_unknown() -> None:
    with pytest.raises(ValueError):
        LineTerminator.parse("NEL")


@pytest.mark.parametrize(
    "header, expected",
    [
        ("0 HEAD\r\n1 SOUR X\r\n1 CHAR ANSEL\r\n0 TRLR", "ANSEL"),
        ("0 HEAD\n  1 char  utf-8 \n", "utf-8"),
        ("0 HEAD\r1 GEDC\r2 VERS 5.5\r1 CHAR IBM WINDOWS\r", "IBM WINDOWS"),
        ("0 HEAD\n1 CHAR\n", None),
        ("0 HEAD\n1 CHARSET X\n", None),
        ("0 HEAD\n2 CHAR ANSEL\n", None),
        ("0 HEAD\n0 @N1@ NOTE\n1 CHAR ANSEL\n", None),
        ("0 HEAD\n1 SOUR X", None),
    ],
)
def test_find_declared_charset(header: str, expected) -> None:
    assert find_declared_charset(header) == expected


def test_resolve_from_header_refines_single_byte_guess() -> None:
    assert resolve_from_header(Encoding.ASCII, "0 HEAD\n1 CHAR UTF-8\n") == (Encoding.UTF8, "UTF-8")
    assert resolve_from_header(Encoding.ASCII, "0 HEAD\n1 CHAR ANSI\n") == (Encoding.ASCII, "ANSI")


def test_resolve_from_header_defaults() -> None:
    assert resolve_from_header(Encoding.ASCII, "0 HEAD\n0 TRLR\n") == (Encoding.ANSEL, None)
    assert resolve_from_header(Encoding.UTF8, "0 HEAD\n0 TRLR\n") == (Encoding.UTF8, None)
    assert resolve_from_header(Encoding.UTF16_LE, "0 HEAD\n") == (Encoding.UTF16_LE, None)


def test_resolve_from_header_rejects_contradiction() -> None:
    with pytest.raises(UnsupportedEncodingError):
        resolve_from_header(Encoding.UTF16_BE, "0 HEAD\n1 CHAR ANSEL\n")
