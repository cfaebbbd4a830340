# tests/test_tokenizer.py

from __future__ import annotations

import pytest

from gedcom_transport.core.exceptions import GedcomParseError
from gedcom_transport.loader import tokenize_line, tokenize_lines


def test_tokenize_line_simple_head() -> None:
    token = tokenize_line("0 HEAD", lineno=1)
    assert token.lineno == 1
    assert token.level == 0
    assert token.xref is None
    assert token.tag == "HEAD"
    assert token.value == ""


def test_tokenize_line_with_xref_and_tag_only() -> None:
    token = tokenize_line("0 @I1@ INDI", lineno=1)
    assert token.level == 0
    assert token.xref == "@I1@"
    assert token.tag == "INDI"
    assert token.value == ""


def test_tokenize_line_with_value() -> None:
    line = "1 NOTE This is a test note"
    token = tokenize_line(line, lineno=10)
    assert token.level == 1
    assert token.xref is None
    assert token.tag == "NOTE"
    assert token.value == "This is a test note"
    assert token.raw == line


def test_tokenize_line_keeps_value_spacing() -> None:
    token = tokenize_line("2 CONC  continued ", lineno=3)
    assert token.tag == "CONC"
    assert token.value == " continued "


def test_tokenize_line_tolerates_leading_whitespace() -> None:
    token = tokenize_line("   2 DATE 1 JAN 1900", lineno=4)
    assert token.level == 2
    assert token.value == "1 JAN 1900"


def test_tokenize_line_invalid_level_raises() -> None:
    with pytest.raises(GedcomParseError):
        tokenize_line("X HEAD", lineno=1)


@pytest.mark.parametrize("level", ["\u00b2", "\u0663", "1\u00b9"])
def test_tokenize_line_non_ascii_digit_level_raises(level: str) -> None:
    with pytest.raises(GedcomParseError) as excinfo:
        tokenize_line(f"{level} HEAD", lineno=4)
    assert excinfo.value.lineno == 4


def test_tokenize_line_missing_tag_raises() -> None:
    with pytest.raises(GedcomParseError):
        tokenize_line("0 ", lineno=1)


def test_tokenize_line_xref_without_tag_raises() -> None:
    with pytest.raises(GedcomParseError) as excinfo:
        tokenize_line("0 @I1@", lineno=7)
    assert excinfo.value.lineno == 7
    assert excinfo.value.raw == "0 @I1@"
    assert str(excinfo.value).startswith("Line 7:")


def test_tokenize_lines_skips_blank_lines_but_counts_them() -> None:
    tokens = list(tokenize_lines(["0 HEAD", "", "1 CHAR ASCII", "   ", "0 TRLR"]))
    assert [t.tag for t in tokens] == ["HEAD", "CHAR", "TRLR"]
    assert [t.lineno for t in tokens] == [1, 3, 5]
