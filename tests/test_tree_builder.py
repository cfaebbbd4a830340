# tests/test_tree_builder.py

from __future__ import annotations

import io
from typing import List

import pytest

from gedcom_transport.core.cancellation import CancellationToken
from gedcom_transport.core.events import FileProgressEvent
from gedcom_transport.core.exceptions import (
    GedcomIOError,
    GedcomParseError,
    ReaderCancelledError,
    UnsupportedEncodingError,
)
from gedcom_transport.core.options import ReaderOptions
from gedcom_transport.io.encoding import Encoding, LineTerminator
from gedcom_transport.loader import GedcomTree, TreeParser, build_tree, tokenize_lines
from gedcom_transport.reader import GedcomReader, load_gedcom
from gedcom_transport.utils import mock_file_path


def tree_from(*lines: str) -> GedcomTree:
    return build_tree(tokenize_lines(lines))


def test_children_attach_to_nearest_open_parent() -> None:
    tree = tree_from(
        "0 @I1@ INDI",
        "1 BIRT",
        "2 DATE 1 JAN 1900",
        "1 DEAT",
        "2 PLAC Springfield",
        "3 MAP",
    )

    (indi,) = tree.records
    assert [c.tag for c in indi.children] == ["BIRT", "DEAT"]
    birt, deat = indi.children
    assert [c.tag for c in birt.children] == ["DATE"]
    assert [c.tag for c in deat.children] == ["PLAC"]
    assert deat.children[0].children[0].tag == "MAP"
    assert deat.children[0].children[0].level == 3


def test_new_level_zero_line_closes_previous_record() -> None:
    tree = tree_from("0 HEAD", "1 CHAR ASCII", "0 @I1@ INDI", "1 NAME A /B/", "0 TRLR")
    assert [r.tag for r in tree.records] == ["HEAD", "INDI", "TRLR"]
    assert tree.records[1].find_first("NAME").value == "A /B/"
    assert tree.records[2].children == []


def test_level_jump_raises_parse_error() -> None:
    with pytest.raises(GedcomParseError) as excinfo:
        tree_from("0 HEAD", "2 VERS 5.5")
    assert excinfo.value.lineno == 2


def test_orphaned_first_line_raises_parse_error() -> None:
    with pytest.raises(GedcomParseError) as excinfo:
        tree_from("1 NAME Nobody")
    assert excinfo.value.lineno == 1
    assert excinfo.value.raw == "1 NAME Nobody"


def test_cont_and_conc_merge_into_parent_value() -> None:
    tree = tree_from(
        "0 @N1@ NOTE First line",
        "1 CONC  continued",
        "1 CONT Second line",
        "1 CONT",
        "1 CONC tail",
    )
    (note,) = tree.records
    assert note.value == "First line continued\nSecond line\ntail"
    assert note.children == []


def test_continuation_lines_attach_to_their_own_parent() -> None:
    tree = tree_from(
        "0 @I1@ INDI",
        "1 NOTE abc",
        "2 CONC def",
        "1 NAME X /Y/",
    )
    (indi,) = tree.records
    assert indi.find_first("NOTE").value == "abcdef"
    assert indi.find_first("NAME").value == "X /Y/"


def test_continuation_at_level_zero_raises() -> None:
    with pytest.raises(GedcomParseError):
        tree_from("0 HEAD", "0 CONT stray")


def test_cancelled_parser_raises_before_next_line() -> None:
    token = CancellationToken()
    parser = TreeParser(token)
    lines = list(tokenize_lines(["0 HEAD", "1 CHAR ASCII", "0 TRLR"]))

    parser.feed(lines[0])
    token.cancel()
    with pytest.raises(ReaderCancelledError):
        parser.feed(lines[1])
    assert parser.lines_consumed == 1
    assert [r.tag for r in parser.tree.records] == ["HEAD"]


def test_tree_lookups() -> None:
    tree = tree_from("0 HEAD", "0 @I1@ INDI", "1 FAMS @F1@", "0 @F1@ FAM", "0 TRLR")
    assert tree.find_by_xref("@F1@") is tree.records[2]
    assert tree.find_by_xref("@X9@") is None
    assert [r.tag for r in tree.find_records_by_tag("indi")] == ["INDI"]
    assert tree.all_tags() == ["FAM", "HEAD", "INDI", "TRLR"]
    assert len(list(tree.iter_nodes())) == 5


# ---------------------------------------------------------------------------
# GedcomReader
# ---------------------------------------------------------------------------


def test_reader_loads_mock_file() -> None:
    reader = GedcomReader(ReaderOptions())
    tree = reader.load(mock_file_path("sample.ged"))

    assert reader.encoding is Encoding.ASCII
    assert reader.declared_charset == "ASCII"
    assert reader.line_terminator is LineTerminator.CRLF
    assert not reader.has_bom

    assert [r.tag for r in tree.records] == ["HEAD", "INDI", "INDI", "FAM", "TRLR"]
    john = tree.find_by_xref("@I1@")
    assert john.find_first("NAME").value == "John /Doe/"
    assert john.find_first("NOTE").value == (
        "This note is long enough that it was split over a continuation line when"
        " it was written, and it also has\na second line."
    )


def test_reader_switches_to_declared_ansel() -> None:
    reader = GedcomReader(ReaderOptions())
    tree = reader.load(mock_file_path("sample-ansel.ged"))

    assert reader.encoding is Encoding.ANSEL
    indi = tree.find_by_xref("@I1@")
    assert indi.find_first("NAME").value == "Ren\u00e9 /D\u0141ugosz/"
    assert indi.find_first("BIRT").find_first("PLAC").value == "Besan\u00e7on"


def test_reader_accepts_unicode_declaration_on_utf16() -> None:
    data = "\ufeff0 HEAD\r\n1 CHAR UNICODE\r\n0 @I1@ INDI\r\n1 NAME \u0141ukasz\r\n0 TRLR\r\n"
    reader = GedcomReader(ReaderOptions())
    tree = reader.read(io.BytesIO(data.encode("utf-16-le")))

    assert reader.encoding is Encoding.UTF16_LE
    assert reader.has_bom
    assert tree.find_by_xref("@I1@").find_first("NAME").value == "\u0141ukasz"


def test_reader_rejects_width_mismatch() -> None:
    data = b"0 HEAD\r\n1 CHAR UNICODE\r\n0 TRLR\r\n"
    with pytest.raises(UnsupportedEncodingError):
        GedcomReader(ReaderOptions()).read(io.BytesIO(data))


def test_reader_rejects_unknown_charset() -> None:
    data = b"0 HEAD\r\n1 CHAR EBCDIC\r\n0 TRLR\r\n"
    with pytest.raises(UnsupportedEncodingError):
        GedcomReader(ReaderOptions()).read(io.BytesIO(data))


def test_reader_missing_file_raises_io_error(tmp_path) -> None:
    with pytest.raises(GedcomIOError):
        load_gedcom(tmp_path / "missing.ged", ReaderOptions())


def test_reader_cancel_from_observer() -> None:
    reader = GedcomReader(ReaderOptions(read_notification_rate=1))
    events: List[FileProgressEvent] = []

    def on_progress(event: FileProgressEvent) -> None:
        events.append(event)
        if event.lines_processed == 3:
            reader.cancel()

    reader.register_file_observer(on_progress)
    with pytest.raises(ReaderCancelledError):
        reader.load(mock_file_path("sample.ged"))

    assert [e.lines_processed for e in events] == [1, 2, 3]
    assert not any(e.complete for e in events)


def test_reader_is_reusable_after_cancelled_read() -> None:
    reader = GedcomReader(ReaderOptions(read_notification_rate=1))

    def cancel_at_line_two(event: FileProgressEvent) -> None:
        if event.lines_processed == 2:
            reader.cancel()

    reader.register_file_observer(cancel_at_line_two)
    with pytest.raises(ReaderCancelledError):
        reader.load(mock_file_path("sample.ged"))
    reader.unregister_file_observer(cancel_at_line_two)

    tree = reader.load(mock_file_path("sample.ged"))
    assert [r.tag for r in tree.records][-1] == "TRLR"
    assert not reader.cancellation.cancelled


def test_reader_decodes_ansel_header_before_char() -> None:
    data = (
        b"0 HEAD\r\n"
        b"1 SOUR Ahnen\r\n"
        b"2 CORP Soci\xe2et\xe2e G\xe8unther\r\n"
        b"1 CHAR ANSEL\r\n"
        b"0 TRLR\r\n"
    )
    reader = GedcomReader(ReaderOptions())
    tree = reader.read(io.BytesIO(data))

    corp = tree.find_records_by_tag("HEAD")[0].find_first("SOUR").find_first("CORP")
    assert corp.value == "Soci\u00e9t\u00e9 G\u00fcnther"
    assert reader.encoding is Encoding.ANSEL
    assert reader.declared_charset == "ANSEL"


def test_reader_without_char_defaults_to_ansel() -> None:
    reader = GedcomReader(ReaderOptions())
    tree = reader.read(io.BytesIO(b"0 HEAD\r\n0 @I1@ INDI\r\n1 NAME Ren\xe2e\r\n0 TRLR\r\n"))
    assert reader.encoding is Encoding.ANSEL
    assert reader.declared_charset is None
    assert tree.records[1].find_first("NAME").value == "Ren\u00e9"


def test_reader_reports_completion() -> None:
    reader = GedcomReader(ReaderOptions(read_notification_rate=10))
    events: List[FileProgressEvent] = []
    reader.register_file_observer(events.append)
    reader.load(mock_file_path("sample.ged"))

    assert [e.lines_processed for e in events] == [10, 20, 23]
    assert events[-1].complete
    assert events[-1].bytes_processed == mock_file_path("sample.ged").stat().st_size
