# src/gedcom_transport/loader/tokenizer.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Tuple

from gedcom_transport.core.exceptions import GedcomParseError


@dataclass(frozen=True)
class GedcomLine:
    """
    One decoded line split into its fields.

    Attributes:
        lineno: 1-based position in the stream, blank lines included.
        level: Depth in the record tree (0 for records).
        xref: ``@ID@`` label on the line, or None.
        tag: HEAD, INDI, NOTE, CONT, CONC, ...
        value: Everything after the tag's single separator space. Leading
            and trailing spaces are kept since CONC values depend on them.
        raw: The line as decoded, without its terminator.
    """
    lineno: int
    level: int
    xref: Optional[str]
    tag: str
    value: str
    raw: str


def _split_level(body: str, lineno: int, raw: str) -> Tuple[int, str]:
    head, sep, rest = body.partition(" ")
    # str.isdigit() also accepts superscripts and other scripts' digits
    if not (head.isascii() and head.isdigit()):
        raise GedcomParseError(f"level is not numeric: {head!r}", lineno=lineno, raw=raw)
    rest = rest.lstrip(" ")
    if not sep or not rest:
        raise GedcomParseError("missing tag after level", lineno=lineno, raw=raw)
    return int(head), rest


def _split_xref(rest: str, lineno: int, raw: str) -> Tuple[Optional[str], str]:
    if not rest.startswith("@"):
        return None, rest
    xref, _, rest = rest.partition(" ")
    rest = rest.lstrip(" ")
    if not rest:
        raise GedcomParseError(f"xref {xref} has no tag", lineno=lineno, raw=raw)
    return xref, rest


def tokenize_line(line: str, lineno: int = 0) -> GedcomLine:
    """
    Split ``<level> [<xref>] <tag> [<value>]`` into a GedcomLine.

        "0 @I1@ INDI"         -> level 0, xref "@I1@", tag "INDI"
        "2 CONC  and more"    -> level 2, tag "CONC", value " and more"

    Leading indentation and extra spaces between the level, xref and tag are
    tolerated.

    Raises:
        GedcomParseError: on a blank line, a non-numeric level or a missing tag.
    """
    raw = line.rstrip("\r\n")
    body = raw.lstrip(" \t")
    if not body.strip():
        raise GedcomParseError("blank line", lineno=lineno, raw=raw)

    level, rest = _split_level(body, lineno, raw)
    xref, rest = _split_xref(rest, lineno, raw)
    tag, _, value = rest.partition(" ")

    return GedcomLine(lineno=lineno, level=level, xref=xref, tag=tag, value=value, raw=raw)


def tokenize_lines(lines: Iterable[str]) -> Iterator[GedcomLine]:
    """
    Yield a GedcomLine for every non-blank text line.

    Line numbers count blank lines too, so they match the source.
    """
    for lineno, text in enumerate(lines, start=1):
        if not text.strip():
            continue
        yield tokenize_line(text, lineno=lineno)
