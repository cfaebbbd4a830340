"""
Encodings, line terminators and encoding detection.

Detection is two-stage. ``detect_provisional`` classifies the first bytes of
a stream before any line is decoded. ``resolve_from_header`` then looks for
the header's ``CHAR`` line in the buffered bytes and lets
``confirm_or_reject`` reconcile that declaration with the guess: single-byte
guesses may be refined (ASCII -> ANSEL, ASCII -> UTF-8), but a declaration
that disagrees with the detected code-unit width is rejected. A single-byte
stream that declares nothing is ANSEL, the GEDCOM default.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Dict, Optional, Tuple

from gedcom_transport.core.exceptions import GedcomIOError, UnsupportedEncodingError
from gedcom_transport.logging import get_logger

log = get_logger(__name__)

#: Number of bytes captured for detection.
RAW_CHUNK_SIZE = 4

#: Bytes buffered ahead of the first line while looking for HEAD.CHAR.
HEADER_SCAN_LIMIT = 64 * 1024

BOM_UTF8 = b"\xef\xbb\xbf"
BOM_UTF16_BE = b"\xfe\xff"
BOM_UTF16_LE = b"\xff\xfe"


class Encoding(Enum):
    """
    The closed set of supported encodings.

    Each member carries ``(name, bytes_per_char, charset_name, codec)`` where
    ``bytes_per_char`` is None for variable width, ``charset_name`` is the
    value written to ``HEAD.CHAR`` and ``codec`` is the Python codec name
    (None for ANSEL, which uses :mod:`gedcom_transport.io.ansel`).
    """

    ASCII = ("ASCII", 1, "ASCII", "latin-1")
    ANSEL = ("ANSEL", 1, "ANSEL", None)
    UTF8 = ("UTF8", None, "UTF-8", "utf-8")
    UTF16_BE = ("UTF16_BE", 2, "UNICODE", "utf-16-be")
    UTF16_LE = ("UTF16_LE", 2, "UNICODE", "utf-16-le")

    def __init__(
        self,
        label: str,
        bytes_per_char: Optional[int],
        charset_name: str,
        codec: Optional[str],
    ) -> None:
        self.label = label
        self.bytes_per_char = bytes_per_char
        self.charset_name = charset_name
        self.codec = codec

    @property
    def code_unit_size(self) -> int:
        """Width in bytes of one code unit (1 for all byte-oriented encodings)."""
        return self.bytes_per_char or 1

    @property
    def bom(self) -> bytes:
        if self is Encoding.UTF8:
            return BOM_UTF8
        if self is Encoding.UTF16_BE:
            return BOM_UTF16_BE
        if self is Encoding.UTF16_LE:
            return BOM_UTF16_LE
        return b""

    @property
    def is_utf16(self) -> bool:
        return self in (Encoding.UTF16_BE, Encoding.UTF16_LE)


class LineTerminator(Enum):
    CR = "\r"
    LF = "\n"
    CRLF = "\r\n"

    @classmethod
    def parse(cls, value: "str | LineTerminator") -> "LineTerminator":
        """Accept a member, its name ("CRLF") or its literal text ("\\r\\n")."""
        if isinstance(value, cls):
            return value
        text = str(value)
        for member in cls:
            if text.upper() == member.name or text == member.value:
                return member
        raise ValueError(f"Unknown line terminator: {value!r}")


# Declared HEAD.CHAR value -> encoding family. UTF-16 byte order comes from
# detection, so "UNICODE" maps to a placeholder resolved in confirm_or_reject.
_CHARSET_NAMES: Dict[str, Tuple[Encoding, ...]] = {
    "ANSEL": (Encoding.ANSEL,),
    "ASCII": (Encoding.ASCII,),
    "ANSI": (Encoding.ASCII,),
    "IBMPC": (Encoding.ASCII,),
    "IBM WINDOWS": (Encoding.ASCII,),
    "LATIN1": (Encoding.ASCII,),
    "UTF-8": (Encoding.UTF8,),
    "UTF8": (Encoding.UTF8,),
    "UNICODE": (Encoding.UTF16_BE, Encoding.UTF16_LE),
    "UTF-16": (Encoding.UTF16_BE, Encoding.UTF16_LE),
    "UTF16": (Encoding.UTF16_BE, Encoding.UTF16_LE),
}


def encodings_for_charset(charset: str) -> Tuple[Encoding, ...]:
    """
    Map a declared ``CHAR`` value to the encodings it may denote.

    Raises:
        UnsupportedEncodingError: if the name is not recognised.
    """
    key = " ".join((charset or "").split()).upper()
    try:
        return _CHARSET_NAMES[key]
    except KeyError:
        raise UnsupportedEncodingError(
            f"Unsupported character set declared: {charset!r}"
        ) from None


def detect_provisional(chunk: bytes) -> Encoding:
    """
    Classify a stream from its first bytes.

    Precedence (first match wins): UTF-16 BOM, UTF-8 BOM, ``00 xx 00 xx``
    (UTF-16 BE), ``xx 00 xx 00`` (UTF-16 LE), else single-byte ASCII. The
    single-byte result is provisional until the header has been read.

    Raises:
        GedcomIOError: if fewer than four bytes are available.
    """
    if chunk is None or len(chunk) < RAW_CHUNK_SIZE:
        size = 0 if chunk is None else len(chunk)
        log.error(f"Cannot detect encoding from {size} byte(s)")
        raise GedcomIOError(
            f"Need at least {RAW_CHUNK_SIZE} bytes to detect the encoding, got {size}"
        )

    if chunk.startswith(BOM_UTF16_BE):
        return Encoding.UTF16_BE
    if chunk.startswith(BOM_UTF16_LE):
        return Encoding.UTF16_LE
    if chunk.startswith(BOM_UTF8):
        return Encoding.UTF8
    if chunk[0] == 0 and chunk[2] == 0:
        return Encoding.UTF16_BE
    if chunk[1] == 0 and chunk[3] == 0:
        return Encoding.UTF16_LE
    return Encoding.ASCII


def confirm_or_reject(provisional: Encoding, declared_charset: str) -> Encoding:
    """
    Reconcile the detected encoding with the header's declared character set.

    Returns the encoding the rest of the stream must be decoded with.

    Raises:
        UnsupportedEncodingError: if the declaration is unknown or its code
            unit width disagrees with what detection found.
    """
    candidates = encodings_for_charset(declared_charset)

    if provisional is Encoding.ASCII or provisional is Encoding.ANSEL:
        # Single-byte guess: any byte-oriented declaration refines it.
        declared = candidates[0]
        if declared.code_unit_size == 1:
            if declared is not provisional:
                log.debug(f"Declared charset {declared_charset!r} refines {provisional.label} to {declared.label}")
            return declared

    elif provisional is Encoding.UTF8:
        # A UTF-8 BOM was seen; ASCII is a subset so an ASCII declaration is fine.
        if candidates[0] in (Encoding.UTF8, Encoding.ASCII):
            return Encoding.UTF8

    elif provisional in candidates:
        return provisional

    log.error(f"Declared charset {declared_charset!r} contradicts detected {provisional.label}")
    raise UnsupportedEncodingError(
        f"Declared character set {declared_charset!r} disagrees with the "
        f"detected {provisional.label} byte layout"
    )


_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_LEVEL_ZERO = re.compile(r"^[ \t]*0[ \t]")
_CHAR_LINE = re.compile(r"^[ \t]*1[ \t]+CHAR(?:[ \t]+(.*))?$", re.IGNORECASE)


def find_declared_charset(header_text: str) -> Optional[str]:
    """
    Return the value of the first record's level-1 ``CHAR`` line.

    Scanning stops at the next level-0 line; None means the header declares
    no character set (or the text ended before one was seen).
    """
    for index, line in enumerate(_LINE_BREAK.split(header_text)):
        if index and _LEVEL_ZERO.match(line):
            break
        match = _CHAR_LINE.match(line)
        if match:
            value = (match.group(1) or "").strip()
            return value or None
    return None


def resolve_from_header(provisional: Encoding, header_text: str) -> Tuple[Encoding, Optional[str]]:
    """
    Settle the encoding from the header before any line is handed out.

    ``header_text`` is the start of the stream decoded with the provisional
    codec. Returns the encoding to decode with and the declared ``CHAR``
    value, if any.

    Raises:
        UnsupportedEncodingError: see :func:`confirm_or_reject`.
    """
    declared = find_declared_charset(header_text)
    if declared is not None:
        return confirm_or_reject(provisional, declared), declared
    if provisional is Encoding.ASCII:
        log.debug("No HEAD.CHAR found; defaulting to ANSEL")
        return Encoding.ANSEL, None
    return provisional, None
