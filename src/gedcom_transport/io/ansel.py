"""
ANSEL (ANSI Z39.47) codec with the GEDCOM extensions.

ANSEL stores combining diacritics *before* the letter they modify, while
Unicode puts combining marks after their base. Decoding therefore holds at
most one pending mark and attaches it to the next base character; encoding
decomposes characters without a direct table entry and writes the mark
bytes ahead of the base byte.

Examples:
    b"\\xe2e"     -> "\\u00e9"   (acute + e -> e acute)
    b"\\xa1"      -> "\\u0141"   (L with stroke, a spacing character)
    "\\u00f1"     -> b"\\xe4n"   (n tilde -> tilde + n)
"""

from __future__ import annotations

import unicodedata
from typing import Dict, List, Optional

from gedcom_transport.logging import get_logger

log = get_logger(__name__)

# Spacing (non-combining) characters, 0x80-0xDF.
_SPACING: Dict[int, str] = {
    0x88: "\u0098",  # non-sorting begin
    0x89: "\u009c",  # non-sorting end
    0x8D: "\u200d",  # zero width joiner
    0x8E: "\u200c",  # zero width non-joiner
    0xA1: "\u0141",  # L with stroke
    0xA2: "\u00d8",  # O with stroke
    0xA3: "\u0110",  # D with stroke
    0xA4: "\u00de",  # thorn
    0xA5: "\u00c6",  # AE
    0xA6: "\u0152",  # OE
    0xA7: "\u02b9",  # soft sign (prime)
    0xA8: "\u00b7",  # middle dot
    0xA9: "\u266d",  # music flat
    0xAA: "\u00ae",  # registered
    0xAB: "\u00b1",  # plus-minus
    0xAC: "\u01a0",  # O with horn
    0xAD: "\u01af",  # U with horn
    0xAE: "\u02bc",  # alif (modifier apostrophe)
    0xB0: "\u02bb",  # ayn (turned comma)
    0xB1: "\u0142",  # l with stroke
    0xB2: "\u00f8",  # o with stroke
    0xB3: "\u0111",  # d with stroke
    0xB4: "\u00fe",  # thorn
    0xB5: "\u00e6",  # ae
    0xB6: "\u0153",  # oe
    0xB7: "\u02ba",  # hard sign (double prime)
    0xB8: "\u0131",  # dotless i
    0xB9: "\u00a3",  # pound sign
    0xBA: "\u00f0",  # eth
    0xBC: "\u01a1",  # o with horn
    0xBD: "\u01b0",  # u with horn
    0xBE: "\u25a1",  # empty box
    0xBF: "\u25a0",  # black box
    0xC0: "\u00b0",  # degree
    0xC1: "\u2113",  # script l
    0xC2: "\u2117",  # sound recording copyright
    0xC3: "\u00a9",  # copyright
    0xC4: "\u266f",  # music sharp
    0xC5: "\u00bf",  # inverted question mark
    0xC6: "\u00a1",  # inverted exclamation mark
    0xC7: "\u00df",  # eszett (MARC-8 position)
    0xC8: "\u20ac",  # euro
    0xCF: "\u00df",  # eszett (GEDCOM position)
}

# Combining diacritics, 0xE0-0xFE. These precede their base in ANSEL.
_COMBINING: Dict[int, str] = {
    0xE0: "\u0309",  # hook above
    0xE1: "\u0300",  # grave
    0xE2: "\u0301",  # acute
    0xE3: "\u0302",  # circumflex
    0xE4: "\u0303",  # tilde
    0xE5: "\u0304",  # macron
    0xE6: "\u0306",  # breve
    0xE7: "\u0307",  # dot above
    0xE8: "\u0308",  # umlaut / diaeresis
    0xE9: "\u030c",  # caron
    0xEA: "\u030a",  # ring above
    0xEB: "\ufe20",  # ligature, left half
    0xEC: "\ufe21",  # ligature, right half
    0xED: "\u0315",  # comma above right
    0xEE: "\u030b",  # double acute
    0xEF: "\u0310",  # candrabindu
    0xF0: "\u0327",  # cedilla
    0xF1: "\u0328",  # ogonek (right hook)
    0xF2: "\u0323",  # dot below
    0xF3: "\u0324",  # double dot below
    0xF4: "\u0325",  # ring below
    0xF5: "\u0333",  # double underscore
    0xF6: "\u0332",  # underscore
    0xF7: "\u0326",  # comma below (left hook)
    0xF8: "\u031c",  # right cedilla (left half ring below)
    0xF9: "\u032e",  # upadhmaniya (breve below)
    0xFA: "\ufe22",  # double tilde, left half
    0xFB: "\ufe23",  # double tilde, right half
    0xFE: "\u0313",  # high comma, centered
}

_SPACING_REVERSE: Dict[str, int] = {}
for _byte, _char in _SPACING.items():
    # Both 0xC7 and 0xCF decode to eszett; GEDCOM writers use 0xCF.
    if _char not in _SPACING_REVERSE or _byte == 0xCF:
        _SPACING_REVERSE[_char] = _byte

_COMBINING_REVERSE: Dict[str, int] = {c: b for b, c in _COMBINING.items()}

# 0x88 and 0x89 decode to U+0098 and U+009C, so the undefined bytes 0x98 and
# 0x9C take the two code points they leave free.
_C1_SWAPPED: Dict[int, str] = {0x98: "\u0088", 0x9C: "\u0089"}
_C1_SWAPPED_REVERSE: Dict[str, int] = {c: b for b, c in _C1_SWAPPED.items()}

PLACEHOLDER = " "
REPLACEMENT = "\ufffd"
UNENCODABLE = b"?"


def is_combining_byte(b: int) -> bool:
    return b in _COMBINING


def decode_byte(b: int) -> Optional[str]:
    """
    Map one ANSEL byte to its Unicode fragment.

    Returns a spacing character or a lone combining mark, or None for bytes
    that ANSEL leaves undefined. Undefined C1 control bytes (0x80-0x9F) map
    to the code point of the same value, except 0x98 and 0x9C which swap
    with 0x88 and 0x89, so every one of them survives a round trip.
    """
    if b < 0x80:
        return chr(b)
    if b in _SPACING:
        return _SPACING[b]
    if b in _COMBINING:
        return _COMBINING[b]
    if b in _C1_SWAPPED:
        return _C1_SWAPPED[b]
    if b < 0xA0:
        return chr(b)
    return None


def encode_char(ch: str) -> Optional[bytes]:
    """Map one Unicode character with a direct ANSEL byte, else None."""
    code = ord(ch)
    if code < 0x80:
        return bytes((code,))
    if ch in _SPACING_REVERSE:
        return bytes((_SPACING_REVERSE[ch],))
    if ch in _COMBINING_REVERSE:
        return bytes((_COMBINING_REVERSE[ch],))
    if ch in _C1_SWAPPED_REVERSE:
        return bytes((_C1_SWAPPED_REVERSE[ch],))
    if code < 0xA0 and code not in _SPACING:
        return bytes((code,))
    return None


def _is_mark(ch: str) -> bool:
    return ch in _COMBINING_REVERSE or unicodedata.combining(ch) != 0


def _attach(base: str, mark: str) -> str:
    return unicodedata.normalize("NFC", base + mark)


class AnselCodec:
    """
    Stateless facade over the ANSEL tables.

    ``decode`` and ``encode`` operate on whole buffers (one line at a time in
    the reader/writer), so a pending mark never carries across a line break.
    """

    name = "ansel"

    def decode(self, data: bytes) -> str:
        out: List[str] = []
        pending: Optional[str] = None

        for b in data:
            fragment = decode_byte(b)
            if fragment is None:
                fragment = REPLACEMENT

            if is_combining_byte(b):
                if pending is not None:
                    # Stacked marks: the earlier one loses its base.
                    out.append(PLACEHOLDER + pending)
                pending = fragment
                continue

            if pending is not None:
                out.append(_attach(fragment, pending))
                pending = None
            else:
                out.append(fragment)

        if pending is not None:
            out.append(PLACEHOLDER + pending)

        return "".join(out)

    def encode(self, text: str) -> bytes:
        out = bytearray()
        for cluster in self.clusters(text):
            encoded = self.encode_cluster(cluster)
            if encoded is None:
                log.warning(f"No ANSEL representation for {cluster!r}; writing '?'")
                encoded = UNENCODABLE
            out += encoded
        return bytes(out)

    @staticmethod
    def clusters(text: str) -> List[str]:
        """Split text into base characters each followed by its combining marks."""
        result: List[str] = []
        for ch in text:
            if result and _is_mark(ch):
                result[-1] += ch
            else:
                result.append(ch)
        return result

    @staticmethod
    def encode_cluster(cluster: str) -> Optional[bytes]:
        """
        Encode one base character plus its marks, mark bytes first.

        Returns None when no combination of table entries represents it.
        """
        composed = unicodedata.normalize("NFC", cluster)
        if len(composed) == 1:
            direct = encode_char(composed)
            if direct is not None and not _is_mark(composed):
                return direct

        decomposed = unicodedata.normalize("NFD", cluster)
        if _is_mark(decomposed[0]):
            # Orphan mark at the start of the text.
            decomposed = PLACEHOLDER + decomposed

        # Prefer the longest precomposed head with its own byte (e.g. O-horn).
        for cut in range(len(decomposed), 0, -1):
            head = unicodedata.normalize("NFC", decomposed[:cut])
            if len(head) != 1:
                continue
            head_bytes = encode_char(head)
            if head_bytes is None:
                continue
            marks = decomposed[cut:]
            if all(m in _COMBINING_REVERSE for m in marks):
                return bytes(_COMBINING_REVERSE[m] for m in marks) + head_bytes
        return None


ANSEL = AnselCodec()
