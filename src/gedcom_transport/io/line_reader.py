"""
Line Reader: byte source -> decoded logical lines.

The reader captures the first bytes of the stream for encoding detection,
skips a byte-order mark if present, settles the encoding from the header's
``CHAR`` line (unless the caller passed one), then splits the remaining bytes on CR,
LF and CRLF terminators (mixed terminators are fine) and decodes each line
with the active encoding.

Lines are decoded only when they are handed out, so bytes still buffered
when ``switch_encoding`` is called are decoded with the new encoding.
"""

from __future__ import annotations

from typing import BinaryIO, Iterator, Optional, Tuple

from gedcom_transport.core.events import FileProgressEvent, ObserverRegistry
from gedcom_transport.core.exceptions import (
    GedcomIOError,
    GedcomParseError,
    UnsupportedEncodingError,
)
from gedcom_transport.core.options import ReaderOptions, positive_int
from gedcom_transport.io.ansel import ANSEL
from gedcom_transport.io.encoding import (
    HEADER_SCAN_LIMIT,
    RAW_CHUNK_SIZE,
    Encoding,
    LineTerminator,
    detect_provisional,
    resolve_from_header,
)
from gedcom_transport.logging import get_logger

log = get_logger(__name__)

READ_BLOCK_SIZE = 8192


def _code_unit(encoding: Encoding, char: str) -> bytes:
    """Encoded form of an ASCII control character in ``encoding``."""
    if encoding is Encoding.UTF16_BE:
        return b"\x00" + char.encode("ascii")
    if encoding is Encoding.UTF16_LE:
        return char.encode("ascii") + b"\x00"
    return char.encode("ascii")


def decode_bytes(encoding: Encoding, data: bytes, lineno: int = 0) -> str:
    """
    Decode one line's bytes.

    Raises:
        GedcomParseError: on malformed or truncated multi-byte data.
    """
    if encoding is Encoding.ANSEL:
        return ANSEL.decode(data)
    try:
        return data.decode(encoding.codec)
    except UnicodeDecodeError as exc:
        raise GedcomParseError(
            f"Malformed {encoding.label} data: {exc.reason}",
            lineno=lineno or None,
            raw=data.decode(encoding.codec, errors="replace"),
        ) from exc


class LineReader:
    """
    Lazy sequence of decoded text lines from a binary stream.

    Usage:
        with open("family.ged", "rb") as fh:
            reader = LineReader(fh)
            for line in reader:
                ...

    Attributes:
        raw_chunk: The first bytes of the stream, captured once for detection.
        encoding: The encoding currently used to decode lines. When none is
            passed in, it is detected and then settled from the header's
            CHAR line before the first line is decoded.
        declared_charset: The header's CHAR value found while settling the
            encoding, or None.
        has_bom: True if a byte-order mark was consumed.
        detected_terminator: The first terminator style encountered, if any.
        lines_read: Lines handed out so far.
        bytes_consumed: Bytes consumed from the source so far (BOM included).
        observers: Callbacks receiving :class:`FileProgressEvent`.
    """

    def __init__(
        self,
        source: BinaryIO,
        encoding: Optional[Encoding] = None,
        options: Optional[ReaderOptions] = None,
    ) -> None:
        self._source = source
        self.options = options if options is not None else ReaderOptions.from_config()
        self.observers: ObserverRegistry[FileProgressEvent] = ObserverRegistry()

        self._buffer = bytearray()
        self._scan_from = 0
        self._eof = False
        self._finished = False

        self.lines_read = 0
        self.bytes_consumed = 0
        self.has_bom = False
        self.detected_terminator: Optional[LineTerminator] = None
        self.declared_charset: Optional[str] = None

        self.raw_chunk: bytes = self._capture_chunk()
        if not self.raw_chunk:
            log.error("Source stream is empty")
            raise GedcomIOError("Source stream is empty; nothing to read")
        if len(self.raw_chunk) < RAW_CHUNK_SIZE:
            log.error(f"Source stream holds only {len(self.raw_chunk)} byte(s)")
            raise GedcomIOError(
                f"Need at least {RAW_CHUNK_SIZE} bytes of GEDCOM data, got {len(self.raw_chunk)}"
            )

        self.encoding: Encoding = (
            encoding if encoding is not None else detect_provisional(self.raw_chunk)
        )
        self._set_terminators()
        self._skip_bom()
        if encoding is None:
            self._settle_from_header()
        log.debug(f"Line reader using {self.encoding.label} (bom={self.has_bom})")

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #

    @property
    def read_notification_rate(self) -> int:
        return self.options.read_notification_rate

    @read_notification_rate.setter
    def read_notification_rate(self, value: int) -> None:
        self.options.read_notification_rate = positive_int("read_notification_rate", value)

    def switch_encoding(self, encoding: Encoding) -> None:
        """
        Decode all lines not yet handed out with ``encoding``.

        Only encodings with the same code unit width are interchangeable;
        anything else means detection was wrong and the bytes already split
        into lines cannot be trusted.
        """
        if encoding is self.encoding:
            return
        if encoding.code_unit_size != self.encoding.code_unit_size:
            log.error(f"Cannot switch from {self.encoding.label} to {encoding.label}")
            raise UnsupportedEncodingError(
                f"Cannot switch from {self.encoding.label} to {encoding.label}: "
                "code unit width differs"
            )
        log.info(f"Switching line decoding from {self.encoding.label} to {encoding.label}")
        self.encoding = encoding
        self._set_terminators()

    # ------------------------------------------------------------------ #
    # Reading
    # ------------------------------------------------------------------ #

    def __iter__(self) -> Iterator[str]:
        while True:
            line = self.next_line()
            if line is None:
                return
            yield line

    def next_line(self) -> Optional[str]:
        """
        Return the next logical line without its terminator, or None at the
        end of the stream.
        """
        unit = self.encoding.code_unit_size
        while True:
            pos, is_cr = self._find_terminator()
            if pos >= 0:
                if is_cr and pos + 2 * unit > len(self._buffer) and not self._eof:
                    # A CR at the end of the buffer may be the first half of CRLF.
                    self._fill()
                    continue
                consumed = pos + unit
                terminator = LineTerminator.CR if is_cr else LineTerminator.LF
                if is_cr and self._buffer[consumed:consumed + unit] == self._lf:
                    consumed += unit
                    terminator = LineTerminator.CRLF
                if self.detected_terminator is None:
                    self.detected_terminator = terminator
                return self._take(pos, consumed)

            self._scan_from = len(self._buffer) - len(self._buffer) % unit
            if self._eof:
                if not self._buffer:
                    self._finish()
                    return None
                if len(self._buffer) % unit:
                    raise GedcomParseError(
                        f"Truncated {self.encoding.label} character at end of stream",
                        lineno=self.lines_read + 1,
                    )
                return self._take(len(self._buffer), len(self._buffer))
            self._fill()

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _capture_chunk(self) -> bytes:
        chunk = b""
        while len(chunk) < RAW_CHUNK_SIZE:
            data = self._read(RAW_CHUNK_SIZE - len(chunk))
            if not data:
                self._eof = True
                break
            chunk += data
        self._buffer += chunk
        return bytes(chunk)

    def _settle_from_header(self) -> None:
        while not self._eof and len(self._buffer) < HEADER_SCAN_LIMIT:
            self._fill()

        unit = self.encoding.code_unit_size
        header = bytes(self._buffer[: len(self._buffer) - len(self._buffer) % unit])
        text = header.decode(self.encoding.codec, errors="replace")

        resolved, self.declared_charset = resolve_from_header(self.encoding, text)
        if resolved is not self.encoding:
            log.debug(f"Header settles {self.encoding.label} as {resolved.label}")
            self.encoding = resolved
            self._set_terminators()

    def _read(self, size: int) -> bytes:
        try:
            return self._source.read(size)
        except OSError as exc:
            log.exception("Reading from source failed")
            raise GedcomIOError(f"Unable to read source: {exc}") from exc

    def _fill(self) -> None:
        data = self._read(READ_BLOCK_SIZE)
        if data:
            self._buffer += data
        else:
            self._eof = True

    def _set_terminators(self) -> None:
        self._cr = _code_unit(self.encoding, "\r")
        self._lf = _code_unit(self.encoding, "\n")

    def _skip_bom(self) -> None:
        bom = self.encoding.bom
        if bom and self._buffer.startswith(bom):
            del self._buffer[: len(bom)]
            self.bytes_consumed += len(bom)
            self.has_bom = True

    def _find_aligned(self, pattern: bytes) -> int:
        unit = self.encoding.code_unit_size
        pos = self._buffer.find(pattern, self._scan_from)
        while pos != -1 and pos % unit:
            pos = self._buffer.find(pattern, pos + 1)
        return pos

    def _find_terminator(self) -> Tuple[int, bool]:
        """Return (position, is_cr) of the first terminator code unit, or (-1, False)."""
        cr = self._find_aligned(self._cr)
        lf = self._find_aligned(self._lf)
        if cr == -1:
            return lf, False
        if lf == -1 or cr < lf:
            return cr, True
        return lf, False

    def _take(self, end: int, consumed: int) -> str:
        data = bytes(self._buffer[:end])
        del self._buffer[:consumed]
        self._scan_from = 0
        self.bytes_consumed += consumed
        self.lines_read += 1

        line = decode_bytes(self.encoding, data, lineno=self.lines_read)

        if self.lines_read % self.options.read_notification_rate == 0:
            self.observers.notify(
                FileProgressEvent(self.lines_read, self.bytes_consumed, complete=False)
            )
        return line

    def _finish(self) -> None:
        if self._finished:
            return
        self._finished = True
        log.debug(f"Read {self.lines_read} lines, {self.bytes_consumed} bytes")
        self.observers.notify(
            FileProgressEvent(self.lines_read, self.bytes_consumed, complete=True)
        )
