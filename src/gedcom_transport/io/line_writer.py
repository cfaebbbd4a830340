"""
Line Writer / Splitter: flattened (level, xref, tag, value) entries -> bytes.

Writing happens in two phases, each with its own progress observers:

1. Construction: every entry becomes one base line, plus a CONT line per
   embedded line break and CONC lines for whatever does not fit in
   ``max_line_width`` characters.
2. File write: each line is encoded, terminated and written to the sink.

Cancellation is checked after every constructed line and every written
line. A cancelled write raises :class:`WriterCancelledError`; whatever was
already written stays on the sink and must be treated as a partial file.
"""

from __future__ import annotations

import re
import unicodedata
from typing import BinaryIO, Iterable, List, Optional, Tuple

from gedcom_transport.core.cancellation import CancellationToken
from gedcom_transport.core.events import (
    ConstructProgressEvent,
    FileProgressEvent,
    ObserverRegistry,
)
from gedcom_transport.core.exceptions import (
    ConfigurationError,
    GedcomIOError,
    WriterCancelledError,
)
from gedcom_transport.core.options import WriterOptions, positive_int
from gedcom_transport.io.ansel import ANSEL
from gedcom_transport.io.encoding import Encoding, LineTerminator
from gedcom_transport.logging import get_logger

log = get_logger(__name__)

Entry = Tuple[int, Optional[str], str, Optional[str]]

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def _is_safe_cut(text: str, cut: int) -> bool:
    """True if ``text`` may be split before index ``cut``."""
    before, after = text[cut - 1], text[cut]
    if "\ud800" <= before <= "\udbff":
        return False
    if unicodedata.combining(after) or "\ufe20" <= after <= "\ufe2f":
        return False
    return True


def find_split(text: str, limit: int) -> int:
    """
    Choose where to cut ``text`` so the head is at most ``limit`` characters.

    The cut never separates a surrogate pair or a base character from its
    combining marks, and where possible avoids putting a space on either
    side of the cut (trailing spaces are often stripped by other readers).
    Falls back to the hard limit if no safe position exists.
    """
    if len(text) <= limit:
        return len(text)

    safe = [c for c in range(limit, 0, -1) if _is_safe_cut(text, c)]
    if not safe:
        return limit
    for cut in safe:
        if text[cut - 1] != " " and text[cut] != " ":
            return cut
    return safe[0]


def compose_prefix(level: int, xref: Optional[str], tag: str) -> str:
    if xref:
        return f"{level} {xref} {tag}"
    return f"{level} {tag}"


def split_entry(
    level: int,
    xref: Optional[str],
    tag: str,
    value: Optional[str],
    max_width: int,
) -> List[str]:
    """
    Render one entry as text lines no longer than ``max_width`` characters.

    Embedded line breaks always start a CONT line; long text continues on
    CONC lines. Both sit at ``level + 1``. Joining the base value and the
    continuation values (with a break before each CONT) gives back ``value``.

    Raises:
        ConfigurationError: when a CONC line at ``level + 1`` has no room
            left for any text within ``max_width``.
    """
    segments = _LINE_BREAK.split(value) if value else [""]
    lines: List[str] = []

    for index, segment in enumerate(segments):
        if index == 0:
            prefix = compose_prefix(level, xref, tag)
        else:
            prefix = compose_prefix(level + 1, None, "CONT")
        lines.extend(_split_segment(prefix, segment, level + 1, max_width))

    return lines


def _split_segment(prefix: str, text: str, cont_level: int, max_width: int) -> List[str]:
    if not text:
        return [prefix]

    room = max_width - len(prefix) - 1
    if room <= 0:
        if len(prefix) > max_width:
            log.warning(f"Line prefix exceeds {max_width} characters: {prefix!r}")
        # No room for any value: it all goes on CONC lines.
        lines = [prefix]
    else:
        cut = find_split(text, room)
        lines = [f"{prefix} {text[:cut]}"]
        text = text[cut:]

    conc_prefix = compose_prefix(cont_level, None, "CONC")
    conc_room = max_width - len(conc_prefix) - 1
    if text and conc_room <= 0:
        raise ConfigurationError(
            f"max_line_width {max_width} leaves no room for CONC text at level {cont_level}"
        )
    while text:
        cut = find_split(text, conc_room)
        lines.append(f"{conc_prefix} {text[:cut]}")
        text = text[cut:]
    return lines


class LineWriter:
    """
    Serialize flattened entries (or ready-made lines) to a binary sink.

    Usage:
        with open("out.ged", "wb") as fh:
            writer = LineWriter(fh, Encoding.ANSEL)
            writer.construct_observers.register(on_construct)
            writer.write(entries)
    """

    def __init__(
        self,
        sink: BinaryIO,
        encoding: Encoding = Encoding.UTF8,
        options: Optional[WriterOptions] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> None:
        self._sink = sink
        self.encoding = encoding
        self.options = options if options is not None else WriterOptions.from_config()
        self.cancellation = cancellation if cancellation is not None else CancellationToken()

        self.construct_observers: ObserverRegistry[ConstructProgressEvent] = ObserverRegistry()
        self.file_observers: ObserverRegistry[FileProgressEvent] = ObserverRegistry()

        self.lines_constructed = 0
        self.lines_written = 0
        self.bytes_written = 0

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #

    @property
    def construction_notification_rate(self) -> int:
        return self.options.construction_notification_rate

    @construction_notification_rate.setter
    def construction_notification_rate(self, value: int) -> None:
        self.options.construction_notification_rate = positive_int(
            "construction_notification_rate", value
        )

    @property
    def file_notification_rate(self) -> int:
        return self.options.file_notification_rate

    @file_notification_rate.setter
    def file_notification_rate(self, value: int) -> None:
        self.options.file_notification_rate = positive_int("file_notification_rate", value)

    @property
    def line_terminator(self) -> LineTerminator:
        return self.options.line_terminator

    @line_terminator.setter
    def line_terminator(self, value: "LineTerminator | str") -> None:
        self.options.line_terminator = value

    def cancel(self) -> None:
        """Request cancellation; honoured after the current line."""
        self.cancellation.cancel()

    # ------------------------------------------------------------------ #
    # Phases
    # ------------------------------------------------------------------ #

    def construct(self, entries: Iterable[Entry]) -> List[str]:
        """
        Build the text lines for ``entries`` (level, xref, tag, value).

        Raises:
            WriterCancelledError: if cancellation is requested.
        """
        rate = self.options.construction_notification_rate
        width = self.options.max_line_width
        lines: List[str] = []

        for level, xref, tag, value in entries:
            for text in split_entry(level, xref, tag, value, width):
                lines.append(text)
                self.lines_constructed += 1
                if self.lines_constructed % rate == 0:
                    self.construct_observers.notify(
                        ConstructProgressEvent(self.lines_constructed, complete=False)
                    )
                self._check_cancelled("construction")

        self.construct_observers.notify(
            ConstructProgressEvent(self.lines_constructed, complete=True)
        )
        log.debug(f"Constructed {self.lines_constructed} lines")
        return lines

    def write_lines(self, lines: Iterable[str]) -> int:
        """
        Encode and write text lines, each followed by the configured
        terminator. Returns the number of bytes written by this call.

        Raises:
            WriterCancelledError: if cancellation is requested.
            GedcomIOError: if the sink rejects the data.
        """
        rate = self.options.file_notification_rate
        terminator = self._encode(self.options.line_terminator.value)
        start = self.bytes_written

        if self.options.write_bom and self.bytes_written == 0 and self.encoding.bom:
            self._emit(self.encoding.bom)

        for line in lines:
            self._emit(self._encode(line) + terminator)
            self.lines_written += 1
            if self.lines_written % rate == 0:
                self.file_observers.notify(
                    FileProgressEvent(self.lines_written, self.bytes_written, complete=False)
                )
            self._check_cancelled("file write")

        self._flush()
        self.file_observers.notify(
            FileProgressEvent(self.lines_written, self.bytes_written, complete=True)
        )
        log.debug(f"Wrote {self.lines_written} lines, {self.bytes_written} bytes as {self.encoding.label}")
        return self.bytes_written - start

    def write(self, entries: Iterable[Entry]) -> int:
        """Construct and write ``entries``. Returns bytes written."""
        return self.write_lines(self.construct(entries))

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _encode(self, text: str) -> bytes:
        if self.encoding is Encoding.ANSEL:
            return ANSEL.encode(text)
        return text.encode(self.encoding.codec, errors="replace")

    def _emit(self, data: bytes) -> None:
        try:
            self._sink.write(data)
        except OSError as exc:
            log.exception("Writing to sink failed")
            raise GedcomIOError(f"Unable to write output: {exc}") from exc
        self.bytes_written += len(data)

    def _flush(self) -> None:
        flush = getattr(self._sink, "flush", None)
        if flush is not None:
            flush()

    def _check_cancelled(self, phase: str) -> None:
        if self.cancellation.cancelled:
            log.info(
                f"Write cancelled during {phase} after {self.lines_constructed} "
                f"constructed / {self.lines_written} written lines"
            )
        self.cancellation.raise_if_cancelled(
            WriterCancelledError, f"Write cancelled during {phase}"
        )
