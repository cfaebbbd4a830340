"""
reader.py
Read path: byte source -> decoded lines -> record tree.

Wires the Line Reader to the Hierarchical Parser. The Line Reader settles the
encoding from ``HEAD.CHAR`` before it decodes the first line; when the parser
reaches that CHAR line the declaration is checked once more, which only
matters for a header too long to be prefetched.
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Callable, Optional, Union

from gedcom_transport.core.cancellation import CancellationToken
from gedcom_transport.core.events import FileProgressEvent, ObserverRegistry
from gedcom_transport.core.exceptions import CancellationError, GedcomIOError, GedcomTransportError
from gedcom_transport.core.options import ReaderOptions, positive_int
from gedcom_transport.io.encoding import Encoding, LineTerminator, confirm_or_reject
from gedcom_transport.io.line_reader import LineReader
from gedcom_transport.loader.tokenizer import GedcomLine, tokenize_lines
from gedcom_transport.loader.tree_builder import GedcomTree, TreeParser
from gedcom_transport.logging import get_logger

log = get_logger(__name__)


class GedcomReader:
    """
    High-level reader:
      - detects the encoding
      - decodes lines
      - confirms the encoding against HEAD.CHAR
      - assembles the record tree

    Attributes after a successful read:
        encoding: The encoding the stream was decoded with.
        has_bom: True if the stream started with a byte-order mark.
        line_terminator: The first terminator style seen, if any.
    """

    def __init__(self, options: Optional[ReaderOptions] = None) -> None:
        self.options = options if options is not None else ReaderOptions.from_config()
        self.file_observers: ObserverRegistry[FileProgressEvent] = ObserverRegistry()
        self.cancellation = CancellationToken()

        self.encoding: Optional[Encoding] = None
        self.declared_charset: Optional[str] = None
        self.has_bom = False
        self.line_terminator: Optional[LineTerminator] = None

    @property
    def read_notification_rate(self) -> int:
        return self.options.read_notification_rate

    @read_notification_rate.setter
    def read_notification_rate(self, value: int) -> None:
        self.options.read_notification_rate = positive_int("read_notification_rate", value)

    def register_file_observer(self, observer: Callable[[FileProgressEvent], None]) -> None:
        self.file_observers.register(observer)

    def unregister_file_observer(self, observer: Callable[[FileProgressEvent], None]) -> None:
        self.file_observers.unregister(observer)

    def cancel(self) -> None:
        """
        Request cancellation; honoured before the next line is parsed.

        Each ``read`` starts with a fresh request state, so a reader can be
        reused after a cancelled read.
        """
        self.cancellation.cancel()

    # ---------------------------------------------------------
    # Entry points
    # ---------------------------------------------------------
    def load(self, path: Union[str, Path]) -> GedcomTree:
        """Read and parse the GEDCOM file at ``path``."""
        file_path = Path(path)
        log.info(f"Reading GEDCOM input: {file_path}")
        try:
            with file_path.open("rb") as fh:
                return self.read(fh)
        except FileNotFoundError as exc:
            log.error(f"Input file does not exist: {file_path}")
            raise GedcomIOError(f"GEDCOM file not found: {file_path}") from exc

    def read(self, source: BinaryIO) -> GedcomTree:
        """
        Parse an open binary stream.

        Raises:
            GedcomIOError: empty/short or unreadable stream.
            UnsupportedEncodingError: HEAD.CHAR cannot be reconciled.
            GedcomParseError: malformed lines or structure.
            ReaderCancelledError: cancellation was requested.
        """
        self.cancellation.reset()
        self.declared_charset = None
        try:
            line_reader = LineReader(source, options=self.options)
            line_reader.observers = self.file_observers
            tree = self._parse(line_reader)
        except CancellationError:
            log.info("Read cancelled")
            raise
        except GedcomTransportError:
            log.exception("Reading GEDCOM stream failed")
            raise

        self.encoding = line_reader.encoding
        self.has_bom = line_reader.has_bom
        self.line_terminator = line_reader.detected_terminator
        log.info(
            f"Read {line_reader.lines_read} lines ({line_reader.bytes_consumed} bytes) "
            f"as {self.encoding.label}: {len(tree.records)} records"
        )
        return tree

    # ---------------------------------------------------------
    # Internals
    # ---------------------------------------------------------
    def _parse(self, line_reader: LineReader) -> GedcomTree:
        parser = TreeParser(self.cancellation)
        record_tag = None

        # tokenize_lines pulls one line at a time, so an encoding switch made
        # here applies to every line after HEAD.CHAR. Usually there is none.
        for line in tokenize_lines(line_reader):
            parser.feed(line)
            if line.level == 0:
                record_tag = line.tag.upper()
            elif record_tag == "HEAD" and self._is_charset_line(line):
                self._confirm_charset(line_reader, line)

        return parser.tree

    @staticmethod
    def _is_charset_line(line: GedcomLine) -> bool:
        return line.level == 1 and line.tag.upper() == "CHAR"

    def _confirm_charset(self, line_reader: LineReader, line: GedcomLine) -> None:
        declared = line.value.strip()
        self.declared_charset = declared
        confirmed = confirm_or_reject(line_reader.encoding, declared)
        line_reader.switch_encoding(confirmed)


def load_gedcom(path: Union[str, Path], options: Optional[ReaderOptions] = None) -> GedcomTree:
    """Convenience wrapper: ``GedcomReader(options).load(path)``."""
    return GedcomReader(options).load(path)
