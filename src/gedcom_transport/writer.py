"""
writer.py
Write path: record tree (or flattened entries) -> bytes.
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Callable, Iterable, Optional, Union

from gedcom_transport.core.cancellation import CancellationToken
from gedcom_transport.core.events import (
    ConstructProgressEvent,
    FileProgressEvent,
    ObserverRegistry,
)
from gedcom_transport.core.exceptions import (
    CancellationError,
    GedcomTransportError,
    UnsupportedEncodingError,
)
from gedcom_transport.core.options import WriterOptions, positive_int
from gedcom_transport.io.encoding import Encoding, LineTerminator, encodings_for_charset
from gedcom_transport.io.line_writer import Entry, LineWriter
from gedcom_transport.loader.flattener import flatten_tree
from gedcom_transport.loader.tree_builder import GedcomTree
from gedcom_transport.logging import get_logger

log = get_logger(__name__)

#: Used when the tree declares no character set.
DEFAULT_ENCODING = Encoding.ANSEL


def encoding_from_header(tree: GedcomTree) -> Encoding:
    """
    Pick the output encoding declared by ``HEAD.CHAR``.

    UNICODE is written little-endian; a tree without a header or CHAR line
    is written as ANSEL, the GEDCOM default.
    """
    head = next(iter(tree.find_records_by_tag("HEAD")), None)
    char = head.find_first("CHAR") if head is not None else None
    if char is None or not char.value.strip():
        return DEFAULT_ENCODING

    candidates = encodings_for_charset(char.value.strip())
    if Encoding.UTF16_LE in candidates:
        return Encoding.UTF16_LE
    return candidates[0]


def _declares(name: str, encoding: Encoding) -> bool:
    """True if the CHAR value ``name`` (ANSI, utf8, IBMPC, ...) already names ``encoding``."""
    try:
        return encoding in encodings_for_charset(name)
    except UnsupportedEncodingError:
        return False


class GedcomWriter:
    """
    High-level writer.

    The encoding is taken from the constructor, or else from the tree's
    ``HEAD.CHAR``. When an explicit encoding is given and the tree has a
    CHAR line naming some other character set, that line is updated so the
    output describes itself. Aliases such as ANSI or utf8 are left as they are.
    """

    def __init__(
        self,
        tree: Optional[GedcomTree] = None,
        encoding: Optional[Encoding] = None,
        options: Optional[WriterOptions] = None,
    ) -> None:
        self.tree = tree
        self.encoding = encoding
        self.options = options if options is not None else WriterOptions.from_config()
        self.cancellation = CancellationToken()

        self.construct_observers: ObserverRegistry[ConstructProgressEvent] = ObserverRegistry()
        self.file_observers: ObserverRegistry[FileProgressEvent] = ObserverRegistry()

        self.lines_constructed = 0
        self.bytes_written = 0

    # ---------------------------------------------------------
    # Configuration
    # ---------------------------------------------------------
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

    def register_construct_observer(self, observer: Callable[[ConstructProgressEvent], None]) -> None:
        self.construct_observers.register(observer)

    def unregister_construct_observer(self, observer: Callable[[ConstructProgressEvent], None]) -> None:
        self.construct_observers.unregister(observer)

    def register_file_observer(self, observer: Callable[[FileProgressEvent], None]) -> None:
        self.file_observers.register(observer)

    def unregister_file_observer(self, observer: Callable[[FileProgressEvent], None]) -> None:
        self.file_observers.unregister(observer)

    def cancel(self) -> None:
        """
        Request cancellation; honoured after the current line.

        Each ``write`` starts with a fresh request state, so a writer can be
        reused after a cancelled write.
        """
        self.cancellation.cancel()

    # ---------------------------------------------------------
    # Writing
    # ---------------------------------------------------------
    def resolve_encoding(self) -> Encoding:
        if self.encoding is not None:
            return self.encoding
        if self.tree is None:
            return DEFAULT_ENCODING
        return encoding_from_header(self.tree)

    def save(self, path: Union[str, Path], entries: Optional[Iterable[Entry]] = None) -> int:
        """Write to the file at ``path``. Returns bytes written."""
        file_path = Path(path)
        log.info(f"Writing GEDCOM output: {file_path}")
        with file_path.open("wb") as fh:
            return self.write(fh, entries)

    def write(self, sink: BinaryIO, entries: Optional[Iterable[Entry]] = None) -> int:
        """
        Write ``entries`` (default: the flattened tree) to ``sink``.

        Raises:
            WriterCancelledError: cancellation was requested; the sink holds
                a partial file.
            GedcomIOError: the sink rejected the data.
        """
        self.cancellation.reset()
        encoding = self.resolve_encoding()
        if entries is None:
            if self.tree is None:
                raise ValueError("Nothing to write: no tree and no entries given")
            self._sync_charset(encoding)
            entries = flatten_tree(self.tree)

        line_writer = LineWriter(sink, encoding, self.options, self.cancellation)
        line_writer.construct_observers = self.construct_observers
        line_writer.file_observers = self.file_observers

        try:
            line_writer.write(entries)
        except CancellationError:
            log.info("Write cancelled; output is partial")
            raise
        except GedcomTransportError:
            log.exception("Writing GEDCOM stream failed")
            raise
        finally:
            self.lines_constructed = line_writer.lines_constructed
            self.bytes_written = line_writer.bytes_written

        log.info(f"Wrote {self.bytes_written} bytes as {encoding.label}")
        return self.bytes_written

    def _sync_charset(self, encoding: Encoding) -> None:
        if self.encoding is None or self.tree is None:
            return
        for head in self.tree.find_records_by_tag("HEAD"):
            char = head.find_first("CHAR")
            if char is None or _declares(char.value, encoding):
                continue
            log.debug(f"Updating HEAD.CHAR from {char.value!r} to {encoding.charset_name!r}")
            char.value = encoding.charset_name
