"""
gedcom_transport: read and write GEDCOM files at the byte/line level.

    from gedcom_transport import GedcomReader, GedcomWriter, Encoding

    tree = GedcomReader().load("family.ged")
    GedcomWriter(tree, Encoding.UTF8).save("family-utf8.ged")
"""

from gedcom_transport.core.exceptions import (
    CancellationError,
    ConfigurationError,
    GedcomIOError,
    GedcomParseError,
    GedcomTransportError,
    ReaderCancelledError,
    UnsupportedEncodingError,
    WriterCancelledError,
)
from gedcom_transport.core.options import ReaderOptions, WriterOptions
from gedcom_transport.io.encoding import Encoding, LineTerminator
from gedcom_transport.loader.tree_builder import GedcomTree, RecordNode
from gedcom_transport.reader import GedcomReader, load_gedcom
from gedcom_transport.writer import GedcomWriter

__version__ = "0.1.0"

__all__ = [
    "CancellationError",
    "ConfigurationError",
    "Encoding",
    "GedcomIOError",
    "GedcomParseError",
    "GedcomReader",
    "GedcomTransportError",
    "GedcomTree",
    "GedcomWriter",
    "LineTerminator",
    "ReaderCancelledError",
    "ReaderOptions",
    "RecordNode",
    "UnsupportedEncodingError",
    "WriterCancelledError",
    "WriterOptions",
    "load_gedcom",
]
