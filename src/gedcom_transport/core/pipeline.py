from __future__ import annotations

from typing import Callable, Optional

from gedcom_transport.core.context import ConvertContext
from gedcom_transport.core.events import ConstructProgressEvent, FileProgressEvent
from gedcom_transport.core.exceptions import CancellationError, GedcomTransportError
from gedcom_transport.reader import GedcomReader
from gedcom_transport.writer import GedcomWriter


class Pipeline:
    """
    Orchestrates a read -> write conversion.
    No transport logic lives here.
    """

    def __init__(
        self,
        context: ConvertContext,
        on_read: Optional[Callable[[FileProgressEvent], None]] = None,
        on_construct: Optional[Callable[[ConstructProgressEvent], None]] = None,
        on_write: Optional[Callable[[FileProgressEvent], None]] = None,
    ):
        self.ctx = context
        self.log = context.logger
        self.on_read = on_read
        self.on_construct = on_construct
        self.on_write = on_write

    def run(self):
        self.log.info("Pipeline starting")

        try:
            reader = GedcomReader(self.ctx.reader_options)
            if self.on_read:
                reader.register_file_observer(self.on_read)
            tree = reader.load(self.ctx.input_path)

            encoding = self.ctx.encoding or reader.encoding
            writer = GedcomWriter(tree, encoding, self.ctx.writer_options)
            if self.on_construct:
                writer.register_construct_observer(self.on_construct)
            if self.on_write:
                writer.register_file_observer(self.on_write)
            writer.save(self.ctx.output_path)

        except CancellationError:
            self.log.info("Pipeline cancelled")
            raise
        except GedcomTransportError:
            self.log.exception("Pipeline execution failed")
            raise

        self.ctx.stats.update(
            {
                "input_encoding": reader.encoding.label,
                "output_encoding": encoding.label,
                "records": len(tree.records),
                "lines_written": writer.lines_constructed,
                "bytes_written": writer.bytes_written,
            }
        )
        self.log.info("Pipeline completed successfully")
        return tree
