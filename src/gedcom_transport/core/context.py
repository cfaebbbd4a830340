from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from gedcom_transport.core.options import ReaderOptions, WriterOptions
from gedcom_transport.io.encoding import Encoding


@dataclass
class ConvertContext:
    """
    Everything one read -> write conversion needs, plus what it reports back.

    ``encoding`` None keeps the input's encoding. Options left as None are
    taken from the project config when the pipeline runs.
    """

    config: Any
    logger: Any

    input_path: Optional[Union[str, Path]] = None
    output_path: Optional[Union[str, Path]] = None

    encoding: Optional[Encoding] = None
    reader_options: Optional[ReaderOptions] = None
    writer_options: Optional[WriterOptions] = None

    # Filled by Pipeline.run(): input/output encoding, records, lines, bytes.
    stats: Dict[str, Any] = field(default_factory=dict)

    def summary(self) -> str:
        if not self.stats:
            return "nothing converted"
        return (
            f"{self.stats['input_encoding']} -> {self.stats['output_encoding']}: "
            f"{self.stats['records']} records, {self.stats['lines_written']} lines, "
            f"{self.stats['bytes_written']} bytes"
        )
