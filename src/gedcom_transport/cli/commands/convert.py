from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import Progress

from gedcom_transport.cli.utils import fail, parse_encoding, parse_terminator
from gedcom_transport.config import get_config
from gedcom_transport.core.context import ConvertContext
from gedcom_transport.core.exceptions import GedcomTransportError
from gedcom_transport.core.options import ReaderOptions, WriterOptions
from gedcom_transport.core.pipeline import Pipeline
from gedcom_transport.logging import get_logger, set_console_level

console = Console()
log = get_logger(__name__)


def convert_command(
    gedcom: Path = typer.Argument(..., exists=True, readable=True),
    out: Path = typer.Argument(..., help="Output GEDCOM file"),
    encoding: Optional[str] = typer.Option(
        None,
        "--encoding",
        "-e",
        help="Output encoding (ascii, ansel, utf8, utf16_be, utf16_le); default keeps the input's",
    ),
    terminator: str = typer.Option(
        "CRLF",
        "--terminator",
        "-t",
        help="Line terminator: CR, LF or CRLF",
    ),
    width: int = typer.Option(
        255,
        "--width",
        "-w",
        help="Maximum line width before CONC splitting",
    ),
    bom: bool = typer.Option(
        False,
        "--bom",
        help="Write a byte-order mark for UTF encodings",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show progress and informational log messages",
    ),
):
    """
    Re-encode a GEDCOM file (read, parse, flatten, write).
    """
    if verbose:
        set_console_level(logging.INFO)

    try:
        writer_options = WriterOptions.from_config()
        writer_options.line_terminator = parse_terminator(terminator)
        writer_options.max_line_width = width
        writer_options.write_bom = bom
    except GedcomTransportError as exc:
        fail(exc)

    ctx = ConvertContext(
        config=get_config(),
        logger=log,
        input_path=str(gedcom),
        output_path=str(out),
        encoding=parse_encoding(encoding),
        reader_options=ReaderOptions.from_config(),
        writer_options=writer_options,
    )

    with Progress(console=console, disable=not verbose) as progress:
        read_task = progress.add_task("Reading", total=None)
        write_task = progress.add_task("Writing", total=None)

        def on_read(event):
            progress.update(read_task, completed=event.lines_processed)

        def on_construct(event):
            progress.update(write_task, description="Constructing", completed=event.lines_processed)

        def on_write(event):
            progress.update(write_task, description="Writing", completed=event.lines_processed)

        try:
            Pipeline(ctx, on_read, on_construct, on_write).run()
        except GedcomTransportError as exc:
            fail(exc)

    console.print(f"[green][INFO][/green] {ctx.summary()} written to {out}")
