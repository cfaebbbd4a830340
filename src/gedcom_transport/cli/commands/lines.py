from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from gedcom_transport.cli.utils import fail, parse_encoding
from gedcom_transport.core.exceptions import GedcomTransportError
from gedcom_transport.io.line_reader import LineReader

console = Console()


def lines_command(
    gedcom: Path = typer.Argument(..., exists=True, readable=True),
    encoding: Optional[str] = typer.Option(
        None,
        "--encoding",
        "-e",
        help="Force an encoding instead of detecting it",
    ),
    limit: int = typer.Option(
        0,
        "--limit",
        "-n",
        help="Stop after this many lines (0 = all)",
    ),
):
    """
    Print the decoded lines of a GEDCOM file.
    """
    try:
        with gedcom.open("rb") as fh:
            reader = LineReader(fh, encoding=parse_encoding(encoding))
            console.print(
                f"[bold]{reader.encoding.label}[/bold] (bom={reader.has_bom})",
                highlight=False,
            )
            for line in reader:
                console.print(line, markup=False, highlight=False)
                if limit and reader.lines_read >= limit:
                    break
    except GedcomTransportError as exc:
        fail(exc)
