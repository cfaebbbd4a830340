
from __future__ import annotations

from collections import Counter
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from gedcom_transport.cli.utils import fail
from gedcom_transport.core.exceptions import GedcomTransportError
from gedcom_transport.reader import GedcomReader

console = Console()


def tree_command(
    gedcom: Path = typer.Argument(..., exists=True, readable=True),
):
    """
    Parse a GEDCOM file and summarise its level-0 records.
    """
    reader = GedcomReader()
    try:
        tree = reader.load(gedcom)
    except GedcomTransportError as exc:
        fail(exc)

    counts = Counter(rec.tag for rec in tree.records)

    table = Table(title=f"{gedcom.name} ({reader.encoding.label})")
    table.add_column("Record", style="bold")
    table.add_column("Count", justify="right")

    for tag in tree.all_tags():
        table.add_row(tag, str(counts[tag]))
    table.add_row("Total nodes", str(sum(1 for _ in tree.iter_nodes())))

    console.print(table)
