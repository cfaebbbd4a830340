from __future__ import annotations

import typer
from rich.console import Console

from gedcom_transport import __version__
from gedcom_transport.cli.commands.convert import convert_command
from gedcom_transport.cli.commands.lines import lines_command
from gedcom_transport.cli.commands.tree import tree_command

app = typer.Typer(
    name="gedcom-transport",
    help="Inspect and re-encode GEDCOM files: ASCII, ANSEL, UTF-8 and UTF-16.",
    add_completion=False,
)

console = Console()


def _show_version(value: bool):
    if value:
        console.print(f"gedcom-transport {__version__}")
        raise typer.Exit()


@app.callback()
def root(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_show_version,
        is_eager=True,
        help="Print the version and exit",
    ),
):
    """Byte and line level GEDCOM tools."""


app.command("lines")(lines_command)
app.command("tree")(tree_command)
app.command("convert")(convert_command)


def main():
    app()


if __name__ == "__main__":
    main()
