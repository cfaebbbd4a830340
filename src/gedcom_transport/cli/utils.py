
from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from gedcom_transport.core.exceptions import GedcomTransportError
from gedcom_transport.io.encoding import Encoding, LineTerminator

console = Console(stderr=True)


def parse_encoding(name: Optional[str]) -> Optional[Encoding]:
    """Map a CLI value such as "ansel" or "utf16-le" to an Encoding."""
    if name is None:
        return None
    key = name.upper().replace("-", "_")
    aliases = {"UTF_8": "UTF8", "UTF16": "UTF16_LE", "UNICODE": "UTF16_LE", "ANSI": "ASCII"}
    key = aliases.get(key, key)
    try:
        return Encoding[key]
    except KeyError:
        choices = ", ".join(e.name for e in Encoding)
        raise typer.BadParameter(f"Unknown encoding {name!r}; choose one of {choices}") from None


def parse_terminator(name: str) -> LineTerminator:
    try:
        return LineTerminator.parse(name)
    except ValueError:
        raise typer.BadParameter(f"Unknown terminator {name!r}; choose CR, LF or CRLF") from None


def fail(exc: GedcomTransportError) -> None:
    """Report a transport error and exit non-zero."""
    console.print(f"[red][ERROR][/red] {type(exc).__name__}: {exc}")
    raise typer.Exit(code=1)
