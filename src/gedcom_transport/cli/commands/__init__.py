"""
CLI command modules for gedcom_transport.

Each command module defines a single Typer-compatible command function.
"""

from gedcom_transport.cli.commands.convert import convert_command
from gedcom_transport.cli.commands.lines import lines_command
from gedcom_transport.cli.commands.tree import tree_command

__all__ = [
    "convert_command",
    "lines_command",
    "tree_command",
]
