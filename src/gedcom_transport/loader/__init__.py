# src/gedcom_transport/loader/__init__.py

"""
Public interface for the line -> tree stack.

    from gedcom_transport.loader import (
        GedcomLine,
        RecordNode,
        GedcomTree,
        TreeParser,
        tokenize_line,
        tokenize_lines,
        build_tree,
        flatten_tree,
    )
"""

from __future__ import annotations

from .tokenizer import GedcomLine, tokenize_line, tokenize_lines
from .tree_builder import GedcomTree, RecordNode, TreeParser, build_tree
from .flattener import FlatLine, flatten_records, flatten_tree

__all__ = [
    "GedcomLine",
    "tokenize_line",
    "tokenize_lines",
    "RecordNode",
    "GedcomTree",
    "TreeParser",
    "build_tree",
    "FlatLine",
    "flatten_records",
    "flatten_tree",
]
