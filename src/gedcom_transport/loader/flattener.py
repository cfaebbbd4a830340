"""
Flatten a record tree back into (level, xref, tag, value) tuples.

Values are emitted whole; splitting long or multi-line values into
CONC/CONT lines is the line writer's job.
"""

from __future__ import annotations

from typing import Iterable, Iterator, NamedTuple, Optional

from .tree_builder import GedcomTree, RecordNode


class FlatLine(NamedTuple):
    level: int
    xref: Optional[str]
    tag: str
    value: str


def _flatten_node(node: RecordNode) -> Iterator[FlatLine]:
    yield FlatLine(node.level, node.xref, node.tag, node.value or "")
    for child in node.children:
        yield from _flatten_node(child)


def flatten_records(records: Iterable[RecordNode]) -> Iterator[FlatLine]:
    """Pre-order walk of each record and its descendants."""
    for record in records:
        yield from _flatten_node(record)


def flatten_tree(tree: GedcomTree) -> Iterator[FlatLine]:
    return flatten_records(tree.records)
