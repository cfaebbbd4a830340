# src/gedcom_transport/loader/tree_builder.py

"""
Hierarchical parser: flat leveled lines -> record tree.

A stack of open nodes is kept, where ``stack[i]`` is the most recent node
at level ``i - 1`` (``stack[0]`` is the synthetic level -1 root). Each line
is attached to ``stack[level]``. CONT and CONC lines never become nodes:
their values are folded into the value of the node they continue.

    0 @N1@ NOTE First line
    1 CONC  continued
    1 CONT Second line

becomes a single NOTE node whose value is "First line continued\\nSecond line".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional

from gedcom_transport.core.cancellation import CancellationToken
from gedcom_transport.core.exceptions import GedcomParseError, ReaderCancelledError
from gedcom_transport.logging import get_logger
from .tokenizer import GedcomLine

log = get_logger(__name__)

CONTINUATION_TAGS = ("CONT", "CONC")
ROOT_LEVEL = -1


@dataclass
class RecordNode:
    """
    A node of the record tree.

    Attributes:
        level: GEDCOM level number (-1 for the synthetic root, 0 for records).
        tag: The GEDCOM tag (HEAD, INDI, BIRT, DATE, NOTE, etc.).
        value: The value, with CONT/CONC continuations already merged.
        xref: Optional @XREF@ identifier.
        lineno: Line number in the original stream (for debugging).
        children: Child nodes in source order.
    """

    level: int
    tag: str
    value: str = ""
    xref: Optional[str] = None
    lineno: int = 0
    children: List["RecordNode"] = field(default_factory=list)

    @classmethod
    def from_line(cls, line: GedcomLine) -> "RecordNode":
        return cls(
            level=line.level,
            tag=line.tag,
            value=line.value,
            xref=line.xref,
            lineno=line.lineno,
        )

    def add_child(self, child: "RecordNode") -> None:
        self.children.append(child)

    def find_children(self, tag: str) -> List["RecordNode"]:
        """Return all direct children of this node with a given tag."""
        return [c for c in self.children if c.tag == tag]

    def find_first(self, tag: str) -> Optional["RecordNode"]:
        """Return the first direct child with this tag, or None."""
        for c in self.children:
            if c.tag == tag:
                return c
        return None

    def iter_subtree(self) -> Iterator["RecordNode"]:
        """Yield this node and all descendants in depth-first order."""
        yield self
        for child in self.children:
            yield from child.iter_subtree()

    def __repr__(self) -> str:
        xref = f" {self.xref}" if self.xref else ""
        return f"<RecordNode {self.level}{xref} {self.tag}: {self.value!r}>"


@dataclass
class GedcomTree:
    """
    A parsed GEDCOM stream.

    Attributes:
        root:
            Synthetic level -1 node. Its children are the level-0 records
            (HEAD, INDI, FAM, SOUR, REPO, NOTE, OBJE, TRLR, ...).
    """

    root: RecordNode = field(
        default_factory=lambda: RecordNode(level=ROOT_LEVEL, tag="")
    )

    _xref_index: Dict[str, RecordNode] = field(
        default_factory=dict, init=False, repr=False
    )
    _indexes_built: bool = field(default=False, init=False, repr=False)

    @property
    def records(self) -> List[RecordNode]:
        return self.root.children

    def __len__(self) -> int:  # pragma: no cover - trivial wrapper
        return len(self.records)

    def __iter__(self) -> Iterator[RecordNode]:  # pragma: no cover - simple
        return iter(self.records)

    def iter_nodes(self) -> Iterator[RecordNode]:
        """Iterate over every record and descendant, depth-first."""
        for record in self.records:
            yield from record.iter_subtree()

    def _ensure_indexes(self) -> None:
        if self._indexes_built:
            return
        self._xref_index = {n.xref: n for n in self.iter_nodes() if n.xref}
        self._indexes_built = True

    def find_by_xref(self, xref: str) -> Optional[RecordNode]:
        """Return the node carrying the given @XREF@ identifier, if any."""
        if not xref:
            return None
        self._ensure_indexes()
        return self._xref_index.get(xref)

    def find_records_by_tag(self, tag: str) -> List[RecordNode]:
        """Return all level-0 records with the given tag (case-insensitive)."""
        if not tag:
            return []
        t = tag.upper()
        return [r for r in self.records if r.tag.upper() == t]

    def all_tags(self) -> List[str]:
        """Return the distinct tags found among level-0 records."""
        return sorted({rec.tag for rec in self.records if rec.tag})

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return f"<GedcomTree records={len(self.records)}>"


class TreeParser:
    """
    Incremental tree assembler.

    ``feed`` accepts one line at a time so the caller can act on a line
    (e.g. the header's CHAR) before the next one is decoded; ``parse``
    consumes a whole sequence.
    """

    def __init__(self, cancellation: Optional[CancellationToken] = None) -> None:
        self.cancellation = cancellation if cancellation is not None else CancellationToken()
        self.tree = GedcomTree()
        self._stack: List[RecordNode] = [self.tree.root]
        self.lines_consumed = 0

    def feed(self, line: GedcomLine) -> RecordNode:
        """
        Attach one line to the tree.

        Returns the node created for the line, or for CONT/CONC the node
        whose value was extended.

        Raises:
            ReaderCancelledError: if cancellation was requested.
            GedcomParseError: on an orphaned line or a level jump.
        """
        self.cancellation.raise_if_cancelled(
            ReaderCancelledError, f"Parsing cancelled at line {line.lineno}"
        )
        self.lines_consumed += 1

        level = line.level
        open_depth = len(self._stack) - 1  # deepest open level + 1

        if level > open_depth:
            if open_depth == 0:
                message = f"orphaned line at level {level} with no open record"
            else:
                message = f"level jumped from {open_depth - 1} to {level}"
            log.error(f"Line {line.lineno}: {message}")
            raise GedcomParseError(message, lineno=line.lineno, raw=line.raw)

        del self._stack[level + 1 :]
        parent = self._stack[level]

        tag = line.tag.upper()
        if tag in CONTINUATION_TAGS:
            if parent is self.tree.root:
                log.error(f"Line {line.lineno}: {tag} at level 0 has nothing to continue")
                raise GedcomParseError(
                    f"{tag} at level 0 has nothing to continue",
                    lineno=line.lineno,
                    raw=line.raw,
                )
            if tag == "CONT":
                parent.value = f"{parent.value}\n{line.value}"
            else:
                parent.value += line.value
            return parent

        node = RecordNode.from_line(line)
        parent.add_child(node)
        self._stack.append(node)
        return node

    def parse(self, lines: Iterable[GedcomLine]) -> GedcomTree:
        for line in lines:
            self.feed(line)
        log.debug(f"Assembled {len(self.tree.records)} records from {self.lines_consumed} lines")
        return self.tree


def build_tree(
    lines: Iterable[GedcomLine],
    cancellation: Optional[CancellationToken] = None,
) -> GedcomTree:
    """
    Build a GedcomTree from a GedcomLine stream.

        lines -> GedcomTree(root=RecordNode(level=-1, children=[records...]))
    """
    return TreeParser(cancellation).parse(lines)
