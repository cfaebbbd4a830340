"""
Progress events and the observer registry shared by reader and writer.

Observers are plain callables invoked inline on the reading/writing thread,
so they should return quickly. A callable may request cancellation of the
operation it is observing; the request is honoured at the next checkpoint.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, List, TypeVar


@dataclass(frozen=True)
class FileProgressEvent:
    """
    Progress of reading from a byte source or writing to a byte sink.

    Attributes:
        lines_processed: Lines read (or written) so far.
        bytes_processed: Bytes consumed (or written) so far.
        complete: True on the final notification of the operation.
    """

    lines_processed: int
    bytes_processed: int
    complete: bool = False


@dataclass(frozen=True)
class ConstructProgressEvent:
    """Progress of assembling output lines before they are encoded."""

    lines_processed: int
    complete: bool = False


E = TypeVar("E")


class ObserverRegistry(Generic[E]):
    """Ordered list of progress callbacks for one event type."""

    def __init__(self) -> None:
        self._observers: List[Callable[[E], None]] = []

    def register(self, observer: Callable[[E], None]) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def unregister(self, observer: Callable[[E], None]) -> None:
        # Unregistering something that isn't registered is a no-op.
        if observer in self._observers:
            self._observers.remove(observer)

    def notify(self, event: E) -> None:
        for observer in list(self._observers):
            observer(event)

    def __len__(self) -> int:
        return len(self._observers)

    def __bool__(self) -> bool:
        return bool(self._observers)
