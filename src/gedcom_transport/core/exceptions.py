from __future__ import annotations

from typing import Optional


class GedcomTransportError(Exception):
    """Base exception for transport-layer failures."""


class GedcomIOError(GedcomTransportError, OSError):
    """Raised when the byte stream is unusable (too short, unreadable)."""


class UnsupportedEncodingError(GedcomTransportError):
    """Raised when a declared character set maps to no supported encoding."""


class GedcomParseError(GedcomTransportError):
    """
    Raised for malformed input: bad line syntax, orphaned or jumping levels,
    truncated multi-byte data.

    Attributes:
        lineno: 1-based line number where the problem was found, if known.
        raw: The offending line content, if known.
    """

    def __init__(
        self,
        message: str,
        *,
        lineno: Optional[int] = None,
        raw: Optional[str] = None,
    ) -> None:
        if lineno is not None:
            message = f"Line {lineno}: {message}"
        super().__init__(message)
        self.lineno = lineno
        self.raw = raw


class CancellationError(GedcomTransportError):
    """Raised when an operation stops because cancellation was requested."""


class ReaderCancelledError(CancellationError):
    """The read/parse operation was cancelled."""


class WriterCancelledError(CancellationError):
    """The write operation was cancelled. Output on the sink is partial."""


class ConfigurationError(GedcomTransportError, ValueError):
    """Raised when an option value is rejected at configuration time."""
