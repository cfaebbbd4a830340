"""
Validated options for the reader and writer.

Every value is checked when it is set, so a bad rate or width fails before
any byte is read or written.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from gedcom_transport.config import get_config
from gedcom_transport.core.exceptions import ConfigurationError
from gedcom_transport.io.encoding import LineTerminator

#: Smallest width that still leaves room for "N CONC x".
MIN_LINE_WIDTH = 16


def positive_int(name: str, value: Any) -> int:
    """Return ``value`` as an int, or raise ConfigurationError if it is not > 0."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise ConfigurationError(f"{name} must be a positive integer, got {value}")
    return value


@dataclass
class ReaderOptions:
    read_notification_rate: int = 500

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "read_notification_rate":
            value = positive_int(name, value)
        super().__setattr__(name, value)

    @classmethod
    def from_config(cls) -> "ReaderOptions":
        cfg = get_config()
        return cls(read_notification_rate=cfg.reader["read_notification_rate"])


@dataclass
class WriterOptions:
    construction_notification_rate: int = 500
    file_notification_rate: int = 500
    line_terminator: LineTerminator = LineTerminator.CRLF
    max_line_width: int = 255
    write_bom: bool = False

    def __setattr__(self, name: str, value: Any) -> None:
        if name in ("construction_notification_rate", "file_notification_rate"):
            value = positive_int(name, value)
        elif name == "max_line_width":
            value = positive_int(name, value)
            if value < MIN_LINE_WIDTH:
                raise ConfigurationError(
                    f"max_line_width must be at least {MIN_LINE_WIDTH}, got {value}"
                )
        elif name == "line_terminator":
            try:
                value = LineTerminator.parse(value)
            except ValueError as exc:
                raise ConfigurationError(str(exc)) from exc
        super().__setattr__(name, value)

    @classmethod
    def from_config(cls) -> "WriterOptions":
        w = get_config().writer
        return cls(
            construction_notification_rate=w["construction_notification_rate"],
            file_notification_rate=w["file_notification_rate"],
            line_terminator=w["line_terminator"],
            max_line_width=w["max_line_width"],
            write_bom=bool(w["write_bom"]),
        )
