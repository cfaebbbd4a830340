"""
Logging package for ``gedcom_transport``.

Use ``get_logger(__name__)`` in modules to inherit the shared handlers.
"""

from .logger import (
    LogSettings,
    active_loggers,
    configure_logging,
    get_logger,
    installed_handlers,
    reset_logging,
    set_console_level,
)

__all__ = [
    "LogSettings",
    "active_loggers",
    "configure_logging",
    "get_logger",
    "installed_handlers",
    "reset_logging",
    "set_console_level",
]
