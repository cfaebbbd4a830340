"""
Logging setup for gedcom-transport.

Every module logs through ``get_logger(__name__)``. Loggers are nested under
the ``gedcom_transport`` base logger, which owns two handlers:

* the master log file (``logs/gedcom_transport.log`` by default), and
* a console handler on stderr that only shows warnings unless the debug
  flag or ``set_console_level`` says otherwise.

Reading and writing log one line per file at INFO and per-phase detail at
DEBUG; per-line events are never logged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from logging import Logger, StreamHandler
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, List, Optional

from gedcom_transport.config import get_config

PROJECT_ROOT = Path(__file__).resolve().parents[3]
BASE_LOGGER_NAME = "gedcom_transport"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROTATE_MAX_BYTES = 5 * 1024 * 1024
ROTATE_BACKUPS = 5


@dataclass
class LogSettings:
    level: int
    console_level: int
    log_dir: Path
    master_file: str
    rotate: bool
    per_module_files: bool

    @classmethod
    def from_config(cls) -> "LogSettings":
        cfg = get_config()
        section = cfg.logging

        level_name = str(section.get("level", "INFO")).upper()
        level = getattr(logging, level_name, logging.INFO)
        if cfg.debug:
            level = logging.DEBUG

        log_dir = Path(section.get("dir") or cfg.paths.get("logs_dir") or "logs")
        if not log_dir.is_absolute():
            log_dir = PROJECT_ROOT / log_dir

        return cls(
            level=level,
            console_level=logging.DEBUG if cfg.debug else logging.WARNING,
            log_dir=log_dir,
            master_file=section.get("file") or "gedcom_transport.log",
            rotate=bool(section.get("rotate", False)),
            per_module_files=bool(section.get("per_module_files", False)),
        )


_settings: Optional[LogSettings] = None
_console: Optional[StreamHandler] = None
_module_handlers: Dict[str, logging.Handler] = {}
_installed: List[logging.Handler] = []


# -----------------------------------------------------------------------------
# Handlers
# -----------------------------------------------------------------------------

def _formatter() -> logging.Formatter:
    return logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)


def _file_handler(settings: LogSettings, filename: str) -> logging.Handler:
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    path = settings.log_dir / filename
    if settings.rotate:
        handler: logging.Handler = RotatingFileHandler(
            path, maxBytes=ROTATE_MAX_BYTES, backupCount=ROTATE_BACKUPS, encoding="utf-8"
        )
    else:
        handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(settings.level)
    handler.setFormatter(_formatter())
    return handler


def configure_logging(settings: Optional[LogSettings] = None) -> Logger:
    """
    Attach the master file and console handlers to the base logger.

    Called implicitly by ``get_logger``; calling it again with new settings
    replaces the handlers it installed earlier.
    """
    global _settings, _console

    base = logging.getLogger(BASE_LOGGER_NAME)
    if settings is None and _settings is not None:
        return base

    reset_logging()
    _settings = settings or LogSettings.from_config()

    base.setLevel(_settings.level)
    base.propagate = False
    master = _file_handler(_settings, _settings.master_file)

    _console = StreamHandler()
    _console.setLevel(_settings.console_level)
    _console.setFormatter(_formatter())

    for handler in (master, _console):
        base.addHandler(handler)
        _installed.append(handler)
    return base


def reset_logging() -> None:
    """
    Close and detach the handlers ``configure_logging`` and ``get_logger``
    installed. Handlers added by anyone else stay where they are.
    """
    global _settings, _console

    base = logging.getLogger(BASE_LOGGER_NAME)
    for handler in _installed:
        base.removeHandler(handler)
        handler.close()
    _installed.clear()
    for name, handler in _module_handlers.items():
        logging.getLogger(name).removeHandler(handler)
        handler.close()
    _module_handlers.clear()
    _settings = None
    _console = None


def set_console_level(level: int) -> None:
    """Change how much reaches stderr (the CLI uses this for ``--verbose``)."""
    configure_logging()
    if _console is not None:
        _console.setLevel(level)


# -----------------------------------------------------------------------------
# Public API
# -----------------------------------------------------------------------------

def get_logger(name: Optional[str] = None) -> Logger:
    """
    Return a logger under ``gedcom_transport``.

    Names outside the package (``"tests.pipeline"``) are nested under the base
    logger so they share its handlers. With ``per_module_files`` enabled the
    logger also writes to ``logs/<dotted_name_with_underscores>.log``.
    """
    configure_logging()

    logger_name = name or BASE_LOGGER_NAME
    if logger_name != BASE_LOGGER_NAME and not logger_name.startswith(BASE_LOGGER_NAME + "."):
        logger_name = f"{BASE_LOGGER_NAME}.{logger_name}"

    logger = logging.getLogger(logger_name)
    if (
        _settings.per_module_files
        and logger_name != BASE_LOGGER_NAME
        and logger_name not in _module_handlers
    ):
        handler = _file_handler(_settings, f"{logger_name.replace('.', '_')}.log")
        logger.addHandler(handler)
        _module_handlers[logger_name] = handler
    return logger


def installed_handlers() -> List[logging.Handler]:
    """Handlers currently attached to the base logger by ``configure_logging``."""
    return list(_installed)


def active_loggers() -> List[str]:
    """Names of the package loggers created so far."""
    manager = logging.getLogger(BASE_LOGGER_NAME).manager
    return sorted(
        name
        for name, logger in manager.loggerDict.items()
        if isinstance(logger, Logger)
        and (name == BASE_LOGGER_NAME or name.startswith(BASE_LOGGER_NAME + "."))
    )
