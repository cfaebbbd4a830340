# tests/test_logging.py

from __future__ import annotations

import logging

import pytest

from gedcom_transport.logging import (
    LogSettings,
    active_loggers,
    configure_logging,
    get_logger,
    installed_handlers,
    reset_logging,
    set_console_level,
)


@pytest.fixture
def log_dir(tmp_path):
    configure_logging(
        LogSettings(
            level=logging.DEBUG,
            console_level=logging.WARNING,
            log_dir=tmp_path,
            master_file="transport.log",
            rotate=False,
            per_module_files=True,
        )
    )
    yield tmp_path
    reset_logging()


def flush_all() -> None:
    for logger_name in active_loggers():
        for handler in logging.getLogger(logger_name).handlers:
            handler.flush()


def test_names_are_nested_under_package() -> None:
    assert get_logger("tests.example").name == "gedcom_transport.tests.example"
    assert get_logger("gedcom_transport.io.encoding").name == "gedcom_transport.io.encoding"
    assert get_logger().name == "gedcom_transport"
    assert "gedcom_transport.tests.example" in active_loggers()


def test_messages_reach_master_and_module_files(log_dir) -> None:
    get_logger("tests.files").debug("decoded 3 lines")
    flush_all()

    master = (log_dir / "transport.log").read_text(encoding="utf-8")
    module = (log_dir / "gedcom_transport_tests_files.log").read_text(encoding="utf-8")
    assert "[DEBUG] gedcom_transport.tests.files: decoded 3 lines" in master
    assert "decoded 3 lines" in module


def console_handler() -> logging.Handler:
    (handler,) = [h for h in installed_handlers() if type(h) is logging.StreamHandler]
    return handler


def test_console_level_can_be_raised(log_dir) -> None:
    assert console_handler().level == logging.WARNING
    set_console_level(logging.INFO)
    assert console_handler().level == logging.INFO


def test_reconfiguring_replaces_only_own_handlers(log_dir) -> None:
    base = logging.getLogger("gedcom_transport")
    foreign = logging.NullHandler()
    base.addHandler(foreign)
    try:
        old = installed_handlers()
        configure_logging(
            LogSettings(logging.INFO, logging.ERROR, log_dir, "other.log", False, False)
        )
        new = installed_handlers()

        assert foreign in base.handlers
        assert not any(handler in base.handlers for handler in old)
        assert all(handler in base.handlers for handler in new)
        assert console_handler().level == logging.ERROR
    finally:
        base.removeHandler(foreign)


def test_reset_leaves_foreign_handlers_attached(log_dir) -> None:
    base = logging.getLogger("gedcom_transport")
    foreign = logging.NullHandler()
    base.addHandler(foreign)
    try:
        reset_logging()
        assert installed_handlers() == []
        assert foreign in base.handlers
    finally:
        base.removeHandler(foreign)
