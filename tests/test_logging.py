"""
Tests for the area loggers and formatters
"""
import logging

from blinthe.logging import AREA_CONFIG, FileFormatter, get_logger


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("blinthe.vault.store", logging.WARNING, __file__, 1, "Decryption error", (), None)
    for name, value in extra.items():
        setattr(record, name, value)
    return record


def test_file_formatter_appends_storage_key():
    line = FileFormatter("vault.store").format(_record(storage_key="widget_1"))

    assert "[BLINTHE.vault.store] WARNING: Decryption error storage_key=widget_1" in line


def test_file_formatter_without_extras():
    line = FileFormatter("vault.store").format(_record())

    assert line.endswith("WARNING: Decryption error")


def test_every_configured_area_has_a_prefix():
    for area, config in AREA_CONFIG.items():
        assert config["prefix"] == f"BLINTHE.{area}"


def test_get_logger_is_configured_once():
    first = get_logger("widgets.repository")
    second = get_logger("widgets.repository")

    assert first is second
    assert len(first.handlers) >= 1
    assert first.propagate is False
