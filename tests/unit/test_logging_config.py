"""Tests for logging setup."""

import json
import logging

import pytest

from mev_inspector import logging_config
from mev_inspector.logging_config import JsonFormatter, resolve_level


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    package_level = logging.getLogger("mev_inspector").level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("mev_inspector").setLevel(package_level)


def test_resolve_level():
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level("WARN") == logging.WARNING
    assert resolve_level("error") == logging.ERROR
    assert resolve_level("nonsense") == logging.INFO
    assert resolve_level(logging.ERROR) == logging.ERROR


def test_console_setup(restore_logging):
    logging_config.setup("debug", "console")

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert not isinstance(root.handlers[0].formatter, JsonFormatter)
    assert logging.getLogger("web3").level == logging.WARNING


def test_json_setup(restore_logging):
    logging_config.setup("info", "json")
    assert isinstance(logging.getLogger().handlers[0].formatter, JsonFormatter)


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord(
        "mev_inspector.reporter", logging.INFO, __file__, 1, "found %s", ("arb",), None
    )
    record.tx_hash = "0xabc"
    record.profit_wei = str(10**16)

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "found arb"
    assert payload["level"] == "info"
    assert payload["logger"] == "mev_inspector.reporter"
    assert payload["tx_hash"] == "0xabc"
    assert payload["profit_wei"] == "10000000000000000"
    assert "args" not in payload
