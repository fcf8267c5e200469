"""Tests for logging configuration."""

from __future__ import annotations

import json
import logging

import pytest

from dk_common.logging import configure_logging


pytestmark = pytest.mark.unit_common


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_file_logging(tmp_path, restore_root_logger, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DK_LOG_LEVEL", raising=False)
    log_file = tmp_path / "dashkit.log"

    configure_logging(level="info", json=True, log_file=str(log_file), force=True)
    logging.getLogger("dk_content.test").info("collection loaded")
    for handler in restore_root_logger.handlers:
        handler.flush()

    record = json.loads(log_file.read_text().strip().splitlines()[-1])
    assert record["event"] == "collection loaded"
    assert record["level"] == "info"
    assert restore_root_logger.level == logging.INFO


def test_env_level_and_debug_flag(restore_root_logger, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DK_LOG_LEVEL", "ERROR")
    configure_logging(force=True)
    assert restore_root_logger.level == logging.ERROR

    configure_logging(debug=True, force=True)
    assert restore_root_logger.level == logging.DEBUG


def test_existing_handlers_are_kept_without_force(restore_root_logger) -> None:
    sentinel = logging.NullHandler()
    restore_root_logger.addHandler(sentinel)

    configure_logging(level="debug")

    assert sentinel in restore_root_logger.handlers
