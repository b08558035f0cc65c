import logging
from collections.abc import Generator
from unittest.mock import patch

import pytest
from pytest import MonkeyPatch

import kbcli_builder.logutil as kblogmod


@pytest.fixture(autouse=True)
def reset_logger_handlers() -> Generator[None, None, None]:
    # Remove all handlers before each test
    logger = kblogmod.logger
    for h in logger.handlers[:]:
        logger.removeHandler(h)
    yield
    for h in logger.handlers[:]:
        logger.removeHandler(h)


def test_logger_respects_config_log_level(monkeypatch: MonkeyPatch) -> None:
    class DummyConfig:
        def get(self, key: str, default: object = None) -> object:
            if key == "system.log_level":
                return "ERROR"
            return default

    monkeypatch.delenv("KBCLI_BUILDER_LOG_LEVEL", raising=False)
    monkeypatch.setattr(kblogmod, "Config", lambda: DummyConfig())
    kblogmod.init_logging()
    assert kblogmod.logger.level == logging.ERROR


def test_logger_respects_env_var(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setenv("KBCLI_BUILDER_LOG_LEVEL", "DEBUG")
    kblogmod.init_logging()
    assert kblogmod.logger.level == logging.DEBUG


def test_explicit_level_wins(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setenv("KBCLI_BUILDER_LOG_LEVEL", "DEBUG")
    kblogmod.init_logging("warning")
    assert kblogmod.logger.level == logging.WARNING


def test_unknown_level_falls_back_to_warning(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setenv("KBCLI_BUILDER_LOG_LEVEL", "CHATTY")
    kblogmod.init_logging()
    assert kblogmod.logger.level == logging.WARNING


def test_init_logging_does_not_duplicate_handlers() -> None:
    kblogmod.init_logging()
    kblogmod.init_logging()
    assert len(kblogmod.logger.handlers) == 2


def test_error_filtered_out_but_warning_allowed_in_streamhandler() -> None:
    """Test StreamHandler filters ERROR messages but allows WARNING messages."""
    kblogmod.init_logging()
    logger = kblogmod.logger

    stream_handlers = [
        h for h in logger.handlers if isinstance(h, logging.StreamHandler)
    ]
    assert len(stream_handlers) == 1
    stream_handler = stream_handlers[0]

    warning_record = logging.LogRecord(
        name="test",
        level=logging.WARNING,
        pathname="",
        lineno=0,
        msg="Test warning",
        args=(),
        exc_info=None,
    )
    error_record = logging.LogRecord(
        name="test",
        level=logging.ERROR,
        pathname="",
        lineno=0,
        msg="Test error",
        args=(),
        exc_info=None,
    )

    assert stream_handler.filter(warning_record)
    assert not stream_handler.filter(error_record)


def test_errors_go_to_console_manager() -> None:
    kblogmod.init_logging("DEBUG")
    with patch.object(kblogmod.console_manager, "print_error") as mock_print_error:
        kblogmod.logger.error("discovery failed")
        kblogmod.logger.warning("just a warning")

    mock_print_error.assert_called_once_with("discovery failed")
