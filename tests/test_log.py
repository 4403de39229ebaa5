"""
Tests for the logging module.
"""

import logging
from unittest.mock import patch

import pytest

from rosterwatch.config import Config, LoggingConfig
from rosterwatch.log import NOISY_LOGGERS, configure_logging, get_logger, parse_level, quiet_libraries


def test_get_logger():
    """Test getting a logger."""
    logger = get_logger("test")

    # Verify logger
    assert isinstance(logger, logging.Logger)
    assert logger.name == "test"


@patch("rosterwatch.log.logging.basicConfig")
def test_configure_logging_default(mock_basicConfig):
    """Test configuring logging with default settings."""
    configure_logging()

    mock_basicConfig.assert_called_once()
    args = mock_basicConfig.call_args[1]
    assert args["level"] == logging.INFO
    assert "format" in args
    assert "datefmt" in args


@patch("rosterwatch.log.logging.basicConfig")
def test_configure_logging_with_config(mock_basicConfig):
    """Test configuring logging with custom config."""
    cfg = Config(logging=LoggingConfig(level="DEBUG"))

    configure_logging(cfg)

    args = mock_basicConfig.call_args[1]
    assert args["level"] == logging.DEBUG


@patch("rosterwatch.log.logging.basicConfig")
def test_configure_logging_explicit_level_wins(mock_basicConfig):
    """Test an explicit level overrides the configuration."""
    cfg = Config(logging=LoggingConfig(level="DEBUG"))

    configure_logging(cfg, "warning")

    args = mock_basicConfig.call_args[1]
    assert args["level"] == logging.WARNING


@patch("rosterwatch.log.logging.basicConfig")
def test_configure_logging_invalid_level(mock_basicConfig):
    """Test configuring logging with an invalid level."""
    cfg = Config(logging=LoggingConfig(level="LOUD"))

    with pytest.raises(ValueError, match="Invalid log level"):
        configure_logging(cfg)

    mock_basicConfig.assert_not_called()


def test_parse_level():
    """Test level names resolve regardless of case."""
    assert parse_level("warning") == logging.WARNING
    assert parse_level("DEBUG") == logging.DEBUG

    with pytest.raises(ValueError, match="Invalid log level: LOUD"):
        parse_level("LOUD")


def test_quiet_libraries_raises_to_floor():
    """Test chatty loggers are raised to the floor but never lowered."""
    chatty = logging.getLogger("rosterwatch.tests.chatty")
    strict = logging.getLogger("rosterwatch.tests.strict")
    chatty.setLevel(logging.DEBUG)
    strict.setLevel(logging.ERROR)

    try:
        quiet_libraries([chatty.name, strict.name])

        assert chatty.level == logging.WARNING
        assert strict.level == logging.ERROR
    finally:
        chatty.setLevel(logging.NOTSET)
        strict.setLevel(logging.NOTSET)


@patch("rosterwatch.log.logging.basicConfig")
def test_configure_logging_quiets_pdf_and_http(mock_basicConfig):
    """Test PDF and HTTP library debug output stays off at DEBUG level."""
    assert "pdfminer" in NOISY_LOGGERS
    assert "urllib3" in NOISY_LOGGERS

    configure_logging(level="DEBUG")

    assert mock_basicConfig.call_args[1]["level"] == logging.DEBUG
    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).getEffectiveLevel() >= logging.WARNING
