"""Tests for logging configuration."""

import logging

import pytest

from outlook_sync.utils.logging import setup_logging


@pytest.fixture
def package_logger():
    logger = logging.getLogger("outlook_sync")
    saved = list(logger.handlers)
    for handler in saved:
        logger.removeHandler(handler)
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    for handler in saved:
        logger.addHandler(handler)


def test_setup_logging(monkeypatch, package_logger):
    """Test that logging is configured correctly."""
    # Clear log_level env var to use default
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    # Clear singleton to get fresh settings
    import outlook_sync.config
    monkeypatch.setattr(outlook_sync.config, "_settings", None)

    setup_logging()

    assert package_logger.level == logging.INFO  # Default log level
    assert len(package_logger.handlers) == 1
    assert isinstance(package_logger.handlers[0], logging.StreamHandler)


def test_setup_logging_is_idempotent(monkeypatch, package_logger):
    """Test repeated setup does not stack handlers."""
    import outlook_sync.config
    monkeypatch.setattr(outlook_sync.config, "_settings", None)

    setup_logging()
    setup_logging()

    assert len(package_logger.handlers) == 1


def test_module_loggers_propagate_to_package_logger(package_logger):
    """Test module loggers created with __name__ reach the package handler."""
    from outlook_sync.sync import reconciler

    assert reconciler.logger.name == "outlook_sync.sync.reconciler"
    assert reconciler.logger.propagate is True
