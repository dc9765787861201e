"""Logging setup."""

import logging

import pytest

from storefront._logging import LOG_FORMAT, configure_logging


@pytest.fixture
def storefront_logger():
    logger = logging.getLogger("storefront")
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)


def test_configuring_twice_installs_one_handler(storefront_logger):
    configure_logging("DEBUG")
    configure_logging(logging.WARNING)

    formatted = [h for h in storefront_logger.handlers if h.formatter is not None]
    assert len(formatted) == 1
    assert formatted[0].formatter._fmt == LOG_FORMAT
    assert storefront_logger.level == logging.WARNING
