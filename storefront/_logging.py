"""
Logging setup.

Modules log through ``logging.getLogger(__name__)``; the application entry
points call ``configure_logging`` once.
"""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_handler = logging.StreamHandler()
_handler.setFormatter(logging.Formatter(LOG_FORMAT))


def configure_logging(level: str | int = logging.INFO) -> None:
    root = logging.getLogger("storefront")
    root.setLevel(level)
    if _handler not in root.handlers:
        root.addHandler(_handler)


__all__ = ("configure_logging", "LOG_FORMAT")
