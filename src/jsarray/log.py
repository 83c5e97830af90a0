"""Logger used by the jsarray package.

No handlers are installed here. Attach handlers to the ``jsarray`` logger, or
hand the package a logger of your own with :func:`set_logger`.
"""

import logging

current_logger = logging.getLogger("jsarray")


def set_logger(logger: logging.Logger) -> None:
    global current_logger
    current_logger = logger


def logger() -> logging.Logger:
    return current_logger
