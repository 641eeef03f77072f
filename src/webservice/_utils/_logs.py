import logging
import sys

from .constants import LOGGER_NAME

_handler: logging.Handler | None = None


def setup_logging(debug: bool = False) -> None:
    """Attach a stream handler to the package logger.

    The first call sets the level from ``debug``. Later calls never add a
    second handler and only ever raise verbosity, so debug logging enabled
    elsewhere stays on.
    """
    global _handler

    logger = logging.getLogger(LOGGER_NAME)

    if _handler is None:
        logger.setLevel(logging.DEBUG if debug else logging.WARNING)
        _handler = logging.StreamHandler(sys.stderr)
        _handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(_handler)
    elif debug:
        logger.setLevel(logging.DEBUG)
