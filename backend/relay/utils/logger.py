# relay/utils/logger.py

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logger(level: int = logging.INFO) -> logging.Logger:
    """
    Configure the "relay" logger hierarchy once.
    Calling it again (e.g. on app reload) does not add duplicate handlers.
    """
    logger = logging.getLogger("relay")
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger
