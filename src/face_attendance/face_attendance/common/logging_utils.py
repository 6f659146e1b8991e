from __future__ import annotations

import logging

# "<package>.common.logging_utils" -> "<package>"
PACKAGE_LOGGER = __name__.rsplit(".", 2)[0]

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the package logger once; repeated calls only adjust the level."""

    log_level = getattr(logging, str(level).upper(), logging.INFO)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(log_level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
