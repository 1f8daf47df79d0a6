"""Logging setup: one "vendor_chat" logger shared by every module."""
import logging
import os

LOGGER_NAME = "vendor_chat"
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"

logger = logging.getLogger(LOGGER_NAME)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())


def get_logger() -> logging.Logger:
    return logger
