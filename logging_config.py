"""Logging configuration module."""

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger for the API process."""

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    # passlib probes the bcrypt version on first use and logs noise about it
    logging.getLogger("passlib").setLevel(logging.ERROR)
