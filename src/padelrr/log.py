"""Logging setup."""

import logging


def setup_logging(level: str = "INFO") -> None:
    """Configure application-wide logging.

    The format includes timestamp, log level, logger name, and message.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    # Keep uvicorn loggers on the same level as the application.
    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(logger_name).setLevel(numeric_level)
