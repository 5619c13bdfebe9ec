"""Logging configuration for the modloop CLI."""

from __future__ import annotations

import logging
import os

NOISY_LOGGERS = ("httpx", "httpcore", "openai", "urllib3")


def setup_logging(
    logger_name: str = "modloop",
    log_file: str | None = None,
    verbose: bool = False,
) -> logging.Logger:
    """
    Configure dual-handler logging (console + file).

    Args:
        logger_name: Root of the logger tree to configure
        log_file: Path to log file (None for no file logging)
        verbose: Enable DEBUG level on console (default WARNING, so log
            lines do not compete with the rendered output)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG)
    # Re-running the CLI in one process must not stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(
        logging.Formatter("%(levelname)-8s | %(name)s | %(message)s")
    )
    logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="w")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(file_handler)

    # Suppress noisy 3rd party loggers
    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger
