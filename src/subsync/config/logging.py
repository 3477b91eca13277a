"""Shared logging helpers for subsync."""

from __future__ import annotations

import logging

NULL_LOGGER_NAME = "subsync.null"


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once with sensible defaults.

    Parameters mirror ``logging.basicConfig`` with a simplified contract: we default
    to INFO level and a terse format suitable for CLI output. Pass ``force=True`` to
    reconfigure during tests or specialised entry points.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )


def null_logger() -> logging.Logger:
    """Return a detached logger that discards every record.

    The logger is not registered with the logging manager, so configuring the
    root logger never routes its records anywhere.
    """

    logger = logging.Logger(NULL_LOGGER_NAME)
    logger.addHandler(logging.NullHandler())
    logger.propagate = False
    return logger
