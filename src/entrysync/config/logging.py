"""Logging setup for the entrysync worker."""

from __future__ import annotations

import logging
from typing import Final

LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
# chatty at DEBUG; kept at WARNING unless asked for more
LIBRARY_LOGGERS: Final[tuple[str, ...]] = ("sqlalchemy.engine", "redis")


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Configure the root logger for worker output.

    ``--verbose`` lowers the entrysync level to DEBUG without flooding the output
    with driver chatter from the libraries above.
    """

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%dT%H:%M:%S",
        force=force,
    )
    for name in LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
