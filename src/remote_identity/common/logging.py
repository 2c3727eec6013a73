"""Shared logging helpers for remote identity providers."""

from __future__ import annotations

import logging
from typing import Final

LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# -v adds selections and created identities, -vv adds profile writes
_VERBOSITY_LEVELS: Final[tuple[int, ...]] = (logging.WARNING, logging.INFO, logging.DEBUG)


def level_for_verbosity(verbosity: int) -> int:
    return _VERBOSITY_LEVELS[max(0, min(verbosity, len(_VERBOSITY_LEVELS) - 1))]


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger with the project format.

    Rejected remote user names are logged by the module that rejected them, so
    the logger name is part of every line. Pass ``force=True`` to reconfigure
    from the CLI or during tests.
    """

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
