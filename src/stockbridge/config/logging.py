"""Shared logging helpers."""

from __future__ import annotations

import logging

# per-request INFO lines from the HTTP stack drown out phase progress
_NOISY_LOGGERS = ("httpx", "httpcore", "hishel")


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once with CLI-friendly defaults.

    Pass ``force=True`` to reconfigure during tests or specialised entry points.
    Transport libraries are capped at WARNING unless ``level`` is DEBUG.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    if level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
