"""Logging setup for command-line entry points."""

from __future__ import annotations

import logging

from .env import env_bool


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger once.

    ``ROSTERSYNC_DEBUG=1`` lowers the default level to DEBUG. Pass
    ``force=True`` to reconfigure during tests.
    """

    if level is None:
        level = logging.DEBUG if env_bool("ROSTERSYNC_DEBUG", default=False) else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    # httpx logs every request line at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
