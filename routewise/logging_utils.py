"""
Logging set-up for RouteWise.

Library modules only ask ``get_logger`` for a named logger and never
attach handlers. The process owner (the ``routewise`` command, or an
application embedding the planner) calls ``configure_root_logger`` to
choose the destination stream and verbosity.
"""

from __future__ import annotations

import logging
from typing import IO, Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

_handler: Optional[logging.Handler] = None


def configure_root_logger(level: Union[int, str] = logging.INFO, stream: Optional[IO[str]] = None) -> logging.Handler:
    """Send log records to ``stream`` (stderr when omitted) at ``level``.

    The first call installs a handler on the root logger; later calls
    only change the level and return that same handler.
    """
    global _handler
    root = logging.getLogger()
    root.setLevel(level.upper() if isinstance(level, str) else level)
    if _handler is None:
        _handler = logging.StreamHandler(stream)
        _handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(_handler)
    return _handler


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)
