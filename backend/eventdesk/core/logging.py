#!/usr/bin/env python3
"""
Logging utilities for the backend application.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Optional[int] = None) -> None:
    """
    Configure root logger.

    Parameters
    ----------
    level:
        Logging level to apply. Falls back to the ``LOG_LEVEL`` environment
        variable, then logging.INFO.
    """
    if level is None:
        level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO").upper())
        if not isinstance(level, int):
            level = logging.INFO

    if not logging.getLogger().handlers:
        logging.basicConfig(level=level, format=_LOG_FORMAT)
    else:
        logging.getLogger().setLevel(level)

    # requests/urllib3 log every connection at DEBUG
    logging.getLogger("urllib3").setLevel(max(level, logging.WARNING))
