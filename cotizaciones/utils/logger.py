"""Shared ``logging`` setup for the workbook actions, rate clients and CLI.

Every module asks for ``get_logger(__name__)``; the first call installs one
root handler so CLI runs print timestamps next to each action's progress.
``COTIZACIONES_LOG_LEVEL`` overrides the default ``INFO`` level.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

PACKAGE_LOGGER = "cotizaciones"
LOG_LEVEL_ENV = "COTIZACIONES_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_ROOT: Optional[logging.Logger] = None


def _configured_level() -> int:
    name = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    level = logging.getLevelName(name) if name else logging.INFO
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str = PACKAGE_LOGGER) -> logging.Logger:
    """Return the logger for ``name``, configuring the handler on first use."""
    global _ROOT
    if _ROOT is None:
        logging.basicConfig(level=_configured_level(), format=LOG_FORMAT)
        _ROOT = logging.getLogger(PACKAGE_LOGGER)
    return logging.getLogger(name)


__all__ = ["LOG_FORMAT", "LOG_LEVEL_ENV", "PACKAGE_LOGGER", "get_logger"]
