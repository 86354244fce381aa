"""Central logging configuration for the assembly engine."""
from __future__ import annotations

import logging
import os
from typing import Optional

_DEFAULT_LEVEL = logging.INFO
_LEVEL_ENV = "DOCGEN_LOG_LEVEL"


def _resolve_level() -> int:
    configured = os.environ.get(_LEVEL_ENV, "").strip().upper()
    if not configured:
        return _DEFAULT_LEVEL
    level = logging.getLevelName(configured)
    return level if isinstance(level, int) else _DEFAULT_LEVEL


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a module-level logger with default configuration applied."""
    logger = logging.getLogger(name)
    if not logging.getLogger().handlers:
        logging.basicConfig(level=_resolve_level(), format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    return logger
