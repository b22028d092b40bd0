"""Loguru setup shared by every monitor presets module.

All output goes to a single stdout sink owned by this module. Each module
binds its own ``service`` name, which is shown in a fixed-width column.
"""

import sys
from typing import Optional

from loguru import logger


SERVICE = "monitor_presets"

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[service]: <14}</cyan> | {message}"
)

_sink_id: Optional[int] = None


def _install_sink(level: str, fmt: str) -> None:
    global _sink_id

    if _sink_id is None:
        # First install also drops loguru's stderr default
        logger.remove()
    else:
        logger.remove(_sink_id)

    logger.configure(extra={"service": SERVICE})
    _sink_id = logger.add(sys.stdout, format=fmt, level=level.upper(), colorize=True)


def get_logger(name: Optional[str] = None):
    """Return the shared logger, bound to ``name`` when given."""
    if _sink_id is None:
        _install_sink("DEBUG", LOG_FORMAT)
    return logger.bind(service=name) if name else logger


def configure_logger(level: str = "INFO", fmt: Optional[str] = None) -> None:
    """Swap the stdout sink for one at ``level``. Other sinks are left alone."""
    _install_sink(level, fmt or LOG_FORMAT)
