# httpweave/log_config.py
"""Loguru setup shared by the engine, its transport and the built-in middleware.

Every module logs through the ``logger`` re-exported here. The ``logger``
capability (``httpweave.middleware.logger_middleware``) hands the engine a
bound copy of the same logger, so its lines land in the sink configured
below with the bound context appended.
"""

import sys
from typing import TYPE_CHECKING, Any

from loguru import logger

from .config import get_settings

if TYPE_CHECKING:
    from loguru import Record

_LOCATION_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan>"
)


def _format_record(record: "Record") -> str:
    # loguru expects dynamic formats to end with the exception placeholder
    template = _LOCATION_FORMAT
    if record["extra"]:
        template += " | <magenta>{extra}</magenta>"
    return template + " - <level>{message}</level>\n{exception}"


def configure_logging(level: str | None = None, sink: Any = sys.stderr) -> int:
    """Route httpweave logging to a single sink.

    Existing handlers are removed. Records carrying bound context, such as
    those emitted through ``logger_middleware(service="billing")``, show that
    context after the source location.

    Args:
        level: Minimum level; defaults to ``HttpWeaveSettings.log_level``.
        sink: Any loguru sink. Colours are only used for ``sys.stderr``.

    Returns:
        int: The loguru handler id, for callers that want to remove it later.
    """
    level = (level or get_settings().log_level).upper()
    logger.remove()
    handler_id = logger.add(
        sink,
        level=level,
        format=_format_record,
        colorize=sink is sys.stderr,
        backtrace=True,
        diagnose=False,
    )
    logger.debug(f"httpweave logging at {level} or above")
    return handler_id
