"""Runtime logging helpers."""

from __future__ import annotations

import os
import sys
from logging import Handler
from typing import Literal

from loguru import logger
from rich.console import Console
from rich.logging import RichHandler

LogProfile = Literal["default", "cli"]

_DEFAULT_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<6} | {name}:{function}:{line} | {message}"
_CONFIGURED: tuple[LogProfile, str] | None = None


def _build_cli_handler() -> Handler:
    return RichHandler(
        console=Console(stderr=True),
        show_level=True,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )


def configure_logging(level: str | None = None, *, profile: LogProfile = "default") -> None:
    """Configure process-level logging once per profile and level."""

    global _CONFIGURED
    resolved_level = (level or os.getenv("COSPEC_LOG_LEVEL", "INFO")).upper()
    if (profile, resolved_level) == _CONFIGURED:
        return

    logger.remove()
    if profile == "cli":
        logger.add(
            _build_cli_handler(),
            level=resolved_level,
            format="{message}",
            backtrace=False,
            diagnose=False,
        )
    else:
        logger.add(
            sys.stderr,
            level=resolved_level,
            format=_DEFAULT_FORMAT,
            backtrace=False,
            diagnose=False,
        )
    _CONFIGURED = (profile, resolved_level)
