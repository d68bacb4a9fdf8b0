"""Logging for the ``payment_signals`` package.

Library modules log through ``get_logger("payment_signals.<module>")`` and
never attach handlers of their own: the classification core runs inside
host listeners that own their logging. Only the CLI calls
``configure_logging``, with the level taken from ``--log-level`` or
``Settings.log_level`` (``PAYMENT_SIGNALS_LOG_LEVEL``).

Rejected signals are logged at DEBUG, suppressed duplicates at INFO and
store failures at WARNING.
"""

from __future__ import annotations

import logging
import sys
from typing import IO

PACKAGE_LOGGER = "payment_signals"
CONSOLE_HANDLER = "payment_signals.console"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def resolve_level(level: int | str) -> int:
    """Map ``"debug"``, ``"WARNING"``, ``"10"`` or ``10`` to a numeric level.

    Raises ``ValueError`` for names the ``logging`` module does not know.
    """

    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    try:
        return logging.getLevelNamesMapping()[name]
    except KeyError:
        raise ValueError(f"unknown log level {level!r}") from None


def _console_handler(logger: logging.Logger) -> logging.Handler | None:
    for handler in logger.handlers:
        if handler.get_name() == CONSOLE_HANDLER:
            return handler
    return None


def configure_logging(
    level: int | str = logging.INFO,
    *,
    fmt: str = DEFAULT_FORMAT,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Send package records to ``stream`` (stderr by default) at ``level``.

    Calling it again replaces the console handler instead of adding a second
    one, so the CLI can be invoked repeatedly in one process.
    """

    resolved = resolve_level(level)
    logger = logging.getLogger(PACKAGE_LOGGER)

    for handler in list(logger.handlers):
        if isinstance(handler, logging.NullHandler) or handler.get_name() == CONSOLE_HANDLER:
            logger.removeHandler(handler)

    console = logging.StreamHandler(stream or sys.stderr)
    console.set_name(CONSOLE_HANDLER)
    console.setFormatter(logging.Formatter(fmt))
    logger.addHandler(console)
    logger.setLevel(resolved)
    # The console handler already prints; the root logger would print again.
    logger.propagate = False
    return logger


def reset_logging() -> None:
    """Detach the console handler and hand records back to the root logger."""

    logger = logging.getLogger(PACKAGE_LOGGER)
    console = _console_handler(logger)
    if console is not None:
        logger.removeHandler(console)
        console.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def get_logger(name: str) -> logging.Logger:
    package = logging.getLogger(PACKAGE_LOGGER)
    if not package.handlers:
        package.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["resolve_level", "configure_logging", "reset_logging", "get_logger"]
