"""
Logging setup for the pinner CLI.

``setup_logging`` runs once from main.py; modules only ever call
``logging.getLogger(__name__)``.

Console level comes from the CLI flags, then ``PINNER_LOG_LEVEL``, then
WARNING.  ``PINNER_LOG_FILE`` / ``PINNER_LOG_FILE_LEVEL`` add a detailed
log file.

The pin service's ``⚠ Unable to pin action …`` warnings reach stderr at
every console level, ``--quiet`` included.
"""

from __future__ import annotations

import logging
import sys

PIN_WARNING_LOGGER = "pinner.core.services.action_pins"

_DETAILED = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"

# (upper level bound, format, datefmt), checked in order; anything
# quieter than INFO prints the bare message.
_CONSOLE_FORMATS = (
    (logging.DEBUG, _DETAILED, "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
)


def parse_level(name: str | None) -> int:
    """Numeric level for ``name``; WARNING when empty or unknown."""
    numeric = getattr(logging, (name or "").upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING


def _console_formatter(level: int) -> logging.Formatter:
    for bound, fmt, datefmt in _CONSOLE_FORMATS:
        if level <= bound:
            return logging.Formatter(fmt, datefmt=datefmt)
    return logging.Formatter("%(message)s")


def _stderr_handler(level: int, formatter: logging.Formatter) -> logging.StreamHandler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _route_pin_warnings(console_level: int, root_level: int) -> None:
    """Give the pin-warning logger its own stderr handler when the
    console is quieter than WARNING.

    Records keep propagating to the root, so a log file still sees
    them; the extra handler only prints what the console handler would
    drop.
    """
    pin_logger = logging.getLogger(PIN_WARNING_LOGGER)
    pin_logger.handlers.clear()

    if console_level <= logging.WARNING:
        pin_logger.setLevel(logging.NOTSET)
        return

    pin_logger.setLevel(min(logging.WARNING, root_level))
    handler = _stderr_handler(logging.WARNING, logging.Formatter("%(message)s"))
    handler.addFilter(lambda record: record.levelno < console_level)
    pin_logger.addHandler(handler)


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Install the console handler (and optionally a file handler) on the
    root logger, replacing whatever was there.

    Args:
        level: Console level name (DEBUG … CRITICAL).
        log_file: Optional log file path.
        log_file_level: Level for the log file; defaults to ``level``.
    """
    console_level = parse_level(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_stderr_handler(console_level, _console_formatter(console_level)))

    root_level = console_level
    if log_file:
        file_level = parse_level(log_file_level) if log_file_level else console_level
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(_DETAILED, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(file_handler)
        root_level = min(root_level, file_level)

    root.setLevel(root_level)
    _route_pin_warnings(console_level, root_level)
    logging.raiseExceptions = False
