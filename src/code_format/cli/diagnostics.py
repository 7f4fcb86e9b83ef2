"""
Leveled, colorized diagnostics for the command line.

Log records of the package are printed through click as

    code-format: warning: main.cpp:3: could not find include file `x.h`

with the level name colored (errors red, warnings magenta, debug yellow).
Colors are dropped automatically when the output is not a terminal.
"""

import logging

import click

PROG_NAME = "code-format"

_LEVEL_COLORS = {
    logging.CRITICAL: "red",
    logging.ERROR: "red",
    logging.WARNING: "magenta",
    logging.DEBUG: "yellow",
}


class ClickLogHandler(logging.Handler):
    """Logging handler writing ``code-format: <level>: <message>`` lines."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            level = record.levelname.lower()
            color = _LEVEL_COLORS.get(record.levelno)
            if color:
                level = click.style(level, fg=color, bold=True)
            click.echo(f"{PROG_NAME}: {level}: {message}", err=record.levelno >= logging.WARNING)
        except Exception:
            self.handleError(record)


def level_for_debug(debug_level: int) -> int:
    """Map the -d level to a logging level."""
    if debug_level >= 2:
        return logging.DEBUG
    if debug_level == 1:
        return logging.INFO
    return logging.WARNING


def setup_logging(debug_level: int = 0) -> None:
    """Route the package's log records to a ClickLogHandler."""
    logger = logging.getLogger("code_format")
    for handler in list(logger.handlers):
        if isinstance(handler, ClickLogHandler):
            logger.removeHandler(handler)
    logger.addHandler(ClickLogHandler())
    logger.setLevel(level_for_debug(debug_level))
