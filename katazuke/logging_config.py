"""Logging setup for katazuke.

Warnings and errors always reach stderr. ``--verbose`` switches the whole
process to DEBUG with timestamps and logger names. Command output goes
through the rich console, never through logging.
"""
import logging
import sys
from typing import Optional

LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}
RESET = "\033[0m"

DEFAULT_FORMAT = "%(levelname)s: %(message)s"
DEBUG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# GitPython and PyGithub log every request and child process at DEBUG
QUIET_LOGGERS = ("git.cmd", "git.util", "github", "urllib3")

_PREFIXES = ("katazuke.", "services.")


class LevelColorFormatter(logging.Formatter):
    """Colours the level name when writing to a terminal."""

    def __init__(self, fmt: str, datefmt: Optional[str] = None, use_color: Optional[bool] = None):
        super().__init__(fmt, datefmt)
        self.use_color = sys.stderr.isatty() if use_color is None else use_color

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_color or record.levelno not in LEVEL_COLORS:
            return super().format(record)
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{LEVEL_COLORS[record.levelno]}{record.levelname}{RESET}"
        return super().format(colored)


def setup_logging(debug: bool = False) -> None:
    """Install a single stderr handler on the root logger.

    Safe to call more than once; earlier handlers are replaced.
    """
    level = logging.DEBUG if debug else logging.WARNING

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        LevelColorFormatter(DEBUG_FORMAT if debug else DEFAULT_FORMAT, datefmt="%H:%M:%S")
    )

    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))


def get_logger(name: str) -> logging.Logger:
    """Logger named without the package prefix, e.g. ``sync_service``."""
    for prefix in _PREFIXES:
        if name.startswith(prefix):
            name = name[len(prefix):]
    return logging.getLogger(name)
