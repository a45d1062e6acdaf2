import logging
import os
import sys
from typing import ClassVar, Optional

_DEFAULT_LEVEL = os.getenv("CNYSA_LOG_LEVEL", "WARNING").upper()
_DEFAULT_FORMAT = os.getenv(
    "CNYSA_LOG_FORMAT",
    "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
_DEFAULT_DATEFMT = os.getenv("CNYSA_LOG_DATEFMT", "%Y-%m-%d %H:%M:%S")
_configured: str | int | None = None
_handler: Optional[logging.Handler] = None


def _supports_color() -> bool:
    try:
        return sys.stderr.isatty() and os.getenv("NO_COLOR") is None
    except (AttributeError, ValueError):
        return False


class _LevelColorFormatter(logging.Formatter):
    COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "\x1b[37m",  # light gray
        "INFO": "\x1b[32m",  # green
        "WARNING": "\x1b[33m",  # yellow
        "ERROR": "\x1b[31m",  # red
        "CRITICAL": "\x1b[41m",  # red background
    }

    RESET: ClassVar[str] = "\x1b[0m"

    def __init__(self, fmt: str, datefmt: str, use_color: bool):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        if self.use_color:
            levelname = record.levelname
            color = self.COLORS.get(levelname, "")
            record.levelname_color = f"{color}{levelname}{self.RESET}" if color else levelname
        else:
            record.levelname_color = record.levelname
        return super().format(record)


def configure_logging(
    level: Optional[str | int] = None,
    fmt: Optional[str] = None,
    datefmt: Optional[str] = None,
) -> str | int:
    """Configure the ``cnysa`` logger hierarchy once with a consistent format.

    cnysa runs inside someone else's program, so only the package logger gets
    a handler; the root logger is left alone.

    Environment overrides:
    - `CNYSA_LOG_LEVEL`
    - `CNYSA_LOG_FORMAT`
    - `CNYSA_LOG_DATEFMT`
    """
    global _configured, _handler

    if isinstance(level, str):
        level = level.upper()
    if level is None:
        level = _DEFAULT_LEVEL

    if _configured is not None and _configured == level:
        return level
    _configured = level

    use_color = _supports_color()
    if fmt is None:
        if os.getenv("CNYSA_LOG_FORMAT") is None and use_color:
            # Color by level using ANSI; name in cyan, ts in gray
            fmt = "\x1b[90m%(asctime)s\x1b[0m | %(levelname_color)s | \x1b[36m%(name)s\x1b[0m | %(message)s"
        else:
            fmt = _DEFAULT_FORMAT
    datefmt = datefmt if datefmt is not None else _DEFAULT_DATEFMT

    package_logger = logging.getLogger("cnysa")
    package_logger.setLevel(level)
    formatter = _LevelColorFormatter(fmt=fmt, datefmt=datefmt, use_color=use_color)

    if _handler is None or _handler not in package_logger.handlers:
        _handler = logging.StreamHandler(sys.stderr)
        package_logger.addHandler(_handler)
    # Handlers attached by others (e.g. test capture) are left untouched
    _handler.setLevel(level)
    _handler.setFormatter(formatter)
    package_logger.propagate = False
    return level


def get_logger(name: str) -> logging.Logger:
    """Return a module-scoped logger."""
    configure_logging()
    return logging.getLogger(name)
