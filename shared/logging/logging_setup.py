from datetime import datetime
from pytz import timezone
import logging.config
import logging
import os
from logging import Logger


LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
CONSOLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

# ANSI codes accepted by the color= keyword
_ANSI_RESET = "\033[0m"
_COLOR_MAP: dict[str, str] = {
    "cyan":    "\033[36m",
    "green":   "\033[32m",
    "yellow":  "\033[33m",
    "red":     "\033[31m",
    "magenta": "\033[35m",
    "blue":    "\033[34m",
}

# chatty libraries, clamped to WARNING unless the app itself runs at DEBUG
_QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")

_LEVEL_PREFIXES = {logging.ERROR: "⛔ ", logging.CRITICAL: "⛔ ", logging.WARNING: "⚠️ "}


def resolve_level(name: str | None) -> int:
    """Map a LOG_LEVEL name (debug, info, warning, error) to a logging level, INFO if unknown."""
    level = logging.getLevelName((name or "info").strip().upper())
    return level if isinstance(level, int) else logging.INFO


class ZoneFormatter(logging.Formatter):
    """Renders timestamps in a fixed timezone and prefixes warnings and errors."""

    def __init__(self, tz_name, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tz = timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, self.tz)
        return dt.strftime(datefmt) if datefmt else dt.isoformat()

    def format(self, record):
        prefix = _LEVEL_PREFIXES.get(record.levelno, "")
        # the record is shared between handlers, format a copy
        record = logging.makeLogRecord(record.__dict__)
        record.msg = prefix + record.getMessage()
        record.args = ()
        return super().format(record)


class ColoredFormatter(ZoneFormatter):
    """Console formatter honouring the ``color`` attribute set through :class:`ColorLogger`."""

    def format(self, record) -> str:
        line = super().format(record)
        ansi = _COLOR_MAP.get(getattr(record, "color", None) or "", "")
        return f"{ansi}{line}{_ANSI_RESET}" if ansi else line


class ColorLogger:
    """Wraps a :class:`logging.Logger` and accepts an optional ``color=`` keyword.

    Usage::

        logger.info("Indexed %s", product.url, color="green")

    Only the console handler renders colors; the log file stays plain text.
    """

    def __init__(self, logger: Logger):
        self._logger = logger

    def _log(self, level: int, msg, args, color: str | None, kwargs: dict) -> None:
        if color is not None:
            kwargs["extra"] = {**(kwargs.get("extra") or {}), "color": color}
        kwargs.setdefault("stacklevel", 3)
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.DEBUG, msg, args, color, kwargs)

    def info(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.INFO, msg, args, color, kwargs)

    def warning(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.WARNING, msg, args, color, kwargs)

    def error(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.ERROR, msg, args, color, kwargs)

    def exception(self, msg, *args, color: str | None = None, **kwargs):
        kwargs.setdefault("exc_info", True)
        self._log(logging.ERROR, msg, args, color, kwargs)

    def __getattr__(self, name):
        """Everything else (setLevel, handlers, isEnabledFor, ...) goes to the wrapped logger."""
        return getattr(self._logger, name)


def build_logging_config(level: int, tz_name: str, log_file: str | None = None) -> dict:
    """dictConfig for a colored console handler and, if log_file is given, a rotating file handler."""
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "colored",
            "level": level,
            "stream": "ext://sys.stdout",
        },
    }
    if log_file is not None:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "standard",
            "level": level,
            "filename": log_file,
            "maxBytes": LOG_FILE_MAX_BYTES,
            "backupCount": LOG_FILE_BACKUPS,
            "encoding": "utf-8",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"()": ZoneFormatter, "format": LOG_FORMAT, "datefmt": DATE_FORMAT, "tz_name": tz_name},
            "colored": {"()": ColoredFormatter, "format": CONSOLE_FORMAT, "datefmt": DATE_FORMAT, "tz_name": tz_name},
        },
        "handlers": handlers,
        "root": {"handlers": list(handlers), "level": level},
    }


def setup_logging(name: str = "indiesearch") -> ColorLogger:
    """Configure logging from LOG_LEVEL, TIMEZONE, LOG_TO_FILE and ROOT_DIR and return the app logger.

    The log file is ``$ROOT_DIR/logs/app.log`` (ROOT_DIR defaults to the
    current working directory). Set LOG_TO_FILE=false to log to the console only.
    """
    level = resolve_level(os.getenv("LOG_LEVEL"))
    tz_name = os.getenv("TIMEZONE", "Europe/Berlin")

    log_file = None
    if os.getenv("LOG_TO_FILE", "true").strip().lower() in ("true", "1", "yes"):
        log_dir = os.path.join(os.getenv("ROOT_DIR", os.getcwd()), "logs")
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, "app.log")

    logging.config.dictConfig(build_logging_config(level, tz_name, log_file))

    if level > logging.DEBUG:
        for logger_name in _QUIET_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    return ColorLogger(logging.getLogger(name))
