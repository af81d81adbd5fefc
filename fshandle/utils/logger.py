"""
Logging configuration for fshandle

The library itself only creates module loggers; applications call
``setup_logging`` (or ``setup_logging_from_config``) once at startup.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from .config import Config

_TEXT_FORMAT = '%(asctime)s [%(threadName)s] %(name)s %(levelname)s: %(message)s'
_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Third-party loggers that are noisy below WARNING
_QUIET_LOGGERS = ('watchdog',)


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with fshandle error context when present"""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            'ts': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'thread': record.threadName,
            'message': record.getMessage(),
            'where': f"{record.module}:{record.funcName}:{record.lineno}",
        }

        if record.exc_info:
            payload['exception'] = self.formatException(record.exc_info)
            error = record.exc_info[1]
            # FsHandleError and subclasses carry a context mapping
            context = getattr(error, 'context', None)
            if isinstance(context, dict) and context:
                payload['context'] = context

        return json.dumps(payload, default=str)


class ColorFormatter(logging.Formatter):
    """Text formatter that colours the level name for terminals"""

    LEVEL_COLORS = {
        logging.DEBUG: '\033[36m',
        logging.INFO: '\033[32m',
        logging.WARNING: '\033[33m',
        logging.ERROR: '\033[31m',
        logging.CRITICAL: '\033[1;41m',
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno)
        if color is None:
            return super().format(record)
        # Other handlers must still see the plain level name
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def _build_formatter(log_format: str) -> logging.Formatter:
    log_format = log_format.lower()
    if log_format == "json":
        return JsonFormatter()
    if log_format == "color":
        return ColorFormatter(fmt=_TEXT_FORMAT, datefmt=_DATE_FORMAT)
    return logging.Formatter(fmt=_TEXT_FORMAT, datefmt=_DATE_FORMAT)


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    log_format: str = "text",  # text, json, or color
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    quiet_level: str = "WARNING"
) -> logging.Logger:
    """
    Configure the root logger

    Replaces any handlers already on the root logger, so calling it again
    reconfigures rather than duplicates output.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Rotating log file; console only when None
        log_format: Console format (text, json, or color); files never get colours
        max_file_size: Bytes before the log file is rotated
        backup_count: Rotated files to keep
        quiet_level: Level applied to chatty third-party loggers (watchdog)

    Returns:
        The root logger
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(_build_formatter(log_format))
    console.setLevel(level)
    root_logger.addHandler(console)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        rotating = RotatingFileHandler(
            log_path,
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding='utf-8',
        )
        rotating.setFormatter(_build_formatter("json" if log_format.lower() == "json" else "text"))
        rotating.setLevel(level)
        root_logger.addHandler(rotating)
        root_logger.info(f"Logging to file: {log_path}")

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(getattr(logging, quiet_level.upper(), logging.WARNING))

    root_logger.debug(f"Logging configured (level={log_level}, format={log_format})")
    return root_logger


def setup_logging_from_config(config: "Config",
                              log_level: Optional[str] = None,
                              log_format: Optional[str] = None) -> logging.Logger:
    """
    Configure logging from a ``Config``, with optional command-line overrides

    Args:
        config: Loaded configuration
        log_level: Overrides ``config.log_level`` when given
        log_format: Overrides ``config.log_format`` when given
    """
    return setup_logging(
        log_level=log_level or config.log_level,
        log_file=config.log_file,
        log_format=log_format or config.log_format,
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get logger (usually called with ``__name__``)"""
    return logging.getLogger(name)
