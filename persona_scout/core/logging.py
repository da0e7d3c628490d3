"""
Logging Infrastructure Module

Provides:
- File logging with daily rotation (JSON lines)
- Subsystem loggers (api, agent, seeder, tools) with colored console prefixes
- Structured fields passed through ``extra={"fields": {...}}``
"""
import os
import sys
import json
import logging
from logging.handlers import TimedRotatingFileHandler
from datetime import datetime
from typing import Optional
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

ROOT_LOGGER_NAME = "persona_scout"
LOG_FILE_NAME = "persona_scout.log"

DEFAULT_LOG_DIR = "./logs"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_MAX_DAYS = 15


class JSONFormatter(logging.Formatter):
    """Format log records as one JSON object per line."""

    def __init__(self, tz: Optional[ZoneInfo] = None):
        super().__init__()
        self.tz = tz

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": datetime.now(self.tz).isoformat(),
            "level": record.levelname,
            "subsystem": getattr(record, "subsystem", record.name),
            "message": record.getMessage(),
        }

        fields = getattr(record, "fields", None)
        if fields:
            # Structured fields never replace the base keys
            for key, value in fields.items():
                log_record.setdefault(key, value)

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_record, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """Console output with a colored ``[subsystem]`` prefix."""

    COLORS = {
        'DEBUG': '\033[90m',
        'INFO': '\033[36m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    SUBSYSTEM_COLORS = ['\033[36m', '\033[32m', '\033[33m', '\033[34m', '\033[35m']

    def __init__(self, use_colors: bool = True, tz: Optional[ZoneInfo] = None):
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()
        self.tz = tz

    def _subsystem_color(self, subsystem: str) -> str:
        hash_val = sum(ord(c) for c in subsystem)
        return self.SUBSYSTEM_COLORS[hash_val % len(self.SUBSYSTEM_COLORS)]

    def format(self, record: logging.LogRecord) -> str:
        subsystem = getattr(record, "subsystem", record.name)
        timestamp = datetime.now(self.tz).strftime('%H:%M:%S')
        message = record.getMessage()

        fields = getattr(record, "fields", None)
        if fields:
            message += " " + " ".join(f"{k}={v}" for k, v in fields.items())

        if self.use_colors:
            level_color = self.COLORS.get(record.levelname, '')
            sub_color = self._subsystem_color(subsystem)
            line = f"\033[90m{timestamp}\033[0m {sub_color}[{subsystem}]\033[0m {level_color}{message}\033[0m"
        else:
            line = f"{timestamp} [{subsystem}] {record.levelname} {message}"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class SubsystemLogger(logging.LoggerAdapter):
    """Logger adapter that tags every record with its subsystem."""

    def __init__(self, logger: logging.Logger, subsystem: str):
        super().__init__(logger, {'subsystem': subsystem})
        self.subsystem = subsystem

    def process(self, msg, kwargs):
        extra = kwargs.setdefault('extra', {})
        extra['subsystem'] = self.subsystem
        return msg, kwargs

    def child(self, name: str) -> "SubsystemLogger":
        """Create a child logger with an extended subsystem path."""
        return SubsystemLogger(self.logger, f"{self.subsystem}/{name}")


class LoggingManager:
    """Owns the handlers of the ``persona_scout`` logger tree."""

    _instance: Optional["LoggingManager"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._setup_done = False
        return cls._instance

    def __init__(self):
        if self._setup_done:
            return
        self.log_dir = DEFAULT_LOG_DIR
        self.log_level = DEFAULT_LOG_LEVEL
        self.max_days = DEFAULT_MAX_DAYS
        self.json_format = True
        self.tz_info: Optional[ZoneInfo] = None
        self.root_logger: Optional[logging.Logger] = None

    def configure(
        self,
        log_dir: Optional[str] = None,
        log_level: Optional[str] = None,
        max_days: Optional[int] = None,
        json_format: Optional[bool] = None,
        console_colors: bool = True,
        timezone: str = "UTC"
    ):
        """Configure (or reconfigure) the logging system."""
        if log_dir:
            self.log_dir = log_dir
        if log_level:
            self.log_level = log_level.upper()
        if max_days is not None:
            self.max_days = max_days
        if json_format is not None:
            self.json_format = json_format

        try:
            self.tz_info = ZoneInfo(timezone) if timezone else None
        except ZoneInfoNotFoundError:
            self.tz_info = None

        self._setup_handlers(console_colors)
        self._setup_done = True

    def _setup_handlers(self, console_colors: bool):
        os.makedirs(self.log_dir, exist_ok=True)

        self.root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        self.root_logger.setLevel(getattr(logging, self.log_level, logging.INFO))
        for handler in list(self.root_logger.handlers):
            handler.close()
        self.root_logger.handlers.clear()

        file_handler = TimedRotatingFileHandler(
            filename=self.get_log_file_path(),
            when="midnight",
            interval=1,
            backupCount=self.max_days,
            encoding="utf-8"
        )
        file_handler.suffix = "%Y-%m-%d"
        if self.json_format:
            file_handler.setFormatter(JSONFormatter(tz=self.tz_info))
        else:
            file_handler.setFormatter(
                logging.Formatter('%(asctime)s [%(subsystem)s] %(levelname)s: %(message)s')
            )
        self.root_logger.addHandler(file_handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(ColoredConsoleFormatter(use_colors=console_colors, tz=self.tz_info))
        self.root_logger.addHandler(console_handler)

        self.root_logger.propagate = False

    def get_log_file_path(self) -> str:
        return os.path.join(self.log_dir, LOG_FILE_NAME)

    def get_subsystem_logger(self, subsystem: str) -> SubsystemLogger:
        if not self.root_logger:
            self.configure()
        return SubsystemLogger(self.root_logger, subsystem)


_manager = LoggingManager()


def configure_logging(
    log_dir: Optional[str] = None,
    log_level: Optional[str] = None,
    max_days: Optional[int] = None,
    json_format: Optional[bool] = None,
    console_colors: bool = True,
    timezone: str = "UTC"
):
    """Configure the logging system. Call once at startup."""
    _manager.configure(
        log_dir=log_dir,
        log_level=log_level,
        max_days=max_days,
        json_format=json_format,
        console_colors=console_colors,
        timezone=timezone
    )


def get_logger(subsystem: str) -> SubsystemLogger:
    """
    Get a subsystem logger.

    Usage:
        log = get_logger("tools")
        log.info("Search finished", extra={"fields": {"results": 7}})
    """
    return _manager.get_subsystem_logger(subsystem)


def get_log_file_path() -> str:
    return _manager.get_log_file_path()


@lru_cache(maxsize=32)
def _cached_logger(subsystem: str) -> SubsystemLogger:
    return get_logger(subsystem)


def agent_logger() -> SubsystemLogger:
    return _cached_logger("agent")


def api_logger() -> SubsystemLogger:
    return _cached_logger("api")


def seeder_logger() -> SubsystemLogger:
    return _cached_logger("seeder")


def tool_logger() -> SubsystemLogger:
    return _cached_logger("tools")
