"""
Process-wide JSON logging.

Every module asks for `get_logger("procurement.<layer>.<module>")`; those
loggers are children of a single "procurement" logger that owns the file
and console handlers, so handlers are configured exactly once per process.

Environment:
    LOG_DIR    directory for procurement.log and errors.log (default: logs)
    LOG_LEVEL  console level (default: DEBUG)
"""

import json
import logging
import os
import threading
import time
from pathlib import Path

ROOT_LOGGER_NAME = "procurement"

# JSON key -> LogRecord attribute
LOG_FIELDS = {
    "timestamp": "asctime",
    "level": "levelname",
    "logger": "name",
    "module": "module",
    "function": "funcName",
    "line": "lineno",
    "message": "message",
}

# File name, minimum level; files are truncated on each run
LOG_FILES = (
    ("procurement.log", logging.INFO),
    ("errors.log", logging.ERROR),
)


class SingletonLogger:
    """
    Holds the configured root logger for the application run.
    """
    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    instance = super().__new__(cls)
                    instance._logger = None
                    cls._instance = instance
        return cls._instance

    def get_logger(self, name: str = ROOT_LOGGER_NAME) -> logging.Logger:
        """
        Return the root logger, or a child of it for names under "procurement.".
        Other names get the root logger.
        """
        if self._logger is None:
            with self._lock:
                if self._logger is None:
                    self._logger = self._configure(logging.getLogger(ROOT_LOGGER_NAME))

        prefix = ROOT_LOGGER_NAME + "."
        if name and name.startswith(prefix):
            return self._logger.getChild(name[len(prefix):])
        return self._logger

    @staticmethod
    def _configure(logger: logging.Logger) -> logging.Logger:
        logger.setLevel(logging.DEBUG)
        logger.handlers.clear()
        formatter = JsonFormatter(LOG_FIELDS)

        logs_dir = Path(os.environ.get("LOG_DIR", "logs"))
        logs_dir.mkdir(parents=True, exist_ok=True)

        handlers = [
            _with(logging.FileHandler(logs_dir / filename, mode='w', encoding='utf-8'), level, formatter)
            for filename, level in LOG_FILES
        ]
        console_level = logging.getLevelName(os.environ.get("LOG_LEVEL", "DEBUG").upper())
        if not isinstance(console_level, int):
            console_level = logging.DEBUG
        handlers.append(_with(logging.StreamHandler(), console_level, formatter))

        for handler in handlers:
            logger.addHandler(handler)
        return logger


def _with(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


class JsonFormatter(logging.Formatter):
    """
    Renders a LogRecord as one JSON object per line.

    `fields` maps output keys to LogRecord attributes (default: message only).
    Timestamps are UTC ISO strings with milliseconds and a trailing Z.
    """
    default_time_format = "%Y-%m-%dT%H:%M:%S"
    default_msec_format = "%s.%03dZ"
    converter = time.gmtime

    def __init__(self, fields: dict = None):
        super().__init__()
        self.fields = dict(fields) if fields else {"message": "message"}

    def format(self, record) -> str:
        record.message = record.getMessage()
        if "asctime" in self.fields.values():
            record.asctime = self.formatTime(record)

        payload = {key: getattr(record, attr) for key, attr in self.fields.items()}

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            payload["exc_info"] = record.exc_text
        if record.stack_info:
            payload["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(payload, default=str)


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Get the application logger.

    Args:
        name (str): Dotted name, e.g. "procurement.buisness.dispatch_engine"
    """
    return SingletonLogger().get_logger(name)
