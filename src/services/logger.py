"""
Logger Service Module
Centralized logging configuration with rotation, formatting, and multiple handlers
"""

import json
import logging
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import colorlog


class LoggerService:
    """
    Centralized logging service with support for:
    - Console output (colored through colorlog)
    - Optional rotating file logs
    - JSON structured logging
    - Performance logging
    """

    def __init__(self, config: dict[str, Any] | None = None):
        self.config = {**self._default_config(), **(config or {})}
        self.loggers = {}
        self.handlers = {}

        log_dir = self.config.get("log_dir")
        self.log_dir = Path(log_dir) if log_dir else None
        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)

        self._setup_root_logger()

    def _default_config(self) -> dict[str, Any]:
        """Default logging configuration"""
        return {
            "log_dir": "",
            "console_level": "INFO",
            "file_level": "DEBUG",
            "max_bytes": 5 * 1024 * 1024,  # 5MB
            "backup_count": 3,
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "date_format": "%Y-%m-%d %H:%M:%S",
            "colored_output": True,
            "json_logs": False,
        }

    def _setup_root_logger(self):
        """Configure the root logger"""
        root_logger = logging.getLogger()
        root_logger.setLevel(logging.DEBUG)  # Capture all, filter at handler level

        for handler in list(root_logger.handlers):
            if getattr(handler, "_tracker_owned", False):
                root_logger.removeHandler(handler)
                handler.close()

        self._attach(root_logger, self._create_console_handler())

        if self.log_dir is not None:
            self._attach(root_logger, self._create_file_handler("tracker.log"))
            self._attach(root_logger, self._create_file_handler("errors.log", level=logging.ERROR))

    def _attach(self, logger: logging.Logger, handler: logging.Handler):
        handler._tracker_owned = True
        logger.addHandler(handler)
        self.handlers.setdefault(logger.name, []).append(handler)

    def _create_console_handler(self) -> logging.Handler:
        """Create console handler with optional colored output"""
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, str(self.config.get("console_level", "INFO")).upper()))

        if self.config.get("colored_output"):
            formatter = colorlog.ColoredFormatter(
                "%(log_color)s" + self.config.get("format"),
                datefmt=self.config.get("date_format"),
                log_colors={
                    "DEBUG": "cyan",
                    "INFO": "green",
                    "WARNING": "yellow",
                    "ERROR": "red",
                    "CRITICAL": "red,bg_white",
                },
            )
        else:
            formatter = logging.Formatter(self.config.get("format"), datefmt=self.config.get("date_format"))

        console_handler.setFormatter(formatter)
        return console_handler

    def _create_file_handler(self, filename: str, level: int | None = None) -> logging.Handler:
        """Create rotating file handler"""
        handler = RotatingFileHandler(
            self.log_dir / filename,
            maxBytes=self.config.get("max_bytes"),
            backupCount=self.config.get("backup_count"),
        )
        handler.setLevel(level or getattr(logging, str(self.config.get("file_level", "DEBUG")).upper()))

        if self.config.get("json_logs"):
            handler.setFormatter(JsonFormatter())
        else:
            handler.setFormatter(logging.Formatter(self.config.get("format"), datefmt=self.config.get("date_format")))

        return handler

    def get_logger(self, name: str) -> logging.Logger:
        """Get or create a named logger"""
        if name not in self.loggers:
            self.loggers[name] = logging.getLogger(name)
        return self.loggers[name]

    def log_performance(self, operation: str, duration: float, metadata: dict | None = None):
        """Log performance metrics as a JSON line"""
        perf_data = {
            "operation": operation,
            "duration_ms": duration * 1000,
            "timestamp": datetime.now().isoformat(),
        }
        if metadata:
            perf_data.update(metadata)

        self.get_logger("performance").info(json.dumps(perf_data))

    def cleanup(self):
        """Detach and close every handler this service installed"""
        for logger_name, logger_handlers in self.handlers.items():
            logger = logging.getLogger(logger_name if logger_name != "root" else None)
            for handler in logger_handlers:
                logger.removeHandler(handler)
                handler.close()

        self.handlers.clear()
        self.loggers.clear()


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    _RESERVED = {
        "name", "msg", "args", "created", "filename", "funcName", "levelname",
        "levelno", "lineno", "module", "msecs", "message", "pathname", "process",
        "processName", "relativeCreated", "thread", "threadName", "exc_info",
        "exc_text", "stack_info", "taskName",
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON"""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Extra fields passed through logger.info(..., extra={...})
        for key, value in record.__dict__.items():
            if key not in self._RESERVED:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class PerformanceLogger:
    """Context manager for performance logging"""

    def __init__(self, logger: logging.Logger, operation: str):
        self.logger = logger
        self.operation = operation
        self.start_time = None
        self.duration = None

    def __enter__(self):
        """Start timing"""
        self.start_time = datetime.now()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Log performance"""
        self.duration = (datetime.now() - self.start_time).total_seconds()

        if exc_type:
            self.logger.error(f"Operation '{self.operation}' failed after {self.duration:.3f}s: {exc_val}")
        else:
            self.logger.info(f"Operation '{self.operation}' completed in {self.duration:.3f}s")


# Global logger service instance
_logger_service = None


def setup_logging(config: dict | None = None) -> logging.Logger:
    """
    Setup logging configuration and return root logger

    Args:
        config: Optional overrides for the values taken from config.LOGGING

    Returns:
        Configured root logger
    """
    global _logger_service

    if _logger_service is not None:
        return logging.getLogger()

    from config import config as app_config

    log_config = {
        "log_dir": app_config.get("logging", "log_dir", ""),
        "console_level": app_config.get("logging", "level", "INFO"),
        "max_bytes": app_config.get("logging", "max_bytes", 5 * 1024 * 1024),
        "backup_count": app_config.get("logging", "backup_count", 3),
        "format": app_config.get("logging", "format"),
        "date_format": app_config.get("logging", "date_format"),
        "colored_output": app_config.get("logging", "colored_output", True),
    }
    if config:
        log_config.update(config)

    _logger_service = LoggerService(log_config)
    return logging.getLogger()


def log_performance(operation: str, duration: float, metadata: dict | None = None):
    """Log performance metrics"""
    if _logger_service:
        _logger_service.log_performance(operation, duration, metadata)


def cleanup_logging():
    """Clean up logging resources"""
    global _logger_service

    if _logger_service:
        _logger_service.cleanup()
        _logger_service = None
