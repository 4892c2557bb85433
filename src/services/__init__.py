"""Services package - logging setup shared by the CLI and tests"""

from .logger import (
    JsonFormatter,
    LoggerService,
    PerformanceLogger,
    cleanup_logging,
    log_performance,
    setup_logging,
)

__all__ = [
    "JsonFormatter",
    "LoggerService",
    "PerformanceLogger",
    "cleanup_logging",
    "log_performance",
    "setup_logging",
]
