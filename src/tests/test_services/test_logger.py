"""
Tests for the logging service
"""

import json
import logging

from services import JsonFormatter, LoggerService, PerformanceLogger, cleanup_logging, log_performance, setup_logging
from services import logger as logger_module


class TestLoggerService:
    """Tests for LoggerService handler management"""

    def test_console_only_without_log_dir(self):
        """Test no file handlers are created without a log directory"""
        service = LoggerService({"log_dir": ""})

        try:
            handlers = service.handlers["root"]
            assert len(handlers) == 1
            assert service.log_dir is None
        finally:
            service.cleanup()

    def test_file_handlers_with_log_dir(self, tmp_path):
        """Test tracker and error logs are written under log_dir"""
        service = LoggerService({"log_dir": str(tmp_path), "colored_output": False})

        try:
            logging.getLogger("tracker.test").error("disk check")
            for handler in service.handlers["root"]:
                handler.flush()

            assert "disk check" in (tmp_path / "tracker.log").read_text()
            assert "disk check" in (tmp_path / "errors.log").read_text()
        finally:
            service.cleanup()

    def test_cleanup_detaches_handlers(self, tmp_path):
        service = LoggerService({"log_dir": str(tmp_path)})
        installed = list(service.handlers["root"])

        service.cleanup()

        root = logging.getLogger()
        assert not any(handler in root.handlers for handler in installed)
        assert service.handlers == {}

    def test_get_logger_is_cached(self):
        service = LoggerService()

        try:
            assert service.get_logger("tracker") is service.get_logger("tracker")
        finally:
            service.cleanup()

    def test_log_performance(self, caplog):
        """Test performance metrics are logged as JSON"""
        service = LoggerService()

        try:
            with caplog.at_level(logging.INFO, logger="performance"):
                service.log_performance("replay", 0.25, {"events": 3})

            record = json.loads(caplog.records[-1].getMessage())
            assert record["operation"] == "replay"
            assert record["duration_ms"] == 250.0
            assert record["events"] == 3
        finally:
            service.cleanup()


class TestJsonFormatter:
    """Tests for structured log output"""

    def test_includes_extra_fields(self):
        record = logging.LogRecord("tracker", logging.INFO, __file__, 10, "opened %s", ("steal-0001",), None)
        record.variant_count = 2

        data = json.loads(JsonFormatter().format(record))

        assert data["message"] == "opened steal-0001"
        assert data["level"] == "INFO"
        assert data["variant_count"] == 2
        assert "msg" not in data


class TestPerformanceLogger:
    """Tests for the timing context manager"""

    def test_logs_completion(self, caplog):
        logger = logging.getLogger("tracker.timing")

        with caplog.at_level(logging.INFO):
            with PerformanceLogger(logger, "variant merge") as timer:
                pass

        assert timer.duration is not None
        assert "Operation 'variant merge' completed" in caplog.text

    def test_logs_failure(self, caplog):
        """Test a raised exception is logged and propagated"""
        logger = logging.getLogger("tracker.timing")

        with caplog.at_level(logging.ERROR):
            try:
                with PerformanceLogger(logger, "replay"):
                    raise RuntimeError("bad log")
            except RuntimeError:
                pass

        assert "Operation 'replay' failed" in caplog.text
        assert "bad log" in caplog.text


class TestModuleFunctions:
    """Tests for the module-level service lifecycle"""

    def test_cleanup_logging_detaches_service(self):
        """Test cleanup removes the installed handlers and allows a fresh setup"""
        cleanup_logging()
        setup_logging()
        installed = [h for h in logging.getLogger().handlers if getattr(h, "_tracker_owned", False)]

        cleanup_logging()

        assert installed
        assert logger_module._logger_service is None
        assert not any(h in logging.getLogger().handlers for h in installed)

        setup_logging()
        assert logger_module._logger_service is not None

    def test_log_performance_routes_to_service(self, caplog):
        setup_logging()

        with caplog.at_level(logging.INFO, logger="performance"):
            log_performance("merge", 0.5)

        assert json.loads(caplog.records[-1].getMessage())["duration_ms"] == 500.0

    def test_log_performance_without_service_is_silent(self, caplog):
        """Test nothing is logged once the service is gone"""
        cleanup_logging()

        with caplog.at_level(logging.INFO, logger="performance"):
            log_performance("merge", 0.5)

        assert caplog.records == []
