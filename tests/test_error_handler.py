import pytest

from port_discovery.utils.error_handler import (
    AggregationError,
    ConfigurationError,
    ErrorContext,
    ErrorHandler,
    ErrorSeverity,
    ErrorType,
    IncompleteScanError,
    InterfaceEnumerationError,
    ParseError,
    ResourceExhaustedError,
    ValidationError,
    error_type_for,
)
from port_discovery.utils.logger import Logger, LogLevel


@pytest.mark.parametrize("error,expected", [
    (ParseError("bad", token="x"), ErrorType.VALIDATION_ERROR),
    (ConfigurationError("bad"), ErrorType.CONFIGURATION_ERROR),
    (InterfaceEnumerationError("bad"), ErrorType.ENUMERATION_ERROR),
    (ResourceExhaustedError("bad"), ErrorType.RESOURCE_ERROR),
    (IncompleteScanError("bad"), ErrorType.AGGREGATION_ERROR),
    (RuntimeError("bad"), ErrorType.RESOURCE_ERROR),
])
def test_error_type_for(error, expected):
    assert error_type_for(error) is expected


def test_hierarchy():
    assert issubclass(ConfigurationError, ValidationError)
    assert issubclass(IncompleteScanError, AggregationError)


class TestErrorHandler:
    def test_high_severity_prints_suggestions(self, capsys):
        handler = ErrorHandler(Logger("test", min_level=LogLevel.INFO))

        handler.handle_error(ParseError("Invalid IPv4 address: '999.1.1.1'", token="999.1.1.1"))

        captured = capsys.readouterr()
        assert "999.1.1.1" in captured.err
        assert "Validation error solutions" in captured.err
        assert captured.out == ""
        assert handler.error_statistics[ErrorType.VALIDATION_ERROR] == 1

    def test_low_severity_is_only_logged_at_debug(self, capsys):
        handler = ErrorHandler(Logger("test", min_level=LogLevel.INFO))
        context = ErrorContext(ErrorType.VALIDATION_ERROR, ErrorSeverity.LOW,
                               "validate_target", "NetworkValidator")

        handler.handle_error(ParseError("bad"), context)

        assert capsys.readouterr().err == ""
        assert handler.error_statistics[ErrorType.VALIDATION_ERROR] == 1

    def test_context_attached_to_the_error_is_used(self, capsys):
        handler = ErrorHandler(Logger("test", min_level=LogLevel.INFO))
        context = ErrorContext(ErrorType.ENUMERATION_ERROR, ErrorSeverity.MEDIUM,
                               "enumerate", "NetworkEnumerator")

        handler.handle_error(InterfaceEnumerationError("query failed", context))

        err = capsys.readouterr().err
        assert "NetworkEnumerator.enumerate" in err
        assert "Interface enumeration solutions" in err


class TestLogger:
    def test_level_filtering(self, capsys):
        log = Logger("test", min_level=LogLevel.WARNING)

        log.info("hidden")
        log.warning("shown", port=80)

        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "shown" in err
        assert "port=80" in err

    def test_nothing_is_written_to_stdout(self, capsys):
        log = Logger("test", min_level=LogLevel.DEBUG)

        log.debug("d")
        log.info("i")
        log.success("s")
        log.section("scan")
        log.scan_info("10.0.0.5", 1, 3, 4, 0.5)
        log.progress_start("probing")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "SCAN CONFIGURATION" in captured.err

    def test_errors_go_to_stderr(self, capsys):
        Logger("test").error("failed", exception=ValueError("boom"))

        err = capsys.readouterr().err
        assert "failed" in err
        assert "ValueError: boom" in err

    def test_follows_global_level(self, capsys):
        log = Logger("test")
        Logger.default_level = LogLevel.ERROR

        log.warning("hidden")

        assert capsys.readouterr().err == ""
