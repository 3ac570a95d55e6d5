"""
Error handling for Port Discovery.

This module defines the exception hierarchy used across the package and a
centralized ErrorHandler that logs top-level failures with severity-aware
formatting and troubleshooting suggestions.

Per-candidate failures (closed ports, timeouts, unreachable hosts) are never
raised; the probe executor records them as outcomes. Only precondition
violations and system-level failures travel through these exceptions.
"""

from typing import Optional, Any, Dict, TYPE_CHECKING
from enum import Enum
from dataclasses import dataclass, field

from .logger import Logger, get_logger

if TYPE_CHECKING:
    from ..core.data_models import ScanReport


class ErrorType(Enum):
    """Category of a reported error; selects the troubleshooting hints."""
    VALIDATION_ERROR = "validation_error"
    CONFIGURATION_ERROR = "configuration_error"
    RESOURCE_ERROR = "resource_error"
    ENUMERATION_ERROR = "enumeration_error"
    AGGREGATION_ERROR = "aggregation_error"


class ErrorSeverity(Enum):
    """How loudly an error is reported."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class ErrorContext:
    """
    Where an error happened and how it should be reported.

    Attributes:
        error_type: Type of error that occurred
        severity: Severity level of the error
        operation: Operation that was being performed when error occurred
        component: Component/module where error occurred
        additional_info: Additional context information
    """
    error_type: ErrorType
    severity: ErrorSeverity
    operation: str
    component: str
    additional_info: Dict[str, Any] = field(default_factory=dict)


class PortDiscoveryError(Exception):
    """Base exception class for Port Discovery."""

    def __init__(self, message: str, error_context: Optional[ErrorContext] = None):
        super().__init__(message)
        self.error_context = error_context


class ValidationError(PortDiscoveryError):
    """Exception for invalid user input; raised before any probing starts."""
    pass


class ParseError(ValidationError):
    """Exception for input that cannot be parsed at all."""

    def __init__(self, message: str, token: str = "",
                 error_context: Optional[ErrorContext] = None):
        super().__init__(message, error_context)
        self.token = token


class RangeError(ValidationError):
    """Exception for well-formed values outside their allowed range."""
    pass


class ConfigurationError(ValidationError):
    """Exception for invalid concurrency/timeout configuration."""
    pass


class SystemResourceError(PortDiscoveryError):
    """Exception for failures of the operating system or its resources."""
    pass


class ResourceExhaustedError(SystemResourceError):
    """
    Raised when socket/file-descriptor exhaustion stops a scan early.

    The partial report built from the outcomes collected before the abort
    is attached as ``report`` once the orchestrator has produced it.
    """

    def __init__(self, message: str, report: Optional["ScanReport"] = None,
                 error_context: Optional[ErrorContext] = None):
        super().__init__(message, error_context)
        self.report = report


class InterfaceEnumerationError(SystemResourceError):
    """Exception for failures of the OS network-interface query."""
    pass


class AggregationError(PortDiscoveryError):
    """Exception for outcome accounting violations (duplicates, overflow)."""
    pass


class IncompleteScanError(AggregationError):
    """Raised when a report is finalized before every candidate is accounted for."""
    pass


_ERROR_TYPES = (
    (ConfigurationError, ErrorType.CONFIGURATION_ERROR),
    (ValidationError, ErrorType.VALIDATION_ERROR),
    (InterfaceEnumerationError, ErrorType.ENUMERATION_ERROR),
    (SystemResourceError, ErrorType.RESOURCE_ERROR),
    (AggregationError, ErrorType.AGGREGATION_ERROR),
)


def error_type_for(error: Exception) -> ErrorType:
    """Map an exception to the ErrorType used for reporting it."""
    for exc_class, error_type in _ERROR_TYPES:
        if isinstance(error, exc_class):
            return error_type
    return ErrorType.RESOURCE_ERROR


class ErrorHandler:
    """
    Centralized error reporting.

    Logs errors with a level matching their severity, keeps per-type
    statistics and prints troubleshooting suggestions. Scans are never
    retried.
    """

    def __init__(self, logger: Optional[Logger] = None):
        """
        Initialize the ErrorHandler.

        Args:
            logger: Logger instance for error reporting
        """
        self.logger = logger or get_logger(__name__)
        self.error_statistics: Dict[ErrorType, int] = {
            error_type: 0 for error_type in ErrorType
        }

    def handle_error(self, error: Exception, context: Optional[ErrorContext] = None) -> None:
        """
        Log an error and the suggestions that go with its type.

        Args:
            error: The exception that occurred
            context: Error context; taken from the exception or derived
                from its class when omitted
        """
        if context is None:
            context = getattr(error, "error_context", None) or ErrorContext(
                error_type=error_type_for(error),
                severity=ErrorSeverity.HIGH,
                operation="scan",
                component="PortDiscovery",
            )

        self.error_statistics[context.error_type] += 1
        self._log_error(error, context)

        # Low severity errors are surfaced again by whoever raises them
        if context.severity == ErrorSeverity.LOW:
            return

        if context.error_type == ErrorType.VALIDATION_ERROR:
            self._suggest_validation_fixes(error)
        elif context.error_type == ErrorType.CONFIGURATION_ERROR:
            self._suggest_configuration_fixes()
        elif context.error_type == ErrorType.RESOURCE_ERROR:
            self._suggest_resource_solutions()
        elif context.error_type == ErrorType.ENUMERATION_ERROR:
            self._suggest_enumeration_solutions()

    def _log_error(self, error: Exception, context: ErrorContext) -> None:
        error_msg = f"Error in {context.component}.{context.operation}: {str(error)}"

        if context.severity == ErrorSeverity.CRITICAL:
            self.logger.error(error_msg, exception=error)
        elif context.severity == ErrorSeverity.HIGH:
            self.logger.error(error_msg)
        elif context.severity == ErrorSeverity.MEDIUM:
            self.logger.warning(error_msg)
        else:
            self.logger.debug(error_msg)

    def _suggest_validation_fixes(self, error: Exception) -> None:
        token = getattr(error, "token", "")
        if token:
            self.logger.info(f"Offending input: '{token}'")
        self.logger.info("Validation error solutions:")
        self.logger.info("  • Use an IPv4 address (192.168.1.10) or CIDR block (192.168.1.0/24)")
        self.logger.info("  • Keep the prefix length between 0 and 32")
        self.logger.info("  • Ports must be 1-65535 with start_port <= end_port")

    def _suggest_configuration_fixes(self) -> None:
        self.logger.info("Configuration error solutions:")
        self.logger.info("  • --concurrency must be a positive integer")
        self.logger.info("  • --timeout must be a positive number of seconds")
        self.logger.info("  • Check probe_config.yml syntax and values")

    def _suggest_resource_solutions(self) -> None:
        self.logger.info("Resource error solutions:")
        self.logger.info("  • Lower --concurrency to open fewer sockets at once")
        self.logger.info("  • Raise the open file limit (ulimit -n)")
        self.logger.info("  • Scan a smaller target range")

    def _suggest_enumeration_solutions(self) -> None:
        self.logger.info("Interface enumeration solutions:")
        self.logger.info("  • Check that the process may read network interface information")
        self.logger.info("  • Run 'probe' with an explicit target instead")
