"""
Scan request validation with error handling.

This module validates targets, port ranges and probe configurations before a
scan starts, so that malformed input is rejected without opening a socket.
"""

from typing import List, Optional, Tuple, Union
from dataclasses import dataclass, field

from .error_handler import (
    ErrorHandler, ErrorContext, ErrorType, ErrorSeverity,
    ValidationError
)
from .logger import Logger, get_logger
from ..core.data_models import PortRange, SubnetSpec
from ..core.target_expander import parse_target, parse_port_range, count_subnet_hosts
from ..config.config_loader import ProbeConfig, validate_probe_config

# Targets above this many hosts are allowed but flagged
LARGE_SCAN_THRESHOLD = 65536


@dataclass
class NetworkValidationResult:
    """
    Result of a validation operation.

    Attributes:
        is_valid: Whether the validation passed
        error_message: Error message if validation failed
        suggestions: List of suggestions to fix validation issues
        additional_info: Additional context information
        error: The validation exception behind a failed result
    """
    is_valid: bool
    error_message: Optional[str] = None
    suggestions: List[str] = field(default_factory=list)
    additional_info: dict = field(default_factory=dict)
    error: Optional[ValidationError] = None


class NetworkValidator:
    """
    Validation of scan requests with integrated error handling.
    """

    def __init__(self, error_handler: Optional[ErrorHandler] = None, logger: Optional[Logger] = None,
                 large_scan_threshold: int = LARGE_SCAN_THRESHOLD):
        """
        Initialize the NetworkValidator.

        Args:
            error_handler: ErrorHandler instance for error management
            logger: Logger instance for validation messages
            large_scan_threshold: Host count above which a warning is logged
        """
        self.logger = logger or get_logger(__name__)
        self.error_handler = error_handler or ErrorHandler(self.logger)
        self.large_scan_threshold = large_scan_threshold

    def validate_target(self, target: str) -> NetworkValidationResult:
        """
        Validate an IPv4 literal or CIDR block.

        Args:
            target: Target string (e.g., "10.0.0.5" or "192.168.1.0/24")

        Returns:
            NetworkValidationResult with the parsed SubnetSpec in additional_info
        """
        try:
            spec = parse_target(target)
        except ValidationError as e:
            return self._failure(e, "validate_target", {"target": target}, [
                "Use an IPv4 address (e.g., 192.168.1.10)",
                "Or a CIDR block (e.g., 192.168.1.0/24)",
                "Each octet must be 0-255 and the prefix 0-32",
            ])

        host_count = count_subnet_hosts(spec)
        if host_count > self.large_scan_threshold:
            self.logger.warning(
                f"Target {spec} contains {host_count} hosts - this scan will take a long time"
            )

        return NetworkValidationResult(
            is_valid=True,
            additional_info={
                "subnet": spec,
                "host_count": host_count,
                "prefix_length": spec.network.prefixlen,
            }
        )

    def validate_port_range(self, start: Union[int, str], end: Union[int, str]) -> NetworkValidationResult:
        """
        Validate an inclusive port range.

        Args:
            start: First port
            end: Last port

        Returns:
            NetworkValidationResult with the PortRange in additional_info
        """
        try:
            port_range = parse_port_range(start, end)
        except ValidationError as e:
            return self._failure(e, "validate_port_range", {"start": start, "end": end}, [
                "Port numbers must be between 1 and 65535",
                "Ensure start_port is less than or equal to end_port",
            ])

        return NetworkValidationResult(
            is_valid=True,
            additional_info={"port_range": port_range, "port_count": len(port_range)}
        )

    def validate_probe_config(self, config: ProbeConfig) -> NetworkValidationResult:
        """
        Validate concurrency, timeout and queue settings.

        Args:
            config: Probe configuration to check

        Returns:
            NetworkValidationResult with validation outcome
        """
        try:
            validate_probe_config(config)
        except ValidationError as e:
            return self._failure(e, "validate_probe_config", {}, [
                "Concurrency must be a positive integer",
                "Timeout must be a positive number of seconds",
            ], error_type=ErrorType.CONFIGURATION_ERROR)

        return NetworkValidationResult(is_valid=True)

    def _failure(self, error: ValidationError, operation: str, info: dict,
                 suggestions: List[str],
                 error_type: ErrorType = ErrorType.VALIDATION_ERROR) -> NetworkValidationResult:
        context = ErrorContext(
            error_type=error_type,
            severity=ErrorSeverity.LOW,
            operation=operation,
            component="NetworkValidator",
            additional_info=info,
        )
        error.error_context = context
        self.error_handler.handle_error(error, context)

        return NetworkValidationResult(
            is_valid=False,
            error_message=str(error),
            suggestions=suggestions,
            additional_info=info,
            error=error,
        )


def validate_scan_request(target: str, start: Union[int, str], end: Union[int, str],
                          config: Optional[ProbeConfig] = None,
                          validator: Optional[NetworkValidator] = None) -> Tuple[SubnetSpec, PortRange]:
    """
    Validate a complete probe request.

    Args:
        target: IPv4 literal or CIDR block
        start: First port
        end: Last port
        config: Probe configuration to check as well (optional)
        validator: NetworkValidator instance (creates new one if None)

    Returns:
        Tuple of (subnet spec, port range)

    Raises:
        ValidationError: The first validation failure (ParseError, RangeError
            or ConfigurationError)
    """
    if validator is None:
        validator = NetworkValidator()

    checks = [
        validator.validate_target(target),
        validator.validate_port_range(start, end),
    ]
    if config is not None:
        checks.append(validator.validate_probe_config(config))

    for result in checks:
        if not result.is_valid:
            raise result.error

    return checks[0].additional_info["subnet"], checks[1].additional_info["port_range"]
