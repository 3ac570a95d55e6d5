from ipaddress import IPv4Network

import pytest

from port_discovery.config.config_loader import ProbeConfig
from port_discovery.core.data_models import PortRange
from port_discovery.utils.error_handler import (
    ConfigurationError,
    ErrorSeverity,
    ErrorType,
    ParseError,
    RangeError,
)
from port_discovery.utils.network_validator import NetworkValidator, validate_scan_request


@pytest.fixture
def validator(quiet_logger):
    return NetworkValidator(logger=quiet_logger)


class TestNetworkValidator:
    def test_valid_target(self, validator):
        result = validator.validate_target("192.168.1.0/24")

        assert result.is_valid
        assert result.additional_info["host_count"] == 254
        assert result.additional_info["prefix_length"] == 24
        assert result.additional_info["subnet"].network == IPv4Network("192.168.1.0/24")

    def test_invalid_target(self, validator):
        result = validator.validate_target("999.1.1.1")

        assert not result.is_valid
        assert isinstance(result.error, ParseError)
        assert result.suggestions
        assert result.error.error_context.severity is ErrorSeverity.LOW
        assert validator.error_handler.error_statistics[ErrorType.VALIDATION_ERROR] == 1

    def test_large_target_is_allowed(self, validator, mocker):
        warning = mocker.spy(validator.logger, "warning")

        result = validator.validate_target("10.0.0.0/8")

        assert result.is_valid
        assert warning.call_count == 1

    def test_valid_port_range(self, validator):
        result = validator.validate_port_range("20", "25")

        assert result.is_valid
        assert result.additional_info["port_range"] == PortRange(20, 25)
        assert result.additional_info["port_count"] == 6

    def test_inverted_port_range(self, validator):
        result = validator.validate_port_range(100, 1)

        assert not result.is_valid
        assert isinstance(result.error, RangeError)

    def test_invalid_probe_config(self, validator):
        result = validator.validate_probe_config(ProbeConfig(concurrency=0))

        assert not result.is_valid
        assert isinstance(result.error, ConfigurationError)
        assert validator.error_handler.error_statistics[ErrorType.CONFIGURATION_ERROR] == 1


class TestValidateScanRequest:
    def test_returns_subnet_and_ports(self, validator):
        subnet, ports = validate_scan_request("10.0.0.5", 1, 3, validator=validator)

        assert subnet.is_single_host
        assert list(ports) == [1, 2, 3]

    def test_target_error_comes_first(self, validator):
        with pytest.raises(ParseError):
            validate_scan_request("not-an-ip", 5, 1, validator=validator)

    def test_port_error(self, validator):
        with pytest.raises(RangeError):
            validate_scan_request("10.0.0.5", 0, 10, validator=validator)

    def test_config_error(self, validator):
        with pytest.raises(ConfigurationError):
            validate_scan_request("10.0.0.5", 1, 10, ProbeConfig(timeout=0), validator=validator)
