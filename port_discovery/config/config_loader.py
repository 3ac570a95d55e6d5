"""
Configuration loader for Port Discovery.
Handles loading and validation of the YAML probe configuration with fallback to defaults.
"""

import math

import yaml
import psutil
from typing import Any, List, Optional
from dataclasses import dataclass, field, replace
from pathlib import Path

from ..utils.logger import Logger
from ..utils.error_handler import ConfigurationError

# Modest set of TCP ports commonly exposed by consumer devices/services
DISCOVERY_PORTS = [22, 23, 53, 80, 139, 443, 445, 631, 8000, 8080, 8443]

DEFAULT_TIMEOUT = 0.5
MIN_CONCURRENCY = 16
MAX_CONCURRENCY = 64


def default_concurrency() -> int:
    """
    Worker pool size derived from the CPU count.

    Connect attempts are I/O bound, so several workers per CPU are used,
    clamped to 16-64 workers.
    """
    cpus = psutil.cpu_count(logical=True) or 1
    return max(MIN_CONCURRENCY, min(cpus * 8, MAX_CONCURRENCY))


def default_queue_size(concurrency: int) -> int:
    """Work queue bound for the given concurrency; large enough to absorb bursts."""
    return max(256, min(concurrency * 4, 16_384))


@dataclass
class ProbeConfig:
    """Configuration for the probe executor and scan orchestration."""
    timeout: float = DEFAULT_TIMEOUT
    concurrency: int = field(default_factory=default_concurrency)
    queue_size: Optional[int] = None
    max_resource_errors: int = 32
    progress_interval: int = 1000
    join_grace: float = 1.0
    discovery_ports: List[int] = field(default_factory=lambda: list(DISCOVERY_PORTS))

    def __post_init__(self):
        if self.queue_size is None:
            self.queue_size = default_queue_size(self.concurrency)

    def with_overrides(self, timeout: Optional[float] = None,
                       concurrency: Optional[int] = None) -> "ProbeConfig":
        """
        Return a copy with command-line overrides applied and validated.

        Raises:
            ConfigurationError: If an override is invalid
        """
        updated = self
        if timeout is not None:
            updated = replace(updated, timeout=timeout)
        if concurrency is not None:
            if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
                raise ConfigurationError(
                    f"Concurrency must be a positive integer, got {concurrency!r}"
                )
            updated = replace(updated, concurrency=concurrency,
                              queue_size=default_queue_size(concurrency))
        validate_probe_config(updated)
        return updated


def validate_probe_config(config: ProbeConfig) -> ProbeConfig:
    """
    Strictly validate a probe configuration.

    Raises:
        ConfigurationError: On the first invalid value
    """
    if isinstance(config.concurrency, bool) or not isinstance(config.concurrency, int) \
            or config.concurrency < 1:
        raise ConfigurationError(
            f"Concurrency must be a positive integer, got {config.concurrency!r}"
        )
    if isinstance(config.timeout, bool) or not isinstance(config.timeout, (int, float)) \
            or not math.isfinite(config.timeout) or config.timeout <= 0:
        raise ConfigurationError(
            f"Timeout must be a positive number of seconds, got {config.timeout!r}"
        )
    if isinstance(config.join_grace, bool) or not isinstance(config.join_grace, (int, float)) \
            or not math.isfinite(config.join_grace) or config.join_grace < 0:
        raise ConfigurationError(
            f"join_grace must be a non-negative number of seconds, got {config.join_grace!r}"
        )
    if not isinstance(config.queue_size, int) or config.queue_size < 1:
        raise ConfigurationError(
            f"Queue size must be a positive integer, got {config.queue_size!r}"
        )
    if not isinstance(config.max_resource_errors, int) or config.max_resource_errors < 1:
        raise ConfigurationError(
            f"max_resource_errors must be a positive integer, got {config.max_resource_errors!r}"
        )
    return config


class ConfigLoader:
    """
    Loads and validates the YAML probe configuration.
    Provides fallback to default configuration when the file is missing or invalid.
    """

    def __init__(self, config_dir: Optional[str] = None, logger: Optional[Logger] = None):
        """
        Initialize ConfigLoader.

        Args:
            config_dir: Directory containing configuration files.
                       Defaults to the config directory relative to this file.
            logger: Logger instance for warnings
        """
        if config_dir is None:
            self.config_dir = Path(__file__).parent
        else:
            self.config_dir = Path(config_dir)

        self.logger = logger or Logger()

    def load_probe_config(self, config_file: str = "probe_config.yml") -> ProbeConfig:
        """
        Load probe configuration from YAML file.

        Args:
            config_file: Name of the probe configuration file

        Returns:
            ProbeConfig object with loaded or default configuration
        """
        config_path = self.config_dir / config_file

        if not config_path.exists():
            self.logger.warning(f"Probe config file not found at {config_path}. Using default configuration.")
            return ProbeConfig()

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            self.logger.error(f"Error parsing probe config file {config_path}: {e}")
            self.logger.warning("Using default probe configuration.")
            return ProbeConfig()
        except OSError as e:
            self.logger.error(f"Cannot read probe config file {config_path}: {e}")
            self.logger.warning("Using default probe configuration.")
            return ProbeConfig()

        if not isinstance(config_data, dict) or not isinstance(config_data.get('probe'), dict):
            self.logger.warning(f"Invalid probe config structure in {config_path}. Using default configuration.")
            return ProbeConfig()

        probe_data = config_data['probe']
        defaults = ProbeConfig()

        concurrency = defaults.concurrency
        if probe_data.get('concurrency') is not None:
            concurrency = self._validate_positive_int(probe_data['concurrency'], 'concurrency', concurrency)

        queue_size = default_queue_size(concurrency)
        if probe_data.get('queue_size') is not None:
            queue_size = self._validate_positive_int(probe_data['queue_size'], 'queue_size', queue_size)

        return ProbeConfig(
            timeout=self._validate_positive_float(probe_data.get('timeout', DEFAULT_TIMEOUT), 'timeout', DEFAULT_TIMEOUT),
            concurrency=concurrency,
            queue_size=queue_size,
            max_resource_errors=self._validate_positive_int(
                probe_data.get('max_resource_errors', defaults.max_resource_errors),
                'max_resource_errors', defaults.max_resource_errors),
            progress_interval=self._validate_positive_int(
                probe_data.get('progress_interval', defaults.progress_interval),
                'progress_interval', defaults.progress_interval),
            join_grace=self._validate_positive_float(
                probe_data.get('join_grace', defaults.join_grace), 'join_grace', defaults.join_grace),
            discovery_ports=self._validate_ports(probe_data.get('discovery_ports', DISCOVERY_PORTS)),
        )

    def _validate_positive_int(self, value: Any, field_name: str, default: int) -> int:
        """
        Validate that a value is a positive integer.

        Args:
            value: Value to validate
            field_name: Name of the field for error messages
            default: Default value to use if validation fails

        Returns:
            Validated integer value or default
        """
        try:
            int_value = int(value)
            if int_value <= 0:
                self.logger.warning(f"Invalid {field_name}: {value}. Must be positive. Using default: {default}")
                return default
            return int_value
        except (ValueError, TypeError):
            self.logger.warning(f"Invalid {field_name}: {value}. Must be an integer. Using default: {default}")
            return default

    def _validate_positive_float(self, value: Any, field_name: str, default: float) -> float:
        try:
            float_value = float(value)
            if not math.isfinite(float_value) or float_value <= 0:
                self.logger.warning(f"Invalid {field_name}: {value}. Must be a positive finite number. Using default: {default}")
                return default
            return float_value
        except (ValueError, TypeError):
            self.logger.warning(f"Invalid {field_name}: {value}. Must be a number. Using default: {default}")
            return default

    def _validate_ports(self, ports: Any) -> List[int]:
        """
        Validate the discovery port list.

        Args:
            ports: Ports to validate

        Returns:
            Sorted list of valid ports, or the default list
        """
        if not isinstance(ports, list):
            self.logger.warning(f"Invalid discovery_ports: {ports}. Must be a list. Using default.")
            return list(DISCOVERY_PORTS)

        valid_ports = set()
        for port in ports:
            if isinstance(port, int) and not isinstance(port, bool) and 1 <= port <= 65535:
                valid_ports.add(port)
            else:
                self.logger.warning(f"Invalid discovery port: {port}. Skipping.")

        if not valid_ports:
            self.logger.warning("No valid discovery ports found. Using default.")
            return list(DISCOVERY_PORTS)

        return sorted(valid_ports)
