"""
Configuration module for Port Discovery.
Provides loading and validation of the probe configuration.
"""

from .config_loader import (
    ConfigLoader,
    ProbeConfig,
    DISCOVERY_PORTS,
    default_concurrency,
    default_queue_size,
    validate_probe_config,
)

__all__ = [
    'ConfigLoader',
    'ProbeConfig',
    'DISCOVERY_PORTS',
    'default_concurrency',
    'default_queue_size',
    'validate_probe_config',
]
