"""
Core components for port discovery functionality.
"""

from .data_models import (
    Candidate,
    PortRange,
    SubnetSpec,
    ProbeStatus,
    ProbeOutcome,
    ScanStatus,
    ScanStatistics,
    ScanReport,
    InterfaceRecord
)
from .target_expander import TargetExpander, parse_target, parse_port_range
from .probe_executor import ProbeExecutor, tcp_connect
from .result_aggregator import ResultAggregator
from .network_enumerator import NetworkEnumerator

__all__ = [
    'Candidate',
    'PortRange',
    'SubnetSpec',
    'ProbeStatus',
    'ProbeOutcome',
    'ScanStatus',
    'ScanStatistics',
    'ScanReport',
    'InterfaceRecord',
    'TargetExpander',
    'parse_target',
    'parse_port_range',
    'ProbeExecutor',
    'tcp_connect',
    'ResultAggregator',
    'NetworkEnumerator'
]
