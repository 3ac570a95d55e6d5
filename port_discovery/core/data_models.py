"""
Core data models and enums for Port Discovery.

This module defines the data structures used throughout the scan pipeline:
probe candidates, port ranges, probe outcomes, the aggregated scan report and
local interface records.
"""

from dataclasses import dataclass, field
from enum import Enum
from ipaddress import IPv4Address, IPv4Network
from typing import Dict, Iterator, List, Optional

from ..utils.error_handler import ParseError, RangeError

MIN_PORT = 1
MAX_PORT = 65535


class ProbeStatus(Enum):
    """Classification of a single TCP connect attempt."""
    OPEN = "open"
    CLOSED = "closed"
    TIMEOUT = "timeout"
    ERROR = "error"


class ScanStatus(Enum):
    """Enumeration of possible scan statuses."""
    NOT_STARTED = "not_started"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    PARTIAL = "partial"


@dataclass(frozen=True, order=True)
class Candidate:
    """
    One (host, port) pair scheduled for a single connection attempt.

    Candidates order by host address first, then port.
    """
    host: IPv4Address
    port: int

    def __post_init__(self):
        if not isinstance(self.host, IPv4Address):
            raise ParseError(f"Candidate host must be an IPv4 address, got {self.host!r}",
                             token=str(self.host))
        if isinstance(self.port, bool) or not isinstance(self.port, int):
            raise ParseError(f"Candidate port must be an integer, got {self.port!r}",
                             token=str(self.port))
        if not MIN_PORT <= self.port <= MAX_PORT:
            raise RangeError(f"Port {self.port} outside {MIN_PORT}-{MAX_PORT}")

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class PortRange:
    """
    Inclusive TCP port range.

    Attributes:
        start: First port of the range (>= 1)
        end: Last port of the range (<= 65535, >= start)
    """
    start: int
    end: int

    def __post_init__(self):
        for value in (self.start, self.end):
            if not MIN_PORT <= value <= MAX_PORT:
                raise RangeError(f"Port {value} outside {MIN_PORT}-{MAX_PORT}")
        if self.start > self.end:
            raise RangeError(
                f"start_port must be <= end_port (got {self.start} > {self.end})"
            )

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.start, self.end + 1))

    def __len__(self) -> int:
        return self.end - self.start + 1

    def __str__(self) -> str:
        if self.start == self.end:
            return str(self.start)
        return f"{self.start}-{self.end}"


@dataclass(frozen=True)
class SubnetSpec:
    """
    A scan target: either a literal host or a CIDR network block.

    Attributes:
        network: Network block; a bare host is stored as a /32
        is_single_host: True when the target was given as a bare address
    """
    network: IPv4Network
    is_single_host: bool = False

    def __str__(self) -> str:
        if self.is_single_host:
            return str(self.network.network_address)
        return str(self.network)


@dataclass(frozen=True)
class ProbeOutcome:
    """
    Classified result of one probe attempt.

    Attributes:
        candidate: The probed (host, port) pair
        status: Classification of the attempt
        reason: Underlying cause for ERROR outcomes
        error_code: OS errno when the failure carried one
        elapsed: Seconds spent on the attempt
    """
    candidate: Candidate
    status: ProbeStatus
    reason: Optional[str] = None
    error_code: Optional[int] = None
    elapsed: float = 0.0

    @property
    def is_open(self) -> bool:
        return self.status is ProbeStatus.OPEN


@dataclass
class ScanStatistics:
    """
    Accounting for a scan.

    Attributes:
        total_candidates: Number of candidates the scan was expected to probe
        outcomes_received: Number of outcomes consumed by the aggregator
        status_counts: Outcome counts keyed by ProbeStatus value
        errors_encountered: "host:port: reason" for every ERROR outcome
        scan_duration: Wall-clock duration of the scan in seconds
    """
    total_candidates: int = 0
    outcomes_received: int = 0
    status_counts: Dict[str, int] = field(
        default_factory=lambda: {status.value: 0 for status in ProbeStatus}
    )
    errors_encountered: List[str] = field(default_factory=list)
    scan_duration: float = 0.0


@dataclass
class ScanReport:
    """
    Open ports grouped by host, in ascending address and port order.

    Attributes:
        target: Label of what was scanned
        open_ports: Ordered mapping of host address to ascending open ports
        statistics: Accounting for every outcome, open or not
        scan_status: Final status of the scan
    """
    target: str
    open_ports: Dict[IPv4Address, List[int]] = field(default_factory=dict)
    statistics: ScanStatistics = field(default_factory=ScanStatistics)
    scan_status: ScanStatus = ScanStatus.NOT_STARTED

    @property
    def hosts(self) -> List[IPv4Address]:
        return list(self.open_ports)

    @property
    def is_empty(self) -> bool:
        return self.total_open_ports == 0

    @property
    def total_open_ports(self) -> int:
        return sum(len(ports) for ports in self.open_ports.values())


@dataclass(frozen=True)
class InterfaceRecord:
    """
    An IPv4 address assigned to a local network interface.

    Attributes:
        name: Interface name (e.g. eth0)
        address: IPv4 address assigned to the interface
        netmask: Dotted decimal netmask
        prefix_length: Netmask as CIDR prefix length
        is_up: Whether the interface is administratively up
        is_loopback: Whether the address is a loopback address
    """
    name: str
    address: IPv4Address
    netmask: str
    prefix_length: int
    is_up: bool = True
    is_loopback: bool = False

    @property
    def network(self) -> IPv4Network:
        return IPv4Network((self.address, self.prefix_length), strict=False)

    @property
    def cidr(self) -> str:
        return str(self.network)
