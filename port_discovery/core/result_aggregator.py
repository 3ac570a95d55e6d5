"""
Result aggregation for Port Discovery.

Collects probe outcomes in arbitrary arrival order and builds the final scan
report with hosts in ascending numeric order and ports ascending per host.
"""

import threading
from ipaddress import IPv4Address
from typing import Dict, Set

from .data_models import (
    Candidate,
    ProbeOutcome,
    ProbeStatus,
    ScanReport,
    ScanStatistics,
    ScanStatus,
)
from ..utils.error_handler import AggregationError, IncompleteScanError


class ResultAggregator:
    """
    Thread-safe collector of probe outcomes.

    Every candidate must be accounted for exactly once: duplicates and
    outcomes beyond the expected count are rejected, and finalize() refuses
    to run until all expected outcomes have arrived.
    """

    def __init__(self, expected: int, target: str = "", include_empty_hosts: bool = False):
        """
        Initialize the aggregator.

        Args:
            expected: Number of outcomes the scan will produce
            target: Label of what is being scanned
            include_empty_hosts: Keep hosts with no open ports in the report
        """
        if expected < 0:
            raise ValueError(f"Expected outcome count must be >= 0, got {expected}")

        self.expected = expected
        self.target = target
        self.include_empty_hosts = include_empty_hosts

        self._lock = threading.Lock()
        self._seen: Set[Candidate] = set()
        self._open: Dict[IPv4Address, Set[int]] = {}
        self._probed_hosts: Set[IPv4Address] = set()
        self._statistics = ScanStatistics(total_candidates=expected)

    def add(self, outcome: ProbeOutcome) -> None:
        """
        Record one outcome.

        Raises:
            AggregationError: On a duplicate outcome or one beyond the expected count
        """
        candidate = outcome.candidate
        with self._lock:
            if candidate in self._seen:
                raise AggregationError(f"Duplicate outcome for {candidate}")
            if len(self._seen) >= self.expected:
                raise AggregationError(
                    f"Unexpected outcome for {candidate}: all {self.expected} outcomes already received"
                )

            self._seen.add(candidate)
            self._probed_hosts.add(candidate.host)
            self._statistics.outcomes_received += 1
            self._statistics.status_counts[outcome.status.value] += 1

            if outcome.status is ProbeStatus.OPEN:
                self._open.setdefault(candidate.host, set()).add(candidate.port)
            elif outcome.status is ProbeStatus.ERROR:
                self._statistics.errors_encountered.append(f"{candidate}: {outcome.reason}")

    @property
    def received(self) -> int:
        with self._lock:
            return len(self._seen)

    @property
    def is_complete(self) -> bool:
        return self.received == self.expected

    def finalize(self) -> ScanReport:
        """
        Build the completed report.

        Raises:
            IncompleteScanError: If some candidates have no outcome yet
        """
        with self._lock:
            if len(self._seen) != self.expected:
                raise IncompleteScanError(
                    f"Cannot finalize report: {len(self._seen)} of {self.expected} outcomes received"
                )
            return self._build(ScanStatus.COMPLETED)

    def snapshot(self, status: ScanStatus = ScanStatus.PARTIAL) -> ScanReport:
        """Build a report from the outcomes collected so far."""
        with self._lock:
            return self._build(status)

    def _build(self, status: ScanStatus) -> ScanReport:
        hosts = self._probed_hosts if self.include_empty_hosts else self._open.keys()
        open_ports = {
            host: sorted(self._open.get(host, ()))
            for host in sorted(hosts)
        }

        statistics = ScanStatistics(
            total_candidates=self._statistics.total_candidates,
            outcomes_received=self._statistics.outcomes_received,
            status_counts=dict(self._statistics.status_counts),
            errors_encountered=sorted(self._statistics.errors_encountered),
        )

        return ScanReport(
            target=self.target,
            open_ports=open_ports,
            statistics=statistics,
            scan_status=status,
        )
