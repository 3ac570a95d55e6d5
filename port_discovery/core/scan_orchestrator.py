"""
Scan Orchestrator for Port Discovery.

This module provides the ScanOrchestrator class that wires the scan pipeline
together: Target Expander → Probe Executor → Result Aggregator. It drives the
"probe", "networks" and "discover" commands, with progress tracking, timing
and cancellation.
"""

import threading
import time
from typing import List, Optional

from .data_models import InterfaceRecord, ScanReport, ScanStatus
from .network_enumerator import NetworkEnumerator, local_addresses, local_subnets
from .probe_executor import Connector, ProbeExecutor
from .result_aggregator import ResultAggregator
from .target_expander import TargetExpander
from ..config.config_loader import ProbeConfig
from ..utils.error_handler import ResourceExhaustedError
from ..utils.logger import Logger, get_logger
from ..utils.network_validator import NetworkValidator, validate_scan_request


class ScanOrchestrator:
    """
    Orchestrates scans for the command-line interface.

    One orchestrator owns one cancel event; cancel() stops dispatching new
    candidates for the scan in progress. The event is cleared when that scan
    returns, so the orchestrator can run the next one.
    """

    def __init__(
        self,
        config: ProbeConfig,
        logger: Optional[Logger] = None,
        connector: Optional[Connector] = None,
        enumerator: Optional[NetworkEnumerator] = None,
    ):
        """
        Initialize the scan orchestrator.

        Args:
            config: Probe configuration
            logger: Logger instance (optional)
            connector: Connect-with-timeout capability override (optional)
            enumerator: Network enumerator override (optional)
        """
        self.logger = logger or get_logger(__name__)
        self.config = config
        self.connector = connector
        self.enumerator = enumerator or NetworkEnumerator(self.logger)
        self.validator = NetworkValidator(logger=self.logger)
        self.cancel_event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation of the scan in progress."""
        if not self.cancel_event.is_set():
            self.logger.warning("Cancellation requested - no new probes will be dispatched")
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def run_probe(self, target: str, start, end, include_empty_hosts: bool = False) -> ScanReport:
        """
        Scan a port range on a single host or CIDR block.

        Args:
            target: IPv4 literal or CIDR block
            start: First port of the range
            end: Last port of the range
            include_empty_hosts: List hosts without open ports as well

        Returns:
            ScanReport: COMPLETED, or CANCELLED when cancel() interrupted the scan

        Raises:
            ValidationError: If the request is malformed; no socket is opened
            ResourceExhaustedError: If socket exhaustion stopped the scan
        """
        subnet, port_range = validate_scan_request(
            target, start, end, self.config, validator=self.validator
        )
        expander = TargetExpander(subnet, port_range)

        self.logger.section("PORT PROBE")
        return self._execute(expander, str(subnet), include_empty_hosts)

    def run_networks(self, include_down: bool = False) -> List[InterfaceRecord]:
        """
        Enumerate local network interfaces.

        Raises:
            InterfaceEnumerationError: If the OS interface query fails
        """
        records = self.enumerator.enumerate(include_down=include_down)
        self.logger.debug(f"Enumerated {len(records)} interface addresses")
        return records

    def run_discovery(self) -> ScanReport:
        """
        Sweep every local IPv4 subnet for live hosts on the discovery ports.

        The scanning host's own addresses are excluded.

        Returns:
            ScanReport of live hosts and their open discovery ports

        Raises:
            InterfaceEnumerationError: If the OS interface query fails
            ResourceExhaustedError: If socket exhaustion stopped the scan
        """
        self.logger.section("HOST DISCOVERY")
        records = self.enumerator.enumerate()
        subnets = local_subnets(records)
        if not subnets:
            self.logger.warning("No local IPv4 subnets detected")
            return ResultAggregator(0, target="local subnets").finalize()

        for subnet in subnets:
            self.logger.info(f"Local subnet: {subnet}")

        expander = TargetExpander(
            subnets, self.config.discovery_ports, exclude=local_addresses(records)
        )
        return self._execute(expander, expander.describe(), include_empty_hosts=False)

    def _execute(self, expander: TargetExpander, target_label: str,
                 include_empty_hosts: bool) -> ScanReport:
        # A cancel request ends with the scan it interrupted
        try:
            return self._scan(expander, target_label, include_empty_hosts)
        finally:
            self.cancel_event.clear()

    def _scan(self, expander: TargetExpander, target_label: str,
              include_empty_hosts: bool) -> ScanReport:
        """
        Run the probe pipeline over an expander and build the report.

        Args:
            expander: Candidate source
            target_label: Label recorded in the report
            include_empty_hosts: List hosts without open ports as well

        Returns:
            ScanReport: finalized, or a CANCELLED snapshot
        """
        total = len(expander)
        self.logger.scan_info(
            target=target_label,
            hosts=expander.host_count(),
            ports=len(expander.ports),
            concurrency=self.config.concurrency,
            timeout=self.config.timeout,
        )

        aggregator = ResultAggregator(total, target=target_label,
                                      include_empty_hosts=include_empty_hosts)
        executor = ProbeExecutor(self.config, connector=self.connector, logger=self.logger)

        start_time = time.perf_counter()
        self.logger.progress_start(f"Probing {total} targets")

        try:
            for outcome in executor.run(expander, self.cancel_event):
                aggregator.add(outcome)
                received = aggregator.received
                if received % self.config.progress_interval == 0 and received < total:
                    self.logger.progress_update(
                        f"Probed {received}/{total} targets ({received * 100 // total}%)"
                    )
        except ResourceExhaustedError as e:
            self.logger.progress_end()
            report = aggregator.snapshot(ScanStatus.PARTIAL)
            report.statistics.scan_duration = time.perf_counter() - start_time
            e.report = report
            raise

        duration = time.perf_counter() - start_time

        if self.cancelled and not aggregator.is_complete:
            self.logger.progress_end()
            self.logger.warning(
                f"Scan cancelled after {aggregator.received}/{total} probes"
            )
            report = aggregator.snapshot(ScanStatus.CANCELLED)
        else:
            report = aggregator.finalize()
            self.logger.progress_end(
                f"Probed {total} targets in {duration:.2f}s - "
                f"{report.total_open_ports} open ports on {len(report.hosts)} hosts"
            )

        report.statistics.scan_duration = duration
        self._log_statistics(report)
        return report

    def _log_statistics(self, report: ScanReport) -> None:
        counts = report.statistics.status_counts
        self.logger.debug(
            "Outcome summary",
            open=counts.get("open", 0),
            closed=counts.get("closed", 0),
            timeout=counts.get("timeout", 0),
            error=counts.get("error", 0),
        )
        for error in report.statistics.errors_encountered[:10]:
            self.logger.debug(f"Probe error: {error}")
        if len(report.statistics.errors_encountered) > 10:
            self.logger.debug(
                f"... {len(report.statistics.errors_encountered) - 10} more probe errors"
            )
