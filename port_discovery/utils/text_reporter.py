"""
Text report generation for Port Discovery.

This module renders scan reports and interface lists as plain, stable text:
hosts in ascending address order with their ports ascending, one line per
host, so the output can be compared by scripts and tests.
"""

import sys
from typing import List, Optional, TextIO

from ..core.data_models import InterfaceRecord, ScanReport, ScanStatus

HOST_COLUMN_WIDTH = 18
NAME_COLUMN_WIDTH = 16


class TextReporter:
    """
    Renders reports for the console.

    Rendering and printing are separate so the lines can be checked without
    capturing stdout.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        """
        Initialize the text reporter.

        Args:
            stream: Output stream; defaults to sys.stdout at print time
        """
        self.stream = stream

    def render_report(self, report: ScanReport) -> List[str]:
        """
        Render a scan report.

        Args:
            report: Scan report to render

        Returns:
            List of output lines
        """
        lines: List[str] = []

        if report.scan_status == ScanStatus.CANCELLED:
            lines.append("Scan cancelled - partial results")
        elif report.scan_status == ScanStatus.PARTIAL:
            lines.append("Scan stopped early - partial results")

        if not report.open_ports:
            lines.append("No open ports found")
            return lines

        lines.append(f"{'HOST':<{HOST_COLUMN_WIDTH}}OPEN PORTS")
        for host, ports in report.open_ports.items():
            port_list = ",".join(str(port) for port in ports) or "-"
            lines.append(f"{str(host):<{HOST_COLUMN_WIDTH}}{port_list}")

        stats = report.statistics
        lines.append("")
        lines.append(
            f"{report.total_open_ports} open ports on {len(report.hosts)} hosts "
            f"({stats.outcomes_received}/{stats.total_candidates} probes, "
            f"elapsed {stats.scan_duration:.2f}s)"
        )
        return lines

    def render_interfaces(self, records: List[InterfaceRecord]) -> List[str]:
        """
        Render local interfaces, one line per IPv4 address.

        Args:
            records: Interface records to render

        Returns:
            List of output lines
        """
        if not records:
            return ["No local IPv4 subnets detected."]

        lines = [f"{'INTERFACE':<{NAME_COLUMN_WIDTH}}{'ADDRESS':<{HOST_COLUMN_WIDTH}}CIDR"]
        for record in records:
            state = "" if record.is_up else " (down)"
            lines.append(
                f"{record.name:<{NAME_COLUMN_WIDTH}}"
                f"{str(record.address):<{HOST_COLUMN_WIDTH}}"
                f"{record.cidr}{state}"
            )
        return lines

    def print_report(self, report: ScanReport) -> None:
        self._write(self.render_report(report))

    def print_interfaces(self, records: List[InterfaceRecord]) -> None:
        self._write(self.render_interfaces(records))

    def _write(self, lines: List[str]) -> None:
        stream = self.stream or sys.stdout
        for line in lines:
            print(line, file=stream)
