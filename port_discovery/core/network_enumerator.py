"""
Local network interface enumeration for Port Discovery.

This module provides the NetworkEnumerator class, which lists the IPv4
addresses assigned to the host's network interfaces together with their
subnets, and derives the subnets swept by the "discover" command.
"""

import socket
from ipaddress import IPv4Address
from typing import List, Optional

import psutil

from .data_models import InterfaceRecord, SubnetSpec
from ..utils.error_handler import (
    ErrorContext,
    ErrorSeverity,
    ErrorType,
    InterfaceEnumerationError,
)
from ..utils.logger import Logger, get_logger
from ..utils.network_utils import is_loopback_ip, is_sweepable_address, netmask_to_cidr, cidr_to_netmask


class NetworkEnumerator:
    """
    Enumerates local IPv4 interfaces using psutil.

    A single query is made per call; failures of the OS interface API are
    reported as InterfaceEnumerationError and never retried.
    """

    def __init__(self, logger: Optional[Logger] = None):
        """
        Initialize the NetworkEnumerator.

        Args:
            logger: Logger instance for diagnostics
        """
        self.logger = logger or get_logger(__name__)

    def enumerate(self, include_down: bool = False,
                  include_loopback: bool = True) -> List[InterfaceRecord]:
        """
        List IPv4 interface addresses.

        Args:
            include_down: Also list interfaces that are administratively down
            include_loopback: Also list loopback addresses

        Returns:
            Interface records sorted by interface name, then address

        Raises:
            InterfaceEnumerationError: If the OS interface query fails
        """
        try:
            addresses = psutil.net_if_addrs()
            stats = psutil.net_if_stats()
        except (OSError, psutil.Error, NotImplementedError) as e:
            context = ErrorContext(
                error_type=ErrorType.ENUMERATION_ERROR,
                severity=ErrorSeverity.HIGH,
                operation="enumerate",
                component="NetworkEnumerator",
                additional_info={"cause": f"{type(e).__name__}: {e}"},
            )
            raise InterfaceEnumerationError(
                f"Network interface enumeration failed: {e}", context
            ) from e

        records = []
        for interface_name, interface_addresses in addresses.items():
            interface_stats = stats.get(interface_name)
            is_up = interface_stats.isup if interface_stats is not None else True

            if not is_up and not include_down:
                self.logger.debug(f"Skipping down interface {interface_name}")
                continue

            for address in interface_addresses:
                if address.family != socket.AF_INET:
                    continue

                record = self._build_record(interface_name, address.address,
                                            address.netmask, is_up)
                if record is None:
                    continue
                if record.is_loopback and not include_loopback:
                    continue
                records.append(record)

        records.sort(key=lambda r: (r.name, r.address))
        self.logger.debug(f"Found {len(records)} IPv4 interface addresses")
        return records

    def _build_record(self, name: str, address: str, netmask: Optional[str],
                      is_up: bool) -> Optional[InterfaceRecord]:
        try:
            ip_addr = IPv4Address(address)
            prefix_length = netmask_to_cidr(netmask)
        except ValueError as e:
            self.logger.debug(f"Ignoring unusable address on {name}: {e}")
            return None

        return InterfaceRecord(
            name=name,
            address=ip_addr,
            netmask=cidr_to_netmask(prefix_length),
            prefix_length=prefix_length,
            is_up=is_up,
            is_loopback=is_loopback_ip(address),
        )


def local_subnets(records: List[InterfaceRecord]) -> List[SubnetSpec]:
    """
    Subnets worth sweeping for live hosts, de-duplicated and sorted.

    Loopback, link-local and multicast interface addresses are skipped.
    """
    networks = {
        record.network
        for record in records
        if is_sweepable_address(str(record.address))
    }
    return [SubnetSpec(network=network) for network in sorted(networks)]


def local_addresses(records: List[InterfaceRecord]) -> List[IPv4Address]:
    """Addresses of the scanning host itself; excluded from sweeps."""
    return sorted({record.address for record in records})
