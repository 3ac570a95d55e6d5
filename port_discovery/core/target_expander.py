"""
Target expansion for Port Discovery.

Turns a target (IPv4 literal or CIDR block) and a port range into the lazy,
ordered sequence of candidates the probe executor consumes.

Host-exclusion convention:
    - prefixes <= 30 skip the network and broadcast addresses
    - /31 keeps both addresses (RFC 3021 point-to-point links)
    - /32 and bare hosts keep the single address
"""

import heapq
from ipaddress import IPv4Address, IPv4Network, AddressValueError
from typing import Iterable, Iterator, List, Sequence, Union

from .data_models import Candidate, PortRange, SubnetSpec, MIN_PORT, MAX_PORT
from ..utils.error_handler import ParseError, RangeError

MAX_PREFIX_LENGTH = 32


def _is_decimal(text: str) -> bool:
    # ASCII digits only; int() would also accept signs and padding
    return text.isascii() and text.isdigit()


def parse_target(token: str) -> SubnetSpec:
    """
    Parse an IPv4 literal or CIDR block.

    Args:
        token: Target string, e.g. "10.0.0.5" or "192.168.1.0/24"

    Returns:
        SubnetSpec for the target. Host bits of a CIDR block are masked off.

    Raises:
        ParseError: If the address or the prefix is not well-formed
        RangeError: If the prefix length is outside 0-32
    """
    if not isinstance(token, str) or not token.strip():
        raise ParseError("Target must be a non-empty IPv4 address or CIDR block",
                         token=str(token))

    token = token.strip()
    address_part, slash, prefix_part = token.partition("/")

    try:
        address = IPv4Address(address_part)
    except AddressValueError:
        raise ParseError(f"Invalid IPv4 address: '{address_part}'", token=address_part)

    if not slash:
        return SubnetSpec(network=IPv4Network((address, MAX_PREFIX_LENGTH)),
                          is_single_host=True)

    if not _is_decimal(prefix_part):
        raise ParseError(f"Invalid prefix length: '{prefix_part}'", token=prefix_part)
    prefix_length = int(prefix_part)

    if not 0 <= prefix_length <= MAX_PREFIX_LENGTH:
        raise RangeError(
            f"Prefix length {prefix_length} outside 0-{MAX_PREFIX_LENGTH} in '{token}'"
        )

    return SubnetSpec(network=IPv4Network((address, prefix_length), strict=False))


def _parse_port(value: Union[int, str]) -> int:
    if isinstance(value, bool):
        raise ParseError(f"Invalid port: {value!r}", token=str(value))
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not _is_decimal(text):
        raise ParseError(f"Invalid port: '{text}'", token=text)
    return int(text)


def parse_port_range(start: Union[int, str], end: Union[int, str]) -> PortRange:
    """
    Build a validated PortRange from ints or numeric strings.

    Raises:
        ParseError: If a bound is not a number
        RangeError: If a bound is outside 1-65535 or start > end
    """
    return PortRange(_parse_port(start), _parse_port(end))


def subnet_hosts(spec: SubnetSpec) -> Iterator[IPv4Address]:
    """Lazily yield the usable hosts of a subnet in ascending order."""
    network = spec.network
    if network.prefixlen >= 31:
        return iter(network)
    return network.hosts()


def count_subnet_hosts(spec: SubnetSpec) -> int:
    """Number of usable hosts in a subnet, per the exclusion convention."""
    if spec.network.prefixlen >= 31:
        return spec.network.num_addresses
    return spec.network.num_addresses - 2


class TargetExpander:
    """
    Cross product of hosts and ports, in ascending host then port order.

    Every iteration starts a fresh generator, so one expander can be iterated
    once for counting/logging and again for the actual scan.
    """

    def __init__(
        self,
        subnets: Union[SubnetSpec, Sequence[SubnetSpec]],
        ports: Union[PortRange, Iterable[int]],
        exclude: Iterable[IPv4Address] = (),
    ):
        """
        Initialize the expander.

        Args:
            subnets: One subnet spec or several (overlaps are merged)
            ports: Port range or explicit port list
            exclude: Host addresses to skip (e.g. the scanning host)
        """
        if isinstance(subnets, SubnetSpec):
            subnets = [subnets]
        self.subnets: List[SubnetSpec] = list(subnets)

        if isinstance(ports, PortRange):
            self.ports: List[int] = list(ports)
        else:
            self.ports = sorted(set(_parse_port(port) for port in ports))
            for port in self.ports:
                if not MIN_PORT <= port <= MAX_PORT:
                    raise RangeError(f"Port {port} outside {MIN_PORT}-{MAX_PORT}")

        self.exclude = frozenset(exclude)

    def hosts(self) -> Iterator[IPv4Address]:
        """Yield every host to probe, ascending and without duplicates."""
        previous = None
        for host in heapq.merge(*(subnet_hosts(spec) for spec in self.subnets)):
            if host == previous:
                continue
            previous = host
            if host in self.exclude:
                continue
            yield host

    def host_count(self) -> int:
        if len(self.subnets) == 1 and not self.exclude:
            return count_subnet_hosts(self.subnets[0])
        return sum(1 for _ in self.hosts())

    def __iter__(self) -> Iterator[Candidate]:
        for host in self.hosts():
            for port in self.ports:
                yield Candidate(host, port)

    def __len__(self) -> int:
        return self.host_count() * len(self.ports)

    def describe(self) -> str:
        return ", ".join(str(spec) for spec in self.subnets) or "no subnets"
