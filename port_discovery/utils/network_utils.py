"""
Address and netmask helpers shared by the network enumerator and validators.
"""

from ipaddress import IPv4Address, IPv4Network
from typing import Optional


def cidr_to_netmask(prefix_length: int) -> str:
    """
    Dotted decimal netmask for a prefix length.

    >>> cidr_to_netmask(22)
    '255.255.252.0'

    Raises:
        ValueError: If the prefix length is outside 0-32
    """
    if prefix_length not in range(33):
        raise ValueError(f"Prefix length must be 0-32, got {prefix_length}")
    return str(IPv4Network((0, prefix_length)).netmask)


def netmask_to_cidr(netmask: Optional[str]) -> int:
    """
    Prefix length of a netmask.

    Dotted decimal ("255.255.255.0"), hex ("0xffffff00", as some BSD
    interfaces report it) and bare prefix ("24") forms are accepted. An
    interface without a netmask owns a single address, so None gives 32.

    Raises:
        ValueError: If the netmask is not a contiguous IPv4 mask
    """
    if not netmask:
        return 32

    text = netmask.strip()
    if text.lower().startswith("0x"):
        try:
            text = str(IPv4Address(int(text, 16)))
        except ValueError as e:
            raise ValueError(f"Invalid netmask: {netmask}") from e
    try:
        return IPv4Network(f"0.0.0.0/{text}").prefixlen
    except ValueError as e:
        raise ValueError(f"Invalid netmask: {netmask}") from e


def _parse(address: str) -> Optional[IPv4Address]:
    try:
        return IPv4Address(address)
    except ValueError:
        return None


def is_loopback_ip(address: str) -> bool:
    parsed = _parse(address)
    return parsed is not None and parsed.is_loopback


def is_sweepable_address(address: str) -> bool:
    """
    True for interface addresses whose subnet is worth sweeping.

    Loopback, link-local (169.254.0.0/16) and multicast addresses are not.
    """
    parsed = _parse(address)
    if parsed is None:
        return False
    return not (parsed.is_loopback or parsed.is_link_local or parsed.is_multicast)
