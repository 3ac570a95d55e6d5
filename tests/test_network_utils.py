import pytest

from port_discovery.utils.network_utils import (
    cidr_to_netmask,
    is_loopback_ip,
    is_sweepable_address,
    netmask_to_cidr,
)


@pytest.mark.parametrize("prefix,netmask", [(0, "0.0.0.0"), (22, "255.255.252.0"), (32, "255.255.255.255")])
def test_cidr_to_netmask(prefix, netmask):
    assert cidr_to_netmask(prefix) == netmask


def test_cidr_to_netmask_out_of_range():
    with pytest.raises(ValueError):
        cidr_to_netmask(33)


@pytest.mark.parametrize("netmask,prefix", [
    ("255.255.255.0", 24),
    ("0xffffff00", 24),
    ("16", 16),
    (None, 32),
    ("", 32),
])
def test_netmask_to_cidr(netmask, prefix):
    assert netmask_to_cidr(netmask) == prefix


@pytest.mark.parametrize("netmask", ["255.0.255.0", "0xzz", "mask"])
def test_netmask_to_cidr_invalid(netmask):
    with pytest.raises(ValueError):
        netmask_to_cidr(netmask)


def test_address_checks():
    assert is_loopback_ip("127.0.0.1")
    assert not is_loopback_ip("10.0.0.1")
    assert not is_loopback_ip("not-an-ip")
    assert is_sweepable_address("192.168.1.20")
    assert not is_sweepable_address("127.0.0.1")
    assert not is_sweepable_address("169.254.10.1")
    assert not is_sweepable_address("224.0.0.1")
    assert not is_sweepable_address("bogus")
