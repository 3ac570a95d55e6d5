import socket
from collections import namedtuple
from ipaddress import IPv4Address, IPv4Network

import psutil
import pytest

from port_discovery.core.data_models import InterfaceRecord
from port_discovery.core.network_enumerator import (
    NetworkEnumerator,
    local_addresses,
    local_subnets,
)
from port_discovery.utils.error_handler import InterfaceEnumerationError, SystemResourceError

snicaddr = namedtuple("snicaddr", "family address netmask broadcast ptp")
snicstats = namedtuple("snicstats", "isup duplex speed mtu")

AF_LINK = getattr(psutil, "AF_LINK", -1)


def ipv4(address, netmask):
    return snicaddr(socket.AF_INET, address, netmask, None, None)


@pytest.fixture
def interfaces(mocker):
    addresses = {
        "lo": [ipv4("127.0.0.1", "255.0.0.0")],
        "eth0": [
            ipv4("192.168.1.20", "255.255.255.0"),
            snicaddr(socket.AF_INET6, "fe80::1", "ffff:ffff:ffff:ffff::", None, None),
            snicaddr(AF_LINK, "aa:bb:cc:dd:ee:ff", None, None, None),
        ],
        "wlan0": [ipv4("10.10.0.7", "255.255.252.0")],
        "docker0": [ipv4("172.17.0.1", "255.255.0.0")],
    }
    stats = {
        "lo": snicstats(True, 0, 0, 65536),
        "eth0": snicstats(True, 2, 1000, 1500),
        "wlan0": snicstats(True, 0, 0, 1500),
        "docker0": snicstats(False, 0, 0, 1500),
    }
    mocker.patch("port_discovery.core.network_enumerator.psutil.net_if_addrs", return_value=addresses)
    mocker.patch("port_discovery.core.network_enumerator.psutil.net_if_stats", return_value=stats)


class TestNetworkEnumerator:
    def test_lists_ipv4_addresses_of_up_interfaces(self, interfaces, quiet_logger):
        records = NetworkEnumerator(quiet_logger).enumerate()

        assert [(r.name, str(r.address), r.cidr) for r in records] == [
            ("eth0", "192.168.1.20", "192.168.1.0/24"),
            ("lo", "127.0.0.1", "127.0.0.0/8"),
            ("wlan0", "10.10.0.7", "10.10.0.0/22"),
        ]

    def test_include_down(self, interfaces, quiet_logger):
        records = NetworkEnumerator(quiet_logger).enumerate(include_down=True)
        docker = [r for r in records if r.name == "docker0"]

        assert len(docker) == 1
        assert not docker[0].is_up
        assert docker[0].netmask == "255.255.0.0"
        assert docker[0].prefix_length == 16

    def test_exclude_loopback(self, interfaces, quiet_logger):
        records = NetworkEnumerator(quiet_logger).enumerate(include_loopback=False)

        assert all(not r.is_loopback for r in records)
        assert "lo" not in [r.name for r in records]

    def test_missing_netmask_is_a_single_address(self, mocker, quiet_logger):
        mocker.patch("port_discovery.core.network_enumerator.psutil.net_if_addrs",
                     return_value={"tun0": [ipv4("10.8.0.2", None)]})
        mocker.patch("port_discovery.core.network_enumerator.psutil.net_if_stats", return_value={})

        records = NetworkEnumerator(quiet_logger).enumerate()

        assert records[0].cidr == "10.8.0.2/32"

    def test_os_failure(self, mocker, quiet_logger):
        mocker.patch("port_discovery.core.network_enumerator.psutil.net_if_addrs",
                     side_effect=OSError("Operation not permitted"))

        with pytest.raises(InterfaceEnumerationError) as exc_info:
            NetworkEnumerator(quiet_logger).enumerate()

        assert isinstance(exc_info.value, SystemResourceError)
        assert "Operation not permitted" in str(exc_info.value)
        assert exc_info.value.error_context.component == "NetworkEnumerator"

    def test_access_denied(self, mocker, quiet_logger):
        mocker.patch("port_discovery.core.network_enumerator.psutil.net_if_stats",
                     side_effect=psutil.AccessDenied())

        with pytest.raises(InterfaceEnumerationError):
            NetworkEnumerator(quiet_logger).enumerate()


class TestLocalSubnets:
    def _record(self, name, address, prefix_length):
        return InterfaceRecord(name=name, address=IPv4Address(address), netmask="",
                               prefix_length=prefix_length,
                               is_loopback=IPv4Address(address).is_loopback)

    def test_skips_loopback_and_link_local(self):
        records = [
            self._record("lo", "127.0.0.1", 8),
            self._record("eth0", "192.168.1.20", 24),
            self._record("eth1", "169.254.3.4", 16),
        ]

        assert [s.network for s in local_subnets(records)] == [IPv4Network("192.168.1.0/24")]

    def test_deduplicates_and_sorts(self):
        records = [
            self._record("wlan0", "192.168.1.30", 24),
            self._record("eth0", "10.0.0.4", 24),
            self._record("eth0", "192.168.1.20", 24),
        ]

        assert [str(s) for s in local_subnets(records)] == ["10.0.0.0/24", "192.168.1.0/24"]

    def test_local_addresses(self):
        records = [
            self._record("eth0", "192.168.1.20", 24),
            self._record("wlan0", "10.0.0.4", 24),
        ]

        assert local_addresses(records) == [IPv4Address("10.0.0.4"), IPv4Address("192.168.1.20")]
