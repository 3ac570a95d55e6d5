import socket
import threading
import time
from ipaddress import IPv4Address

import pytest

from port_discovery.config.config_loader import ProbeConfig
from port_discovery.core.data_models import Candidate
from port_discovery.utils.logger import Logger, LogLevel


class FakeNetwork:
    """Connector double: listed (host, port) pairs accept, everything else refuses."""

    def __init__(self, open_ports=(), failures=None, delay=0.0):
        self.open_ports = {(str(host), port) for host, port in open_ports}
        self.failures = dict(failures or {})
        self.delay = delay
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, host, port, timeout):
        with self._lock:
            self.calls.append((host, port, timeout))
        if self.delay:
            time.sleep(self.delay)
        failure = self.failures.get((host, port))
        if failure is not None:
            raise failure
        if (host, port) not in self.open_ports:
            raise ConnectionRefusedError(111, "Connection refused")


@pytest.fixture(autouse=True)
def restore_log_level():
    level = Logger.default_level
    yield
    Logger.default_level = level


@pytest.fixture
def quiet_logger():
    return Logger("test", min_level=LogLevel.ERROR)


@pytest.fixture
def probe_config():
    return ProbeConfig(timeout=0.5, concurrency=8, progress_interval=50, join_grace=0.5)


@pytest.fixture
def fake_network():
    return FakeNetwork


@pytest.fixture
def listener():
    """Port number of a listening TCP socket on 127.0.0.1."""
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    server.bind(("127.0.0.1", 0))
    server.listen(64)
    try:
        yield server.getsockname()[1]
    finally:
        server.close()


@pytest.fixture
def closed_port():
    """Port number on 127.0.0.1 with nothing listening."""
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    return port


def candidates_for(host, ports):
    return [Candidate(IPv4Address(host), port) for port in ports]
