import pytest
import yaml

from port_discovery.config.config_loader import (
    DEFAULT_TIMEOUT,
    DISCOVERY_PORTS,
    ConfigLoader,
    ProbeConfig,
    default_concurrency,
    default_queue_size,
    validate_probe_config,
)
from port_discovery.utils.error_handler import ConfigurationError


def write_config(directory, data):
    path = directory / "probe_config.yml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestDefaults:
    @pytest.mark.parametrize("cpus,expected", [(1, 16), (4, 32), (8, 64), (64, 64), (None, 16)])
    def test_concurrency_follows_cpu_count(self, mocker, cpus, expected):
        mocker.patch("port_discovery.config.config_loader.psutil.cpu_count", return_value=cpus)

        assert default_concurrency() == expected

    def test_queue_size(self):
        assert default_queue_size(1) == 256
        assert default_queue_size(1000) == 4000
        assert default_queue_size(100_000) == 16_384

    def test_probe_config_defaults(self):
        config = ProbeConfig(concurrency=32)

        assert config.timeout == DEFAULT_TIMEOUT
        assert config.queue_size == 256
        assert config.discovery_ports == DISCOVERY_PORTS


class TestOverrides:
    def test_overrides_are_applied(self):
        config = ProbeConfig(concurrency=16).with_overrides(timeout=0.2, concurrency=200)

        assert config.timeout == 0.2
        assert config.concurrency == 200
        assert config.queue_size == 800

    def test_no_overrides_keeps_values(self):
        config = ProbeConfig(timeout=1.5, concurrency=10)

        assert config.with_overrides() == config

    @pytest.mark.parametrize("overrides", [
        {"concurrency": 0},
        {"concurrency": -1},
        {"concurrency": True},
        {"timeout": 0},
        {"timeout": -0.5},
        {"timeout": float("nan")},
        {"timeout": float("inf")},
    ])
    def test_invalid_overrides(self, overrides):
        with pytest.raises(ConfigurationError):
            ProbeConfig(concurrency=16).with_overrides(**overrides)

    def test_validate_rejects_bad_queue_size(self):
        with pytest.raises(ConfigurationError):
            validate_probe_config(ProbeConfig(concurrency=4, queue_size=0))

    @pytest.mark.parametrize("join_grace", [float("inf"), float("nan"), -1.0])
    def test_validate_rejects_bad_join_grace(self, join_grace):
        with pytest.raises(ConfigurationError):
            validate_probe_config(ProbeConfig(concurrency=4, join_grace=join_grace))


class TestConfigLoader:
    def test_packaged_config_loads(self, quiet_logger):
        config = ConfigLoader(logger=quiet_logger).load_probe_config()

        assert config.timeout == DEFAULT_TIMEOUT
        assert config.max_resource_errors == 32
        assert config.discovery_ports == DISCOVERY_PORTS

    def test_values_from_file(self, tmp_path, quiet_logger):
        write_config(tmp_path, {"probe": {
            "timeout": 1.25,
            "concurrency": 12,
            "max_resource_errors": 5,
            "progress_interval": 10,
            "join_grace": 0.25,
            "discovery_ports": [8080, 22, 22],
        }})

        config = ConfigLoader(str(tmp_path), quiet_logger).load_probe_config()

        assert config.timeout == 1.25
        assert config.concurrency == 12
        assert config.queue_size == 256
        assert config.max_resource_errors == 5
        assert config.progress_interval == 10
        assert config.join_grace == 0.25
        assert config.discovery_ports == [22, 8080]

    def test_missing_file_uses_defaults(self, tmp_path, quiet_logger):
        config = ConfigLoader(str(tmp_path), quiet_logger).load_probe_config()

        assert config.timeout == DEFAULT_TIMEOUT
        assert config.discovery_ports == DISCOVERY_PORTS

    def test_malformed_yaml_uses_defaults(self, tmp_path, quiet_logger):
        (tmp_path / "probe_config.yml").write_text("probe: [unclosed", encoding="utf-8")

        config = ConfigLoader(str(tmp_path), quiet_logger).load_probe_config()

        assert config.timeout == DEFAULT_TIMEOUT

    def test_missing_probe_section_uses_defaults(self, tmp_path, quiet_logger):
        write_config(tmp_path, {"other": {"timeout": 3}})

        config = ConfigLoader(str(tmp_path), quiet_logger).load_probe_config()

        assert config.timeout == DEFAULT_TIMEOUT

    def test_invalid_values_fall_back_individually(self, tmp_path, quiet_logger):
        write_config(tmp_path, {"probe": {
            "timeout": "soon",
            "concurrency": -4,
            "max_resource_errors": 0,
            "discovery_ports": [0, 70000, "http"],
        }})

        config = ConfigLoader(str(tmp_path), quiet_logger).load_probe_config()

        assert config.timeout == DEFAULT_TIMEOUT
        assert config.concurrency == default_concurrency()
        assert config.max_resource_errors == 32
        assert config.discovery_ports == DISCOVERY_PORTS

    @pytest.mark.parametrize("value", [".inf", "-.inf", ".nan"])
    def test_non_finite_values_fall_back(self, tmp_path, quiet_logger, value):
        (tmp_path / "probe_config.yml").write_text(
            f"probe:\n  timeout: {value}\n  join_grace: {value}\n", encoding="utf-8"
        )

        config = ConfigLoader(str(tmp_path), quiet_logger).load_probe_config()

        assert config.timeout == DEFAULT_TIMEOUT
        assert config.join_grace == ProbeConfig().join_grace
