"""Tests for configuration loading and validation."""

import pytest
from pydantic import ValidationError

from nakivo_exporter.config.loader import ConfigLoader
from nakivo_exporter.config.models import ExporterConfig, WebConfig


class TestConfigLoader:
    """Test suite for ConfigLoader."""

    def test_defaults(self):
        config = ConfigLoader.load()

        assert config.web.listen_address == ":9777"
        assert config.web.telemetry_path == "/metrics"
        assert config.nakivo.address == "https://localhost:4443/c/router"
        assert config.nakivo.timeout_seconds == 5.0
        assert config.collectors.namespace == "nakivo"
        assert config.collectors.job_id == 9
        assert config.collectors.job_group is True
        assert config.logging.format == "json"

    def test_load_from_file_with_env_substitution(self, tmp_path, monkeypatch):
        monkeypatch.setenv("NAKIVO_PASSWORD", "s3cret")
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "nakivo:\n"
            "  address: https://backup.example.com/c/router\n"
            "  password: ${NAKIVO_PASSWORD}\n"
            "collectors:\n"
            "  job_id: 17\n"
        )

        config = ConfigLoader.load_from_file(str(config_file))

        assert config.nakivo.password == "s3cret"
        assert config.nakivo.address == "https://backup.example.com/c/router"
        assert config.collectors.job_id == 17
        assert config.web.listen_address == ":9777"

    def test_unset_env_var_becomes_empty(self, tmp_path, monkeypatch):
        monkeypatch.delenv("NAKIVO_PASSWORD", raising=False)
        config_file = tmp_path / "config.yaml"
        config_file.write_text("nakivo:\n  password: ${NAKIVO_PASSWORD}\n")

        config = ConfigLoader.load_from_file(str(config_file))

        assert config.nakivo.password == ""

    def test_empty_file_uses_defaults(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        assert ConfigLoader.load_from_file(str(config_file)) == ExporterConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigLoader.load_from_file(str(tmp_path / "missing.yaml"))

    def test_overrides_applied(self):
        config = ConfigLoader.load(overrides={
            "web": {"listen_address": "127.0.0.1:9000", "telemetry_path": None},
            "nakivo": {"user": "monitor", "timeout_seconds": 2.5},
        })

        assert config.web.listen_address == "127.0.0.1:9000"
        assert config.web.telemetry_path == "/metrics"
        assert config.nakivo.user == "monitor"
        assert config.nakivo.timeout_seconds == 2.5

    def test_overrides_take_precedence_over_file(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("collectors:\n  job_id: 17\n")

        config = ConfigLoader.load(str(config_file), {"collectors": {"job_id": 23}})

        assert config.collectors.job_id == 23

    def test_invalid_override_rejected(self):
        with pytest.raises(ValidationError):
            ConfigLoader.load(overrides={"nakivo": {"port": 70000}})


class TestModels:
    """Test suite for configuration validation."""

    @pytest.mark.parametrize("address", ["9777", "localhost", ":http", ":0", ":70000"])
    def test_invalid_listen_address(self, address):
        with pytest.raises(ValidationError):
            WebConfig(listen_address=address)

    def test_listen_address_host_and_port(self):
        assert WebConfig(listen_address=":9777").host == "0.0.0.0"
        assert WebConfig(listen_address=":9777").port == 9777
        assert WebConfig(listen_address="127.0.0.1:9100").host == "127.0.0.1"
        assert WebConfig(listen_address="127.0.0.1:9100").port == 9100

    @pytest.mark.parametrize("path", ["metrics", "/"])
    def test_invalid_telemetry_path(self, path):
        with pytest.raises(ValidationError):
            WebConfig(telemetry_path=path)

    def test_invalid_address_scheme(self):
        with pytest.raises(ValidationError):
            ExporterConfig(nakivo={"address": "ftp://nakivo"})

    def test_invalid_timeout(self):
        with pytest.raises(ValidationError):
            ExporterConfig(nakivo={"timeout_seconds": 0})

    def test_invalid_namespace(self):
        with pytest.raises(ValidationError):
            ExporterConfig(collectors={"namespace": "nakivo-prod"})

    def test_job_collector_can_be_disabled(self):
        assert ExporterConfig(collectors={"job_id": None}).collectors.job_id is None

    def test_log_level_normalized(self):
        assert ExporterConfig(logging={"level": "debug"}).logging.level == "DEBUG"

    def test_invalid_log_format(self):
        with pytest.raises(ValidationError):
            ExporterConfig(logging={"format": "xml"})
