"""
Tests for the YAML/JSON configuration loader
"""
import json

import pytest

from oauthbridge.config import Config


def test_yaml_values(tmp_path):
    path = tmp_path / "bridge.yaml"
    path.write_text(
        "server:\n"
        "  app_name: Test Bridge\n"
        "  port: 9000\n"
        "enabled_flows: [api]\n"
        "provider:\n"
        "  timeout: 30\n"
        "  oob_callback: false\n"
        "client:\n"
        "  mode: intermediary\n"
        "  intermediary_url: http://bridge:8000\n"
    )

    config = Config(str(path))

    assert config.app_name == "Test Bridge"
    assert config.port == 9000
    assert config.enabled_flows == ["api"]
    assert config.provider_timeout == 30.0
    assert config.oob_callback is False
    assert config.client_mode == "intermediary"
    assert config.intermediary_url == "http://bridge:8000"


def test_defaults_for_empty_file(tmp_path):
    path = tmp_path / "empty.yml"
    path.write_text("")

    config = Config(str(path))

    assert config.host == "localhost"
    assert config.port == 8000
    assert config.enabled_flows == ["api", "form"]
    assert config.provider_timeout == 15.0
    assert config.oob_callback is True
    assert config.check_email_format is True
    assert config.logging_enabled is True
    assert config.body_preview_length == 200
    assert config.client_mode == "direct"


def test_json_file(tmp_path):
    path = tmp_path / "bridge.json"
    path.write_text(json.dumps({"validation": {"check_email_format": False}}))

    assert Config(str(path)).check_email_format is False


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        Config(str(tmp_path / "nope.yaml"))


def test_unsupported_format(tmp_path):
    path = tmp_path / "bridge.toml"
    path.write_text("")
    with pytest.raises(RuntimeError, match="Unsupported config file format"):
        Config(str(path))


def test_broken_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("server: [unclosed\n")
    with pytest.raises(RuntimeError, match="Failed to load configuration"):
        Config(str(path))


def test_unknown_client_mode(tmp_path):
    path = tmp_path / "bridge.yaml"
    path.write_text("client:\n  mode: carrier-pigeon\n")
    with pytest.raises(RuntimeError, match="Unsupported client mode"):
        Config(str(path)).client_mode
