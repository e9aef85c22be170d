#!/usr/bin/env python3

import yaml
import json
import os
from pathlib import Path
from typing import Dict, List, Any

class Config:
    """Configuration loader for YAML/JSON files"""

    def __init__(self, config_file: str = "config.yaml"):
        """Load configuration from file"""
        self.config_path = Path(config_file)
        self.config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self):
        """Load configuration from YAML or JSON file"""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        if self.config_path.suffix not in (".yaml", ".yml", ".json"):
            raise RuntimeError(f"Unsupported config file format: {self.config_path.suffix}")

        try:
            with open(self.config_path, "r") as f:
                if self.config_path.suffix == ".json":
                    self.config = json.load(f)
                else:
                    self.config = yaml.safe_load(f) or {}
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise RuntimeError(f"Failed to load configuration: {str(e)}") from e

    def _section(self, name: str) -> Dict[str, Any]:
        return self.config.get(name) or {}

    # Server Configuration
    @property
    def app_name(self) -> str:
        return self._section("server").get("app_name", "OAuth1 Authorize Bridge")

    @property
    def host(self) -> str:
        return self._section("server").get("host", "localhost")

    @property
    def port(self) -> int:
        return int(self._section("server").get("port", 8000))

    @property
    def enabled_flows(self) -> List[str]:
        return self.config.get("enabled_flows", ["api", "form"])

    # Provider call Configuration
    @property
    def provider_timeout(self) -> float:
        return float(self._section("provider").get("timeout", 15))

    @property
    def oob_callback(self) -> bool:
        return bool(self._section("provider").get("oob_callback", True))

    # Validation Configuration
    @property
    def check_email_format(self) -> bool:
        return bool(self._section("validation").get("check_email_format", True))

    # Logging Configuration
    @property
    def logging_enabled(self) -> bool:
        return bool(self._section("logging").get("enabled", True))

    @property
    def body_preview_length(self) -> int:
        return int(self._section("logging").get("body_preview_length", 200))

    # Client Configuration
    @property
    def client_mode(self) -> str:
        mode = self._section("client").get("mode", "direct")
        if mode not in ("direct", "intermediary"):
            raise RuntimeError(f"Unsupported client mode: {mode}")
        return mode

    @property
    def intermediary_url(self) -> str:
        return self._section("client").get("intermediary_url", "http://localhost:8000")

    def get_raw_config(self) -> Dict[str, Any]:
        """Return the entire raw configuration"""
        return self.config

    def __repr__(self) -> str:
        return f"<Config from {self.config_path}>"


# Initialize settings from config file
# Support passing config file via environment variable
config_file = os.getenv("OAUTH_BRIDGE_CONFIG", "config.yaml")
settings = Config(config_file)
