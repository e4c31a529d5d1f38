"""Persistent configuration for the Ethernet throughput test.

The configuration holds the iperf3 peer and the minimum throughput that
counts as a pass. It lives in a small YAML file on the boot partition so the
line operator can edit it without rebuilding the image; when the file is
missing, the built-in defaults are written out and used.

Default search order for the file path:
    1. Explicit path passed to ConfigStore
    2. JIGTEST_ETHERNET_CONFIG environment variable
    3. /boot/jig_ethernet.yaml

Example YAML configuration:

    peer_address: "192.168.20.45"
    pass_threshold_mbps: 800
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from jigtest_core.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("/boot/jig_ethernet.yaml")
CONFIG_PATH_ENV = "JIGTEST_ETHERNET_CONFIG"

DEFAULT_PEER_ADDRESS = "192.168.20.45"
DEFAULT_PASS_THRESHOLD_MBPS = 800


@dataclass(frozen=True)
class EthernetConfig:
    """Throughput test configuration.

    Attributes:
        peer_address: Host running the iperf3 server.
        pass_threshold_mbps: Minimum measured throughput counted as pass.
    """

    peer_address: str = DEFAULT_PEER_ADDRESS
    pass_threshold_mbps: int = DEFAULT_PASS_THRESHOLD_MBPS

    def __post_init__(self) -> None:
        if not self.peer_address:
            raise ValueError("peer_address must be non-empty")
        if self.pass_threshold_mbps < 0:
            raise ValueError(f"pass_threshold_mbps must be >= 0, got {self.pass_threshold_mbps}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for YAML serialization."""
        return {
            "peer_address": self.peer_address,
            "pass_threshold_mbps": self.pass_threshold_mbps,
        }

    @classmethod
    def from_dict(cls, data: Any) -> EthernetConfig:
        """Parse a configuration mapping.

        Raises:
            ConfigError: If the mapping is missing fields or has wrong types.
        """
        if not isinstance(data, dict):
            raise ConfigError("Ethernet config must be a YAML mapping")

        peer = data.get("peer_address")
        threshold = data.get("pass_threshold_mbps")
        if not isinstance(peer, str) or not peer:
            raise ConfigError("Missing required field: peer_address")
        if isinstance(threshold, bool) or not isinstance(threshold, int):
            raise ConfigError("pass_threshold_mbps must be an integer")

        try:
            return cls(peer_address=peer, pass_threshold_mbps=threshold)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc


def _resolve_path(path: str | Path | None) -> Path:
    if path is not None:
        return Path(path)
    env_path = os.environ.get(CONFIG_PATH_ENV)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH


class ConfigStore:
    """Loads and persists the Ethernet configuration file.

    Args:
        path: Config file path. If None, uses the environment override or
            the default path on the boot partition.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = _resolve_path(path)

    @property
    def path(self) -> Path:
        """Return the config file path."""
        return self._path

    def load(self) -> EthernetConfig:
        """Load the configuration, creating the file with defaults if absent.

        Returns:
            Parsed configuration.

        Raises:
            ConfigError: If the file exists but is unreadable or malformed.
        """
        if not self._path.exists():
            config = EthernetConfig()
            logger.info("Config %s not found, writing defaults", self._path)
            try:
                self.save(config)
            except OSError as exc:
                logger.warning("Cannot write default config to %s: %s", self._path, exc)
            return config

        try:
            with open(self._path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {self._path}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise ConfigError(f"Config {self._path} is not valid UTF-8: {exc}") from exc
        except OSError as exc:
            raise ConfigError(f"Cannot read config {self._path}: {exc}") from exc

        config = EthernetConfig.from_dict(data)
        logger.info(
            "Loaded config from %s: peer=%s threshold=%d Mbps",
            self._path,
            config.peer_address,
            config.pass_threshold_mbps,
        )
        return config

    def save(self, config: EthernetConfig) -> Path:
        """Write the configuration to the config file.

        Returns:
            Path where the file was saved.
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "w", encoding="utf-8") as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
        return self._path
