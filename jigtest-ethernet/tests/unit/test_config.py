"""Unit tests for the Ethernet configuration file."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from jigtest_core.errors import ConfigError
from jigtest_ethernet.config import (
    CONFIG_PATH_ENV,
    DEFAULT_CONFIG_PATH,
    DEFAULT_PASS_THRESHOLD_MBPS,
    DEFAULT_PEER_ADDRESS,
    ConfigStore,
    EthernetConfig,
)


class TestEthernetConfig:
    def test_defaults(self) -> None:
        config = EthernetConfig()
        assert config.peer_address == DEFAULT_PEER_ADDRESS
        assert config.pass_threshold_mbps == DEFAULT_PASS_THRESHOLD_MBPS

    def test_negative_threshold_rejected(self) -> None:
        with pytest.raises(ValueError, match="pass_threshold_mbps"):
            EthernetConfig(pass_threshold_mbps=-1)

    def test_empty_peer_rejected(self) -> None:
        with pytest.raises(ValueError, match="peer_address"):
            EthernetConfig(peer_address="")

    def test_from_dict(self) -> None:
        config = EthernetConfig.from_dict({"peer_address": "10.0.0.1", "pass_threshold_mbps": 500})
        assert config == EthernetConfig("10.0.0.1", 500)

    @pytest.mark.parametrize(
        "data",
        [
            None,
            [],
            {"pass_threshold_mbps": 800},
            {"peer_address": "10.0.0.1"},
            {"peer_address": "10.0.0.1", "pass_threshold_mbps": "800"},
            {"peer_address": "10.0.0.1", "pass_threshold_mbps": True},
            {"peer_address": "10.0.0.1", "pass_threshold_mbps": -5},
        ],
    )
    def test_from_dict_invalid(self, data: object) -> None:
        with pytest.raises(ConfigError):
            EthernetConfig.from_dict(data)


class TestConfigStore:
    def test_missing_file_writes_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "boot" / "jig_ethernet.yaml"
        store = ConfigStore(path)

        config = store.load()

        assert config == EthernetConfig()
        assert path.exists()
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        assert data == {
            "peer_address": DEFAULT_PEER_ADDRESS,
            "pass_threshold_mbps": DEFAULT_PASS_THRESHOLD_MBPS,
        }

    def test_load_existing(self, tmp_path: Path) -> None:
        path = tmp_path / "jig_ethernet.yaml"
        path.write_text('peer_address: "10.1.1.1"\npass_threshold_mbps: 900\n', encoding="utf-8")

        config = ConfigStore(path).load()

        assert config == EthernetConfig("10.1.1.1", 900)

    def test_save_then_load(self, tmp_path: Path) -> None:
        store = ConfigStore(tmp_path / "jig_ethernet.yaml")
        store.save(EthernetConfig("10.2.2.2", 700))
        assert store.load() == EthernetConfig("10.2.2.2", 700)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "jig_ethernet.yaml"
        path.write_text("peer_address: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            ConfigStore(path).load()

    def test_not_utf8(self, tmp_path: Path) -> None:
        path = tmp_path / "jig_ethernet.yaml"
        path.write_bytes(b"peer_address: \xff\xfe\n")
        with pytest.raises(ConfigError, match="not valid UTF-8"):
            ConfigStore(path).load()
        assert path.read_bytes() == b"peer_address: \xff\xfe\n"

    def test_unreadable_file(self, tmp_path: Path) -> None:
        # A directory where the file should be makes the read fail
        path = tmp_path / "jig_ethernet.yaml"
        path.mkdir()
        with pytest.raises(ConfigError, match="Cannot read config"):
            ConfigStore(path).load()

    def test_malformed_file_not_overwritten(self, tmp_path: Path) -> None:
        path = tmp_path / "jig_ethernet.yaml"
        path.write_text("peer_address: 10.0.0.1\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            ConfigStore(path).load()
        assert path.read_text(encoding="utf-8") == "peer_address: 10.0.0.1\n"

    def test_env_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "env.yaml"
        monkeypatch.setenv(CONFIG_PATH_ENV, str(path))
        assert ConfigStore().path == path

    def test_default_path(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
        assert ConfigStore().path == DEFAULT_CONFIG_PATH
