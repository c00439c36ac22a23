"""Tests for mediaserver/setup/config.py"""

from pathlib import Path

import pytest

from mediaserver.setup import CONFIG_PATH
from mediaserver.setup.config import SetupConfig, load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("MEDIASERVER_API_URL", raising=False)
    monkeypatch.delenv("MEDIASERVER_DATA_DIR", raising=False)


class TestLoadConfig:
    def test_shipped_file(self):
        config = load_config(CONFIG_PATH)
        assert config.api.base_url == "http://localhost:3000"
        assert config.api.trpc_path == "/trpc"
        assert config.wizard.just_created_seconds == 3
        assert config.wizard.use_local_paths is False

    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_config(tmp_path / "nope.yaml")
        assert config == SetupConfig()

    def test_values_from_file(self, tmp_path):
        path = tmp_path / "setup.yaml"
        path.write_text(
            "api:\n"
            "  base_url: http://nas.local:8080\n"
            "  timeout_seconds: 30\n"
            "wizard:\n"
            "  state_dir: /var/lib/mediaserver\n"
            "  use_local_paths: true\n"
        )
        config = load_config(path)
        assert config.api.base_url == "http://nas.local:8080"
        assert config.api.timeout_seconds == 30
        assert config.wizard.use_local_paths is True
        assert config.wizard.state_path == Path("/var/lib/mediaserver")

    def test_invalid_values_fall_back(self, tmp_path):
        path = tmp_path / "setup.yaml"
        path.write_text("api:\n  timeout_seconds: -5\n")
        config = load_config(path)
        assert config.api.timeout_seconds == 10.0

    def test_malformed_yaml_falls_back(self, tmp_path):
        path = tmp_path / "setup.yaml"
        path.write_text("api: [unclosed\n")
        assert load_config(path) == SetupConfig()

    def test_empty_file(self, tmp_path):
        path = tmp_path / "setup.yaml"
        path.write_text("")
        assert load_config(path) == SetupConfig()

    def test_env_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MEDIASERVER_API_URL", "http://10.0.0.5:3000")
        monkeypatch.setenv("MEDIASERVER_DATA_DIR", str(tmp_path))
        config = load_config(tmp_path / "nope.yaml")
        assert config.api.base_url == "http://10.0.0.5:3000"
        assert config.wizard.state_path == tmp_path
