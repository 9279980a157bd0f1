"""Tests for configuration management."""

from pathlib import Path

import pytest

from grocery_optimizer.config import ConfigManager


@pytest.fixture
def config_file(tmp_path):
    """Create a temporary config file."""
    config_path = tmp_path / "config.toml"
    config_path.write_text("""
[data]
storage_dir = "/custom/data"
backend = "sqlite"

[defaults]
store = "Aldi"
category = "Dairy & Eggs"
payer = "Alex"

[household]
participants = ["Alex", "Sam", "Kim"]
currency_symbol = "$"

[ai]
model = "gemini-2.0-flash"
api_key_env = "MY_KEY"
""")
    return config_path


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_load_from_file(self, config_file):
        config = ConfigManager(config_path=config_file)

        assert config.data.storage_dir == Path("/custom/data")
        assert config.data.backend == "sqlite"
        assert config.defaults.store == "Aldi"
        assert config.defaults.payer == "Alex"
        assert config.household.participants == ["Alex", "Sam", "Kim"]
        assert config.household.currency_symbol == "$"
        assert config.ai.model == "gemini-2.0-flash"
        assert config.ai.api_key_env == "MY_KEY"

    def test_defaults_when_missing(self, tmp_path):
        config = ConfigManager(config_path=tmp_path / "missing.toml")

        assert config.data.backend == "json"
        assert config.defaults.category == "Pantry & Dry Goods"
        assert config.household.participants == ["Me", "Partner"]
        assert config.household.currency_symbol == "€"
        assert config.ai.api_key_env == "GEMINI_API_KEY"

    def test_partial_file(self, tmp_path):
        """Missing sections fall back to defaults."""
        path = tmp_path / "config.toml"
        path.write_text('[household]\nparticipants = ["Solo"]\n')
        config = ConfigManager(config_path=path)

        assert config.household.participants == ["Solo"]
        assert config.defaults.payer == "Me"

    def test_participants_not_shared_between_instances(self, tmp_path):
        first = ConfigManager(config_path=tmp_path / "missing.toml")
        first.household.participants.append("Guest")
        second = ConfigManager(config_path=tmp_path / "missing.toml")
        assert second.household.participants == ["Me", "Partner"]

    def test_get_dot_path(self, config_file):
        config = ConfigManager(config_path=config_file)
        assert config.get("defaults.store") == "Aldi"
        assert config.get("household.currency_symbol") == "$"
        assert config.get("nope.missing", "fallback") == "fallback"

    def test_env_var_selects_file(self, config_file, monkeypatch):
        monkeypatch.setenv("GROCERY_OPTIMIZER_CONFIG", str(config_file))
        config = ConfigManager()
        assert config.config_path == config_file
        assert config.defaults.store == "Aldi"
