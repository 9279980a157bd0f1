"""Configuration management for Grocery Optimizer."""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

DEFAULT_PARTICIPANTS = ["Me", "Partner"]
CONFIG_ENV_VAR = "GROCERY_OPTIMIZER_CONFIG"


@dataclass
class DataConfig:
    """Data storage configuration."""

    storage_dir: Path
    backend: str = "json"


@dataclass
class DefaultsConfig:
    """Default values configuration."""

    store: str = ""
    category: str = "Pantry & Dry Goods"
    payer: str = "Me"


@dataclass
class HouseholdConfig:
    """Who shares the grocery bills."""

    participants: list[str] = field(default_factory=lambda: list(DEFAULT_PARTICIPANTS))
    currency_symbol: str = "€"


@dataclass
class AIConfig:
    """Generative AI service configuration."""

    model: str = "gemini-2.5-flash"
    api_key_env: str = "GEMINI_API_KEY"


@dataclass
class Config:
    """Complete application configuration."""

    data: DataConfig
    defaults: DefaultsConfig
    household: HouseholdConfig
    ai: AIConfig


class ConfigManager:
    """Manages application configuration from TOML files."""

    def __init__(self, config_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            config_path: Optional explicit path to config file.
                        If not provided, searches standard locations.
        """
        self.config_path = config_path or self._find_config()
        self._config = self._load_config()

    @property
    def data(self) -> DataConfig:
        """Get data configuration."""
        return self._config.data

    @property
    def defaults(self) -> DefaultsConfig:
        """Get defaults configuration."""
        return self._config.defaults

    @property
    def household(self) -> HouseholdConfig:
        """Get household configuration."""
        return self._config.household

    @property
    def ai(self) -> AIConfig:
        """Get AI service configuration."""
        return self._config.ai

    def _find_config(self) -> Path:
        """Find the config file.

        $GROCERY_OPTIMIZER_CONFIG wins; otherwise the first existing standard
        location, falling back to the user config directory.
        """
        override = os.environ.get(CONFIG_ENV_VAR)
        if override:
            return Path(override).expanduser()

        locations = [
            Path.cwd() / "config.toml",
            Path.home() / ".config" / "grocery-optimizer" / "config.toml",
            Path.home() / ".grocery-optimizer" / "config.toml",
        ]

        return next((loc for loc in locations if loc.exists()), locations[1])

    def _load_config(self) -> Config:
        """Load configuration from TOML file."""
        if not self.config_path.exists():
            return self._default_config()

        with open(self.config_path, "rb") as f:
            data = tomllib.load(f)

        data_section = data.get("data", {})
        defaults_section = data.get("defaults", {})
        household_section = data.get("household", {})
        ai_section = data.get("ai", {})

        return Config(
            data=DataConfig(
                storage_dir=Path(
                    data_section.get("storage_dir", "~/grocery-optimizer/data")
                ).expanduser(),
                backend=data_section.get("backend", "json"),
            ),
            defaults=DefaultsConfig(
                store=defaults_section.get("store", ""),
                category=defaults_section.get("category", "Pantry & Dry Goods"),
                payer=defaults_section.get("payer", "Me"),
            ),
            household=HouseholdConfig(
                participants=list(
                    household_section.get("participants", DEFAULT_PARTICIPANTS)
                ),
                currency_symbol=household_section.get("currency_symbol", "€"),
            ),
            ai=AIConfig(
                model=ai_section.get("model", "gemini-2.5-flash"),
                api_key_env=ai_section.get("api_key_env", "GEMINI_API_KEY"),
            ),
        )

    def _default_config(self) -> Config:
        """Return default configuration."""
        return Config(
            data=DataConfig(storage_dir=Path.home() / "grocery-optimizer" / "data"),
            defaults=DefaultsConfig(),
            household=HouseholdConfig(),
            ai=AIConfig(),
        )

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get config value by dot-notation path.

        Args:
            key_path: Dot-separated path like 'data.storage_dir'
            default: Default value if path not found

        Returns:
            Configuration value or default
        """
        value: Any = self._config
        for key in key_path.split("."):
            value = getattr(value, key, None)
            if value is None:
                return default
        return value
