"""Configuration via pydantic-settings, loaded from config/<name>.yml, .env and the environment."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ValidationError
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from mokka.errors import ConfigurationError

CONFIG_DIR = Path("config")


class MarketConfig(BaseModel):
    # Trading limits (hard caps)
    max_fund: Decimal  # quote currency spent per buy
    max_sell: Decimal  # base asset sold per sell
    quote_asset: str = "USDT"
    step_size: Decimal | None = None  # None = ask the exchange (LOT_SIZE)

    # Credentials, passed through to the exchange client
    api_key: str = ""
    api_secret: str = ""

    base_url: str = "https://api.binance.com"
    timeout: float = 10.0


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MOKKA_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        yaml_file=CONFIG_DIR / "default.yml",
    )

    # Loop timing (seconds)
    interval: int = 60

    # Action log
    log_dir: Path = Path("logs")
    log_file_type: Literal["symbol", "date"] = "symbol"
    log_dry_run: bool = True  # persist non-idle actions computed in --test mode

    markets: dict[str, MarketConfig] = {}
    indicators: dict[str, dict[str, Any]] = {}

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    def market(self, name: str) -> MarketConfig:
        """Limits and credentials for *name*; unknown markets are fatal."""
        try:
            return self.markets[name]
        except KeyError:
            raise ConfigurationError(
                f"Market {name!r} is not configured (known: {', '.join(sorted(self.markets)) or 'none'})"
            ) from None

    def indicator(self, name: str) -> dict[str, Any]:
        """Parameters for indicator *name*; unknown indicators are fatal."""
        try:
            return self.indicators[name]
        except KeyError:
            raise ConfigurationError(
                f"Indicator {name!r} is not configured (known: {', '.join(sorted(self.indicators)) or 'none'})"
            ) from None


def resolve_config_path(config: str) -> Path:
    """Accept either a config name (``default``) or a path to a YAML file."""
    if config.endswith((".yml", ".yaml")):
        return Path(config)
    return CONFIG_DIR / f"{config}.yml"


def load_settings(config: str = "default", **overrides: Any) -> Settings:
    """Build settings from the named YAML file, then .env and MOKKA_* variables on top."""
    path = resolve_config_path(config)
    if not path.is_file():
        raise ConfigurationError(f"Config file not found: {path}")

    class _FileSettings(Settings):
        model_config = SettingsConfigDict(yaml_file=path)

    try:
        return _FileSettings(**overrides)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid config {path}: {exc}") from exc
