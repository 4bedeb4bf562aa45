"""Configuration management for CompSetIQ."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_DIR = Path(__file__).parent.parent / "config"


class FilterConfig(BaseModel):
    # Upper bounds at or above these values are treated as "no limit"
    price_ceiling: float = 10_000.0
    sqft_ceiling: float = 5_000.0
    default_availability: str = "60days"
    default_min_price: float = 0.0
    default_max_price: float = 10_000.0
    default_min_sqft: float = 0.0
    default_max_sqft: float = 5_000.0


class AnalysisConfig(BaseModel):
    # Subject within ±2% of the competitor mean rent is "at market"
    market_tolerance_pct: float = 2.0
    # Competitive edge thresholds
    pricing_edge_pct: float = 10.0
    size_edge_sqft: float = 50.0
    availability_edge_units: int = 2


class OptimizationConfig(BaseModel):
    transition_ms: int = 500
    transition_steps: int = 20


class DatabaseConfig(BaseModel):
    url: str = "sqlite:///compsetiq.db"


class ApiConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000


class AppConfig(BaseModel):
    filters: FilterConfig = FilterConfig()
    analysis: AnalysisConfig = AnalysisConfig()
    optimization: OptimizationConfig = OptimizationConfig()
    database: DatabaseConfig = DatabaseConfig()
    api: ApiConfig = ApiConfig()


class EnvSettings(BaseSettings):
    """Environment overrides, e.g. COMPSETIQ_DATABASE_URL."""

    model_config = SettingsConfigDict(env_prefix="COMPSETIQ_")

    database_url: Optional[str] = None


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from TOML files.

    Loads default.toml first, then merges local.toml or a custom path on top.
    Environment overrides are applied last.
    """
    default_path = CONFIG_DIR / "default.toml"
    data: dict[str, Any] = {}

    if default_path.exists():
        with open(default_path, "rb") as f:
            data = tomllib.load(f)

    local_path = config_path or CONFIG_DIR / "local.toml"
    if local_path.exists():
        with open(local_path, "rb") as f:
            overrides = tomllib.load(f)
        data = _deep_merge(data, overrides)

    env = EnvSettings()
    if env.database_url:
        data = _deep_merge(data, {"database": {"url": env.database_url}})

    return AppConfig(**data)
