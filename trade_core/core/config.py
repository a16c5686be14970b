"""
Configuration loader for the trade decision core.

Pydantic models validate every knob of the sizing engine and the smart
router; `load_settings` merges a YAML file with environment variables.

Design Principles:
- Strict Schema: sizing fractions are bounded to (0, 1], `min_kelly` may not
  exceed `max_kelly`, and venues must belong to the closed `Platform` set, so
  an unknown venue is rejected here rather than at routing time.
- Environment Overrides: any setting can be overridden by an environment
  variable, e.g. `router.max_slippage` by `TRADE_CORE_ROUTER__MAX_SLIPPAGE`.
- Clear Errors: pydantic `ValidationError`s and YAML errors are wrapped in
  `ConfigError` with a readable per-field summary.
"""

import os
import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_core import PydanticCustomError

from trade_core.venues.platforms import Platform, VenueTable, resolve_platform

ENV_PREFIX = "TRADE_CORE"

# --- Custom Exceptions ---

class ConfigError(Exception):
    """Custom exception for configuration-related errors."""
    pass

# --- Pydantic Models for Configuration Sections ---

class RoutingMode(str, Enum):
    BEST_PRICE = "best_price"
    BEST_LIQUIDITY = "best_liquidity"
    LOWEST_FEE = "lowest_fee"
    BALANCED = "balanced"


class SizingConfig(BaseModel):
    """Dynamic Kelly sizing knobs. All fractions are decimals (0.25 == 25%)."""
    base_multiplier: float = Field(0.25, gt=0, le=1)
    max_kelly: float = Field(0.25, gt=0, le=1)
    min_kelly: float = Field(0.01, gt=0, le=1)
    lookback_trades: int = Field(20, gt=0)
    max_drawdown: float = Field(0.15, gt=0, le=1)
    drawdown_reduction: float = Field(0.5, gt=0, le=1)

    @model_validator(mode="after")
    def min_kelly_not_above_max(self):
        if self.min_kelly > self.max_kelly:
            raise PydanticCustomError(
                "kelly_bounds_invalid",
                "min_kelly ({min_kelly}) must be <= max_kelly ({max_kelly})",
                {"min_kelly": self.min_kelly, "max_kelly": self.max_kelly},
            )
        return self


class RouterConfig(BaseModel):
    """Smart router knobs.

    max_slippage is in PERCENT (1.0 == 1%). Slippage follows a linear impact
    model: slippage% = 100 * impact_coefficient * size / available_depth.
    """
    mode: RoutingMode = RoutingMode.BALANCED
    max_slippage: float = Field(1.0, gt=0)
    prefer_maker: bool = True
    allow_splitting: bool = False
    enabled_platforms: Optional[List[Platform]] = None  # None -> every venue listing the market
    max_split_platforms: int = Field(3, ge=2)
    impact_coefficient: float = Field(0.05, gt=0)
    maker_depth_ratio: float = Field(0.5, gt=0, le=1)
    quote_timeout_ms: int = Field(1500, gt=0)
    route_timeout_ms: int = Field(4000, gt=0)

    @field_validator("mode", mode="before")
    @classmethod
    def normalize_mode(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("enabled_platforms", mode="before")
    @classmethod
    def platforms_must_be_known(cls, v):
        if v is None:
            return v
        out = []
        for item in v:
            try:
                out.append(resolve_platform(item))
            except ValueError as e:
                raise PydanticCustomError("unknown_platform", str(e))
        return out


class VenueOverride(BaseModel):
    """Per-venue patch over the static fee / latency tables."""
    taker_bps: Optional[float] = None
    maker_bps: Optional[float] = None
    latency_ms: Optional[float] = Field(None, ge=0)


class Settings(BaseModel):
    """The root Pydantic model for the entire configuration."""
    initial_bankroll: float = Field(1000.0, gt=0)
    sizing: SizingConfig = SizingConfig()
    router: RouterConfig = RouterConfig()
    venues: Dict[str, VenueOverride] = Field(default_factory=dict)

    @field_validator("venues")
    @classmethod
    def venue_keys_must_be_known(cls, v):
        out = {}
        for key, ov in v.items():
            try:
                out[resolve_platform(key).value] = ov
            except ValueError as e:
                raise PydanticCustomError("unknown_platform", str(e))
        return out

    def venue_table(self) -> VenueTable:
        return VenueTable(self.venues)

# --- Helper Functions ---

def _load_config_from_yaml(path: Path) -> Dict[str, Any]:
    """Loads the YAML configuration file."""
    if not path.is_file():
        raise ConfigError(f"Configuration file not found at: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML file at {path}: {e}") from e

def _get_env_overrides(prefix: str = ENV_PREFIX) -> Dict[str, Any]:
    """
    Parses environment variables and converts them into a nested dict.
    e.g., TRADE_CORE_ROUTER__MAX_SLIPPAGE=2.5 becomes
    {'router': {'max_slippage': 2.5}}
    """
    overrides: Dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(prefix + "_"):
            continue
        parts = key.removeprefix(prefix).strip("_").lower().split("__")

        # lists, dicts, booleans and numbers arrive as JSON; anything else stays a string
        if (value.startswith('[') and value.endswith(']')) or \
           (value.startswith('{') and value.endswith('}')) or \
           value.lower() in ['true', 'false', 'null'] or \
           value.replace('.', '', 1).isdigit():
            try:
                parsed_value = json.loads(value.lower() if value.lower() in ['true', 'false', 'null'] else value)
            except (json.JSONDecodeError, AttributeError):
                parsed_value = value
        else:
            parsed_value = value

        d = overrides
        for part in parts[:-1]:
            d = d.setdefault(part, {})
        d[parts[-1]] = parsed_value
    return overrides

def _merge_configs(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merges the override dict into the base dict.
    Overwrites values, dictionaries, and lists.
    """
    for key, value in overrides.items():
        if isinstance(value, dict) and key in base and isinstance(base[key], dict):
            base[key] = _merge_configs(base[key], value)
        else:
            base[key] = value
    return base

def _format_validation_error(e: ValidationError) -> str:
    error_details = e.errors()
    error_msg = f"Configuration validation failed with {len(error_details)} error(s):\n"
    for error in error_details:
        loc = " -> ".join(map(str, error['loc'])) if error['loc'] else "root"
        error_msg += f"  - Location: {loc}\n    Message: {error['msg']}\n"
    return error_msg

# --- Public API ---

def settings_from_dict(raw: Dict[str, Any]) -> Settings:
    """Validate an in-memory dict (already merged) into `Settings`."""
    try:
        return Settings.model_validate(raw or {})
    except ValidationError as e:
        logger.error(_format_validation_error(e))
        raise ConfigError("Failed to validate settings.") from e

def load_settings(path: str = "settings.yaml") -> Settings:
    """
    Loads, validates, and returns the application settings.

    1. Loads the base configuration from the YAML file.
    2. Scans environment variables for overrides (prefixed with "TRADE_CORE_").
    3. Merges the overrides into the base configuration.
    4. Validates the result against the `Settings` model.

    Raises:
        ConfigError: If the file is missing or unparsable, or validation fails.
    """
    logger.info(f"Loading settings from '{path}'...")

    yaml_config = _load_config_from_yaml(Path(path))
    if yaml_config is None:
        yaml_config = {}
    if not isinstance(yaml_config, dict):
        raise ConfigError(f"YAML file '{path}' must contain a mapping at the top level.")

    final_config = _merge_configs(yaml_config, _get_env_overrides())
    settings = settings_from_dict(final_config)
    logger.success("Settings loaded and validated successfully.")
    return settings

if __name__ == '__main__':
    # python -m trade_core.core.config
    # export TRADE_CORE_ROUTER__MODE=lowest_fee
    from dotenv import load_dotenv
    load_dotenv()

    try:
        settings = load_settings()
        print(json.dumps(settings.model_dump(mode="json"), indent=2))
        print(f"\nRouting mode: {settings.router.mode.value}, max slippage {settings.router.max_slippage}%")
    except ConfigError as e:
        print(f"\nCaught a configuration error: {e}")
