"""Shared configuration models and loader."""

from .config import (  # noqa: F401
    ConfigError,
    RoutingMode,
    SizingConfig,
    RouterConfig,
    VenueOverride,
    Settings,
    load_settings,
    settings_from_dict,
)
