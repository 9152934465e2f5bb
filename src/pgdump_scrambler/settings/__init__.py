"""Tool settings for pgdump-scrambler."""

from .schema import DatabaseSettings, IntrospectionSettings, Settings
from .loader import (
    APP_NAME,
    ENV_PREFIX,
    discover_settings_path,
    env_to_dict,
    load_defaults,
    load_profile,
    load_settings,
    parse_cli_overrides,
)

__all__ = [
    "APP_NAME",
    "ENV_PREFIX",
    "DatabaseSettings",
    "IntrospectionSettings",
    "Settings",
    "discover_settings_path",
    "env_to_dict",
    "load_defaults",
    "load_profile",
    "load_settings",
    "parse_cli_overrides",
]
