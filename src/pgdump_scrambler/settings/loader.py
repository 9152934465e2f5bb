"""Settings discovery and layering."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

import tomllib
from platformdirs import user_config_dir
from pydantic import ValidationError

from .schema import Settings, merge_dicts

APP_NAME = "pgdump_scrambler"
ENV_PREFIX = "PGDUMP_SCRAMBLER__"
SETTINGS_FILENAME = "pgdump_scrambler.toml"

_LOGGER = logging.getLogger(__name__)


def read_toml(path: Path) -> dict[str, Any]:
    """Read a TOML file if it exists."""
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        return tomllib.load(handle)


def discover_settings_path(explicit: str | Path | None) -> Path | None:
    """Determine the settings file to load based on precedence."""
    if explicit:
        candidate = Path(explicit).expanduser()
        if not candidate.exists():
            raise FileNotFoundError(f"Settings file not found: {candidate}")
        return candidate

    cwd_candidate = Path(SETTINGS_FILENAME)
    if cwd_candidate.exists():
        return cwd_candidate

    user_candidate = Path(user_config_dir(APP_NAME)) / "config.toml"
    if user_candidate.exists():
        return user_candidate

    return None


def _profiles_dir() -> Path:
    return Path(__file__).resolve().parents[3] / "configs" / "profiles"


def load_defaults() -> dict[str, Any]:
    """Load project defaults bundled with the repository."""
    return read_toml(_profiles_dir() / "defaults.toml")


def load_profile(name: str) -> dict[str, Any]:
    profile = name.strip().lower()
    candidate = _profiles_dir() / f"{profile}.toml"
    if not candidate.exists():
        raise FileNotFoundError(f"Profile '{profile}' not found at {candidate}")
    return read_toml(candidate)


def parse_scalar(value: str) -> Any:
    """Coerce scalar strings (from env or CLI) into native Python types."""
    lower_value = value.lower()
    if lower_value in {"true", "false"}:
        return lower_value == "true"
    return value


def env_to_dict(env: Mapping[str, str]) -> dict[str, Any]:
    """Parse prefixed environment variables into a nested dictionary."""
    result: dict[str, Any] = {}
    for key, value in env.items():
        if not key.startswith(ENV_PREFIX) or key == f"{ENV_PREFIX}PROFILE":
            continue
        parts = key[len(ENV_PREFIX) :].lower().split("__")
        ref = result
        for part in parts[:-1]:
            ref = ref.setdefault(part, {})
        ref[parts[-1]] = parse_scalar(value)
    return result


def parse_cli_overrides(entries: Iterable[str]) -> dict[str, Any]:
    """Parse ``key=value`` pairs into a nested dictionary."""
    result: dict[str, Any] = {}
    for entry in entries:
        if "=" not in entry:
            _LOGGER.warning("Ignoring override without '=': %s", entry)
            continue
        key, raw = entry.split("=", 1)
        ref = result
        parts = key.split(".")
        for part in parts[:-1]:
            ref = ref.setdefault(part, {})
        ref[parts[-1]] = parse_scalar(raw)
    return result


def load_settings(
    settings_path: str | Path | None = None,
    cli_sets: Iterable[str] = (),
    *,
    profile: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Load settings: defaults, profile, settings file, environment, then CLI."""
    env = os.environ if environ is None else environ
    merged = load_defaults()

    profile_name = profile or env.get(f"{ENV_PREFIX}PROFILE")
    if profile_name:
        merged = merge_dicts(merged, load_profile(profile_name))

    discovered = discover_settings_path(settings_path)
    if discovered:
        _LOGGER.debug("Using settings file %s", discovered)
        merged = merge_dicts(merged, read_toml(discovered))

    merged = merge_dicts(merged, env_to_dict(env))
    merged = merge_dicts(merged, parse_cli_overrides(cli_sets))

    try:
        return Settings.model_validate(merged)
    except ValidationError as exc:
        _LOGGER.error("Settings error:\n%s", exc)
        raise
