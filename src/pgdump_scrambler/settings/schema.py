"""Pydantic schema for pgdump-scrambler tool settings."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..config import (
    DEFAULT_DUMP_PATH,
    DEFAULT_S3_PROPERTIES,
    IGNORED_COLUMNS,
    IGNORED_TABLES,
)


class IntrospectionSettings(BaseModel):
    """How fresh configs are built from the live schema."""

    ignored_tables: List[str] = Field(default_factory=lambda: list(IGNORED_TABLES))
    ignored_columns: List[str] = Field(default_factory=lambda: list(IGNORED_COLUMNS))
    dump_path: str = DEFAULT_DUMP_PATH
    s3: Optional[Dict[str, str]] = Field(default_factory=lambda: dict(DEFAULT_S3_PROPERTIES))
    include_s3: bool = True

    @field_validator("ignored_tables", "ignored_columns", mode="before")
    @classmethod
    def _split_names(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, str):
            return [name.strip() for name in value.split(",") if name.strip()]
        return value

    @field_validator("dump_path")
    @classmethod
    def _validate_dump_path(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("introspection.dump_path must not be empty")
        return text

    @property
    def storage_template(self) -> Optional[Dict[str, str]]:
        return dict(self.s3) if self.include_s3 and self.s3 is not None else None


class DatabaseSettings(BaseModel):
    """Connection used to introspect a live PostgreSQL schema."""

    dsn: Optional[str] = None
    schema_name: str = "public"

    @field_validator("dsn", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None


class Settings(BaseModel):
    """Top-level pgdump-scrambler settings model."""

    config_file: Path = Path("config/pgdump_scrambler.yml")
    introspection: IntrospectionSettings = Field(default_factory=IntrospectionSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)

    @field_validator("config_file", mode="before")
    @classmethod
    def _coerce_path(cls, value: object) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        return Path(str(value)).expanduser()

    def override(self, updates: dict) -> "Settings":
        """Return a copy updated with nested dictionary overrides."""
        return Settings.model_validate(merge_dicts(self.model_dump(), updates))


def merge_dicts(base: dict, override: dict) -> dict:
    """Merge ``override`` values into a copy of ``base`` recursively."""
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge_dicts(result[key], value)
        else:
            result[key] = value
    return result
