"""pgdump-scrambler keeps per-column scramble methods in step with a database schema."""

from __future__ import annotations

from .config import DEFAULT_S3_PROPERTIES, Config
from .errors import (
    DuplicateNameError,
    MalformedConfigError,
    ScramblerError,
    UnsafeYAMLError,
)
from .schema_source import MappingSchemaSource, SchemaSource
from .settings import Settings, load_settings
from .table import NOP, Column, Table

__all__ = [
    "Config",
    "Table",
    "Column",
    "NOP",
    "DEFAULT_S3_PROPERTIES",
    "SchemaSource",
    "MappingSchemaSource",
    "Settings",
    "load_settings",
    "ScramblerError",
    "MalformedConfigError",
    "UnsafeYAMLError",
    "DuplicateNameError",
]
