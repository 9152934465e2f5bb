"""Scramble configuration aggregate: merge, reporting, and serialization."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from types import MappingProxyType
from typing import IO, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .document import ConfigDocument, dump_document, parse_document
from .errors import DuplicateNameError
from .interpolation import resolve_templates
from .schema_source import SchemaSource
from .table import Column, Table

IGNORED_TABLES = ("ar_internal_metadata", "schema_migrations")
IGNORED_COLUMNS = ("id", "updated_at")
DEFAULT_DUMP_PATH = "scrambled.dump.gz"
DEFAULT_S3_PROPERTIES: Mapping[str, str] = MappingProxyType(
    {
        "bucket": "YOUR_S3_BUCKET",
        "region": "YOUR_S3_REGION",
        "prefix": "YOUR_S3_PATH_PREFIX",
        "access_key_id": "${AWS_ACCESS_KEY_ID}",
        "secret_key": "${AWS_SECRET_KEY}",
    }
)

_LOGGER = logging.getLogger(__name__)


def _unique(names: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(names))


class Config:
    """
    Tables to scramble plus the metadata needed to dump them.

    Tables are kept sorted by name. Instances are never modified after
    construction; :meth:`update_with` and the readers build new ones.
    """

    def __init__(
        self,
        tables: Iterable[Table],
        dump_path: str,
        s3: Optional[Mapping[str, str]] = None,
        exclude_tables: Iterable[str] = (),
        pgdump_args: Optional[str] = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._tables: Dict[str, Table] = {}
        for table in sorted(tables, key=lambda table: table.name):
            if table.name in self._tables:
                raise DuplicateNameError("table", table.name)
            self._tables[table.name] = table
        self._dump_path = dump_path
        self._s3 = dict(s3) if s3 is not None else None
        self._resolved_s3 = resolve_templates(
            self._s3, os.environ if environ is None else environ
        )
        self._environ = environ
        self._exclude_tables = _unique(exclude_tables)
        self._pgdump_args = pgdump_args

    @property
    def dump_path(self) -> str:
        return self._dump_path

    @property
    def s3(self) -> Optional[Dict[str, str]]:
        return dict(self._s3) if self._s3 is not None else None

    @property
    def resolved_s3(self) -> Optional[Dict[str, str]]:
        return dict(self._resolved_s3) if self._resolved_s3 is not None else None

    @property
    def exclude_tables(self) -> tuple[str, ...]:
        return self._exclude_tables

    @property
    def pgdump_args(self) -> Optional[str]:
        return self._pgdump_args

    @property
    def table_names(self) -> List[str]:
        return list(self._tables)

    @property
    def tables(self) -> List[Table]:
        return list(self._tables.values())

    def table(self, name: str) -> Optional[Table]:
        return self._tables.get(name)

    def update_with(self, other: "Config") -> "Config":
        """
        Reconcile this (freshly introspected) config with a persisted one.

        Tables present on both sides merge column methods, with ``other``
        winning. Tables only ``other`` knows about are carried over as-is,
        since introspection may simply not have seen them. Dump metadata
        always comes from ``self``.
        """
        merged: List[Table] = []
        for table in self._tables.values():
            other_table = other.table(table.name)
            merged.append(table.update_with(other_table) if other_table is not None else table)
        orphaned = [other.table(name) for name in other.table_names if name not in self._tables]
        if orphaned:
            _LOGGER.debug(
                "Keeping %d tables missing from the schema: %s",
                len(orphaned),
                ", ".join(table.name for table in orphaned),
            )
        return Config(
            merged + orphaned,
            self._dump_path,
            self._s3,
            self._exclude_tables,
            self._pgdump_args,
            environ=self._environ,
        )

    def unspecified_columns(self) -> Dict[str, List[Column]]:
        """Map table names to columns that still need a scramble method."""
        report: Dict[str, List[Column]] = {}
        for table in self._tables.values():
            columns = table.unspecified_columns
            if columns:
                report[table.name] = columns
        return report

    def obfuscator_options(self) -> str:
        """Return the obfuscator flags for every table, in table order."""
        return " ".join(options for options in (table.options() for table in self.tables) if options)

    def write(self, stream: IO[str]) -> None:
        dump_document(ConfigDocument.from_config(self), stream)

    def write_file(self, path: Union[str, Path]) -> None:
        with Path(path).open("w", encoding="utf-8") as handle:
            self.write(handle)

    @classmethod
    def read(
        cls,
        stream: Union[str, bytes, IO],
        *,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Config":
        document = parse_document(stream)
        return cls(
            document.build_tables(),
            document.dump_path,
            document.s3,
            document.exclude_tables,
            document.pgdump_args,
            environ=environ,
        )

    @classmethod
    def read_file(
        cls,
        path: Union[str, Path],
        *,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Config":
        with Path(path).open("r", encoding="utf-8") as handle:
            return cls.read(handle, environ=environ)

    @classmethod
    def from_schema(
        cls,
        source: SchemaSource,
        *,
        ignored_tables: Sequence[str] = IGNORED_TABLES,
        ignored_columns: Sequence[str] = IGNORED_COLUMNS,
        dump_path: str = DEFAULT_DUMP_PATH,
        s3: Optional[Mapping[str, str]] = DEFAULT_S3_PROPERTIES,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Config":
        """Build a config with every live column left unspecified."""
        skip_tables = set(ignored_tables)
        skip_columns = set(ignored_columns)
        tables: List[Table] = []
        missing = 0
        for table_name in sorted(source.list_tables()):
            if table_name in skip_tables:
                continue
            column_names = source.list_columns(table_name)
            if column_names is None:
                missing += 1
                continue
            columns = [Column(name) for name in column_names if name not in skip_columns]
            tables.append(Table(table_name, columns))
        _LOGGER.info("Introspected %d tables (%d without column information).", len(tables), missing)
        return cls(tables, dump_path, s3, (), None, environ=environ)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Config):
            return NotImplemented
        return (
            self.tables == other.tables
            and self._dump_path == other._dump_path
            and self._s3 == other._s3
            and self._exclude_tables == other._exclude_tables
            and self._pgdump_args == other._pgdump_args
        )

    def __repr__(self) -> str:
        return f"Config(tables={self.table_names!r}, dump_path={self._dump_path!r})"
