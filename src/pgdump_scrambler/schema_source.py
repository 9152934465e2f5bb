"""Sources of live table and column names used to build fresh configs."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Mapping, Optional, Protocol, Sequence, Union, runtime_checkable

from .document import load_yaml
from .errors import MalformedConfigError


@runtime_checkable
class SchemaSource(Protocol):
    """Anything that can enumerate tables and their column names."""

    def list_tables(self) -> List[str]:
        ...

    def list_columns(self, table: str) -> Optional[List[str]]:
        """Return column names in table order, or ``None`` when the table is unknown."""
        ...


class MappingSchemaSource:
    """Schema source backed by an in-memory ``{table: [column, ...]}`` mapping."""

    def __init__(self, tables: Mapping[str, Optional[Sequence[str]]]) -> None:
        self._tables: Dict[str, Optional[List[str]]] = {
            name: None if columns is None else list(columns) for name, columns in tables.items()
        }

    def list_tables(self) -> List[str]:
        return list(self._tables)

    def list_columns(self, table: str) -> Optional[List[str]]:
        columns = self._tables.get(table)
        return None if columns is None else list(columns)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "MappingSchemaSource":
        """
        Load a schema snapshot from YAML.

        The file maps each table name to a list of column names. A table
        mapped to ``null`` is listed but has no column information.
        """
        with Path(path).open("r", encoding="utf-8") as handle:
            data = load_yaml(handle)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise MalformedConfigError(f"Schema snapshot {path} must map table names to column lists")
        for name, columns in data.items():
            if columns is not None and not (
                isinstance(columns, list) and all(isinstance(column, str) for column in columns)
            ):
                raise MalformedConfigError(f"Columns of table '{name}' in {path} must be a list of names")
        return cls(data)
