"""Column and table value types for scramble configurations."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .errors import DuplicateNameError, MalformedConfigError

Directive = Union[str, Mapping[str, Any]]

NOP = "nop"


def _is_blank(method: Optional[Directive]) -> bool:
    if method is None:
        return True
    if isinstance(method, str):
        return not method.strip()
    return not method


def format_directive(method: Directive) -> str:
    """
    Render a scramble directive as the obfuscator expects it.

    Plain strings are used verbatim. Mappings must carry a ``method`` entry;
    remaining entries become ``key=value`` arguments, e.g.
    ``{"method": "mask", "keep": 4}`` renders as ``mask,keep=4``.
    """
    if isinstance(method, str):
        return method
    if "method" not in method:
        raise MalformedConfigError(f"Scramble directive {dict(method)!r} has no 'method' entry")
    parts = [str(method["method"])]
    parts.extend(f"{key}={value}" for key, value in method.items() if key != "method")
    return ",".join(parts)


@dataclass(frozen=True)
class Column:
    """A table column and the scramble method assigned to it."""

    name: str
    scramble_method: Optional[Directive] = None

    def __post_init__(self) -> None:
        method = self.scramble_method
        if method is None or isinstance(method, str):
            return
        if not isinstance(method, Mapping):
            raise MalformedConfigError(
                f"Scramble method of column '{self.name}' must be a string or a mapping"
            )
        if method and "method" not in method:
            raise MalformedConfigError(
                f"Scramble directive {dict(method)!r} of column '{self.name}' has no 'method' entry"
            )
        object.__setattr__(self, "scramble_method", MappingProxyType(dict(method)))

    @property
    def is_specified(self) -> bool:
        return not _is_blank(self.scramble_method)

    @property
    def is_nop(self) -> bool:
        return self.scramble_method == NOP

    def with_method(self, scramble_method: Optional[Directive]) -> "Column":
        return Column(self.name, scramble_method)


class Table:
    """Named, ordered collection of columns."""

    def __init__(self, name: str, columns: Iterable[Column] = ()) -> None:
        self._name = name
        self._columns: Dict[str, Column] = {}
        for column in columns:
            if column.name in self._columns:
                raise DuplicateNameError("column", column.name, f"table '{name}'")
            self._columns[column.name] = column

    @property
    def name(self) -> str:
        return self._name

    @property
    def column_names(self) -> List[str]:
        return list(self._columns)

    @property
    def all_columns(self) -> List[Column]:
        return list(self._columns.values())

    @property
    def columns(self) -> List[Column]:
        """Columns with a scramble method, in table order."""
        return [column for column in self._columns.values() if column.is_specified]

    @property
    def unspecified_columns(self) -> List[Column]:
        """Columns still waiting for a scramble method, in table order."""
        return [column for column in self._columns.values() if not column.is_specified]

    def column(self, name: str) -> Optional[Column]:
        return self._columns.get(name)

    def options(self) -> str:
        """Return the obfuscator flags for every scrambled column."""
        return " ".join(
            f"-c {self._name}:{column.name}:{format_directive(column.scramble_method)}"
            for column in self.columns
            if not column.is_nop
        )

    def update_with(self, other: "Table") -> "Table":
        """
        Return a copy whose columns take ``other``'s methods where names match.

        Columns that only ``other`` knows about are dropped: they no longer
        exist in this table, so their methods are stale.
        """
        merged = []
        for column in self._columns.values():
            other_column = other.column(column.name)
            if other_column is not None:
                merged.append(column.with_method(other_column.scramble_method))
            else:
                merged.append(column)
        return Table(self._name, merged)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Table):
            return NotImplemented
        return self._name == other._name and self.all_columns == other.all_columns

    def __repr__(self) -> str:
        return f"Table(name={self._name!r}, columns={self.all_columns!r})"
