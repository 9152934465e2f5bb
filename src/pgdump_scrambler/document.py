"""YAML reading and writing for scramble configuration files."""

from __future__ import annotations

import logging
from typing import IO, TYPE_CHECKING, Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import DuplicateNameError, MalformedConfigError, UnsafeYAMLError
from .table import Column, Directive, Table

if TYPE_CHECKING:
    from .config import Config

KEY_DUMP_PATH = "dump_path"
KEY_S3 = "s3"
KEY_EXCLUDE_TABLES = "exclude_tables"
KEY_PGDUMP_ARGS = "pgdump_args"
KEY_TABLES = "tables"

_LOGGER = logging.getLogger(__name__)


class ScrambleLoader(yaml.SafeLoader):
    """Safe loader that refuses every application-specific tag."""

    def construct_undefined(self, node: yaml.Node) -> Any:
        raise UnsafeYAMLError(
            f"Refusing to construct tag {node.tag!r} at line {node.start_mark.line + 1}"
        )

    def construct_mapping(self, node: yaml.MappingNode, deep: bool = False) -> dict:
        """Build a mapping, rejecting keys written more than once.

        Keys pulled in through a ``<<`` merge may still be overridden.
        """
        seen = set()
        for key_node, _ in node.value:
            if key_node.tag == "tag:yaml.org,2002:merge":
                continue
            key = self.construct_object(key_node, deep=deep)
            try:
                duplicate = key in seen
            except TypeError:
                continue
            if duplicate:
                raise DuplicateNameError(
                    "key", str(key), f"mapping at line {key_node.start_mark.line + 1}"
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


ScrambleLoader.add_constructor(None, ScrambleLoader.construct_undefined)


class ScrambleDumper(yaml.SafeDumper):
    """Safe dumper that writes repeated directives out in full."""

    def ignore_aliases(self, data: Any) -> bool:
        return True


class ConfigDocument(BaseModel):
    """Validated shape of a scramble configuration file."""

    model_config = ConfigDict(extra="ignore")

    dump_path: str
    s3: Optional[Dict[str, str]] = None
    exclude_tables: List[str] = Field(default_factory=list)
    pgdump_args: Optional[str] = None
    tables: Dict[str, Dict[str, Optional[Union[str, Dict[str, Any]]]]] = Field(
        default_factory=dict
    )

    @field_validator("s3", mode="before")
    @classmethod
    def _stringify_s3(cls, value: object) -> object:
        if isinstance(value, dict):
            return {key: "" if item is None else str(item) for key, item in value.items()}
        return value

    @field_validator("exclude_tables", mode="before")
    @classmethod
    def _none_to_list(cls, value: object) -> object:
        return [] if value is None else value

    @field_validator("tables", mode="before")
    @classmethod
    def _normalise_tables(cls, value: object) -> object:
        if value is None:
            return {}
        if not isinstance(value, dict):
            return value
        return {
            name: {} if columns is None else _scalar_methods_to_str(columns)
            for name, columns in value.items()
        }

    @classmethod
    def from_config(cls, config: "Config") -> "ConfigDocument":
        tables: Dict[str, Dict[str, Any]] = {}
        for table in config.tables:
            columns = table.columns
            if not columns:
                continue
            tables[table.name] = {column.name: _plain(column.scramble_method) for column in columns}
        return cls(
            dump_path=config.dump_path,
            s3=config.s3,
            exclude_tables=list(config.exclude_tables),
            pgdump_args=config.pgdump_args,
            tables=tables,
        )

    def to_yaml_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {KEY_DUMP_PATH: self.dump_path}
        if self.s3 is not None:
            data[KEY_S3] = dict(self.s3)
        if self.exclude_tables:
            data[KEY_EXCLUDE_TABLES] = list(self.exclude_tables)
        if self.pgdump_args is not None:
            data[KEY_PGDUMP_ARGS] = self.pgdump_args
        data[KEY_TABLES] = self.tables
        return data

    def build_tables(self) -> List[Table]:
        return [
            Table(name, [Column(column, method) for column, method in columns.items()])
            for name, columns in self.tables.items()
        ]


def _scalar_methods_to_str(columns: object) -> object:
    if not isinstance(columns, dict):
        return columns
    return {
        name: str(method) if isinstance(method, (bool, int, float)) else method
        for name, method in columns.items()
    }


def _plain(method: Optional[Directive]) -> Any:
    if method is None or isinstance(method, str):
        return method
    return dict(method)


def load_yaml(stream: Union[str, bytes, IO]) -> Any:
    """Parse YAML with the restricted loader, normalising parser errors."""
    try:
        return yaml.load(stream, Loader=ScrambleLoader)
    except yaml.YAMLError as exc:
        raise MalformedConfigError(f"Invalid YAML: {exc}") from exc


def parse_document(stream: Union[str, bytes, IO]) -> ConfigDocument:
    """Read and validate a configuration document."""
    data = load_yaml(stream)
    if not isinstance(data, dict):
        raise MalformedConfigError(
            f"Configuration must be a mapping, got {type(data).__name__}"
        )
    try:
        return ConfigDocument.model_validate(data)
    except ValidationError as exc:
        raise MalformedConfigError(f"Invalid configuration:\n{exc}") from exc


def dump_document(document: ConfigDocument, stream: IO[str]) -> None:
    """Write ``document`` as YAML to ``stream``."""
    yaml.dump(
        document.to_yaml_dict(),
        stream,
        Dumper=ScrambleDumper,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )
    _LOGGER.debug("Wrote configuration with %d scrambled tables", len(document.tables))
