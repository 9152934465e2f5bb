"""Tests for reading and writing scramble configuration YAML."""

from __future__ import annotations

import io
from pathlib import Path

import pytest
import yaml

from pgdump_scrambler.config import Config
from pgdump_scrambler.errors import DuplicateNameError, MalformedConfigError, UnsafeYAMLError
from pgdump_scrambler.table import Column, Table

SAMPLE = """\
dump_path: scrambled.dump.gz
s3:
  bucket: dumps
  access_key_id: ${AWS_ACCESS_KEY_ID}
exclude_tables:
- logs
pgdump_args: --no-owner
tables:
  users:
    email: uemail
    name: nop
  accounts:
    iban: digits
"""


def _write(config: Config) -> str:
    buffer = io.StringIO()
    config.write(buffer)
    return buffer.getvalue()


def test_read_full_document() -> None:
    config = Config.read(SAMPLE, environ={"AWS_ACCESS_KEY_ID": "AKIA"})
    assert config.dump_path == "scrambled.dump.gz"
    assert config.s3 == {"bucket": "dumps", "access_key_id": "${AWS_ACCESS_KEY_ID}"}
    assert config.resolved_s3 == {"bucket": "dumps", "access_key_id": "AKIA"}
    assert config.exclude_tables == ("logs",)
    assert config.pgdump_args == "--no-owner"
    assert config.table_names == ["accounts", "users"]
    assert config.table("users").all_columns == [Column("email", "uemail"), Column("name", "nop")]


def test_read_minimal_document() -> None:
    config = Config.read("dump_path: out.gz\n")
    assert config.tables == []
    assert config.exclude_tables == ()
    assert config.s3 is None
    assert config.resolved_s3 is None
    assert config.pgdump_args is None


def test_round_trip_preserves_tables_and_methods() -> None:
    config = Config(
        [
            Table("users", [Column("phone", "mask"), Column("email", "uemail")]),
            Table("accounts", [Column("iban", "digits")]),
        ],
        "scrambled.dump.gz",
        exclude_tables=["logs"],
        environ={},
    )
    restored = Config.read(_write(config), environ={})
    assert restored == config
    assert restored.table("users").column_names == ["phone", "email"]


def test_write_skips_unspecified_columns_and_empty_tables() -> None:
    config = Config(
        [
            Table("users", [Column("email", "uemail"), Column("name")]),
            Table("orders", [Column("note")]),
        ],
        "scrambled.dump.gz",
        environ={},
    )
    data = yaml.safe_load(_write(config))
    assert data == {"dump_path": "scrambled.dump.gz", "tables": {"users": {"email": "uemail"}}}


def test_write_keeps_raw_s3_templates() -> None:
    config = Config(
        [], "out.gz", {"access_key_id": "${AWS_ACCESS_KEY_ID}"}, environ={"AWS_ACCESS_KEY_ID": "AKIA"}
    )
    data = yaml.safe_load(_write(config))
    assert data["s3"] == {"access_key_id": "${AWS_ACCESS_KEY_ID}"}
    assert "exclude_tables" not in data


def test_write_key_order() -> None:
    config = Config(
        [Table("users", [Column("email", "uemail")])],
        "out.gz",
        {"bucket": "b"},
        ["logs"],
        "--no-owner",
        environ={},
    )
    keys = [line.split(":")[0] for line in _write(config).splitlines() if not line.startswith((" ", "-"))]
    assert keys == ["dump_path", "s3", "exclude_tables", "pgdump_args", "tables"]


def test_aliases_are_allowed() -> None:
    document = """\
dump_path: out.gz
tables:
  users:
    email: &masked
      method: mask
      keep: 4
    phone: *masked
"""
    config = Config.read(document)
    users = config.table("users")
    assert users.column("phone").scramble_method == {"method": "mask", "keep": 4}
    assert users.options() == "-c users:email:mask,keep=4 -c users:phone:mask,keep=4"
    written = _write(config)
    assert "&" not in written and "*" not in written


def test_python_tags_rejected() -> None:
    document = "dump_path: !!python/object/apply:os.system ['echo hi']\n"
    with pytest.raises(UnsafeYAMLError):
        Config.read(document)


def test_custom_tags_rejected() -> None:
    with pytest.raises(UnsafeYAMLError):
        Config.read("dump_path: !secret value\n")


def test_tables_must_be_mapping() -> None:
    with pytest.raises(MalformedConfigError):
        Config.read("dump_path: out.gz\ntables:\n- users\n")


def test_missing_dump_path_is_malformed() -> None:
    with pytest.raises(MalformedConfigError):
        Config.read("tables: {}\n")


def test_non_mapping_document_is_malformed() -> None:
    with pytest.raises(MalformedConfigError):
        Config.read("- just\n- a list\n")
    with pytest.raises(MalformedConfigError):
        Config.read("")


def test_invalid_yaml_is_malformed() -> None:
    with pytest.raises(MalformedConfigError):
        Config.read("dump_path: [unclosed\n")


def test_null_table_body_has_no_columns() -> None:
    config = Config.read("dump_path: out.gz\ntables:\n  users:\n")
    assert config.table("users").all_columns == []


def test_scalar_methods_become_strings() -> None:
    config = Config.read("dump_path: out.gz\ntables:\n  users:\n    pin: 0\n")
    assert config.table("users").column("pin").scramble_method == "0"


def test_file_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "pgdump_scrambler.yml"
    config = Config([Table("users", [Column("email", "uemail")])], "out.gz", environ={})
    config.write_file(path)
    assert Config.read_file(path, environ={}) == config


def test_read_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        Config.read_file(tmp_path / "missing.yml")


def test_repeated_column_key_rejected() -> None:
    document = "dump_path: out.gz\ntables:\n  users:\n    email: uemail\n    email: nop\n"
    with pytest.raises(DuplicateNameError) as excinfo:
        Config.read(document)
    assert "email" in str(excinfo.value)


def test_repeated_table_key_rejected() -> None:
    document = (
        "dump_path: out.gz\ntables:\n  users:\n    email: uemail\n  users:\n    name: nop\n"
    )
    with pytest.raises(DuplicateNameError):
        Config.read(document)


def test_merge_keys_may_be_overridden() -> None:
    document = """\
dump_path: out.gz
tables:
  users:
    email: &masked
      method: mask
      keep: 4
    phone:
      <<: *masked
      keep: 2
"""
    config = Config.read(document)
    assert config.table("users").column("phone").scramble_method == {"method": "mask", "keep": 2}


def test_directive_without_method_fails_read() -> None:
    document = "dump_path: out.gz\ntables:\n  users:\n    email:\n      keep: 4\n"
    with pytest.raises(MalformedConfigError):
        Config.read(document)
