"""Command-line interface for pgdump-scrambler."""

from __future__ import annotations

import argparse
import io
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table as RichTable

from .config import Config
from .errors import ScramblerError
from .schema_source import MappingSchemaSource, SchemaSource
from .settings import Settings, load_settings
from .table import Column

_LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CHECK_FAILED = 1
EXIT_ERROR = 2


def _configure_logging(log_level: str) -> None:
    """Initialise root logging configuration."""
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(message)s",
        datefmt="%H:%M:%S",
        force=True,
    )


def _add_config_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        help="Scramble configuration YAML (defaults to the config_file setting).",
    )


def _add_schema_arguments(parser: argparse.ArgumentParser) -> None:
    _add_config_argument(parser)
    parser.add_argument(
        "--schema-file",
        type=Path,
        help="YAML snapshot mapping table names to column lists, used instead of a database.",
    )
    parser.add_argument(
        "--dsn",
        help="PostgreSQL DSN to introspect (overrides database.dsn).",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pgdump-scrambler",
        description="Maintain per-column scramble methods for anonymised PostgreSQL dumps.",
    )
    parser.add_argument("--settings", type=Path, help="Path to a pgdump_scrambler.toml settings file.")
    parser.add_argument("--profile", help="Bundled settings profile to apply (e.g. minimal).")
    parser.add_argument(
        "--set",
        dest="cli_sets",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Override a setting, e.g. --set introspection.dump_path=out.dump.gz.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (DEBUG, INFO, WARNING, ERROR).",
    )

    subparsers = parser.add_subparsers(dest="command")

    normalize = subparsers.add_parser(
        "normalize",
        help="Reconcile the configuration with the live schema and write it back.",
    )
    _add_schema_arguments(normalize)

    check = subparsers.add_parser(
        "check",
        help="Fail when columns are unspecified or the configuration is out of date.",
    )
    _add_schema_arguments(check)

    options = subparsers.add_parser("options", help="Print the obfuscator options.")
    _add_config_argument(options)

    subparsers.add_parser("print-config", help="Print the resolved settings as JSON.")
    return parser


def _config_path(args: argparse.Namespace, settings: Settings) -> Path:
    return args.config if args.config is not None else settings.config_file


def _schema_source(args: argparse.Namespace, settings: Settings) -> SchemaSource:
    if args.schema_file is not None:
        return MappingSchemaSource.from_file(args.schema_file)
    dsn = settings.database.dsn
    if not dsn:
        raise ScramblerError("No schema source: pass --schema-file or configure database.dsn.")
    try:
        from .postgres import PostgresSchemaSource
    except ImportError as exc:
        raise ScramblerError(
            "Live introspection needs asyncpg: pip install pgdump-scrambler[postgres]"
        ) from exc

    return PostgresSchemaSource(dsn, schema=settings.database.schema_name)


def _reconcile(args: argparse.Namespace, settings: Settings) -> tuple[Config, Path]:
    introspection = settings.introspection
    fresh = Config.from_schema(
        _schema_source(args, settings),
        ignored_tables=introspection.ignored_tables,
        ignored_columns=introspection.ignored_columns,
        dump_path=introspection.dump_path,
        s3=introspection.storage_template,
    )
    path = _config_path(args, settings)
    if path.exists():
        return fresh.update_with(Config.read_file(path)), path
    _LOGGER.info("No configuration at %s; starting from the live schema.", path)
    return fresh, path


def _render(config: Config) -> str:
    buffer = io.StringIO()
    config.write(buffer)
    return buffer.getvalue()


def _print_unspecified(console: Console, report: Dict[str, List[Column]]) -> None:
    if not report:
        console.print("[green]Every column has a scramble method.[/green]", highlight=False)
        return
    table = RichTable(title="Columns without a scramble method")
    table.add_column("Table", style="cyan")
    table.add_column("Columns")
    for table_name, columns in report.items():
        table.add_row(table_name, ", ".join(column.name for column in columns))
    console.print(table)


def _run_normalize_command(args: argparse.Namespace, settings: Settings, console: Console) -> int:
    config, path = _reconcile(args, settings)
    path.parent.mkdir(parents=True, exist_ok=True)
    config.write_file(path)
    console.print(f"Wrote {path}", highlight=False)
    _print_unspecified(console, config.unspecified_columns())
    return EXIT_OK


def _run_check_command(args: argparse.Namespace, settings: Settings, console: Console) -> int:
    config, path = _reconcile(args, settings)
    status = EXIT_OK
    current = path.read_text(encoding="utf-8") if path.exists() else None
    if current != _render(config):
        console.print(
            f"[yellow]{escape(str(path))} is out of date; run 'pgdump-scrambler normalize'.[/yellow]",
            highlight=False,
        )
        status = EXIT_CHECK_FAILED
    report = config.unspecified_columns()
    if report:
        status = EXIT_CHECK_FAILED
    _print_unspecified(console, report)
    return status


def _run_options_command(args: argparse.Namespace, settings: Settings) -> int:
    config = Config.read_file(_config_path(args, settings))
    print(config.obfuscator_options())
    return EXIT_OK


def _run_print_config_command(settings: Settings) -> int:
    print(json.dumps(settings.model_dump(mode="json"), indent=2))
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Execute the CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    _configure_logging(args.log_level)
    if args.command is None:
        parser.print_help()
        return EXIT_OK

    console = Console()
    err_console = Console(stderr=True)
    try:
        settings = load_settings(args.settings, args.cli_sets, profile=args.profile)
        if getattr(args, "dsn", None):
            settings = settings.override({"database": {"dsn": args.dsn}})
        if args.command == "normalize":
            return _run_normalize_command(args, settings, console)
        if args.command == "check":
            return _run_check_command(args, settings, console)
        if args.command == "options":
            return _run_options_command(args, settings)
        if args.command == "print-config":
            return _run_print_config_command(settings)
    except (ScramblerError, ValidationError, OSError) as exc:
        err_console.print(f"[red]Error:[/red] {escape(str(exc))}", highlight=False)
        return EXIT_ERROR

    parser.print_help()
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
