"""Command-line interface for JSON to SQL/CSV conversion."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from .config import Settings, load_settings
from .csv_io import collect_headers, write_csv
from .flattener import FlattenResult, InvalidJSONError, parse_and_flatten
from .sql_generator import generate_sql

logger = logging.getLogger(__name__)


def _load_flattened(path: Path) -> FlattenResult:
    return parse_and_flatten(path.read_text(encoding="utf-8"))


def _write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _resolve_format(args: argparse.Namespace, settings: Settings) -> str:
    if args.format:
        return args.format
    if args.output.suffix.lower() == ".csv":
        return "csv"
    if args.output.suffix.lower() == ".sql":
        return "sql"
    return settings.output_format


def _cmd_convert(args: argparse.Namespace, settings: Settings) -> int:
    flattened = _load_flattened(args.input)
    fmt = _resolve_format(args, settings)

    if fmt == "csv":
        write_csv(flattened.records, args.output)
    else:
        _write_text(args.output, generate_sql(flattened.records, args.table_name or settings.table_name))

    logger.debug("Wrote %s output to %s", fmt, args.output)
    print(
        f"{args.input}: wrote {flattened.record_count} records "
        f"(depth {flattened.max_depth}) as {fmt} to {args.output}"
    )
    return 0


def _cmd_inspect(args: argparse.Namespace, settings: Settings) -> int:
    flattened = _load_flattened(args.input)
    print(f"records: {flattened.record_count}")
    print(f"nesting depth: {flattened.max_depth}")
    print("columns:")
    for column in collect_headers(flattened.records):
        print(f"  {column}")
    return 0


def _cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    from .api import create_app

    uvicorn.run(
        create_app(settings),
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


def _cmd_load_mongodb(args: argparse.Namespace, settings: Settings) -> int:
    from .mongodb_io import ingest_records_to_mongodb

    flattened = _load_flattened(args.input)
    count = ingest_records_to_mongodb(
        flattened.records,
        mongo_uri=args.mongo_uri,
        database_name=args.database,
        collection_name=args.collection,
        drop_collection=args.drop,
    )
    print(f"Inserted {count} documents into {args.database}.{args.collection}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="json-tabular", description="Convert JSON to SQL or CSV.")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yml")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # Accept --config after the subcommand too; SUPPRESS keeps the top-level value when absent.
    config_parent = argparse.ArgumentParser(add_help=False)
    config_parent.add_argument("--config", type=Path, default=argparse.SUPPRESS, help="Path to config.yml")

    def add_command(name: str, help_text: str) -> argparse.ArgumentParser:
        return subparsers.add_parser(name, help=help_text, parents=[config_parent])

    convert_parser = add_command("convert", "Convert a JSON file to SQL or CSV")
    convert_parser.add_argument("--input", required=True, type=Path, help="Path to JSON input")
    convert_parser.add_argument("--output", required=True, type=Path, help="Path to output SQL/CSV")
    convert_parser.add_argument("--format", choices=["sql", "csv"], default=None, help="Output format")
    convert_parser.add_argument("--table-name", default=None, help="Table name for SQL output")

    inspect_parser = add_command("inspect", "Show record count, depth and columns")
    inspect_parser.add_argument("--input", required=True, type=Path, help="Path to JSON input")

    serve_parser = add_command("serve", "Run the HTTP API")
    serve_parser.add_argument("--host", default=None)
    serve_parser.add_argument("--port", type=int, default=None)

    mongo_parser = add_command("load-mongodb", "Flatten a JSON file into MongoDB")
    mongo_parser.add_argument("--input", required=True, type=Path, help="Path to JSON input")
    mongo_parser.add_argument("--mongo-uri", default="mongodb://localhost:27017")
    mongo_parser.add_argument("--database", default="json_tabular")
    mongo_parser.add_argument("--collection", default="records")
    mongo_parser.add_argument("--drop", action="store_true", help="Drop the collection first")

    return parser


_COMMANDS = {
    "convert": _cmd_convert,
    "inspect": _cmd_inspect,
    "serve": _cmd_serve,
    "load-mongodb": _cmd_load_mongodb,
}


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args.config)
    except ValueError as exc:
        print(f"ERROR: invalid configuration: {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(level=settings.log_level.upper())

    try:
        return _COMMANDS[args.command](args, settings)
    except InvalidJSONError as exc:
        print(f"ERROR: {args.input}: invalid JSON: {exc}", file=sys.stderr)
        return 2
    except FileNotFoundError as exc:
        print(f"ERROR: file not found: {exc.filename}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
