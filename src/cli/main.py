"""Recordbase CLI entry points.
This module exposes admin commands for inspecting and maintaining a store.
It maps argparse commands onto database handle calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
import sys
from typing import Any, Sequence

from core.config import RecordbaseConfig
from core.errors import RecordbaseError
from store.database import Database


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="recordbase", description="Recordbase admin CLI")
    parser.add_argument("--data-root", help="Override RECORDBASE_DATA_ROOT for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_namespaces_command(subparsers)
    _add_dump_command(subparsers)
    _add_backup_command(subparsers)
    _add_truncate_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Recordbase CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        with _open_database(args.data_root) as database:
            return _dispatch(parser, database, args)
    except RecordbaseError as error:
        print(f"error: {error}", file=sys.stderr)
        return 1


def _dispatch(
    parser: argparse.ArgumentParser,
    database: Database,
    args: argparse.Namespace,
) -> int:
    """Route parsed args to a command handler.

    Args:
        parser: Parser used for usage errors.
        database: Open database handle.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    if args.command == "namespaces":
        return _run_namespaces_command(database)
    if args.command == "dump":
        return _run_dump_command(database, args)
    if args.command == "backup":
        return _run_backup_command(database, args)
    if args.command == "truncate":
        return _run_truncate_command(database, args)
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _open_database(data_root: str | None) -> Database:
    """Open a database with optional data-root override.

    Args:
        data_root: Optional override path.

    Returns:
        Open database handle.
    """
    config = RecordbaseConfig.from_env()
    if data_root:
        config = replace(config, data_root=Path(data_root).expanduser().resolve())
    return Database(config)


def _run_namespaces_command(database: Database) -> int:
    """Handle namespaces command.

    Args:
        database: Open database handle.

    Returns:
        Exit code.
    """
    for info in database.namespaces():
        print(f"{info.name}\t{info.record_count}\t{info.sequence}")
    return 0


def _run_dump_command(database: Database, args: argparse.Namespace) -> int:
    """Handle dump command.

    Args:
        database: Open database handle.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    with database.store.read_transaction() as transaction:
        for key, value in transaction.iterate_ordered(args.namespace):
            print(f"{key.decode('ascii')}\t{value.decode('utf-8')}")
    return 0


def _run_backup_command(database: Database, args: argparse.Namespace) -> int:
    """Handle backup command.

    Args:
        database: Open database handle.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    backup_path = database.backup(Path(args.output))
    print(backup_path)
    return 0


def _run_truncate_command(database: Database, args: argparse.Namespace) -> int:
    """Handle truncate command.

    Args:
        database: Open database handle.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    with database.store.write_transaction() as transaction:
        transaction.drop_and_recreate_namespace(args.namespace)
    print(args.namespace)
    return 0


def _add_namespaces_command(subparsers: Any) -> None:
    """Register namespaces subcommand."""
    subparsers.add_parser("namespaces", help="List namespaces with record counts and sequences")


def _add_dump_command(subparsers: Any) -> None:
    """Register dump subcommand."""
    parser = subparsers.add_parser("dump", help="Print every entry of a namespace in key order")
    parser.add_argument("namespace", help="Namespace name, usually the record type name")


def _add_backup_command(subparsers: Any) -> None:
    """Register backup subcommand."""
    parser = subparsers.add_parser("backup", help="Write a consistent copy of the store file")
    parser.add_argument("output", help="Backup file path")


def _add_truncate_command(subparsers: Any) -> None:
    """Register truncate subcommand."""
    parser = subparsers.add_parser("truncate", help="Remove every entry of a namespace")
    parser.add_argument("namespace", help="Namespace name, usually the record type name")
