"""Database handle for registered tables.

This module owns the store lifecycle and the table registry. Callers
open one handle at startup, register each record type once, and close
the handle on shutdown.
"""

from __future__ import annotations

from pathlib import Path
from types import TracebackType
from typing import Any, TypeVar

from core.config import RecordbaseConfig
from core.errors import SchemaError
from core.types import NamespaceInfo
from store.schema_registry import build_schema, register_table
from store.sqlite_store import SqliteStore
from store.table import Table

RecordT = TypeVar("RecordT")


class Database:
    """Primary entry point owning one store and its tables."""

    def __init__(self, config: RecordbaseConfig | None = None) -> None:
        """Open the store described by config.

        Args:
            config: Optional runtime configuration.

        Raises:
            StoreError: If the store cannot be opened.
        """
        self._config = config or RecordbaseConfig.from_env()
        self._store = SqliteStore(self._config)
        self._tables: dict[str, Table[Any]] = {}

    @property
    def config(self) -> RecordbaseConfig:
        """Configuration the handle was opened with."""
        return self._config

    @property
    def store(self) -> SqliteStore:
        """Underlying store adapter."""
        return self._store

    def register(
        self,
        record_type: type[RecordT],
        id_field_name: str | None = None,
        namespace: str | None = None,
    ) -> Table[RecordT]:
        """Register a record type, or return its existing table.

        Args:
            record_type: Mutable dataclass type.
            id_field_name: Explicit identifier field; tagged field when omitted.
            namespace: Explicit namespace; the class name when omitted.

        Returns:
            Table bound to the record type.

        Raises:
            SchemaError: If the type is malformed or its namespace is taken
                by a different record type.
            StoreError: If the namespace cannot be created.
        """
        schema = build_schema(record_type, id_field_name, namespace)
        existing = self._tables.get(schema.namespace)
        if existing is not None:
            if existing.schema != schema:
                raise SchemaError(
                    f"Namespace '{schema.namespace}' is already bound to "
                    f"{existing.record_type.__module__}.{existing.record_type.__name__} "
                    f"with id field '{existing.schema.id_field}'. "
                    "Pass a distinct namespace for this record type."
                )
            return existing
        table = register_table(self._store, record_type, schema.id_field, schema.namespace)
        self._tables[schema.namespace] = table
        return table

    def tables(self) -> tuple[Table[Any], ...]:
        """Registered tables in registration order."""
        return tuple(self._tables.values())

    def namespaces(self) -> list[NamespaceInfo]:
        """Summaries of every namespace in the store file."""
        return self._store.describe_namespaces()

    def truncate_all(self) -> None:
        """Empty every registered table.

        Each table is truncated in its own transaction.
        """
        for table in self._tables.values():
            table.truncate()

    def backup(self, destination: Path) -> Path:
        """Write a consistent copy of the store file.

        Args:
            destination: Target file path.

        Returns:
            Resolved backup path.
        """
        return self._store.backup(destination)

    def close(self) -> None:
        """Close the store; registered tables become unusable."""
        self._store.close()

    def __enter__(self) -> "Database":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()
