"""SQLite store adapter built on SQLAlchemy Core.

This module maps namespaces, byte keys, and per-namespace sequences onto
two SQLite tables. Reads run in WAL snapshots and writes take the
database write lock up front so they serialize cleanly.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
import sqlite3
from typing import Any, Iterator

from sqlalchemy import (
    Column,
    Integer,
    LargeBinary,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    create_engine,
    delete,
    event,
    func,
    insert,
    select,
    update,
)
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from core.config import RecordbaseConfig
from core.constants import NAMESPACES_TABLE_NAME, RECORDS_TABLE_NAME
from core.errors import StoreError
from core.logging_config import get_logger
from core.types import NamespaceInfo

_LOGGER = get_logger(__name__)
_WRITE_OPTION = "recordbase_write"

_METADATA = MetaData()

NAMESPACES = Table(
    NAMESPACES_TABLE_NAME,
    _METADATA,
    Column("name", String, primary_key=True),
    Column("sequence", Integer, nullable=False, default=0),
    Column("record_type", String, nullable=True),
)

# SQLite compares BLOB keys with memcmp, so ORDER BY key is byte order.
RECORDS = Table(
    RECORDS_TABLE_NAME,
    _METADATA,
    Column("namespace", String, nullable=False),
    Column("key", LargeBinary, nullable=False),
    Column("value", LargeBinary, nullable=False),
    PrimaryKeyConstraint("namespace", "key"),
)


class SqliteTransaction:
    """Namespace operations bound to one open SQLAlchemy connection."""

    def __init__(self, connection: Connection, writable: bool) -> None:
        self._connection = connection
        self._writable = writable
        self._known_namespaces: set[str] = set()

    @property
    def writable(self) -> bool:
        """Whether this transaction may mutate the store."""
        return self._writable

    def create_namespace_if_absent(self, name: str, record_type: str | None = None) -> str | None:
        """Create an empty namespace unless it already exists.

        A namespace with no bound record type claims ``record_type``.

        Returns:
            The record type bound to the namespace after the call.
        """
        self._require_writable("create namespace", name)
        row = self._connection.execute(
            select(NAMESPACES.c.record_type).where(NAMESPACES.c.name == name)
        ).first()
        self._known_namespaces.add(name)
        if row is None:
            self._connection.execute(
                insert(NAMESPACES).values(name=name, sequence=0, record_type=record_type)
            )
            return record_type
        bound_type = row[0]
        if bound_type is None and record_type is not None:
            self._connection.execute(
                update(NAMESPACES)
                .where(NAMESPACES.c.name == name)
                .values(record_type=record_type)
            )
            return record_type
        return bound_type

    def drop_and_recreate_namespace(self, name: str) -> None:
        """Remove a namespace with all entries and recreate it empty.

        The recreated namespace starts with a fresh sequence and keeps its
        bound record type.
        """
        self._require_writable("truncate namespace", name)
        self._require_namespace(name)
        bound_type = self._connection.execute(
            select(NAMESPACES.c.record_type).where(NAMESPACES.c.name == name)
        ).scalar_one()
        self._connection.execute(delete(RECORDS).where(RECORDS.c.namespace == name))
        self._connection.execute(delete(NAMESPACES).where(NAMESPACES.c.name == name))
        self._connection.execute(
            insert(NAMESPACES).values(name=name, sequence=0, record_type=bound_type)
        )

    def next_sequence(self, name: str) -> int:
        """Advance and return the namespace sequence."""
        self._require_writable("advance sequence of", name)
        self._require_namespace(name)
        self._connection.execute(
            update(NAMESPACES)
            .where(NAMESPACES.c.name == name)
            .values(sequence=NAMESPACES.c.sequence + 1)
        )
        sequence = self._connection.execute(
            select(NAMESPACES.c.sequence).where(NAMESPACES.c.name == name)
        ).scalar_one()
        return int(sequence)

    def get(self, name: str, key: bytes) -> bytes | None:
        """Return the value stored under ``key`` or ``None``."""
        self._require_namespace(name)
        value = self._connection.execute(
            select(RECORDS.c.value).where(RECORDS.c.namespace == name, RECORDS.c.key == key)
        ).scalar_one_or_none()
        if value is None:
            return None
        return bytes(value)

    def put(self, name: str, key: bytes, value: bytes) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        self._require_writable("write to", name)
        self._require_namespace(name)
        statement = sqlite_insert(RECORDS).values(namespace=name, key=key, value=value)
        self._connection.execute(
            statement.on_conflict_do_update(
                index_elements=[RECORDS.c.namespace, RECORDS.c.key],
                set_={"value": statement.excluded.value},
            )
        )

    def delete(self, name: str, key: bytes) -> bool:
        """Remove ``key`` and report whether it existed."""
        self._require_writable("delete from", name)
        self._require_namespace(name)
        result = self._connection.execute(
            delete(RECORDS).where(RECORDS.c.namespace == name, RECORDS.c.key == key)
        )
        return result.rowcount > 0

    def iterate_ordered(self, name: str) -> Iterator[tuple[bytes, bytes]]:
        """Iterate entries in ascending byte order of their keys."""
        self._require_namespace(name)
        result = self._connection.execute(
            select(RECORDS.c.key, RECORDS.c.value)
            .where(RECORDS.c.namespace == name)
            .order_by(RECORDS.c.key)
        )
        return ((bytes(key), bytes(value)) for key, value in result)

    def describe_namespaces(self) -> list[NamespaceInfo]:
        """Summarize every namespace ordered by name."""
        record_count = func.count(RECORDS.c.key)
        rows = self._connection.execute(
            select(NAMESPACES.c.name, NAMESPACES.c.sequence, record_count)
            .select_from(
                NAMESPACES.outerjoin(RECORDS, RECORDS.c.namespace == NAMESPACES.c.name)
            )
            .group_by(NAMESPACES.c.name, NAMESPACES.c.sequence)
            .order_by(NAMESPACES.c.name)
        )
        return [
            NamespaceInfo(name=str(name), record_count=int(count), sequence=int(sequence))
            for name, sequence, count in rows
        ]

    def _namespace_exists(self, name: str) -> bool:
        if name in self._known_namespaces:
            return True
        row = self._connection.execute(
            select(NAMESPACES.c.name).where(NAMESPACES.c.name == name)
        ).first()
        if row is None:
            return False
        self._known_namespaces.add(name)
        return True

    def _require_namespace(self, name: str) -> None:
        if not self._namespace_exists(name):
            raise StoreError(
                f"Unknown namespace '{name}'. "
                "Register the record type before reading or writing it."
            )

    def _require_writable(self, action: str, name: str) -> None:
        if not self._writable:
            raise StoreError(
                f"Cannot {action} namespace '{name}' inside a read-only transaction. "
                "Use a write transaction for mutations."
            )


class SqliteStore:
    """Embedded store backed by a single SQLite file.

    This class owns the SQLAlchemy engine and hands out read and
    write transactions over it until ``close`` is called.
    """

    def __init__(self, config: RecordbaseConfig) -> None:
        """Open or create the store file from config.

        Args:
            config: Runtime configuration.

        Raises:
            StoreError: If the store file cannot be opened or initialized.
        """
        self._db_path = config.db_path
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._engine: Engine | None = _create_engine(
                self._db_path, config.busy_timeout_seconds, config.echo_sql
            )
            _METADATA.create_all(self._engine)
        except (OSError, SQLAlchemyError) as error:
            raise StoreError(
                f"Failed to open store at {self._db_path}: {error}. "
                "Check the data root path and its permissions."
            ) from error
        _LOGGER.info("store_opened", db_path=str(self._db_path))

    @property
    def db_path(self) -> Path:
        """Location of the store file."""
        return self._db_path

    @property
    def closed(self) -> bool:
        """Whether ``close`` has been called."""
        return self._engine is None

    @contextmanager
    def read_transaction(self) -> Iterator[SqliteTransaction]:
        """Open a snapshot-isolated read-only transaction.

        Raises:
            StoreError: If the store is closed or the engine fails.
        """
        with self._transaction(writable=False) as transaction:
            yield transaction

    @contextmanager
    def write_transaction(self) -> Iterator[SqliteTransaction]:
        """Open a serialized read-write transaction.

        The transaction commits when the block exits normally and rolls
        back when it raises.

        Raises:
            StoreError: If the store is closed or the engine fails.
        """
        with self._transaction(writable=True) as transaction:
            yield transaction

    def describe_namespaces(self) -> list[NamespaceInfo]:
        """Summarize all namespaces in the store."""
        with self.read_transaction() as transaction:
            return transaction.describe_namespaces()

    def backup(self, destination: Path) -> Path:
        """Write a consistent copy of the store file.

        Args:
            destination: Target file path.

        Returns:
            Resolved backup path.

        Raises:
            StoreError: If the backup cannot be written.
        """
        engine = self._require_engine()
        target_path = destination.expanduser().resolve()
        try:
            target_path.parent.mkdir(parents=True, exist_ok=True)
            with engine.connect() as connection:
                source = connection.connection.driver_connection
                target = sqlite3.connect(str(target_path))
                try:
                    source.backup(target)
                finally:
                    target.close()
        except (OSError, SQLAlchemyError, sqlite3.Error) as error:
            raise StoreError(
                f"Failed to back up store {self._db_path} to {target_path}: {error}. "
                "Check the destination path and available disk space."
            ) from error
        _LOGGER.info("store_backed_up", db_path=str(self._db_path), backup_path=str(target_path))
        return target_path

    def close(self) -> None:
        """Dispose of the engine; later calls raise ``StoreError``."""
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        _LOGGER.info("store_closed", db_path=str(self._db_path))

    @contextmanager
    def _transaction(self, writable: bool) -> Iterator[SqliteTransaction]:
        engine = self._require_engine()
        try:
            with engine.connect() as connection:
                connection.execution_options(**{_WRITE_OPTION: writable})
                with connection.begin():
                    yield SqliteTransaction(connection, writable)
        except SQLAlchemyError as error:
            raise StoreError(f"Store transaction failed on {self._db_path}: {error}") from error

    def _require_engine(self) -> Engine:
        if self._engine is None:
            raise StoreError(
                f"Store at {self._db_path} is closed. Open a new store handle to continue."
            )
        return self._engine


def _create_engine(db_path: Path, busy_timeout_seconds: float, echo_sql: bool) -> Engine:
    """Create an engine that leaves transaction control to ``_on_begin``.

    Args:
        db_path: Store file path.
        busy_timeout_seconds: How long a connection waits on a lock.
        echo_sql: Whether to echo SQL statements.

    Returns:
        Configured SQLAlchemy engine.
    """
    engine = create_engine(
        f"sqlite:///{db_path}",
        echo=echo_sql,
        connect_args={"timeout": busy_timeout_seconds, "check_same_thread": False},
    )
    event.listen(engine, "connect", _on_connect)
    event.listen(engine, "begin", _on_begin)
    return engine


def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
    # Disable pysqlite's implicit BEGIN so _on_begin decides the lock mode.
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA journal_mode=WAL")
    finally:
        cursor.close()


def _on_begin(connection: Connection) -> None:
    if connection.get_execution_options().get(_WRITE_OPTION):
        connection.exec_driver_sql("BEGIN IMMEDIATE")
    else:
        connection.exec_driver_sql("BEGIN")
