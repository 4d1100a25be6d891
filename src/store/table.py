"""Typed CRUD operations for one registered record type.

This module composes the schema, shape checks, record codec, and store
transactions into the per-table persistence API. Every operation runs
inside exactly one transaction and never retries.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from core.constants import KEY_ENCODING, UNASSIGNED_ID
from core.errors import ConflictError, CreateOnNonZeroIdError, NotFoundError, UpdateOnZeroIdError
from core.logging_config import get_logger
from store.record_codec import decode_record, encode_record
from store.record_schema import RecordSchema
from store.shape_validator import validate_identifier, validate_record, validate_schema
from store.store_adapter import StoreAdapter

_LOGGER = get_logger(__name__)

RecordT = TypeVar("RecordT")


class Table(Generic[RecordT]):
    """Persistence operations for one record type and its namespace.

    Instances are created by ``register_table`` and hold no mutable
    state, so one table may be shared by many threads.
    """

    def __init__(self, store: StoreAdapter, schema: RecordSchema[RecordT]) -> None:
        self._store = store
        self._schema = schema

    @property
    def schema(self) -> RecordSchema[RecordT]:
        """Identifier locator and namespace binding."""
        return self._schema

    @property
    def name(self) -> str:
        """Namespace name backing the table."""
        return self._schema.namespace

    @property
    def record_type(self) -> type[RecordT]:
        """Record dataclass stored in the table."""
        return self._schema.record_type

    def get_by_id(self, record_id: int) -> RecordT | None:
        """Load one record by identifier.

        Args:
            record_id: Identifier to look up.

        Returns:
            The stored record, or ``None`` when no record has that id.

        Raises:
            ShapeError: If ``record_id`` is not a 64-bit int.
            StoreError: If the store fails.
        """
        validate_schema(self._schema)
        key = id_to_key(validate_identifier(record_id))
        with self._store.read_transaction() as transaction:
            payload = transaction.get(self.name, key)
            if payload is None:
                return None
            return decode_record(payload, self.record_type)

    def get_all(self) -> list[RecordT]:
        """Load every record in ascending byte order of their keys.

        Keys are decimal text, so id 10 sorts before id 2.

        Returns:
            All stored records.

        Raises:
            StoreError: If the store fails.
        """
        validate_schema(self._schema)
        with self._store.read_transaction() as transaction:
            return [
                decode_record(payload, self.record_type)
                for _, payload in transaction.iterate_ordered(self.name)
            ]

    def create(self, record: RecordT) -> RecordT:
        """Persist a new record and assign it the next identifier.

        The identifier is written onto ``record`` in place. If the write
        fails, the identifier is reset to zero.

        Args:
            record: Unsaved record whose identifier is zero.

        Returns:
            The same record carrying its new identifier.

        Raises:
            ShapeError: If ``record`` is not a single record of this table.
            CreateOnNonZeroIdError: If ``record`` already has an identifier.
            ConflictError: If the sequenced key is already occupied.
            StoreError: If the store fails.
        """
        validate_record(self._schema, record)
        record_id = self._schema.get_id(record)
        if record_id != UNASSIGNED_ID:
            raise CreateOnNonZeroIdError(
                f"Can't create {self.name} with non-zero ID: {record_id}. "
                "Use update for records that already exist."
            )
        assigned = False
        try:
            with self._store.write_transaction() as transaction:
                record_id = transaction.next_sequence(self.name)
                self._schema.set_id(record, record_id)
                key = id_to_key(record_id)
                existing = transaction.get(self.name, key)
                if existing is not None:
                    _LOGGER.error("record_conflict", table=self.name, record_id=record_id)
                    raise ConflictError(
                        f"{self.name} with ID {record_id} already exists: "
                        f"{existing.decode('utf-8', errors='replace')}"
                    )
                transaction.put(self.name, key, encode_record(record))
            assigned = True
        finally:
            if not assigned:
                self._schema.set_id(record, UNASSIGNED_ID)
        _LOGGER.debug("record_created", table=self.name, record_id=record_id)
        return record

    def update(self, record: RecordT) -> None:
        """Overwrite an existing record.

        Args:
            record: Previously created record.

        Raises:
            ShapeError: If ``record`` is not a single record of this table.
            UpdateOnZeroIdError: If ``record`` has no identifier.
            NotFoundError: If no record has that identifier.
            StoreError: If the store fails.
        """
        validate_record(self._schema, record)
        record_id = self._schema.get_id(record)
        if record_id == UNASSIGNED_ID:
            raise UpdateOnZeroIdError(
                f"Can't update {self.name} with zero ID. Use create for new records."
            )
        key = id_to_key(record_id)
        with self._store.write_transaction() as transaction:
            if transaction.get(self.name, key) is None:
                raise NotFoundError(f"Can't update non-existent {self.name} with ID {record_id}.")
            transaction.put(self.name, key, encode_record(record))
        _LOGGER.debug("record_updated", table=self.name, record_id=record_id)

    def delete(self, record_id: int) -> None:
        """Remove the record with the given identifier.

        Raises:
            ShapeError: If ``record_id`` is not a 64-bit int.
            NotFoundError: If no record has that identifier.
            StoreError: If the store fails.
        """
        validate_schema(self._schema)
        key = id_to_key(validate_identifier(record_id))
        with self._store.write_transaction() as transaction:
            if not transaction.delete(self.name, key):
                raise NotFoundError(f"Can't delete non-existent {self.name} with ID {record_id}.")
        _LOGGER.debug("record_deleted", table=self.name, record_id=record_id)

    def truncate(self) -> None:
        """Remove all records; the next create is assigned id 1.

        Raises:
            SchemaError: If the table schema is malformed.
            StoreError: If the store fails.
        """
        validate_schema(self._schema)
        with self._store.write_transaction() as transaction:
            transaction.drop_and_recreate_namespace(self.name)
        _LOGGER.info("table_truncated", table=self.name)


def id_to_key(record_id: int) -> bytes:
    """Serialize an identifier to its base-10 ASCII storage key."""
    return str(record_id).encode(KEY_ENCODING)
