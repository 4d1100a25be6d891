"""Public API surface for Recordbase.

This module provides a stable import path for applications.
It re-exports the database handle, table API, and error types.
"""

from __future__ import annotations

from core.config import RecordbaseConfig
from core.errors import (
    ConflictError,
    CreateOnNonZeroIdError,
    NotFoundError,
    RecordbaseConfigError,
    RecordbaseError,
    RecordCodecError,
    SchemaError,
    ShapeError,
    StoreError,
    UpdateOnZeroIdError,
)
from core.types import NamespaceInfo
from store.database import Database
from store.record_schema import RecordSchema, id_field
from store.schema_registry import build_schema, register_table
from store.sqlite_store import SqliteStore
from store.table import Table

__all__ = [
    "ConflictError",
    "CreateOnNonZeroIdError",
    "Database",
    "NamespaceInfo",
    "NotFoundError",
    "RecordCodecError",
    "RecordSchema",
    "RecordbaseConfig",
    "RecordbaseConfigError",
    "RecordbaseError",
    "SchemaError",
    "ShapeError",
    "SqliteStore",
    "StoreError",
    "Table",
    "UpdateOnZeroIdError",
    "build_schema",
    "id_field",
    "register_table",
]
