"""Recordbase exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each persistence failure mode raises a distinct, inspectable type.
"""

from __future__ import annotations


class RecordbaseError(Exception):
    """Base exception for all Recordbase failures."""


class RecordbaseConfigError(RecordbaseError):
    """Raised for invalid runtime configuration."""


class SchemaError(RecordbaseError):
    """Raised when a record type cannot be bound to a table."""


class ShapeError(RecordbaseError):
    """Raised when a call argument does not have the expected shape or type."""


class CreateOnNonZeroIdError(RecordbaseError):
    """Raised when creating a record that already carries an identifier."""


class UpdateOnZeroIdError(RecordbaseError):
    """Raised when updating a record that was never persisted."""


class NotFoundError(RecordbaseError):
    """Raised when an update or delete targets a missing record."""


class ConflictError(RecordbaseError):
    """Raised when a freshly sequenced key is already occupied.

    This signals an integrity violation in the namespace and should
    be alerted on rather than retried.
    """


class StoreError(RecordbaseError):
    """Raised for storage engine, namespace, and lifecycle failures."""


class RecordCodecError(RecordbaseError):
    """Raised when a record cannot be encoded or decoded."""
