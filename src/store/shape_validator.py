"""Argument shape checks for table operations.

This module rejects call arguments that are not a single record of the
registered type, or identifiers that are not 64-bit integers, before
any storage call is made.
"""

from __future__ import annotations

from dataclasses import fields
from typing import Any

from core.constants import MAX_RECORD_ID, MIN_RECORD_ID
from core.errors import SchemaError, ShapeError
from store.record_schema import RecordSchema

_CONTAINER_TYPES = (list, tuple, set, frozenset)


def describe_shape(value: Any) -> str:
    """Render the wrapper chain of a value, e.g. ``list -> Team``.

    Args:
        value: Any call argument.

    Returns:
        Human-readable shape chain.
    """
    if isinstance(value, dict):
        return "dict"
    if isinstance(value, _CONTAINER_TYPES):
        items = list(value)
        inner = describe_shape(items[0]) if items else "?"
        return f"{type(value).__name__} -> {inner}"
    return type(value).__name__


def validate_schema(schema: RecordSchema[Any]) -> None:
    """Confirm a table's identifier locator names a real field.

    Args:
        schema: Table schema to check.

    Raises:
        SchemaError: If the schema has no usable identifier field.
    """
    field_names = {field_info.name for field_info in fields(schema.record_type)}
    if not schema.id_field or schema.id_field not in field_names:
        raise SchemaError(
            f"Record type {schema.record_type.__name__} has no field tagged as the id "
            f"(locator '{schema.id_field}'). Register the type through register_table."
        )


def validate_record(schema: RecordSchema[Any], record: Any) -> None:
    """Validate that ``record`` is one record of the registered type.

    Args:
        schema: Table schema.
        record: Call argument.

    Raises:
        ShapeError: If the argument shape, type, or identifier type is wrong.
        SchemaError: If the table schema itself is malformed.
    """
    expected_type = schema.record_type
    if type(record) is not expected_type:
        actual_shape = describe_shape(record)
        if isinstance(record, (dict,) + _CONTAINER_TYPES) or record is None:
            raise ShapeError(
                f"Input must be a single {expected_type.__name__}; got {actual_shape}."
            )
        raise ShapeError(
            f"Given record of type {actual_shape} does not match expected type "
            f"{expected_type.__name__} for table {schema.namespace}."
        )
    validate_schema(schema)
    record_id = schema.get_id(record)
    if isinstance(record_id, bool) or not isinstance(record_id, int):
        raise ShapeError(
            f"{expected_type.__name__}.{schema.id_field} must be an int; "
            f"got {type(record_id).__name__}."
        )
    validate_identifier(record_id)


def validate_identifier(record_id: Any) -> int:
    """Validate an identifier argument.

    Args:
        record_id: Call argument expected to be a 64-bit integer.

    Returns:
        The validated identifier.

    Raises:
        ShapeError: If the value is not an int in the signed 64-bit range.
    """
    if isinstance(record_id, bool) or not isinstance(record_id, int):
        raise ShapeError(f"Identifier must be an int; got {describe_shape(record_id)}.")
    if not MIN_RECORD_ID <= record_id <= MAX_RECORD_ID:
        raise ShapeError(f"Identifier {record_id} is outside the signed 64-bit range.")
    return record_id
