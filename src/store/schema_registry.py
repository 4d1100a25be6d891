"""Record type registration.

This module validates a record dataclass once, derives its identifier
locator and namespace, and creates the namespace in the store. Malformed
record types fail here, before any namespace exists.
"""

from __future__ import annotations

from dataclasses import fields, is_dataclass
import typing
from typing import Any, TypeVar

from core.constants import ID_FIELD_METADATA_KEY, ID_FIELD_METADATA_VALUE
from core.errors import RecordCodecError, SchemaError
from core.logging_config import get_logger
from store.record_codec import check_record_type
from store.record_schema import RecordSchema
from store.store_adapter import StoreAdapter
from store.table import Table

_LOGGER = get_logger(__name__)

RecordT = TypeVar("RecordT")


def build_schema(
    record_type: type[RecordT],
    id_field_name: str | None = None,
    namespace: str | None = None,
) -> RecordSchema[RecordT]:
    """Derive the schema descriptor for a record dataclass.

    Args:
        record_type: Mutable dataclass type.
        id_field_name: Explicit identifier field; tagged field when omitted.
        namespace: Explicit namespace; the class name when omitted.

    Returns:
        Validated schema descriptor.

    Raises:
        SchemaError: If the type or its identifier field is unusable.
    """
    if not isinstance(record_type, type) or not is_dataclass(record_type):
        raise SchemaError(
            f"Record type must be a dataclass class; got {_describe_type(record_type)}."
        )
    if record_type.__dataclass_params__.frozen:  # type: ignore[attr-defined]
        raise SchemaError(
            f"Record type {record_type.__name__} is frozen. "
            "Identifiers are assigned in place, so records must be mutable."
        )
    resolved_namespace = namespace if namespace is not None else record_type.__name__
    if not resolved_namespace:
        raise SchemaError(f"Namespace for {record_type.__name__} must be a non-empty string.")
    resolved_id_field = id_field_name or _find_tagged_id_field(record_type)
    _validate_id_field(record_type, resolved_id_field)
    try:
        check_record_type(record_type)
    except RecordCodecError as error:
        raise SchemaError(
            f"Record type {record_type.__name__} cannot be stored: {error}"
        ) from error
    return RecordSchema(
        record_type=record_type,
        id_field=resolved_id_field,
        namespace=resolved_namespace,
    )


def register_table(
    store: StoreAdapter,
    record_type: type[RecordT],
    id_field_name: str | None = None,
    namespace: str | None = None,
) -> Table[RecordT]:
    """Bind a record type to a namespace and create it if missing.

    Registering the same type again reuses the existing namespace. The
    namespace remembers which record type it is bound to, so a different
    type cannot claim it from another handle on the same store.

    Args:
        store: Open store adapter.
        record_type: Mutable dataclass type.
        id_field_name: Explicit identifier field; tagged field when omitted.
        namespace: Explicit namespace; the class name when omitted.

    Returns:
        Table bound to the namespace.

    Raises:
        SchemaError: If the type or its identifier field is unusable, or the
            namespace is bound to a different record type.
        StoreError: If the namespace cannot be created.
    """
    schema = build_schema(record_type, id_field_name, namespace)
    with store.write_transaction() as transaction:
        bound_type = transaction.create_namespace_if_absent(schema.namespace, schema.type_key)
        if bound_type != schema.type_key:
            raise SchemaError(
                f"Namespace '{schema.namespace}' is already bound to {bound_type}. "
                f"Pass a distinct namespace for {schema.type_key}."
            )
    _LOGGER.info(
        "table_registered",
        table=schema.namespace,
        record_type=record_type.__name__,
        id_field=schema.id_field,
    )
    return Table(store, schema)


def _find_tagged_id_field(record_type: type[Any]) -> str:
    """Locate the single field tagged as the identifier.

    Args:
        record_type: Dataclass type.

    Returns:
        Identifier field name.

    Raises:
        SchemaError: If no field or more than one field is tagged.
    """
    tagged = [
        field_info.name
        for field_info in fields(record_type)
        if field_info.metadata.get(ID_FIELD_METADATA_KEY) == ID_FIELD_METADATA_VALUE
    ]
    if not tagged:
        raise SchemaError(
            f"Record type {record_type.__name__} has no field tagged as the id. "
            "Declare it with id_field() or pass id_field_name."
        )
    if len(tagged) > 1:
        raise SchemaError(
            f"Record type {record_type.__name__} has more than one field tagged as the id: "
            f"{', '.join(tagged)}."
        )
    return tagged[0]


def _validate_id_field(record_type: type[Any], field_name: str) -> None:
    """Check the identifier field exists and is annotated ``int``.

    Args:
        record_type: Dataclass type.
        field_name: Candidate identifier field.

    Raises:
        SchemaError: If the field is missing or not an int.
    """
    field_names = [field_info.name for field_info in fields(record_type)]
    if field_name not in field_names:
        raise SchemaError(
            f"Record type {record_type.__name__} has no field named '{field_name}' "
            "to use as the id."
        )
    try:
        type_hints = typing.get_type_hints(record_type)
    except (NameError, TypeError) as error:
        raise SchemaError(
            f"Failed to resolve field types of {record_type.__name__}: {error}."
        ) from error
    field_type = type_hints.get(field_name)
    if field_type is not int:
        raise SchemaError(
            f"Field '{field_name}' in record type {record_type.__name__} tagged as the id "
            f"must be an int; got {_describe_type(field_type)}."
        )


def _describe_type(value: Any) -> str:
    if isinstance(value, type):
        return value.__name__
    if value is None:
        return "None"
    return repr(value) if typing.get_origin(value) else type(value).__name__
