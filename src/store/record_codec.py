"""Shared JSON serialization for dataclass records.

This module turns registered records into storage bytes and back.
Encoding is deterministic (sorted keys) so equal records store equal bytes.
Record types are checked once at registration so every field annotation
decodes back to the value that was encoded.
"""

from __future__ import annotations

from dataclasses import asdict, fields, is_dataclass
import json
import types
import typing
from typing import Any, TypeVar

from core.errors import RecordCodecError

RecordT = TypeVar("RecordT")

_SCALAR_TYPES = (str, int, float, bool)
_DICT_KEY_TYPES = (str, int)
_JSON_VALUE_TYPES = (list, dict, tuple)


def encode_record(record: object) -> bytes:
    """Serialize a dataclass record into UTF-8 JSON bytes.

    Args:
        record: Dataclass instance.

    Returns:
        Encoded payload.

    Raises:
        RecordCodecError: If a field value is not JSON serializable.
    """
    if not is_dataclass(record) or isinstance(record, type):
        raise RecordCodecError(
            f"Cannot encode {type(record).__name__}: expected a dataclass instance."
        )
    try:
        return json.dumps(asdict(record), sort_keys=True).encode("utf-8")
    except (TypeError, ValueError) as error:
        raise RecordCodecError(
            f"Failed to encode {type(record).__name__}: {error}. "
            "Record fields must hold JSON types or nested dataclasses."
        ) from error


def decode_record(payload: bytes, record_type: type[RecordT]) -> RecordT:
    """Deserialize stored bytes into a record of ``record_type``.

    Args:
        payload: Encoded payload.
        record_type: Dataclass type to rebuild.

    Returns:
        Decoded record.

    Raises:
        RecordCodecError: If payload is invalid or does not fit the type.
    """
    try:
        data = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as error:
        raise RecordCodecError(
            f"Failed to decode stored {record_type.__name__}: {error}. "
            "The stored value is corrupt."
        ) from error
    return _build_dataclass(record_type, data)


def check_record_type(record_type: type[Any]) -> None:
    """Confirm every field of a record type survives an encode/decode cycle.

    Supported annotations are JSON scalars, ``Any``, nested dataclasses,
    ``list[T]``, ``tuple[...]``, ``dict[str, T]``, ``dict[int, T]``,
    optionals of those, and unions of scalars. Bare ``list``, ``dict``
    and ``Any`` fields hold plain JSON values.

    Args:
        record_type: Dataclass type.

    Raises:
        RecordCodecError: If a field annotation cannot be round-tripped.
    """
    _check_dataclass(record_type, set())


def _check_dataclass(record_type: type[Any], seen: set[type[Any]]) -> None:
    if record_type in seen:
        return
    seen.add(record_type)
    type_hints = _resolve_type_hints(record_type)
    for field_info in fields(record_type):
        _check_annotation(type_hints.get(field_info.name), seen, record_type, field_info.name)


def _check_annotation(
    type_hint: Any,
    seen: set[type[Any]],
    owner: type[Any],
    field_name: str,
) -> None:
    """Reject one field annotation the codec cannot rebuild exactly.

    Args:
        type_hint: Resolved annotation, possibly nested inside a container.
        seen: Dataclasses already checked.
        owner: Dataclass declaring the field.
        field_name: Field name for error context.

    Raises:
        RecordCodecError: If the annotation is unsupported.
    """
    if type_hint in (None, Any, type(None)) or type_hint in _SCALAR_TYPES:
        return
    if type_hint in _JSON_VALUE_TYPES:
        return
    if isinstance(type_hint, type) and is_dataclass(type_hint):
        _check_dataclass(type_hint, seen)
        return
    origin = typing.get_origin(type_hint)
    arguments = typing.get_args(type_hint)
    if origin is typing.Literal:
        return
    if origin in (list, tuple):
        for argument in arguments:
            if argument is not Ellipsis:
                _check_annotation(argument, seen, owner, field_name)
        return
    if origin is dict:
        if len(arguments) != 2:
            return
        key_type, value_type = arguments
        if key_type not in _DICT_KEY_TYPES:
            raise RecordCodecError(
                f"Field '{field_name}' of {owner.__name__} has dict keys of type "
                f"{_type_name(key_type)}. Stored dict keys must be str or int."
            )
        _check_annotation(value_type, seen, owner, field_name)
        return
    if _is_union(origin):
        concrete = [argument for argument in arguments if argument is not type(None)]
        if len(concrete) == 1:
            _check_annotation(concrete[0], seen, owner, field_name)
            return
        if all(argument in _SCALAR_TYPES for argument in concrete):
            return
        raise RecordCodecError(
            f"Field '{field_name}' of {owner.__name__} is a union of "
            f"{', '.join(_type_name(argument) for argument in concrete)}. "
            "Only unions of str, int, float and bool can be decoded unambiguously."
        )
    raise RecordCodecError(
        f"Field '{field_name}' of {owner.__name__} has unsupported type "
        f"{_type_name(type_hint)}. Use JSON scalars, lists, tuples, str- or "
        "int-keyed dicts, or nested dataclasses."
    )


def _build_dataclass(record_type: type[RecordT], data: Any) -> RecordT:
    """Rebuild a dataclass and its nested dataclass fields.

    Args:
        record_type: Dataclass type to build.
        data: Decoded JSON object.

    Returns:
        Dataclass instance.

    Raises:
        RecordCodecError: If data is not an object matching the fields.
    """
    if not isinstance(data, dict):
        raise RecordCodecError(
            f"Failed to decode stored {record_type.__name__}: "
            f"expected a JSON object, got {type(data).__name__}."
        )
    record_fields = fields(record_type)  # type: ignore[arg-type]
    unknown_keys = set(data) - {field_info.name for field_info in record_fields}
    if unknown_keys:
        raise RecordCodecError(
            f"Failed to decode stored {record_type.__name__}: "
            f"unknown fields {', '.join(sorted(unknown_keys))}."
        )
    type_hints = _resolve_type_hints(record_type)
    values: dict[str, Any] = {}
    for field_info in record_fields:
        if not field_info.init or field_info.name not in data:
            continue
        field_type = type_hints.get(field_info.name)
        values[field_info.name] = _decode_value(field_type, data[field_info.name])
    try:
        return record_type(**values)
    except TypeError as error:
        raise RecordCodecError(
            f"Failed to decode stored {record_type.__name__}: {error}. "
            "The stored value does not match the registered fields."
        ) from error


def _decode_value(type_hint: Any, value: Any) -> Any:
    """Rebuild the Python value a JSON value was encoded from."""
    if value is None or type_hint in (None, Any):
        return value
    if isinstance(type_hint, type) and is_dataclass(type_hint):
        return _build_dataclass(type_hint, value)
    if type_hint is tuple:
        return tuple(_expect_json(value, list, type_hint))
    origin = typing.get_origin(type_hint)
    arguments = typing.get_args(type_hint)
    if origin is list and arguments:
        return [_decode_value(arguments[0], item) for item in _expect_json(value, list, type_hint)]
    if origin is tuple:
        return _decode_tuple(type_hint, arguments, _expect_json(value, list, type_hint))
    if origin is dict and len(arguments) == 2:
        key_type, value_type = arguments
        return {
            _decode_key(key_type, key): _decode_value(value_type, item)
            for key, item in _expect_json(value, dict, type_hint).items()
        }
    if _is_union(origin):
        concrete = [argument for argument in arguments if argument is not type(None)]
        if len(concrete) == 1:
            return _decode_value(concrete[0], value)
    return value


def _decode_tuple(type_hint: Any, arguments: tuple[Any, ...], items: list[Any]) -> tuple[Any, ...]:
    if not arguments:
        return tuple(items)
    if len(arguments) == 2 and arguments[1] is Ellipsis:
        return tuple(_decode_value(arguments[0], item) for item in items)
    if len(items) != len(arguments):
        raise RecordCodecError(
            f"Failed to decode stored {_type_name(type_hint)}: "
            f"expected {len(arguments)} items, got {len(items)}."
        )
    return tuple(_decode_value(argument, item) for argument, item in zip(arguments, items))


def _decode_key(key_type: Any, key: str) -> Any:
    if key_type is not int:
        return key
    try:
        return int(key)
    except ValueError as error:
        raise RecordCodecError(f"Failed to decode stored dict key '{key}' as int.") from error


def _expect_json(value: Any, json_type: type[Any], type_hint: Any) -> Any:
    if not isinstance(value, json_type):
        raise RecordCodecError(
            f"Failed to decode stored {_type_name(type_hint)}: "
            f"expected a JSON {'array' if json_type is list else 'object'}, "
            f"got {type(value).__name__}."
        )
    return value


def _resolve_type_hints(record_type: type[Any]) -> dict[str, Any]:
    try:
        return typing.get_type_hints(record_type)
    except (NameError, TypeError) as error:
        raise RecordCodecError(
            f"Failed to resolve field types of {record_type.__name__}: {error}. "
            "Define every annotated type at module level."
        ) from error


def _is_union(origin: Any) -> bool:
    return origin is typing.Union or origin is types.UnionType


def _type_name(type_hint: Any) -> str:
    if isinstance(type_hint, type) and not typing.get_args(type_hint):
        return type_hint.__name__
    return repr(type_hint)
