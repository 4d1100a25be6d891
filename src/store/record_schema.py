"""Record schema descriptor.

This module defines the immutable binding between a record type, its
storage namespace, and the field that holds its identifier.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from core.constants import ID_FIELD_METADATA_KEY, ID_FIELD_METADATA_VALUE, UNASSIGNED_ID

RecordT = TypeVar("RecordT")


def id_field(default: int = UNASSIGNED_ID) -> Any:
    """Declare the identifier field of a record dataclass.

    Args:
        default: Initial identifier; ``0`` marks an unsaved record.

    Returns:
        A dataclass field tagged as the identifier.
    """
    return field(
        default=default,
        metadata={ID_FIELD_METADATA_KEY: ID_FIELD_METADATA_VALUE},
    )


@dataclass(frozen=True)
class RecordSchema(Generic[RecordT]):
    """Identifier locator for one registered record type.

    Attributes:
        record_type: Dataclass type stored in the namespace.
        id_field: Name of the integer identifier field.
        namespace: Storage namespace name.
    """

    record_type: type[RecordT]
    id_field: str
    namespace: str

    @property
    def type_key(self) -> str:
        """Qualified record type and id field bound to the namespace."""
        record_type = self.record_type
        return f"{record_type.__module__}.{record_type.__qualname__}:{self.id_field}"

    def get_id(self, record: RecordT) -> Any:
        """Read the identifier from a record."""
        return getattr(record, self.id_field)

    def set_id(self, record: RecordT, record_id: int) -> None:
        """Assign the identifier on a record in place."""
        setattr(record, self.id_field, record_id)
