"""Store adapter contract consumed by the table layer.

This module describes the transactional, ordered, byte-keyed store that
tables persist into. Concrete engines implement these protocols.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Iterator, Protocol


class StoreTransaction(Protocol):
    """Namespace operations scoped to one open transaction.

    Every call naming a namespace that does not exist raises
    ``StoreError``. Mutating calls inside a read transaction raise
    ``StoreError`` as well.

    Each namespace records the record type bound to it, so handles on
    the same store agree on what its values decode to.
    """

    @property
    def writable(self) -> bool:
        ...

    def create_namespace_if_absent(self, name: str, record_type: str | None = None) -> str | None:
        ...

    def drop_and_recreate_namespace(self, name: str) -> None:
        ...

    def next_sequence(self, name: str) -> int:
        ...

    def get(self, name: str, key: bytes) -> bytes | None:
        ...

    def put(self, name: str, key: bytes, value: bytes) -> None:
        ...

    def delete(self, name: str, key: bytes) -> bool:
        ...

    def iterate_ordered(self, name: str) -> Iterator[tuple[bytes, bytes]]:
        ...


class StoreAdapter(Protocol):
    """Embedded store handle with explicit transaction scoping.

    Read transactions see a consistent snapshot as of their start.
    Write transactions are serialized and commit all-or-nothing.
    """

    def read_transaction(self) -> AbstractContextManager[StoreTransaction]:
        ...

    def write_transaction(self) -> AbstractContextManager[StoreTransaction]:
        ...

    def close(self) -> None:
        ...
