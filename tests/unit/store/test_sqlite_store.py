"""Unit tests for the SQLite store adapter."""

from __future__ import annotations

from dataclasses import replace

import pytest

from core.errors import StoreError
from store.sqlite_store import SqliteStore


@pytest.fixture
def store(config):
    handle = SqliteStore(config)
    with handle.write_transaction() as transaction:
        transaction.create_namespace_if_absent("Team")
    yield handle
    handle.close()


def test_open_creates_store_file(config) -> None:
    """Opening should create the data root and store file."""
    store = SqliteStore(config)

    assert config.db_path.exists()
    store.close()


def test_put_and_get_roundtrip(store) -> None:
    """Values written in one transaction should be readable in another."""
    with store.write_transaction() as transaction:
        transaction.put("Team", b"1", b"alpha")

    with store.read_transaction() as transaction:
        value = transaction.get("Team", b"1")

    assert value == b"alpha"


def test_get_missing_key_returns_none(store) -> None:
    """Missing keys should read as None."""
    with store.read_transaction() as transaction:
        assert transaction.get("Team", b"404") is None


def test_put_overwrites_existing_value(store) -> None:
    """A second put under the same key should replace the value."""
    with store.write_transaction() as transaction:
        transaction.put("Team", b"1", b"alpha")
        transaction.put("Team", b"1", b"beta")

    with store.read_transaction() as transaction:
        assert list(transaction.iterate_ordered("Team")) == [(b"1", b"beta")]


def test_iterate_ordered_uses_byte_order(store) -> None:
    """Iteration should follow byte order, not numeric order."""
    with store.write_transaction() as transaction:
        for key in (b"2", b"10", b"1"):
            transaction.put("Team", key, key)

    with store.read_transaction() as transaction:
        keys = [key for key, _ in transaction.iterate_ordered("Team")]

    assert keys == [b"1", b"10", b"2"]


def test_delete_reports_existence(store) -> None:
    """Delete should report whether the key existed."""
    with store.write_transaction() as transaction:
        transaction.put("Team", b"1", b"alpha")
        existed = transaction.delete("Team", b"1")
        missing = transaction.delete("Team", b"1")

    assert (existed, missing) == (True, False)


def test_next_sequence_is_monotonic(store) -> None:
    """Sequences should advance by one per call across transactions."""
    with store.write_transaction() as transaction:
        first = transaction.next_sequence("Team")
    with store.write_transaction() as transaction:
        second = transaction.next_sequence("Team")

    assert (first, second) == (1, 2)


def test_drop_and_recreate_resets_namespace(store) -> None:
    """Dropping a namespace should remove entries and restart its sequence."""
    with store.write_transaction() as transaction:
        transaction.next_sequence("Team")
        transaction.put("Team", b"1", b"alpha")
        transaction.drop_and_recreate_namespace("Team")

    with store.write_transaction() as transaction:
        assert transaction.get("Team", b"1") is None
        assert transaction.next_sequence("Team") == 1


def test_failed_write_transaction_rolls_back(store) -> None:
    """An exception inside a write transaction should discard its writes."""
    with pytest.raises(RuntimeError):
        with store.write_transaction() as transaction:
            transaction.put("Team", b"1", b"alpha")
            transaction.next_sequence("Team")
            raise RuntimeError("abort")

    assert store.describe_namespaces()[0].record_count == 0
    assert store.describe_namespaces()[0].sequence == 0


def test_unknown_namespace_raises(store) -> None:
    """Operations on a namespace that was never created should fail."""
    with pytest.raises(StoreError, match="Unknown namespace 'Match'"):
        with store.read_transaction() as transaction:
            transaction.get("Match", b"1")


def test_read_transaction_rejects_mutation(store) -> None:
    """Read-only transactions should refuse writes."""
    with pytest.raises(StoreError, match="read-only"):
        with store.read_transaction() as transaction:
            transaction.put("Team", b"1", b"alpha")


def test_create_namespace_if_absent_keeps_entries(store) -> None:
    """Creating an existing namespace should not touch its entries."""
    with store.write_transaction() as transaction:
        transaction.put("Team", b"1", b"alpha")
        transaction.create_namespace_if_absent("Team")

    with store.read_transaction() as transaction:
        assert transaction.get("Team", b"1") == b"alpha"


def test_describe_namespaces_counts_records(store) -> None:
    """Namespace summaries should report entry counts and sequences."""
    with store.write_transaction() as transaction:
        transaction.create_namespace_if_absent("Match")
        transaction.put("Team", b"1", b"alpha")
        transaction.next_sequence("Team")

    infos = store.describe_namespaces()

    assert [(info.name, info.record_count, info.sequence) for info in infos] == [
        ("Match", 0, 0),
        ("Team", 1, 1),
    ]


def test_read_snapshot_ignores_later_commits(store) -> None:
    """A read transaction should keep its snapshot while a writer commits."""
    with store.write_transaction() as transaction:
        transaction.put("Team", b"1", b"alpha")

    with store.read_transaction() as reader:
        assert reader.get("Team", b"1") == b"alpha"
        with store.write_transaction() as writer:
            writer.put("Team", b"1", b"beta")
        assert reader.get("Team", b"1") == b"alpha"


def test_backup_writes_readable_copy(store, config, tmp_path) -> None:
    """Backups should be openable stores with the same entries."""
    with store.write_transaction() as transaction:
        transaction.put("Team", b"1", b"alpha")

    backup_path = store.backup(tmp_path / "backups" / "recordbase.db")
    restored = SqliteStore(replace(config, data_root=backup_path.parent))

    with restored.read_transaction() as transaction:
        assert transaction.get("Team", b"1") == b"alpha"
    restored.close()


def test_closed_store_raises(config) -> None:
    """Transactions on a closed store should fail."""
    store = SqliteStore(config)
    store.close()

    with pytest.raises(StoreError, match="closed"):
        with store.read_transaction():
            pass


def test_create_namespace_if_absent_reports_bound_type(store) -> None:
    """An unbound namespace should be claimed once and keep its first binding."""
    with store.write_transaction() as transaction:
        claimed = transaction.create_namespace_if_absent("Team", "app.Team:id")
        kept = transaction.create_namespace_if_absent("Team", "app.Match:match_id")
        fresh = transaction.create_namespace_if_absent("Match", "app.Match:match_id")

    assert (claimed, kept, fresh) == ("app.Team:id", "app.Team:id", "app.Match:match_id")


def test_drop_and_recreate_keeps_bound_type(store) -> None:
    """Truncating a namespace should not release its record type."""
    with store.write_transaction() as transaction:
        transaction.create_namespace_if_absent("Team", "app.Team:id")
        transaction.drop_and_recreate_namespace("Team")

    with store.write_transaction() as transaction:
        assert transaction.create_namespace_if_absent("Team") == "app.Team:id"
