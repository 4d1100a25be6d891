"""Unit tests for core config parsing."""

from __future__ import annotations

import pytest

from core.config import RecordbaseConfig
from core.errors import RecordbaseConfigError


def test_from_env_reads_data_root(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should resolve data root from environment."""
    monkeypatch.setenv("RECORDBASE_DATA_ROOT", "./.tmp-recordbase")

    config = RecordbaseConfig.from_env()

    assert config.data_root.name == ".tmp-recordbase"


def test_db_path_lives_under_data_root(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Store file path should be derived from the data root."""
    monkeypatch.setenv("RECORDBASE_DATA_ROOT", str(tmp_path))

    config = RecordbaseConfig.from_env()

    assert config.db_path == tmp_path.resolve() / "recordbase.db"


def test_from_env_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    """Unset variables should fall back to defaults."""
    monkeypatch.delenv("RECORDBASE_BUSY_TIMEOUT", raising=False)
    monkeypatch.delenv("RECORDBASE_ECHO_SQL", raising=False)

    config = RecordbaseConfig.from_env()

    assert config.busy_timeout_seconds == 5.0 and config.echo_sql is False


def test_from_env_parses_echo_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    """Echo flag should accept common truthy spellings."""
    monkeypatch.setenv("RECORDBASE_ECHO_SQL", "Yes")

    config = RecordbaseConfig.from_env()

    assert config.echo_sql is True


def test_from_env_raises_for_invalid_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for non-numeric busy timeout."""
    monkeypatch.setenv("RECORDBASE_BUSY_TIMEOUT", "soon")

    with pytest.raises(RecordbaseConfigError):
        RecordbaseConfig.from_env()


def test_from_env_raises_for_negative_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for a negative busy timeout."""
    monkeypatch.setenv("RECORDBASE_BUSY_TIMEOUT", "-1")

    with pytest.raises(RecordbaseConfigError):
        RecordbaseConfig.from_env()


def test_from_env_raises_for_invalid_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for an unrecognized boolean value."""
    monkeypatch.setenv("RECORDBASE_ECHO_SQL", "maybe")

    with pytest.raises(RecordbaseConfigError, match="RECORDBASE_ECHO_SQL"):
        RecordbaseConfig.from_env()
