"""Runtime configuration model for Recordbase.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    DATABASE_FILE_NAME,
    DEFAULT_BUSY_TIMEOUT_SECONDS,
    DEFAULT_DATA_ROOT,
    FALSE_ENV_VALUES,
    TRUE_ENV_VALUES,
)
from core.errors import RecordbaseConfigError


@dataclass(frozen=True)
class RecordbaseConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local directory holding the store file.
        busy_timeout_seconds: How long a writer waits for the write lock.
        echo_sql: Whether SQLAlchemy echoes emitted statements.
    """

    data_root: Path
    busy_timeout_seconds: float
    echo_sql: bool

    @property
    def db_path(self) -> Path:
        """Path of the embedded store file under ``data_root``."""
        return self.data_root / DATABASE_FILE_NAME

    @classmethod
    def from_env(cls) -> "RecordbaseConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            RecordbaseConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("RECORDBASE_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        busy_timeout_value = os.getenv(
            "RECORDBASE_BUSY_TIMEOUT", str(DEFAULT_BUSY_TIMEOUT_SECONDS)
        )
        echo_sql_value = os.getenv("RECORDBASE_ECHO_SQL", "false")
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            busy_timeout_seconds=_parse_busy_timeout(busy_timeout_value),
            echo_sql=_parse_flag("RECORDBASE_ECHO_SQL", echo_sql_value),
        )


def _parse_busy_timeout(raw_value: str) -> float:
    """Parse the busy timeout environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Parsed non-negative timeout in seconds.

    Raises:
        RecordbaseConfigError: If value is not a non-negative number.
    """
    try:
        timeout = float(raw_value)
    except ValueError as error:
        raise RecordbaseConfigError(
            "Invalid RECORDBASE_BUSY_TIMEOUT value: "
            f"expected number of seconds, got '{raw_value}'. "
            "Set RECORDBASE_BUSY_TIMEOUT to a numeric value."
        ) from error
    if timeout < 0:
        raise RecordbaseConfigError(
            "Invalid RECORDBASE_BUSY_TIMEOUT value: "
            f"expected a non-negative number, got '{raw_value}'."
        )
    return timeout


def _parse_flag(variable_name: str, raw_value: str) -> bool:
    """Parse a boolean environment flag.

    Args:
        variable_name: Environment variable name for error context.
        raw_value: Raw string from environment.

    Returns:
        Parsed boolean.

    Raises:
        RecordbaseConfigError: If value is not a recognized boolean.
    """
    normalized = raw_value.strip().lower()
    if normalized in TRUE_ENV_VALUES:
        return True
    if normalized in FALSE_ENV_VALUES:
        return False
    raise RecordbaseConfigError(
        f"Invalid {variable_name} value: expected one of "
        f"{', '.join(TRUE_ENV_VALUES + FALSE_ENV_VALUES[:-1])}, got '{raw_value}'."
    )
