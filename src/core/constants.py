"""Core constants used across Recordbase modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".recordbase")
DATABASE_FILE_NAME = "recordbase.db"
DEFAULT_BUSY_TIMEOUT_SECONDS = 5.0
ID_FIELD_METADATA_KEY = "db"
ID_FIELD_METADATA_VALUE = "id"
UNASSIGNED_ID = 0
MIN_RECORD_ID = -(2**63)
MAX_RECORD_ID = 2**63 - 1
NAMESPACES_TABLE_NAME = "namespaces"
RECORDS_TABLE_NAME = "records"
KEY_ENCODING = "ascii"
TRUE_ENV_VALUES = ("1", "true", "yes", "on")
FALSE_ENV_VALUES = ("0", "false", "no", "off", "")
