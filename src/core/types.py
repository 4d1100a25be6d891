"""Shared typed models.

This module defines immutable data models exchanged between the store
layer, the database handle, and the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class NamespaceInfo:
    """Summary of one storage namespace.

    Attributes:
        name: Namespace name, usually the record type name.
        record_count: Number of entries currently stored.
        sequence: Last identifier handed out by the namespace sequence.
    """

    name: str
    record_count: int
    sequence: int
