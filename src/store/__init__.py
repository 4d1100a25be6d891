"""Typed record persistence layer.

This module binds record dataclasses to namespaces of an embedded store.
It provides transactional CRUD and truncate operations per table.
"""
