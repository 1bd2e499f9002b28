from __future__ import annotations

from .errors import (
    DocumentStoreError,
    DuplicateCollectionError,
    InvalidArgumentError,
    InvalidDocumentError,
    PersistenceError,
    UnknownCollectionError,
)
from .matcher import matches
from .query import Query
from .references import make_reference, parse_reference
from .settings import Settings, get_settings
from .store import Store

__all__ = [
    "Store",
    "Query",
    "Settings",
    "get_settings",
    "matches",
    "make_reference",
    "parse_reference",
    "DocumentStoreError",
    "InvalidArgumentError",
    "DuplicateCollectionError",
    "UnknownCollectionError",
    "InvalidDocumentError",
    "PersistenceError",
]
