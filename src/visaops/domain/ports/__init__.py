"""Domain port definitions for adapters."""

from __future__ import annotations

from .cache import CacheInvalidationBroadcaster, QueryCache, QueryKey
from .schema import SchemaFixResult, SchemaReconciler, describe_missing
from .store import (
    COUNTRIES_TABLE,
    DOCUMENT_COLUMNS,
    DOCUMENTS_TABLE,
    PACKAGE_COLUMNS,
    PACKAGES_TABLE,
    REQUIRED_COLUMNS,
    UNDEFINED_TABLE,
    Row,
    StoreClient,
    TransactionalDocumentStore,
)

__all__ = [
    "COUNTRIES_TABLE",
    "DOCUMENTS_TABLE",
    "DOCUMENT_COLUMNS",
    "PACKAGES_TABLE",
    "PACKAGE_COLUMNS",
    "REQUIRED_COLUMNS",
    "UNDEFINED_TABLE",
    "CacheInvalidationBroadcaster",
    "QueryCache",
    "QueryKey",
    "Row",
    "SchemaFixResult",
    "SchemaReconciler",
    "StoreClient",
    "TransactionalDocumentStore",
    "describe_missing",
]
