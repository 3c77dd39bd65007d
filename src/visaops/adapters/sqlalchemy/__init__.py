"""SQLAlchemy adapter package for visaops."""

from __future__ import annotations

from .mappings import (
    countries_table,
    create_all_tables,
    document_checklist_table,
    metadata,
    visa_packages_table,
)
from .schema import SqlAlchemySchemaReconciler
from .store import (
    SqlAlchemyStoreClient,
    StartupError,
    build_engine,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemySchemaReconciler",
    "SqlAlchemyStoreClient",
    "StartupError",
    "build_engine",
    "configured_engine",
    "countries_table",
    "create_all_tables",
    "document_checklist_table",
    "is_started",
    "metadata",
    "shutdown",
    "startup",
    "visa_packages_table",
]
