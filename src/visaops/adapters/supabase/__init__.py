"""Public interface for the Supabase adapter."""

from __future__ import annotations

from .client import SupabaseStoreClient
from .reconciler import SupabaseSchemaReconciler, repair_statements
from .schema import CountryPayload, PostgrestError, TableColumnInfo

__all__ = [
    "CountryPayload",
    "PostgrestError",
    "SupabaseSchemaReconciler",
    "SupabaseStoreClient",
    "TableColumnInfo",
    "repair_statements",
]
