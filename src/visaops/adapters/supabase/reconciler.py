"""Schema reconciliation for a Supabase store through database functions.

PostgREST cannot alter tables itself, so repairs go through RPCs that must be
installed in the project: ``fix_document_checklist`` and
``refresh_document_checklist_schema`` for the packaged fix, ``execute_sql`` for
direct DDL.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from visaops.domain.errors import StoreError
from visaops.domain.fallback import FallbackChain, Strategy, StrategyOutcome
from visaops.domain.ports.schema import SchemaFixResult, describe_missing
from visaops.domain.ports.store import (
    DOCUMENTS_TABLE,
    PACKAGES_TABLE,
    REQUIRED_COLUMNS,
    UNDEFINED_TABLE,
)

if TYPE_CHECKING:
    from .client import SupabaseStoreClient

log = getLogger(__name__)

COLUMN_DDL: Final[dict[str, dict[str, str]]] = {
    PACKAGES_TABLE: {
        "id": "UUID PRIMARY KEY DEFAULT gen_random_uuid()",
        "country_id": "UUID REFERENCES countries(id)",
        "name": "TEXT",
        "government_fee": "NUMERIC DEFAULT 0",
        "service_fee": "NUMERIC DEFAULT 0",
        "processing_days": "INTEGER DEFAULT 15",
        "processing_time": "TEXT",
        "total_price": "NUMERIC DEFAULT 0",
        "created_at": "TIMESTAMPTZ DEFAULT now()",
    },
    DOCUMENTS_TABLE: {
        "id": "UUID PRIMARY KEY DEFAULT gen_random_uuid()",
        "country_id": "UUID REFERENCES countries(id)",
        "document_name": "TEXT NOT NULL",
        "document_description": "TEXT",
        "required": "BOOLEAN DEFAULT true",
        "created_at": "TIMESTAMPTZ DEFAULT now()",
    },
}


def repair_statements(missing: dict[str, tuple[str, ...]]) -> list[str]:
    """DDL that creates absent tables and adds absent columns, idempotently."""

    statements: list[str] = []
    for table, columns in missing.items():
        ddl = COLUMN_DDL[table]
        if not columns:
            body = ",\n  ".join(f"{name} {ddl[name]}" for name in REQUIRED_COLUMNS[table])
            statements.append(f"CREATE TABLE IF NOT EXISTS {table} (\n  {body}\n);")
            continue
        statements.extend(
            f"ALTER TABLE {table} ADD COLUMN IF NOT EXISTS {name} {ddl[name]};"
            for name in columns
        )
    return statements


class SupabaseSchemaReconciler:
    def __init__(self, store: SupabaseStoreClient) -> None:
        self.store = store

    async def fix_schema(self) -> SchemaFixResult:
        chain = FallbackChain(
            [
                Strategy("probe", self._probe),
                Strategy("schema_rpc", self._schema_rpc),
                Strategy("direct_sql", self._direct_sql),
            ],
            recoverable=(StoreError,),
        )
        result = await chain.run()
        return SchemaFixResult(
            success=result.success, message=result.message, details=result.attempts
        )

    async def missing_columns(self) -> dict[str, tuple[str, ...]]:
        """Map each incomplete table to its missing columns (empty when the table is absent)."""

        missing: dict[str, tuple[str, ...]] = {}
        for table, required in REQUIRED_COLUMNS.items():
            try:
                present = await self.store.table_columns(table)
            except StoreError as exc:
                if exc.code == UNDEFINED_TABLE:
                    missing[table] = ()
                    continue
                raise
            absent = tuple(column for column in required if column not in present)
            if absent:
                missing[table] = absent
        return missing

    async def _probe(self) -> StrategyOutcome:
        return await self._verify("Schema is up to date")

    async def _schema_rpc(self) -> StrategyOutcome:
        await self.store.rpc("fix_document_checklist")
        await self.store.rpc("refresh_document_checklist_schema")
        return await self._verify("Schema fixed by database functions")

    async def _direct_sql(self) -> StrategyOutcome:
        missing = await self.missing_columns()
        if not missing:
            return StrategyOutcome(success=True, message="Schema is up to date")
        for statement in repair_statements(missing):
            log.info("Executing schema repair: %s", statement.splitlines()[0])
            await self.store.rpc("execute_sql", {"sql": statement})
        return await self._verify("Schema fixed successfully via direct SQL")

    async def _verify(self, success_message: str) -> StrategyOutcome:
        missing = await self.missing_columns()
        if not missing:
            return StrategyOutcome(success=True, message=success_message)
        return StrategyOutcome(success=False, message=describe_missing(missing))
