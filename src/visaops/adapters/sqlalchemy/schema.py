"""Schema reconciliation for the SQLAlchemy store.

Repair strategies run in order until one leaves both tables complete:
inspect the live schema, run Alembic migrations, then add whatever tables or
columns are still missing directly.
"""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from alembic.migration import MigrationContext
from alembic.operations import Operations
from alembic.util import CommandError
from sqlalchemy import Column, inspect
from sqlalchemy.exc import SQLAlchemyError

from visaops.domain.errors import StoreError
from visaops.domain.fallback import FallbackChain, Strategy, StrategyOutcome
from visaops.domain.ports.schema import SchemaFixResult, describe_missing
from visaops.domain.ports.store import REQUIRED_COLUMNS

from .mappings import TABLES, metadata
from .migrations import upgrade_head
from .store import serialized

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.engine import Connection, Engine

log = getLogger(__name__)

# Primary keys cannot be added to an existing table.
_NOT_ADDABLE = frozenset({"id"})


class SqlAlchemySchemaReconciler:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    async def fix_schema(self) -> SchemaFixResult:
        chain = FallbackChain(
            [
                Strategy("inspect", self._inspect),
                Strategy("migrate", self._migrate),
                Strategy("add_missing", self._add_missing),
            ],
            recoverable=(StoreError,),
        )
        result = await chain.run()
        if not result.success:
            log.error("Schema reconciliation failed: %s", result.message)
        return SchemaFixResult(
            success=result.success, message=result.message, details=result.attempts
        )

    def missing_columns(self) -> dict[str, tuple[str, ...]]:
        """Map each incomplete table to its missing columns (empty when the table is absent)."""

        try:
            with self.engine.connect() as connection:
                return self._missing(connection)
        except SQLAlchemyError as exc:
            raise StoreError(f"Cannot inspect schema: {exc}", operation="inspect") from exc

    async def _inspect(self) -> StrategyOutcome:
        return await self._in_thread(lambda: self._verify("Schema is up to date"))

    async def _migrate(self) -> StrategyOutcome:
        return await self._in_thread(self._migrate_now)

    async def _add_missing(self) -> StrategyOutcome:
        return await self._in_thread(self._add_missing_now)

    async def _in_thread(self, step: Callable[[], StrategyOutcome]) -> StrategyOutcome:
        return await asyncio.to_thread(self._guarded, step)

    def _guarded(self, step: Callable[[], StrategyOutcome]) -> StrategyOutcome:
        with serialized(self.engine):
            return step()

    def _migrate_now(self) -> StrategyOutcome:
        try:
            upgrade_head(engine=self.engine)
        except (SQLAlchemyError, CommandError) as exc:
            raise StoreError(f"Migration failed: {exc}", operation="migrate") from exc
        return self._verify("Schema migrated to the latest revision")

    def _add_missing_now(self) -> StrategyOutcome:
        try:
            with self.engine.begin() as connection:
                missing = self._missing(connection)
                operations = Operations(MigrationContext.configure(connection))
                for table_name, columns in missing.items():
                    table = TABLES[table_name]
                    if not columns:
                        log.info("Creating missing table %s", table_name)
                        metadata.create_all(connection, tables=[table])
                        continue
                    for name in columns:
                        if name in _NOT_ADDABLE:
                            return StrategyOutcome(
                                success=False,
                                message=f"Cannot add primary key column {table_name}.{name}",
                            )
                        source = table.c[name]
                        log.info("Adding missing column %s.%s", table_name, name)
                        operations.add_column(table_name, Column(name, source.type, nullable=True))
        except SQLAlchemyError as exc:
            raise StoreError(f"Adding missing columns failed: {exc}", operation="alter") from exc
        return self._verify("Added missing tables and columns")

    def _verify(self, success_message: str) -> StrategyOutcome:
        missing = self.missing_columns()
        if missing:
            return StrategyOutcome(success=False, message=describe_missing(missing))
        return StrategyOutcome(success=True, message=success_message)

    @staticmethod
    def _missing(connection: Connection) -> dict[str, tuple[str, ...]]:
        inspector = inspect(connection)
        existing_tables = set(inspector.get_table_names())
        missing: dict[str, tuple[str, ...]] = {}
        for table, required in REQUIRED_COLUMNS.items():
            if table not in existing_tables:
                missing[table] = ()
                continue
            present = {column["name"] for column in inspector.get_columns(table)}
            absent = tuple(column for column in required if column not in present)
            if absent:
                missing[table] = absent
        return missing
