from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from sqlalchemy import event, inspect, text

from visaops.adapters.sqlalchemy import (
    SqlAlchemySchemaReconciler,
    build_engine,
    create_all_tables,
)
from visaops.domain.ports.schema import SchemaReconciler

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


def _columns(engine: Engine, table: str) -> set[str]:
    return {column["name"] for column in inspect(engine).get_columns(table)}


async def test_up_to_date_schema_passes_inspection(sqlite_engine: Engine) -> None:
    reconciler = SqlAlchemySchemaReconciler(sqlite_engine)

    result = await reconciler.fix_schema()

    assert isinstance(reconciler, SchemaReconciler)
    assert result.success
    assert result.message == "Schema is up to date"
    assert result.details == ("inspect: Schema is up to date",)


async def test_fresh_database_is_migrated() -> None:
    engine = build_engine("sqlite+pysqlite:///:memory:")
    try:
        result = await SqlAlchemySchemaReconciler(engine).fix_schema()

        assert result.success
        assert result.message == "Schema migrated to the latest revision"
        assert "alembic_version" in inspect(engine).get_table_names()
    finally:
        engine.dispose()


async def test_dropped_column_is_added_back(sqlite_engine: Engine) -> None:
    with sqlite_engine.begin() as connection:
        connection.execute(text("ALTER TABLE visa_packages DROP COLUMN total_price"))

    result = await SqlAlchemySchemaReconciler(sqlite_engine).fix_schema()

    assert result.success
    assert result.message == "Added missing tables and columns"
    assert [detail.split(":")[0] for detail in result.details] == [
        "inspect",
        "migrate",
        "add_missing",
    ]
    assert "total_price" in _columns(sqlite_engine, "visa_packages")


async def test_dropped_table_is_recreated(sqlite_engine: Engine) -> None:
    with sqlite_engine.begin() as connection:
        connection.execute(text("DROP TABLE document_checklist"))

    result = await SqlAlchemySchemaReconciler(sqlite_engine).fix_schema()

    assert result.success
    assert "document_checklist" in inspect(sqlite_engine).get_table_names()


async def test_unmigrated_tables_fall_back_to_direct_repair() -> None:
    engine = build_engine("sqlite+pysqlite:///:memory:")
    try:
        create_all_tables(engine)
        with engine.begin() as connection:
            connection.execute(text("ALTER TABLE document_checklist DROP COLUMN required"))

        result = await SqlAlchemySchemaReconciler(engine).fix_schema()

        assert result.success
        assert result.details[1].startswith("migrate: Migration failed")
        assert "required" in _columns(engine, "document_checklist")
    finally:
        engine.dispose()


async def test_reports_failure_when_nothing_can_fix_it(sqlite_engine: Engine) -> None:
    with sqlite_engine.begin() as connection:
        connection.execute(text("DROP TABLE document_checklist"))
        connection.execute(
            text("CREATE TABLE document_checklist (country_id VARCHAR(64), document_name TEXT)")
        )

    result = await SqlAlchemySchemaReconciler(sqlite_engine).fix_schema()

    assert not result.success
    assert result.message.startswith("All strategies failed:")
    assert "Cannot add primary key column document_checklist.id" in result.message


async def test_repair_runs_off_the_event_loop_thread(sqlite_engine: Engine) -> None:
    with sqlite_engine.begin() as connection:
        connection.execute(text("ALTER TABLE visa_packages DROP COLUMN total_price"))
    threads: list[int] = []

    def record(*_: object) -> None:
        threads.append(threading.get_ident())

    event.listen(sqlite_engine, "before_cursor_execute", record)
    try:
        result = await SqlAlchemySchemaReconciler(sqlite_engine).fix_schema()
    finally:
        event.remove(sqlite_engine, "before_cursor_execute", record)

    assert result.success
    assert threads
    assert threading.get_ident() not in threads
