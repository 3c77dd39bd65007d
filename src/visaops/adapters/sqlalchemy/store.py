"""SQLAlchemy-backed implementation of the store contract.

Sessions are synchronous. Each async method hands one short transaction to a
worker thread with ``asyncio.to_thread`` so the event loop keeps running while
the database works.
"""

from __future__ import annotations

import asyncio
import threading
from contextlib import contextmanager, nullcontext
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, delete, inspect, make_url, select, update
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from visaops.config import DatabaseConfig, get_database_config
from visaops.domain.errors import StoreError
from visaops.domain.ports.store import UNDEFINED_TABLE

from .mappings import countries_table, document_checklist_table, visa_packages_table
from .migrations import upgrade_head

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence
    from contextlib import AbstractContextManager

    from sqlalchemy.engine import Engine, RowMapping

    from visaops.domain.ports.store import Row

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the SQLAlchemy store is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call visaops.adapters.sqlalchemy."
                "store.startup() before creating a store client."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def build_engine(uri: str, *, echo: bool = False) -> Engine:
    """Create an engine whose connections may be used from worker threads.

    An in-memory SQLite database lives inside a single connection, so that
    connection is shared by every thread instead of one per thread.
    """

    url = make_url(uri)
    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        return create_engine(
            url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_engine(url, echo=echo)


# Guards the single connection behind every StaticPool engine.
_SHARED_CONNECTION = threading.Lock()


def serialized(engine: Engine | None) -> AbstractContextManager[object]:
    """Return a guard that keeps worker threads from sharing one connection at once."""

    if engine is not None and isinstance(engine.pool, StaticPool):
        return _SHARED_CONNECTION
    return nullcontext()




def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> Engine:
    """Initialise the engine and bring the schema to the latest revision."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    if engine is None:
        database = DatabaseConfig(uri=database_uri) if database_uri else get_database_config()
        engine = build_engine(database.uri, echo=database.echo)
    upgrade_head(engine=engine)
    _STATE.engine = engine
    return engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


def _as_row(mapping: RowMapping) -> dict[str, object]:
    row = dict(mapping)
    if row.get("id") is not None:
        row["id"] = str(row["id"])
    return row


def _package_key(package_id: str) -> int:
    try:
        return int(package_id)
    except (TypeError, ValueError) as exc:
        raise StoreError(
            f"Invalid visa package id: {package_id!r}", operation="update_package"
        ) from exc


class SqlAlchemyStoreClient:
    """Store client over the ``countries``, ``visa_packages`` and ``document_checklist`` tables.

    Packages are returned newest first and documents in creation order, with
    the autoincrement id breaking ties between equal timestamps. Every
    ``SQLAlchemyError`` is reported as ``StoreError``.
    """

    def __init__(self, engine: Engine | None = None) -> None:
        if engine is None:
            self.session_factory = _STATE.session_factory
            engine = _STATE.engine
        else:
            self.session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        self.engine = engine

    async def select_packages(self, country_id: str) -> list[Row]:
        table = visa_packages_table
        statement = (
            select(table)
            .where(table.c.country_id == country_id)
            .order_by(table.c.created_at.desc(), table.c.id.desc())
        )

        def work(session: Session) -> list[Row]:
            return [_as_row(row) for row in session.execute(statement).mappings()]

        return await self._run("select_packages", work)

    async def insert_package(self, values: Row) -> Row:
        table = visa_packages_table

        def work(session: Session) -> Row:
            result = session.execute(table.insert().values(**values))
            (package_id,) = result.inserted_primary_key or (None,)
            row = session.execute(select(table).where(table.c.id == package_id)).mappings().one()
            log.debug("Inserted visa package %s for %s", package_id, values.get("country_id"))
            return _as_row(row)

        return await self._run("insert_package", work)

    async def update_package_by_id(self, package_id: str, values: Row) -> Row:
        table = visa_packages_table
        key = _package_key(package_id)

        def work(session: Session) -> Row:
            result = session.execute(update(table).where(table.c.id == key).values(**values))
            if result.rowcount == 0:
                raise StoreError(
                    f"No visa package with id {package_id}", operation="update_package"
                )
            row = session.execute(select(table).where(table.c.id == key)).mappings().one()
            return _as_row(row)

        return await self._run("update_package", work)

    async def update_package_by_country(self, country_id: str, values: Row) -> Row:
        table = visa_packages_table

        def work(session: Session) -> Row:
            session.execute(update(table).where(table.c.country_id == country_id).values(**values))
            row = (
                session.execute(
                    select(table)
                    .where(table.c.country_id == country_id)
                    .order_by(table.c.created_at.desc(), table.c.id.desc())
                    .limit(1)
                )
                .mappings()
                .first()
            )
            if row is None:
                raise StoreError(
                    f"No visa package for country {country_id}", operation="update_package"
                )
            return _as_row(row)

        return await self._run("update_package", work)

    async def select_documents(self, country_id: str) -> list[Row]:
        return await self._run(
            "select_documents", lambda session: self._documents(session, country_id)
        )

    async def delete_documents(self, country_id: str) -> int:
        table = document_checklist_table

        def work(session: Session) -> int:
            result = session.execute(delete(table).where(table.c.country_id == country_id))
            log.debug("Deleted %s documents for %s", result.rowcount, country_id)
            return result.rowcount

        return await self._run("delete_documents", work)

    async def insert_documents(self, rows: Sequence[Row]) -> list[Row]:
        return await self._run(
            "insert_documents", lambda session: self._insert_documents(session, rows)
        )

    async def replace_documents(self, country_id: str, rows: Sequence[Row]) -> list[Row]:
        """Delete and insert the checklist inside one transaction."""

        table = document_checklist_table

        def work(session: Session) -> list[Row]:
            session.execute(delete(table).where(table.c.country_id == country_id))
            return self._insert_documents(session, rows)

        return await self._run("replace_documents", work)

    async def fetch_country(self, country_id: str) -> Row | None:
        table = countries_table

        def work(session: Session) -> Row | None:
            row = session.execute(select(table).where(table.c.id == country_id)).mappings().first()
            return None if row is None else dict(row)

        return await self._run("fetch_country", work)

    async def table_columns(self, table: str) -> frozenset[str]:
        def work(session: Session) -> frozenset[str]:
            try:
                columns = inspect(session.connection()).get_columns(table)
            except NoSuchTableError as exc:
                raise StoreError(
                    f"Table {table} does not exist",
                    operation="table_columns",
                    code=UNDEFINED_TABLE,
                ) from exc
            return frozenset(str(column["name"]) for column in columns)

        return await self._run("table_columns", work)

    @staticmethod
    def _documents(session: Session, country_id: str) -> list[Row]:
        table = document_checklist_table
        statement = (
            select(table)
            .where(table.c.country_id == country_id)
            .order_by(table.c.created_at.asc(), table.c.id.asc())
        )
        return [_as_row(row) for row in session.execute(statement).mappings()]

    @staticmethod
    def _insert_documents(session: Session, rows: Sequence[Row]) -> list[Row]:
        table = document_checklist_table
        ids: list[object] = []
        for values in rows:
            result = session.execute(table.insert().values(**values))
            ids.extend(result.inserted_primary_key or ())
        if not ids:
            return []
        statement = select(table).where(table.c.id.in_(ids)).order_by(table.c.id.asc())
        return [_as_row(row) for row in session.execute(statement).mappings()]

    async def _run[T](self, operation: str, work: Callable[[Session], T]) -> T:
        return await asyncio.to_thread(self._transaction, operation, work)

    def _transaction[T](self, operation: str, work: Callable[[Session], T]) -> T:
        with serialized(self.engine), self._session(operation) as session:
            return work(session)

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        try:
            with self.session_factory.begin() as session:
                yield session
        except SQLAlchemyError as exc:
            log.error("Store operation %s failed: %s", operation, exc)
            raise StoreError(str(exc), operation=operation) from exc
