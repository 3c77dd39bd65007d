from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.engine import Engine  # noqa: TC002

from tests.helpers.seeding import seed_country
from tests.helpers.stores import FlakyStore, RecordingBroadcaster, StubReconciler
from visaops.adapters.sqlalchemy import SqlAlchemyStoreClient, build_engine
from visaops.adapters.sqlalchemy.migrations import upgrade_head
from visaops.app import build_country_management
from visaops.domain.diagnostics import DiagnosticEngine
from visaops.domain.documents import DocumentRepository
from visaops.domain.packages import PackageRepository
from visaops.domain.repair import RepairOrchestrator

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator

    from visaops.domain.facade import CountryManagement

COUNTRY_ID = "c1"
COUNTRY_NAME = "Japan"


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = build_engine("sqlite+pysqlite:///:memory:")
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def country(sqlite_engine: Engine) -> str:
    seed_country(sqlite_engine, COUNTRY_ID, COUNTRY_NAME)
    return COUNTRY_ID


@pytest.fixture
def sql_store(sqlite_engine: Engine) -> SqlAlchemyStoreClient:
    return SqlAlchemyStoreClient(sqlite_engine)


@pytest.fixture
def store(sql_store: SqlAlchemyStoreClient) -> FlakyStore:
    return FlakyStore(sql_store)


@pytest.fixture
def packages(store: FlakyStore) -> PackageRepository:
    return PackageRepository(store)


@pytest.fixture
def documents(store: FlakyStore) -> DocumentRepository:
    return DocumentRepository(store)


@pytest.fixture
def diagnostics(store: FlakyStore, packages: PackageRepository) -> DiagnosticEngine:
    return DiagnosticEngine(store, packages)


@pytest.fixture
def reconciler() -> StubReconciler:
    return StubReconciler()


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture
def orchestrator(
    reconciler: StubReconciler,
    packages: PackageRepository,
    documents: DocumentRepository,
    diagnostics: DiagnosticEngine,
    broadcaster: RecordingBroadcaster,
) -> RepairOrchestrator:
    return RepairOrchestrator(
        reconciler=reconciler,
        packages=packages,
        documents=documents,
        diagnostics=diagnostics,
        cache=broadcaster,
    )


@pytest.fixture
def management(
    store: FlakyStore,
    reconciler: StubReconciler,
    broadcaster: RecordingBroadcaster,
) -> CountryManagement:
    return build_country_management(store, reconciler, cache=broadcaster)
