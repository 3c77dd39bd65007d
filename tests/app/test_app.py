from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tests.helpers.seeding import seed_country
from tests.helpers.stores import RecordingBroadcaster, StubReconciler
from visaops.adapters.sqlalchemy import configured_engine, shutdown
from visaops.app import build_country_management, build_from_environment
from visaops.config import StoreBackend, StoreConfig
from visaops.domain.facade import CountryManagement
from visaops.domain.repair import RepairOrchestrator

if TYPE_CHECKING:
    from collections.abc import Iterator

    from visaops.adapters.sqlalchemy import SqlAlchemyStoreClient


@pytest.fixture
def fresh_adapter() -> Iterator[None]:
    shutdown()
    try:
        yield
    finally:
        shutdown()


def test_build_country_management_shares_one_broadcaster(
    sql_store: SqlAlchemyStoreClient,
) -> None:
    broadcaster = RecordingBroadcaster()

    management = build_country_management(
        sql_store, StubReconciler(), cache=broadcaster, transactional_documents=True
    )

    assert management.cache is broadcaster
    assert isinstance(management.orchestrator, RepairOrchestrator)
    assert management.orchestrator.cache is broadcaster
    assert management.documents.transactional_replace


@pytest.mark.usefixtures("fresh_adapter")
async def test_build_from_environment_uses_sqlalchemy_backend(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite+pysqlite:///:memory:")
    config = StoreConfig(backend=StoreBackend.SQLALCHEMY, transactional_documents=False)

    management = build_from_environment(config=config)
    engine = configured_engine()
    assert engine is not None
    seed_country(engine, "c9", "Kenya")

    missing = await management.run_country_diagnostic("unknown")
    created = await management.run_country_diagnostic("c9")

    assert isinstance(management, CountryManagement)
    assert missing.message == "Country not found: unknown"
    assert created.success
    assert created.default_package_created
    assert len(await management.documents.fetch_documents("c9")) == 3
