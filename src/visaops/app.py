"""Application wiring entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from visaops.config import StoreBackend, configure_logging, get_store_config
from visaops.domain.cache import NullBroadcaster
from visaops.domain.diagnostics import DiagnosticEngine
from visaops.domain.documents import DocumentRepository
from visaops.domain.facade import CountryManagement
from visaops.domain.packages import PackageRepository
from visaops.domain.repair import RepairOrchestrator

if TYPE_CHECKING:
    from visaops.config import StoreConfig
    from visaops.domain.ports.cache import CacheInvalidationBroadcaster
    from visaops.domain.ports.schema import SchemaReconciler
    from visaops.domain.ports.store import StoreClient

log = getLogger(__name__)


def build_country_management(
    store: StoreClient,
    reconciler: SchemaReconciler,
    *,
    cache: CacheInvalidationBroadcaster | None = None,
    transactional_documents: bool = False,
) -> CountryManagement:
    """Assemble repositories, diagnostics and the repair orchestrator over one store."""

    broadcaster = cache or NullBroadcaster()
    packages = PackageRepository(store)
    documents = DocumentRepository(store, transactional_replace=transactional_documents)
    diagnostics = DiagnosticEngine(store, packages)
    orchestrator = RepairOrchestrator(
        reconciler=reconciler,
        packages=packages,
        documents=documents,
        diagnostics=diagnostics,
        cache=broadcaster,
    )
    return CountryManagement(
        packages=packages,
        documents=documents,
        diagnostics=diagnostics,
        orchestrator=orchestrator,
        cache=broadcaster,
    )


def build_from_environment(
    *,
    config: StoreConfig | None = None,
    cache: CacheInvalidationBroadcaster | None = None,
    log_level: int | str | None = None,
) -> CountryManagement:
    """Build a ``CountryManagement`` for the backend selected by ``VISAOPS_STORE_BACKEND``."""

    load_dotenv()
    configure_logging(level=log_level)
    store_config = config or get_store_config()
    log.info("Using %s store backend", store_config.backend)

    store: StoreClient
    reconciler: SchemaReconciler
    if store_config.backend is StoreBackend.SUPABASE:
        from visaops.adapters.supabase import (  # noqa: PLC0415
            SupabaseSchemaReconciler,
            SupabaseStoreClient,
        )

        supabase_store = SupabaseStoreClient()
        store, reconciler = supabase_store, SupabaseSchemaReconciler(supabase_store)
    else:
        from visaops.adapters.sqlalchemy import (  # noqa: PLC0415
            SqlAlchemySchemaReconciler,
            SqlAlchemyStoreClient,
            configured_engine,
            startup,
        )

        engine = configured_engine() or startup()
        store, reconciler = SqlAlchemyStoreClient(engine), SqlAlchemySchemaReconciler(engine)

    return build_country_management(
        store,
        reconciler,
        cache=cache,
        transactional_documents=store_config.transactional_documents,
    )
