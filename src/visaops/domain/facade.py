"""Caller-facing state for country configuration operations.

``CountryManagement`` keeps loading/error/result state per operation so a UI
or diagnostic tool can render progress without interpreting results itself.
"""

from __future__ import annotations

import asyncio
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import StoreError
from .results import CountrySnapshot

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from .diagnostics import DiagnosticEngine
    from .documents import DocumentRepository
    from .model import DocumentChecklistItem, VisaPackage
    from .normalization import DocumentInput, PackageInput
    from .packages import PackageRepository
    from .ports.cache import CacheInvalidationBroadcaster
    from .repair import RepairOrchestrator
    from .results import DiagnosticResult, OperationResult

log = getLogger(__name__)


class Operation(StrEnum):
    FETCH = "fetch"
    SAVE = "save"
    TOGGLE = "toggle"
    DIAGNOSTIC = "diagnostic"
    REFRESH = "refresh"


@dataclass(slots=True)
class OperationState:
    loading: bool = False
    error: str | None = None
    result: object | None = None


@dataclass(slots=True)
class CountryManagement:
    packages: PackageRepository
    documents: DocumentRepository
    diagnostics: DiagnosticEngine
    orchestrator: RepairOrchestrator
    cache: CacheInvalidationBroadcaster
    states: dict[Operation, OperationState] = field(
        default_factory=lambda: {operation: OperationState() for operation in Operation}
    )
    package: VisaPackage | None = None
    document_list: list[DocumentChecklistItem] = field(
        default_factory=list["DocumentChecklistItem"]
    )
    diagnostic_result: DiagnosticResult | None = None
    error: str | None = None

    @property
    def loading(self) -> bool:
        return self.states[Operation.FETCH].loading

    @property
    def saving(self) -> bool:
        return self.states[Operation.SAVE].loading

    @property
    def running_diagnostic(self) -> bool:
        return self.states[Operation.DIAGNOSTIC].loading

    def state(self, operation: Operation) -> OperationState:
        return self.states[operation]

    def set_error(self, error: str | None) -> None:
        self.error = error

    def invalidate(self, country_id: str) -> None:
        self.cache.invalidate(country_id)

    async def fetch_country_data(self, country_id: str) -> CountrySnapshot | None:
        """Read package and documents concurrently; ``None`` on failure or empty id."""

        if not country_id:
            return None
        with self._track(Operation.FETCH) as state:
            try:
                package, documents = await asyncio.gather(
                    self.packages.fetch_package(country_id),
                    self.documents.fetch_documents(country_id),
                )
            except StoreError as exc:
                log.error("Error fetching country data for %s: %s", country_id, exc)
                self._fail(state, str(exc))
                return None
            self.package = package
            self.document_list = documents
            snapshot = CountrySnapshot(package=package, documents=documents)
            state.result = snapshot
            return snapshot

    async def fetch_package(self, country_id: str) -> VisaPackage | None:
        if not country_id:
            return None
        with self._track(Operation.FETCH) as state:
            try:
                package = await self.packages.fetch_package(country_id)
            except StoreError as exc:
                self._fail(state, str(exc))
                return None
            self.package = package
            state.result = package
            return package

    async def save_package(self, package: PackageInput) -> OperationResult[VisaPackage]:
        with self._track(Operation.SAVE) as state:
            result = await self.packages.save_package(package)
            state.result = result
            if not result.success or result.data is None:
                self._fail(state, result.message)
                return result
            self.invalidate(result.data.country_id)
        refreshed = await self.fetch_package(result.data.country_id)
        if refreshed is not None:
            self.package = replace(refreshed, is_active=result.data.is_active)
        return result

    async def toggle_package_status(
        self,
        country_id: str,
        is_active: bool,
    ) -> OperationResult[VisaPackage]:
        with self._track(Operation.TOGGLE) as state:
            result = await self.packages.toggle_active(country_id, is_active)
            state.result = result
            if not result.success:
                self._fail(state, result.message)
                return result
            self.invalidate(country_id)
            self.package = result.data
        return result

    async def save_country_data(
        self,
        country_id: str,
        package: PackageInput,
        documents: Sequence[DocumentInput] | None = None,
    ) -> OperationResult[CountrySnapshot]:
        with self._track(Operation.SAVE) as state:
            result = await self.orchestrator.save_country_data(country_id, package, documents)
            self._apply(state, result)
            return result

    async def toggle_package_and_ensure_documents(
        self,
        country_id: str,
        is_active: bool,
    ) -> OperationResult[CountrySnapshot]:
        with self._track(Operation.TOGGLE) as state:
            result = await self.orchestrator.toggle_package_and_ensure_documents(
                country_id, is_active
            )
            self._apply(state, result)
            return result

    async def run_country_diagnostic(self, country_id: str) -> DiagnosticResult:
        """Diagnose including documents; seed default documents if anything was flagged."""

        with self._track(Operation.DIAGNOSTIC) as state:
            result = await self.diagnostics.run_diagnostic(country_id, include_documents=True)
            self.diagnostic_result = result
            state.result = result
            if not result.success:
                self._fail(state, result.message)

            if (not result.success or result.recommendations) and result.results.country_exists:
                ensured = await self.documents.ensure_default_documents(country_id)
                if not ensured.success:
                    log.warning("Document fix after diagnostic failed: %s", ensured.message)
            if result.default_package_created:
                self.invalidate(country_id)
            return result

    async def refresh_schema_and_data(self, country_id: str) -> DiagnosticResult:
        with self._track(Operation.REFRESH) as state:
            result = await self.orchestrator.refresh_schema_and_data(country_id)
            self.diagnostic_result = result
            state.result = result
            if not result.success:
                self._fail(state, result.message)
        await self.fetch_country_data(country_id)
        return result

    def _apply(self, state: OperationState, result: OperationResult[CountrySnapshot]) -> None:
        state.result = result
        if result.data is not None:
            self.package = result.data.package
            if result.data.documents or result.success:
                self.document_list = result.data.documents
        if not result.success:
            self._fail(state, result.message)

    def _fail(self, state: OperationState, message: str) -> None:
        state.error = message
        self.error = message

    @contextmanager
    def _track(self, operation: Operation) -> Iterator[OperationState]:
        state = self.states[operation]
        state.loading = True
        state.error = None
        self.error = None
        try:
            yield state
        finally:
            state.loading = False
