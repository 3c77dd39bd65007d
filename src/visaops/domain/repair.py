"""Repair orchestrator: moves a country from an inconsistent to a consistent state.

Every mutating path is gated on the schema reconciler. None of them is
transactional: schema fixes applied by the gate stay applied even when a later
step fails.
"""

from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import (
    PartialFailure,
    SchemaGateFailure,
    StoreError,
    ValidationError,
    VisaOpsError,
)
from .normalization import bind_country
from .results import CountrySnapshot, DiagnosticResult, OperationResult

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .diagnostics import DiagnosticEngine
    from .documents import DocumentRepository
    from .model import VisaPackage
    from .normalization import DocumentInput, PackageInput
    from .packages import PackageRepository
    from .ports.cache import CacheInvalidationBroadcaster
    from .ports.schema import SchemaReconciler

log = getLogger(__name__)

REPAIR_TOOL_HINT = (
    "Run the database repair tool to fix the schema before retrying; "
    "no package or document changes were made."
)


class RepairOrchestrator:
    def __init__(
        self,
        *,
        reconciler: SchemaReconciler,
        packages: PackageRepository,
        documents: DocumentRepository,
        diagnostics: DiagnosticEngine,
        cache: CacheInvalidationBroadcaster,
    ) -> None:
        self.reconciler = reconciler
        self.packages = packages
        self.documents = documents
        self.diagnostics = diagnostics
        self.cache = cache

    async def refresh_schema_and_data(self, country_id: str) -> DiagnosticResult:
        """Reconcile the schema, then re-diagnose the country."""

        fix = await self.reconciler.fix_schema()
        if not fix.success:
            log.error("Schema reconciliation failed: %s", fix.message)
            return DiagnosticResult(
                success=False,
                message=fix.message,
                error=SchemaGateFailure(fix.message),
                schema_fixed=False,
            )

        result = await self.diagnostics.run_diagnostic(country_id, include_documents=True)
        if result.default_package_created:
            self.cache.invalidate(country_id)
        return replace(result, schema_fixed=True)

    async def toggle_package_and_ensure_documents(
        self,
        country_id: str,
        is_active: bool,
    ) -> OperationResult[CountrySnapshot]:
        """Toggle the package status and, when activating, seed default documents."""

        gate = await self._schema_gate()
        if gate is not None:
            return gate

        toggled = await self.packages.toggle_active(country_id, is_active)
        if not toggled.success:
            return OperationResult(success=False, message=toggled.message, error=toggled.error)

        if is_active:
            ensured = await self.documents.ensure_default_documents(country_id)
            if not ensured.success:
                log.warning(
                    "Could not ensure default documents for %s: %s", country_id, ensured.message
                )

        self.cache.invalidate(country_id)
        return await self._refetch(country_id, toggled.message, fallback=toggled.data)

    async def save_country_data(
        self,
        country_id: str,
        package: PackageInput,
        documents: Sequence[DocumentInput] | None = None,
    ) -> OperationResult[CountrySnapshot]:
        """Save the package and, if given, replace the document checklist.

        The package is bound to ``country_id``: a payload without a country id
        takes it, a payload naming another country is rejected. When a step
        fails after another one wrote to the store the result carries a
        ``PartialFailure`` and the cache is still invalidated; when nothing
        was written the first step's own error is returned.
        """

        try:
            package = bind_country(country_id, package)
        except ValidationError as exc:
            return OperationResult.failed(exc)

        gate = await self._schema_gate()
        if gate is not None:
            return gate

        written: list[str] = []
        failures: list[str] = []
        errors: list[VisaOpsError] = []

        package_result = await self.packages.save_package(package)
        if package_result.success:
            written.append(package_result.message)
        else:
            failures.append(package_result.message)
            if package_result.error is not None:
                errors.append(package_result.error)

        documents_touched = False
        if documents:
            document_result = await self.documents.save_documents(country_id, documents)
            if document_result.success:
                written.append(document_result.message)
            else:
                failures.append(document_result.message)
                if document_result.error is not None:
                    errors.append(document_result.error)
                # Delete succeeded, insert failed.
                documents_touched = isinstance(document_result.error, PartialFailure)

        if failures:
            return self._failed_save(
                country_id,
                written=written,
                failures=failures,
                errors=errors,
                store_changed=bool(written) or documents_touched,
                package=package_result.data,
            )

        self.cache.invalidate(country_id)
        return await self._refetch(
            country_id, "Country data saved successfully", fallback=package_result.data
        )

    def _failed_save(
        self,
        country_id: str,
        *,
        written: list[str],
        failures: list[str],
        errors: list[VisaOpsError],
        store_changed: bool,
        package: VisaPackage | None,
    ) -> OperationResult[CountrySnapshot]:
        steps = [*written, *failures]
        error: VisaOpsError
        if store_changed:
            error = PartialFailure(steps, errors=errors)
            self.cache.invalidate(country_id)
        else:
            error = errors[0] if errors else PartialFailure(failures)
        log.error("Saving country data for %s failed: %s", country_id, "; ".join(steps))
        return OperationResult(
            success=False,
            message="; ".join(steps),
            data=CountrySnapshot(package=package) if package is not None else None,
            error=error,
        )

    async def _schema_gate(self) -> OperationResult[CountrySnapshot] | None:
        fix = await self.reconciler.fix_schema()
        if fix.success:
            return None
        message = f"Schema check failed: {fix.message}. {REPAIR_TOOL_HINT}"
        log.error(message)
        return OperationResult.failed(SchemaGateFailure(message))

    async def _refetch(
        self,
        country_id: str,
        message: str,
        *,
        fallback: VisaPackage | None,
    ) -> OperationResult[CountrySnapshot]:
        try:
            package = await self.packages.fetch_package(country_id)
        except StoreError as exc:
            log.warning("Refreshing package state for %s failed: %s", country_id, exc)
            failure = PartialFailure(
                [message, f"reading back the package failed: {exc}"], errors=[exc]
            )
            return OperationResult(
                success=False,
                message=failure.message,
                data=CountrySnapshot(package=fallback),
                error=failure,
            )

        if package is not None and fallback is not None:
            package = replace(package, is_active=fallback.is_active)
        documents = await self.documents.fetch_documents(country_id)
        return OperationResult.ok(message, CountrySnapshot(package=package, documents=documents))
