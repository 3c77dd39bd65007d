"""Diagnostic engine for a country's package and document configuration.

Checks run in a fixed order and stop at the first failure:

1. the package table is reachable and has every required column,
2. the country exists,
3. a package exists (if not, a zero-fee default is created and the run succeeds),
4. the canonical package has a name, both fees and processing days,
5. optionally, the document table, document existence and count.

Step 5 only adds recommendations; it never flips ``success``. Store failures
are reported as failed diagnostics and never raised.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from .errors import NotFoundError, StoreError
from .normalization import package_from_row
from .ports.store import DOCUMENTS_TABLE, PACKAGE_COLUMNS, PACKAGES_TABLE
from .results import CheckOutcome, DiagnosticChecks, DiagnosticResult

if TYPE_CHECKING:
    from .packages import PackageRepository
    from .ports.store import Row, StoreClient

log = getLogger(__name__)

REFRESH_SCHEMA_HINT = "The visa_packages table appears to have issues. Try refreshing schema."
DOCUMENT_TABLE_HINT = (
    "The document_checklist table appears to have issues. Try refreshing schema."
)
NO_DOCUMENTS_HINT = "No documents exist for this country. Try adding some."
INACTIVE_PACKAGE_HINT = "Visa package exists but appears to be inactive (zero fees)."


def package_issues(row: Row) -> list[str]:
    """List what is missing from a raw package row, in reporting order."""

    issues: list[str] = []
    if not row.get("name"):
        issues.append("Missing package name")
    if row.get("government_fee") is None:
        issues.append("Missing government fee")
    if row.get("service_fee") is None:
        issues.append("Missing service fee")
    if not row.get("processing_days"):
        issues.append("Missing processing days")
    return issues


class DiagnosticEngine:
    def __init__(self, store: StoreClient, packages: PackageRepository) -> None:
        self.store = store
        self.packages = packages

    async def run_diagnostic(
        self,
        country_id: str,
        *,
        include_documents: bool = False,
    ) -> DiagnosticResult:
        log.info("Running diagnostic for country %s", country_id)
        checks = DiagnosticChecks()
        recommendations: list[str] = []

        structural = await self._check_package_table(checks, recommendations)
        if structural is not None:
            return structural

        try:
            country = await self.store.fetch_country(country_id)
        except StoreError as exc:
            return self._failed(f"Error checking country: {exc}", checks, recommendations, exc)
        if country is None:
            error = NotFoundError(f"Country not found: {country_id}", country_id=country_id)
            return self._failed(error.message, checks, recommendations, error)
        checks.country_exists = True

        try:
            rows = await self.store.select_packages(country_id)
        except StoreError as exc:
            recommendations.append(
                "Error checking for existing visa package. Try again or refresh schema."
            )
            return self._failed(
                f"Error checking visa packages: {exc}", checks, recommendations, exc
            )

        notes: list[str] = []
        created = False
        if not rows:
            log.info("No package found for %s, creating default package", country_id)
            try:
                package = await self.packages.create_default_package(
                    country_id, name=f"{country.get('name') or 'Country'} Visa"
                )
            except StoreError as exc:
                return self._failed(
                    f"Failed to create default package: {exc}", checks, recommendations, exc
                )
            created = True
            message = "Created default visa package"
            notes.append("No visa package existed; a default zero-fee package was created.")
        else:
            issues = package_issues(rows[0])
            package = package_from_row(rows[0])
            checks.issues = tuple(issues)
            if issues:
                checks.package_exists = True
                checks.package = package
                return self._failed(
                    f"Found issues with visa package: {', '.join(issues)}",
                    checks,
                    recommendations,
                )
            message = "Visa package is properly configured"

        checks.package_exists = True
        checks.package = package
        checks.package_active = package.has_fees

        if include_documents:
            if not package.has_fees:
                recommendations.append(INACTIVE_PACKAGE_HINT)
            await self._check_documents(country_id, checks, recommendations)

        return DiagnosticResult(
            success=True,
            message=message,
            recommendations=recommendations,
            results=checks,
            notes=notes,
            default_package_created=created,
        )

    async def _check_package_table(
        self,
        checks: DiagnosticChecks,
        recommendations: list[str],
    ) -> DiagnosticResult | None:
        try:
            columns = await self.store.table_columns(PACKAGES_TABLE)
        except StoreError as exc:
            checks.table_access = CheckOutcome(success=False, error=str(exc))
            recommendations.append(
                "Cannot access visa_packages table. Check your database permissions."
            )
            return self._failed(
                f"Cannot access visa packages table: {exc}", checks, recommendations, exc
            )

        missing = tuple(column for column in PACKAGE_COLUMNS if column not in columns)
        if missing:
            checks.table_access = CheckOutcome(
                success=False, error=f"Missing columns: {', '.join(missing)}"
            )
            checks.missing_columns = missing
            recommendations.append(REFRESH_SCHEMA_HINT)
            return self._failed(
                f"Visa packages table is missing required columns: {', '.join(missing)}",
                checks,
                recommendations,
            )

        checks.table_access = CheckOutcome(success=True)
        return None

    async def _check_documents(
        self,
        country_id: str,
        checks: DiagnosticChecks,
        recommendations: list[str],
    ) -> None:
        try:
            await self.store.table_columns(DOCUMENTS_TABLE)
        except StoreError as exc:
            checks.document_table_access = CheckOutcome(success=False, error=str(exc))
            recommendations.append(DOCUMENT_TABLE_HINT)
            return
        checks.document_table_access = CheckOutcome(success=True)

        try:
            documents = await self.store.select_documents(country_id)
        except StoreError as exc:
            log.warning("Error checking documents for %s: %s", country_id, exc)
            recommendations.append("Error checking documents. Try refreshing schema.")
            return

        checks.documents_count = len(documents)
        checks.documents_exist = bool(documents)
        if not documents:
            recommendations.append(NO_DOCUMENTS_HINT)

    @staticmethod
    def _failed(
        message: str,
        checks: DiagnosticChecks,
        recommendations: list[str],
        error: StoreError | NotFoundError | None = None,
    ) -> DiagnosticResult:
        log.warning("Diagnostic failed: %s", message)
        return DiagnosticResult(
            success=False,
            message=message,
            recommendations=recommendations,
            results=checks,
            error=error,
        )
