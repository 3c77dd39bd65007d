"""Package repository: fetch, save and status toggle for visa packages."""

from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import StoreError, ValidationError
from .model import DEFAULT_PACKAGE_NAME, DEFAULT_PROCESSING_DAYS, VisaPackage
from .normalization import normalize_package, package_from_row, package_to_row
from .results import OperationResult

if TYPE_CHECKING:
    from .normalization import PackageInput
    from .ports.store import StoreClient

log = getLogger(__name__)


class PackageRepository:
    """Reads and writes the single canonical package of each country.

    The store may hold several rows per country. The newest row is canonical;
    older rows are left in place and never deduplicated here.
    """

    def __init__(self, store: StoreClient) -> None:
        self.store = store

    async def fetch_package(self, country_id: str) -> VisaPackage | None:
        """Return the canonical package or ``None``; store failures raise ``StoreError``."""

        if not country_id:
            return None
        rows = await self.store.select_packages(country_id)
        if not rows:
            log.debug("No visa package found for country %s", country_id)
            return None
        return package_from_row(rows[0])

    async def save_package(self, package: PackageInput) -> OperationResult[VisaPackage]:
        """Create or update the country's package with a recomputed total price."""

        try:
            normalized = normalize_package(package)
        except ValidationError as exc:
            return OperationResult.failed(exc)

        values = package_to_row(normalized)
        try:
            if normalized.id is not None:
                row = await self.store.update_package_by_id(normalized.id, values)
            elif await self.store.select_packages(normalized.country_id):
                row = await self.store.update_package_by_country(normalized.country_id, values)
            else:
                row = await self.store.insert_package(values)
        except StoreError as exc:
            log.error("Error saving visa package for %s: %s", normalized.country_id, exc)
            return OperationResult.failed(exc, f"Database error: {exc}")

        saved = replace(package_from_row(row), is_active=normalized.is_active)
        log.info(
            "Saved visa package %s for country %s (total_price=%s)",
            saved.id,
            saved.country_id,
            saved.total_price,
        )
        return OperationResult.ok("Visa package saved successfully", saved)

    async def create_default_package(
        self,
        country_id: str,
        *,
        name: str = DEFAULT_PACKAGE_NAME,
    ) -> VisaPackage:
        """Insert a zero-fee package; raises ``StoreError`` if the insert fails."""

        default = VisaPackage(
            country_id=country_id,
            name=name,
            processing_days=DEFAULT_PROCESSING_DAYS,
        )
        row = await self.store.insert_package(package_to_row(default))
        log.info("Created default visa package for country %s", country_id)
        return package_from_row(row)

    async def toggle_active(self, country_id: str, is_active: bool) -> OperationResult[VisaPackage]:
        """Report the package as (de)activated, creating a default one if none exists.

        ``is_active`` has no backing column, so no stored field changes here.
        """

        if not country_id:
            return OperationResult.failed(ValidationError("Country ID is required"))

        log.info("Toggling package status for country %s to %s", country_id, is_active)
        try:
            rows = await self.store.select_packages(country_id)
        except StoreError as exc:
            log.error("Error checking for existing packages of %s: %s", country_id, exc)
            return OperationResult.failed(exc, f"Database error: {exc}")

        if rows:
            current = package_from_row(rows[0])
        else:
            try:
                current = await self.create_default_package(country_id)
            except StoreError as exc:
                log.error("Failed to create default package for %s: %s", country_id, exc)
                return OperationResult.failed(exc, f"Failed to create package: {exc}")

        message = (
            "Package activated successfully" if is_active else "Package deactivated successfully"
        )
        return OperationResult.ok(message, replace(current, is_active=is_active))
