"""Document repository: fetch, replace and default seeding of checklists."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from .errors import PartialFailure, StoreError, ValidationError
from .model import DocumentChecklistItem, default_documents
from .normalization import document_from_row, document_to_row, normalize_document
from .ports.store import TransactionalDocumentStore
from .results import OperationResult

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .normalization import DocumentInput
    from .ports.store import Row, StoreClient

log = getLogger(__name__)


class DocumentRepository:
    """Manages a country's checklist as a set that is always replaced whole.

    By default a replace is two store calls (delete, then insert). If the insert
    fails the country is left without documents and the result carries a
    ``PartialFailure``. With ``transactional_replace=True`` and a store that
    implements ``TransactionalDocumentStore`` the replace is a single transaction.
    """

    def __init__(self, store: StoreClient, *, transactional_replace: bool = False) -> None:
        self.store = store
        self.transactional_replace = transactional_replace

    async def fetch_documents(self, country_id: str) -> list[DocumentChecklistItem]:
        """Return the checklist in creation order.

        Read failures are logged and reported as an empty list, so an empty
        result means "none or unknown".
        """

        if not country_id:
            return []
        try:
            rows = await self.store.select_documents(country_id)
        except StoreError as exc:
            log.warning("Error fetching document checklist for %s: %s", country_id, exc)
            return []
        log.debug("Found %d documents for country %s", len(rows), country_id)
        return [document_from_row(row) for row in rows]

    async def save_documents(
        self,
        country_id: str,
        items: Sequence[DocumentInput],
    ) -> OperationResult[list[DocumentChecklistItem]]:
        """Replace the country's checklist with ``items``."""

        try:
            rows = self._prepare_rows(country_id, items)
        except ValidationError as exc:
            return OperationResult.failed(exc)

        log.info("Saving %d documents for country %s", len(rows), country_id)
        if self.transactional_replace and isinstance(self.store, TransactionalDocumentStore):
            try:
                inserted = await self.store.replace_documents(country_id, rows)
            except StoreError as exc:
                log.error("Transactional document replace failed for %s: %s", country_id, exc)
                return OperationResult.failed(exc)
            return self._saved(inserted)

        try:
            await self.store.delete_documents(country_id)
        except StoreError as exc:
            log.error("Error deleting existing documents for %s: %s", country_id, exc)
            return OperationResult.failed(exc, f"Failed to delete existing documents: {exc}")

        try:
            inserted = await self.store.insert_documents(rows)
        except StoreError as exc:
            log.error(
                "Documents for %s were deleted but inserting the new set failed: %s",
                country_id,
                exc,
            )
            failure = PartialFailure(
                [
                    "Existing documents were deleted",
                    f"inserting the new documents failed: {exc}",
                ],
                errors=[exc],
            )
            return OperationResult.failed(failure)

        return self._saved(inserted)

    async def ensure_default_documents(
        self,
        country_id: str,
    ) -> OperationResult[list[DocumentChecklistItem]]:
        """Seed the default checklist when the country has none; a no-op otherwise."""

        try:
            existing = await self.store.select_documents(country_id)
        except StoreError as exc:
            log.warning(
                "Could not check existing documents for %s, seeding anyway: %s", country_id, exc
            )
            existing = []

        if existing:
            log.debug("Documents already exist for %s, no fix needed", country_id)
            return OperationResult.ok(
                "No fix required - documents already exist",
                [document_from_row(row) for row in existing],
            )

        log.info("No documents found for %s, creating default documents", country_id)
        result = await self.save_documents(country_id, default_documents(country_id))
        if not result.success:
            return OperationResult(
                success=False,
                message=f"Failed to create default documents: {result.message}",
                error=result.error,
            )
        return OperationResult.ok("Created default documents successfully", result.data)

    @staticmethod
    def _prepare_rows(
        country_id: str,
        items: Sequence[DocumentInput],
    ) -> list[dict[str, object]]:
        if not country_id:
            raise ValidationError("Country ID is required")
        if not items:
            raise ValidationError("No documents provided")
        return [document_to_row(normalize_document(item, country_id=country_id)) for item in items]

    @staticmethod
    def _saved(rows: list[Row]) -> OperationResult[list[DocumentChecklistItem]]:
        documents = [document_from_row(row) for row in rows]
        log.info("Successfully saved %d documents", len(documents))
        return OperationResult.ok("Document checklist saved successfully", documents)

