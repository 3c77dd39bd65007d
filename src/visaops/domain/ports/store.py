"""Request/response contract of the external resource store."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Final, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

type Row = Mapping[str, object]

PACKAGES_TABLE: Final[str] = "visa_packages"
DOCUMENTS_TABLE: Final[str] = "document_checklist"
COUNTRIES_TABLE: Final[str] = "countries"

PACKAGE_COLUMNS: Final[tuple[str, ...]] = (
    "id",
    "country_id",
    "name",
    "government_fee",
    "service_fee",
    "processing_days",
    "processing_time",
    "total_price",
    "created_at",
)
DOCUMENT_COLUMNS: Final[tuple[str, ...]] = (
    "id",
    "country_id",
    "document_name",
    "document_description",
    "required",
    "created_at",
)


@runtime_checkable
class StoreClient(Protocol):
    """Store operations the consistency engine depends on.

    Every method raises ``StoreError`` when the underlying call fails.
    """

    async def select_packages(self, country_id: str) -> list[Row]:
        """Return the country's package rows, newest first."""
        ...

    async def insert_package(self, values: Row) -> Row: ...

    async def update_package_by_id(self, package_id: str, values: Row) -> Row: ...

    async def update_package_by_country(self, country_id: str, values: Row) -> Row:
        """Update the country's rows and return the first updated row."""
        ...

    async def select_documents(self, country_id: str) -> list[Row]:
        """Return the country's checklist rows in creation order."""
        ...

    async def delete_documents(self, country_id: str) -> int: ...

    async def insert_documents(self, rows: Sequence[Row]) -> list[Row]: ...

    async def fetch_country(self, country_id: str) -> Row | None: ...

    async def table_columns(self, table: str) -> frozenset[str]:
        """Return the column names of ``table`` as the store currently sees them."""
        ...


@runtime_checkable
class TransactionalDocumentStore(Protocol):
    """Optional capability: replace a country's checklist in one transaction."""

    async def replace_documents(self, country_id: str, rows: Sequence[Row]) -> list[Row]: ...

REQUIRED_COLUMNS: Final[dict[str, tuple[str, ...]]] = {
    PACKAGES_TABLE: PACKAGE_COLUMNS,
    DOCUMENTS_TABLE: DOCUMENT_COLUMNS,
}

# ``StoreError.code`` raised by ``table_columns`` when the table does not exist.
UNDEFINED_TABLE: Final[str] = "undefined_table"
