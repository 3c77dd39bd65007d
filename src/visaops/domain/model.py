"""Typed records for countries, visa packages and document checklists."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from datetime import datetime

DEFAULT_PACKAGE_NAME: Final[str] = "Visa Package"
DEFAULT_PROCESSING_DAYS: Final[int] = 15


def default_processing_time(processing_days: int) -> str:
    return f"{processing_days} days"


@dataclass(frozen=True, slots=True)
class Country:
    """Read-only view of a country owned by the country-management subsystem."""

    id: str
    name: str


@dataclass(frozen=True, slots=True)
class VisaPackage:
    """Canonical pricing package of a country.

    ``is_active`` has no backing column. Reads always report ``True`` and the
    flag is carried in memory through save and toggle operations only.
    """

    country_id: str
    name: str = DEFAULT_PACKAGE_NAME
    government_fee: float = 0.0
    service_fee: float = 0.0
    processing_days: int = DEFAULT_PROCESSING_DAYS
    processing_time: str = field(default="")
    total_price: float = 0.0
    is_active: bool = True
    id: str | None = None
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.processing_time:
            object.__setattr__(
                self, "processing_time", default_processing_time(self.processing_days)
            )

    @property
    def has_fees(self) -> bool:
        return self.government_fee > 0 or self.service_fee > 0


@dataclass(frozen=True, slots=True)
class DocumentChecklistItem:
    """One required (or optional) document for a country's visa application."""

    country_id: str
    name: str
    description: str = ""
    required: bool = True
    id: str | None = None
    created_at: datetime | None = None


DEFAULT_DOCUMENTS: Final[tuple[tuple[str, str], ...]] = (
    ("Valid Passport", "A valid passport with at least 6 months validity remaining"),
    ("Passport Photos", "Two recent passport-size color photographs with white background"),
    ("Travel Itinerary", "Flight bookings and travel plans for the whole stay"),
)


def default_documents(country_id: str) -> list[DocumentChecklistItem]:
    """Return the fixed three-item checklist seeded for countries without documents."""

    return [
        DocumentChecklistItem(country_id=country_id, name=name, description=description)
        for name, description in DEFAULT_DOCUMENTS
    ]
