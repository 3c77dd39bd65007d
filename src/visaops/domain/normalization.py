"""Coercion between loosely-typed store rows or form payloads and typed records.

Every value crossing the repository boundary passes through exactly one of
these functions. Code behind the repositories never re-checks optionality.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import replace
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from .errors import ValidationError
from .model import (
    DEFAULT_PACKAGE_NAME,
    DEFAULT_PROCESSING_DAYS,
    DocumentChecklistItem,
    VisaPackage,
    default_processing_time,
)

if TYPE_CHECKING:
    from .ports.store import Row

PackageInput = VisaPackage | Mapping[str, object]
DocumentInput = DocumentChecklistItem | Mapping[str, object]


def _to_number(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float | Decimal):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(Decimal(text))
        except InvalidOperation:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def coerce_fee(value: object) -> float:
    """Return a non-negative fee; absent, non-numeric or negative values become 0."""

    number = _to_number(value)
    if number is None or number < 0:
        return 0.0
    return number


def coerce_processing_days(value: object) -> int:
    """Return a positive day count, defaulting to 15."""

    number = _to_number(value)
    if number is None or number < 1:
        return DEFAULT_PROCESSING_DAYS
    return int(number)


def _coerce_text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _coerce_id(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _coerce_bool(value: object, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() not in {"false", "0", "no", "off"}
    return bool(value)


def _coerce_timestamp(value: object) -> datetime | None:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, str) and value.strip():
        normalized = value.strip()
        if normalized.endswith("Z"):
            normalized = normalized[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(normalized)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return None


def normalize_package(source: PackageInput) -> VisaPackage:
    """Coerce a package payload into a ``VisaPackage`` with a fresh ``total_price``.

    ``is_active`` defaults to ``True`` unless the payload explicitly says ``False``.
    Raises ``ValidationError`` when no country id is present.
    """

    if isinstance(source, VisaPackage):
        data: Mapping[str, object] = {
            "id": source.id,
            "country_id": source.country_id,
            "name": source.name,
            "government_fee": source.government_fee,
            "service_fee": source.service_fee,
            "processing_days": source.processing_days,
            "processing_time": source.processing_time,
            "is_active": source.is_active,
            "created_at": source.created_at,
        }
    else:
        data = source

    country_id = _coerce_id(data.get("country_id"))
    if country_id is None:
        raise ValidationError("Country ID is required")

    government_fee = coerce_fee(data.get("government_fee"))
    service_fee = coerce_fee(data.get("service_fee"))
    processing_days = coerce_processing_days(data.get("processing_days"))
    processing_time = _coerce_text(data.get("processing_time")) or default_processing_time(
        processing_days
    )
    return VisaPackage(
        id=_coerce_id(data.get("id")),
        country_id=country_id,
        name=_coerce_text(data.get("name")) or DEFAULT_PACKAGE_NAME,
        government_fee=government_fee,
        service_fee=service_fee,
        total_price=government_fee + service_fee,
        processing_days=processing_days,
        processing_time=processing_time,
        is_active=data.get("is_active") is not False,
        created_at=_coerce_timestamp(data.get("created_at")),
    )


def package_from_row(row: Row) -> VisaPackage:
    """Build the canonical record from a stored row; stored rows are always active."""

    return replace(normalize_package(row), is_active=True)


def bind_country(country_id: str, package: PackageInput) -> PackageInput:
    """Attach ``country_id`` to a package payload that has none.

    Raises ``ValidationError`` when ``country_id`` is empty or the payload
    already names a different country.
    """

    if not country_id:
        raise ValidationError("Country ID is required")
    declared = _coerce_id(
        package.country_id if isinstance(package, VisaPackage) else package.get("country_id")
    )
    if declared is None:
        if isinstance(package, VisaPackage):
            return replace(package, country_id=country_id)
        return {**package, "country_id": country_id}
    if declared != country_id:
        raise ValidationError(f"Package belongs to country {declared}, not {country_id}")
    return package


def package_to_row(package: VisaPackage) -> dict[str, object]:
    """Column values written on insert or update; ``id`` and ``is_active`` are never written."""

    return {
        "country_id": package.country_id,
        "name": package.name,
        "government_fee": package.government_fee,
        "service_fee": package.service_fee,
        "processing_days": package.processing_days,
        "processing_time": package.processing_time,
        "total_price": package.government_fee + package.service_fee,
    }


def normalize_document(source: DocumentInput, *, country_id: str) -> DocumentChecklistItem:
    """Coerce a checklist payload for ``country_id``.

    Accepts both the ``name``/``description`` and the stored
    ``document_name``/``document_description`` spellings.
    """

    if isinstance(source, DocumentChecklistItem):
        name = source.name.strip()
        description = source.description.strip()
        required = source.required
        item_id = source.id
        created_at = source.created_at
    else:
        name = _coerce_text(source.get("name")) or _coerce_text(source.get("document_name"))
        description = _coerce_text(source.get("description")) or _coerce_text(
            source.get("document_description")
        )
        required = _coerce_bool(source.get("required"), default=True)
        item_id = _coerce_id(source.get("id"))
        created_at = _coerce_timestamp(source.get("created_at"))

    if not name:
        raise ValidationError("Document name must not be empty")

    return DocumentChecklistItem(
        id=item_id,
        country_id=country_id,
        name=name,
        description=description,
        required=required,
        created_at=created_at,
    )


def document_from_row(row: Row) -> DocumentChecklistItem:
    country_id = _coerce_id(row.get("country_id")) or ""
    return DocumentChecklistItem(
        id=_coerce_id(row.get("id")),
        country_id=country_id,
        name=_coerce_text(row.get("document_name")),
        description=_coerce_text(row.get("document_description")),
        required=_coerce_bool(row.get("required"), default=True),
        created_at=_coerce_timestamp(row.get("created_at")),
    )


def document_to_row(item: DocumentChecklistItem) -> dict[str, object]:
    return {
        "country_id": item.country_id,
        "document_name": item.name,
        "document_description": item.description,
        "required": item.required,
    }
