from __future__ import annotations

from decimal import Decimal

import pytest

from visaops.domain.errors import ValidationError
from visaops.domain.model import VisaPackage
from visaops.domain.normalization import (
    coerce_fee,
    coerce_processing_days,
    document_from_row,
    normalize_document,
    normalize_package,
    package_from_row,
    package_to_row,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, 0.0),
        ("", 0.0),
        ("abc", 0.0),
        (-5, 0.0),
        ("12.5", 12.5),
        (Decimal("99.90"), 99.9),
        (40, 40.0),
        (float("nan"), 0.0),
        (True, 0.0),
    ],
)
def test_coerce_fee(raw: object, expected: float) -> None:
    assert coerce_fee(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, 15), (0, 15), (-3, 15), ("x", 15), ("7", 7), (30, 30), (4.9, 4)],
)
def test_coerce_processing_days(raw: object, expected: int) -> None:
    assert coerce_processing_days(raw) == expected


def test_normalize_package_recomputes_total_price() -> None:
    package = normalize_package(
        {
            "country_id": "c1",
            "name": "Tourist",
            "government_fee": "60",
            "service_fee": 15.5,
            "total_price": 1,
        }
    )

    assert package.total_price == package.government_fee + package.service_fee == 75.5
    assert package.processing_days == 15
    assert package.processing_time == "15 days"
    assert package.is_active is True


def test_normalize_package_defaults_blank_name() -> None:
    package = normalize_package({"country_id": "c1", "name": "   "})

    assert package.name == "Visa Package"


def test_normalize_package_keeps_explicit_inactive_flag() -> None:
    assert normalize_package({"country_id": "c1", "is_active": False}).is_active is False
    assert normalize_package({"country_id": "c1", "is_active": None}).is_active is True


def test_normalize_package_requires_country_id() -> None:
    with pytest.raises(ValidationError, match="Country ID is required"):
        normalize_package({"name": "Orphan"})


def test_normalize_package_accepts_records() -> None:
    record = VisaPackage(country_id="c1", government_fee=10, service_fee=5, total_price=999)

    package = normalize_package(record)

    assert package.total_price == 15


def test_package_from_row_always_reports_active() -> None:
    package = package_from_row({"id": 7, "country_id": "c1", "is_active": False})

    assert package.is_active is True
    assert package.id == "7"


def test_package_to_row_never_writes_id_or_status() -> None:
    row = package_to_row(
        VisaPackage(country_id="c1", government_fee=20, service_fee=5, id="3", is_active=False)
    )

    assert "id" not in row
    assert "is_active" not in row
    assert row["total_price"] == 25


def test_normalize_document_accepts_both_spellings() -> None:
    short = normalize_document({"name": " Passport ", "description": "valid"}, country_id="c1")
    stored = normalize_document(
        {"document_name": "Passport", "document_description": "valid"}, country_id="c1"
    )

    assert short.name == stored.name == "Passport"
    assert short.description == stored.description == "valid"
    assert short.required is True


def test_normalize_document_rejects_empty_name() -> None:
    with pytest.raises(ValidationError):
        normalize_document({"name": "  "}, country_id="c1")


def test_document_from_row_parses_required_and_timestamp() -> None:
    item = document_from_row(
        {
            "id": 4,
            "country_id": "c1",
            "document_name": "Photo",
            "document_description": None,
            "required": "false",
            "created_at": "2024-01-01T00:00:00Z",
        }
    )

    assert item.required is False
    assert item.description == ""
    assert item.created_at is not None
    assert item.created_at.tzinfo is not None
