from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tests.helpers.seeding import seed_package
from visaops.domain.errors import StoreError, ValidationError

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from tests.helpers.stores import FlakyStore
    from visaops.domain.packages import PackageRepository


async def test_fetch_package_returns_none_without_rows(
    packages: PackageRepository, country: str
) -> None:
    assert await packages.fetch_package(country) is None
    assert await packages.fetch_package("") is None


async def test_fetch_package_picks_newest_row(
    packages: PackageRepository, sqlite_engine: Engine, country: str
) -> None:
    seed_package(sqlite_engine, country, name="Old", minutes=0)
    newest = seed_package(sqlite_engine, country, name="New", minutes=5)

    package = await packages.fetch_package(country)

    assert package is not None
    assert package.id == newest
    assert package.name == "New"


async def test_fetch_package_raises_store_errors(
    packages: PackageRepository, store: FlakyStore, country: str
) -> None:
    store.fail("select_packages")

    with pytest.raises(StoreError):
        await packages.fetch_package(country)


@pytest.mark.parametrize(
    ("government_fee", "service_fee"),
    [(0, 0), (120, 30), ("49.99", "0.01"), (-10, 25), (None, "15")],
)
async def test_save_package_total_price_is_sum_of_fees(
    packages: PackageRepository,
    country: str,
    government_fee: object,
    service_fee: object,
) -> None:
    result = await packages.save_package(
        {"country_id": country, "government_fee": government_fee, "service_fee": service_fee}
    )

    assert result.success, result.message
    assert result.data is not None
    assert result.data.total_price == result.data.government_fee + result.data.service_fee
    stored = await packages.fetch_package(country)
    assert stored is not None
    assert stored.total_price == stored.government_fee + stored.service_fee


async def test_save_package_inserts_then_updates_existing_row(
    packages: PackageRepository, store: FlakyStore, country: str
) -> None:
    first = await packages.save_package({"country_id": country, "name": "Tourist"})
    second = await packages.save_package(
        {"country_id": country, "name": "Tourist", "government_fee": 80}
    )

    assert first.message == "Visa package saved successfully"
    assert first.data is not None and second.data is not None
    assert second.data.id == first.data.id
    assert second.data.total_price == 80
    assert store.mutations == ["insert_package", "update_package_by_country"]


async def test_save_package_updates_by_id(
    packages: PackageRepository, store: FlakyStore, sqlite_engine: Engine, country: str
) -> None:
    package_id = seed_package(sqlite_engine, country)

    result = await packages.save_package(
        {"id": package_id, "country_id": country, "service_fee": 99, "government_fee": 1}
    )

    assert result.success
    assert result.data is not None
    assert result.data.id == package_id
    assert result.data.total_price == 100
    assert store.mutations == ["update_package_by_id"]


async def test_save_package_carries_inactive_flag_in_memory(
    packages: PackageRepository, country: str
) -> None:
    result = await packages.save_package({"country_id": country, "is_active": False})

    assert result.data is not None
    assert result.data.is_active is False
    fetched = await packages.fetch_package(country)
    assert fetched is not None
    assert fetched.is_active is True


async def test_save_package_without_country_is_a_validation_failure(
    packages: PackageRepository, store: FlakyStore
) -> None:
    result = await packages.save_package({"name": "Orphan"})

    assert not result.success
    assert isinstance(result.error, ValidationError)
    assert store.calls == []


async def test_save_package_reports_store_failures(
    packages: PackageRepository, store: FlakyStore, country: str
) -> None:
    store.fail("insert_package")

    result = await packages.save_package({"country_id": country})

    assert not result.success
    assert result.message.startswith("Database error:")
    assert isinstance(result.error, StoreError)


async def test_create_default_package_uses_zero_fees(
    packages: PackageRepository, country: str
) -> None:
    package = await packages.create_default_package(country)

    assert package.government_fee == 0
    assert package.service_fee == 0
    assert package.total_price == 0
    assert package.processing_days == 15
    assert package.processing_time == "15 days"
    assert package.name == "Visa Package"


async def test_toggle_creates_default_package_when_missing(
    packages: PackageRepository, store: FlakyStore, country: str
) -> None:
    result = await packages.toggle_active(country, is_active=True)

    assert result.success
    assert result.message == "Package activated successfully"
    assert result.data is not None
    assert result.data.government_fee == 0
    assert store.mutations == ["insert_package"]


async def test_toggle_does_not_touch_existing_rows(
    packages: PackageRepository, store: FlakyStore, sqlite_engine: Engine, country: str
) -> None:
    seed_package(sqlite_engine, country)

    result = await packages.toggle_active(country, is_active=False)

    assert result.message == "Package deactivated successfully"
    assert result.data is not None
    assert result.data.is_active is False
    assert store.mutations == []


@pytest.mark.parametrize("requested", [True, False])
async def test_fetch_after_toggle_always_reports_active(
    packages: PackageRepository, country: str, requested: bool
) -> None:
    await packages.toggle_active(country, is_active=requested)

    fetched = await packages.fetch_package(country)

    assert fetched is not None
    assert fetched.is_active is True


async def test_toggle_distinguishes_read_and_create_failures(
    packages: PackageRepository, store: FlakyStore, country: str
) -> None:
    store.fail("select_packages")
    read_failure = await packages.toggle_active(country, is_active=True)
    store.heal()
    store.fail("insert_package")
    create_failure = await packages.toggle_active(country, is_active=True)

    assert read_failure.message.startswith("Database error:")
    assert create_failure.message.startswith("Failed to create package:")


async def test_toggle_requires_country_id(packages: PackageRepository) -> None:
    result = await packages.toggle_active("", is_active=True)

    assert not result.success
    assert isinstance(result.error, ValidationError)
