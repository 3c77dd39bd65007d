"""SQLAlchemy Core tables for countries, visa packages and document checklists."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    Float,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
)

from visaops.domain.ports.store import COUNTRIES_TABLE, DOCUMENTS_TABLE, PACKAGES_TABLE

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

# Countries are owned elsewhere; only ``id`` and ``name`` are read here.
countries_table = Table(
    COUNTRIES_TABLE,
    metadata,
    Column("id", String(64), primary_key=True),
    Column("name", String(255), nullable=False),
)

# Package and checklist columns stay nullable so drifted rows can be stored and diagnosed.
visa_packages_table = Table(
    PACKAGES_TABLE,
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("country_id", String(64), ForeignKey(f"{COUNTRIES_TABLE}.id"), nullable=False),
    Column("name", String(255), nullable=True),
    Column("government_fee", Float, nullable=True),
    Column("service_fee", Float, nullable=True),
    Column("processing_days", Integer, nullable=True),
    Column("processing_time", String(64), nullable=True),
    Column("total_price", Float, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False, default=_utcnow),
    Index("ix_visa_packages_country_id", "country_id"),
)

document_checklist_table = Table(
    DOCUMENTS_TABLE,
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("country_id", String(64), ForeignKey(f"{COUNTRIES_TABLE}.id"), nullable=False),
    Column("document_name", String(255), nullable=False),
    Column("document_description", Text, nullable=True),
    Column("required", Boolean, nullable=False, default=True),
    Column("created_at", UTCDateTime(), nullable=False, default=_utcnow),
    Index("ix_document_checklist_country_id", "country_id"),
)

TABLES: Final[dict[str, Table]] = {
    table.name: table
    for table in (countries_table, visa_packages_table, document_checklist_table)
}


def create_all_tables(engine: Engine) -> None:
    """Create every table directly, bypassing migrations (tests and scratch databases)."""

    log.debug("Creating tables %s", ", ".join(TABLES))
    metadata.create_all(engine)
