"""Create countries, visa_packages and document_checklist.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-16
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from visaops.adapters.sqlalchemy.mappings import UTCDateTime

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "countries",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_countries")),
    )
    op.create_table(
        "visa_packages",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("country_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("government_fee", sa.Float(), nullable=True),
        sa.Column("service_fee", sa.Float(), nullable=True),
        sa.Column("processing_days", sa.Integer(), nullable=True),
        sa.Column("processing_time", sa.String(64), nullable=True),
        sa.Column("total_price", sa.Float(), nullable=True),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_visa_packages")),
        sa.ForeignKeyConstraint(
            ["country_id"],
            ["countries.id"],
            name=op.f("fk_visa_packages_country_id_countries"),
        ),
    )
    op.create_index("ix_visa_packages_country_id", "visa_packages", ["country_id"])
    op.create_table(
        "document_checklist",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("country_id", sa.String(64), nullable=False),
        sa.Column("document_name", sa.String(255), nullable=False),
        sa.Column("document_description", sa.Text(), nullable=True),
        sa.Column("required", sa.Boolean(), nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_document_checklist")),
        sa.ForeignKeyConstraint(
            ["country_id"],
            ["countries.id"],
            name=op.f("fk_document_checklist_country_id_countries"),
        ),
    )
    op.create_index("ix_document_checklist_country_id", "document_checklist", ["country_id"])


def downgrade() -> None:
    op.drop_index("ix_document_checklist_country_id", table_name="document_checklist")
    op.drop_table("document_checklist")
    op.drop_index("ix_visa_packages_country_id", table_name="visa_packages")
    op.drop_table("visa_packages")
    op.drop_table("countries")
