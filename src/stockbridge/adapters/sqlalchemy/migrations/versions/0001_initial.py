"""Create canonical_product and sync_run.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 09:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

AMOUNT = sa.Numeric(18, 4)


def upgrade() -> None:
    op.create_table(
        "canonical_product",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("store_id", sa.Integer(), nullable=False),
        sa.Column("erp_internal_id", sa.String(length=128), nullable=True),
        sa.Column("erp_code", sa.String(length=128), nullable=True),
        sa.Column("barcode", sa.String(length=128), nullable=True),
        sa.Column("storefront_id", sa.Integer(), nullable=True),
        sa.Column("inventory_record_id", sa.Integer(), nullable=True),
        sa.Column("sku", sa.String(length=128), nullable=True),
        sa.Column("name", sa.String(length=500), nullable=True),
        sa.Column("category", sa.String(length=255), nullable=True),
        sa.Column("unit", sa.String(length=64), nullable=True),
        sa.Column("item_group", sa.String(length=255), nullable=True),
        sa.Column("vat", sa.String(length=64), nullable=True),
        sa.Column("retail_price", AMOUNT, nullable=True),
        sa.Column("wholesale_price", AMOUNT, nullable=True),
        sa.Column("sale_price", AMOUNT, nullable=True),
        sa.Column("purchase_price", AMOUNT, nullable=True),
        sa.Column("discount", AMOUNT, nullable=True),
        sa.Column("erp_quantity", AMOUNT, nullable=True),
        sa.Column("inventory_quantity", AMOUNT, nullable=True),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_sync_status", sa.String(length=16), nullable=True),
        sa.Column("last_sync_source", sa.String(length=10), nullable=True),
        sa.Column("last_sync_detail", sa.Text(), nullable=True),
        sa.Column("last_sync_error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_canonical_product"),
        sa.UniqueConstraint("store_id", "sku", name="uq_canonical_product_store_id_sku"),
        sa.UniqueConstraint(
            "store_id",
            "erp_internal_id",
            name="uq_canonical_product_store_id_erp_internal_id",
        ),
    )
    op.create_index(
        "ix_canonical_product_store_erp_code", "canonical_product", ["store_id", "erp_code"]
    )
    op.create_index(
        "ix_canonical_product_store_barcode", "canonical_product", ["store_id", "barcode"]
    )
    op.create_index(
        "ix_canonical_product_store_storefront_id",
        "canonical_product",
        ["store_id", "storefront_id"],
    )
    op.create_index(
        "ix_canonical_product_store_inventory_record_id",
        "canonical_product",
        ["store_id", "inventory_record_id"],
    )

    op.create_table(
        "sync_run",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("store_id", sa.Integer(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(length=21), nullable=False),
        sa.Column("stages", sa.String(length=255), nullable=False),
        sa.Column("total", sa.Integer(), nullable=False),
        sa.Column("created", sa.Integer(), nullable=False),
        sa.Column("updated", sa.Integer(), nullable=False),
        sa.Column("unchanged", sa.Integer(), nullable=False),
        sa.Column("skipped", sa.Integer(), nullable=False),
        sa.Column("conflicts", sa.Integer(), nullable=False),
        sa.Column("errors", sa.Integer(), nullable=False),
        sa.Column("error_details", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_sync_run"),
    )
    op.create_index("ix_sync_run_store_started_at", "sync_run", ["store_id", "started_at"])


def downgrade() -> None:
    op.drop_index("ix_sync_run_store_started_at", table_name="sync_run")
    op.drop_table("sync_run")
    op.drop_index("ix_canonical_product_store_inventory_record_id", table_name="canonical_product")
    op.drop_index("ix_canonical_product_store_storefront_id", table_name="canonical_product")
    op.drop_index("ix_canonical_product_store_barcode", table_name="canonical_product")
    op.drop_index("ix_canonical_product_store_erp_code", table_name="canonical_product")
    op.drop_table("canonical_product")
