"""create users and stocks

Revision ID: 3f2a9c1d7e40
Revises:
Create Date: 2026-10-12
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f2a9c1d7e40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False, unique=True),
        sa.Column("token_hash", sa.String(64), unique=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "stocks",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column(
            "owner_id",
            sa.String(32),
            sa.ForeignKey("users.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("item_name", sa.String(255), nullable=False),
        sa.Column("quantity_received", sa.Float(), nullable=False),
        sa.Column("quantity_sold", sa.Float(), nullable=False, server_default="0"),
        sa.Column("unit_price", sa.Float(), nullable=False),
        sa.Column("selling_price", sa.Float()),
        sa.Column("week", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.String(40), nullable=False),
        sa.Column("updated_at", sa.String(40), nullable=False),
        sa.CheckConstraint("length(item_name) > 0", name="ck_stock_item_name_nonempty"),
        sa.CheckConstraint("quantity_received >= 0", name="ck_stock_qty_received_nonneg"),
        sa.CheckConstraint("quantity_sold >= 0", name="ck_stock_qty_sold_nonneg"),
        sa.CheckConstraint("quantity_sold <= quantity_received", name="ck_stock_sold_le_received"),
        sa.CheckConstraint("week >= 1 AND week <= 53", name="ck_stock_week_1_53"),
    )
    op.create_index("ix_stocks_owner_id", "stocks", ["owner_id"])
    op.create_index("ix_stocks_owner_year_week", "stocks", ["owner_id", "year", "week"])


def downgrade() -> None:
    op.drop_index("ix_stocks_owner_year_week", table_name="stocks")
    op.drop_index("ix_stocks_owner_id", table_name="stocks")
    op.drop_table("stocks")
    op.drop_table("users")
