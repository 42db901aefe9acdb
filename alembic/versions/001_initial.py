"""Initial migration — create profiles, deals and saved_listings.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── profiles ──
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="investor"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    # ── deals ──
    op.create_table(
        "deals",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("wholesaler_id", sa.String(36), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("property_address", sa.String(500), nullable=False),
        sa.Column("property_city", sa.String(100), nullable=True),
        sa.Column("property_state", sa.String(50), nullable=True),
        sa.Column("property_zip", sa.String(20), nullable=True),
        sa.Column("property_type", sa.String(50), nullable=True),
        sa.Column("asking_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("buyer_entry_cost", sa.Numeric(12, 2), nullable=True),
        sa.Column("arv", sa.Numeric(12, 2), nullable=True),
        sa.Column("repair_estimate", sa.Numeric(12, 2), nullable=True),
        sa.Column("deal_type", sa.String(30), nullable=True),
        sa.Column("bedrooms", sa.Integer, nullable=True),
        sa.Column("bathrooms", sa.Float, nullable=True),
        sa.Column("square_feet", sa.Integer, nullable=True),
        sa.Column("lot_size_acres", sa.Float, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("disposition_status", sa.String(30), nullable=True),
        sa.Column("expected_closing_date", sa.Date, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_deals_wholesaler_id", "deals", ["wholesaler_id"])
    op.create_index("ix_deals_property_city", "deals", ["property_city"])
    op.create_index("ix_deals_status", "deals", ["status"])
    op.create_index("ix_deals_deal_type", "deals", ["deal_type"])
    op.create_index("ix_deals_created_at", "deals", ["created_at"])

    # ── saved_listings ──
    op.create_table(
        "saved_listings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("deal_id", sa.String(36), sa.ForeignKey("deals.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "deal_id", name="uq_saved_listings_user_deal"),
    )
    op.create_index("ix_saved_listings_user_id", "saved_listings", ["user_id"])
    op.create_index("ix_saved_listings_deal_id", "saved_listings", ["deal_id"])


def downgrade() -> None:
    op.drop_table("saved_listings")
    op.drop_table("deals")
    op.drop_table("profiles")
