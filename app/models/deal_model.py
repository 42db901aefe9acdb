"""Deal SQLAlchemy model — an off-market wholesale listing."""
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.profile_model import Profile


class Deal(Base):
    __tablename__ = "deals"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    wholesaler_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        index=True,
        comment="Listing creator",
    )

    title: Mapped[str] = mapped_column(String(500))
    description: Mapped[Optional[str]] = mapped_column(Text)
    property_address: Mapped[str] = mapped_column(String(500))
    property_city: Mapped[Optional[str]] = mapped_column(String(100), index=True)
    property_state: Mapped[Optional[str]] = mapped_column(String(50))
    property_zip: Mapped[Optional[str]] = mapped_column(String(20))
    property_type: Mapped[Optional[str]] = mapped_column(String(50), comment="Single Family, Townhouse, etc.")

    asking_price: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    buyer_entry_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    arv: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), comment="After repair value")
    repair_estimate: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    deal_type: Mapped[Optional[str]] = mapped_column(
        String(30),
        comment="cash_deal, seller_finance, mortgage_takeover, trust_acquisition",
    )

    bedrooms: Mapped[Optional[int]] = mapped_column(Integer)
    bathrooms: Mapped[Optional[float]] = mapped_column(Float)
    square_feet: Mapped[Optional[int]] = mapped_column(Integer)
    lot_size_acres: Mapped[Optional[float]] = mapped_column(Float)

    status: Mapped[str] = mapped_column(String(20), default="pending", comment="draft, pending, approved, rejected, closed")
    disposition_status: Mapped[Optional[str]] = mapped_column(String(30), comment="CRM pipeline stage")
    expected_closing_date: Mapped[Optional[date]] = mapped_column(Date)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    wholesaler: Mapped[Optional["Profile"]] = relationship(back_populates="deals", lazy="selectin")

    __table_args__ = (
        Index("ix_deals_status", "status"),
        Index("ix_deals_deal_type", "deal_type"),
        Index("ix_deals_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Deal(id={self.id}, title='{self.title}', status={self.status})>"
