"""Profile SQLAlchemy model — marketplace member (investor, wholesaler, admin)."""
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.deal_model import Deal


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, comment="Identity from the auth provider")
    display_name: Mapped[Optional[str]] = mapped_column(String(255))
    email: Mapped[Optional[str]] = mapped_column(String(255))
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    role: Mapped[str] = mapped_column(String(20), default="investor", comment="admin, investor, wholesaler, contractor, vendor, service")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    deals: Mapped[List["Deal"]] = relationship(back_populates="wholesaler", cascade="all, delete-orphan", passive_deletes=True, lazy="raise")

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, role='{self.role}')>"
