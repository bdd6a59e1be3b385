"""Purchase database model."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from api.database import Base

if TYPE_CHECKING:
    from api.models.db.exam import Test
    from api.models.db.user import User


class PurchaseStatus(str, enum.Enum):
    """Status of a purchase."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Purchase(Base):
    """A student's right to take a test, approved by an admin."""

    __tablename__ = "purchases"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    student_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    test_id: Mapped[str] = mapped_column(
        ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String(20), default=PurchaseStatus.PENDING.value, nullable=False
    )
    is_demo_access: Mapped[bool] = mapped_column(default=False, nullable=False)
    receipt_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )

    # Relationships
    student: Mapped["User"] = relationship("User", foreign_keys=[student_id])
    test: Mapped["Test"] = relationship("Test")

    @property
    def is_approved(self) -> bool:
        return self.status == PurchaseStatus.APPROVED.value
