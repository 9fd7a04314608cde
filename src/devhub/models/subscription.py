"""Paid-tier subscriptions."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from devhub.db.session import Base, new_id
from devhub.db.time import utcnow

SUBSCRIPTION_STATUS_ACTIVE = "active"


class Subscription(Base):
    """A PRO subscription period for a profile."""

    __tablename__ = "subscriptions"
    __table_args__ = (Index("ix_subscriptions_user_id", "user_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    plan: Mapped[str] = mapped_column(Text, nullable=False, default="pro")
    status: Mapped[str] = mapped_column(Text, nullable=False, default=SUBSCRIPTION_STATUS_ACTIVE)
    # NULL means the subscription does not lapse.
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
