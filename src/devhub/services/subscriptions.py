"""PRO subscription checks."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from devhub.db.time import as_utc, utcnow
from devhub.models import Subscription
from devhub.models.subscription import SUBSCRIPTION_STATUS_ACTIVE


def has_pro_access(session: Session, user_id: str | None, now: datetime | None = None) -> bool:
    """True when the user holds an active subscription that has not expired."""
    if not user_id:
        return False
    now = now or utcnow()
    expiries = session.scalars(
        select(Subscription.expires_at).where(
            Subscription.user_id == user_id,
            Subscription.status == SUBSCRIPTION_STATUS_ACTIVE,
        )
    ).all()
    return any(expires_at is None or as_utc(expires_at) > now for expires_at in expiries)
