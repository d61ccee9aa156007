"""SubscriptionAudit model: append-only trail of subscription status changes."""

from enum import Enum

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String

from flexflow.core.database import Base
from flexflow.models.shared import UUIDType, generate_uuid, utc_now


class AuditReason(str, Enum):
    TRIAL_EXPIRED = "trial_expired"
    UPGRADED_TO_PREMIUM = "upgraded_to_premium"


class SubscriptionAudit(Base):
    __tablename__ = "subscription_audits"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_id = Column(
        String(255),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    from_status = Column(String(20), nullable=False)
    to_status = Column(String(20), nullable=False)
    reason = Column(String(50), nullable=False, index=True)
    metadata_ = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)
