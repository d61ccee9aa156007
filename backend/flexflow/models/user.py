from enum import Enum

from sqlalchemy import Column, DateTime, String, func

from flexflow.core.database import Base


class SubscriptionStatus(str, Enum):
    FREE_TRIAL = "free_trial"
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELED = "canceled"


class User(Base):
    """Account record carrying the subscription fields the entitlement engine owns."""

    __tablename__ = "users"

    id = Column(String(255), primary_key=True)
    email = Column(String(255), nullable=True, unique=True)
    subscription_status = Column(
        String(20), nullable=False, default=SubscriptionStatus.FREE_TRIAL.value, index=True
    )
    trial_start_date = Column(DateTime(timezone=True), nullable=True)
    trial_end_date = Column(DateTime(timezone=True), nullable=True)
    subscription_start_date = Column(DateTime(timezone=True), nullable=True)
    subscription_expires_at = Column(DateTime(timezone=True), nullable=True)
    billing_reference = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
