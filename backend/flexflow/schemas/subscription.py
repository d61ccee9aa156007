from datetime import datetime

from pydantic import BaseModel, Field

from flexflow.models.user import SubscriptionStatus


class SubscriptionStatusResponse(BaseModel):
    """Read-only projection of a user's subscription state."""

    subscription_status: SubscriptionStatus
    trial_start_date: datetime | None
    trial_end_date: datetime | None
    trial_expired: bool
    trial_days_remaining: int
    subscription_expires_at: datetime | None
    has_active_subscription: bool


class SubscriptionResponse(BaseModel):
    id: str
    subscription_status: SubscriptionStatus
    trial_start_date: datetime | None
    trial_end_date: datetime | None
    subscription_start_date: datetime | None
    subscription_expires_at: datetime | None
    billing_reference: str | None

    model_config = {"from_attributes": True}


class PaymentConfirmation(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=255)
    billing_reference: str | None = Field(default=None, max_length=255)


class FeatureAccessResult(BaseModel):
    feature: str
    has_access: bool
    subscription_status: SubscriptionStatusResponse | None = None
