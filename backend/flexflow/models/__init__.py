from flexflow.models.subscription_audit import AuditReason, SubscriptionAudit
from flexflow.models.user import SubscriptionStatus, User

__all__ = [
    "AuditReason",
    "SubscriptionAudit",
    "SubscriptionStatus",
    "User",
]
