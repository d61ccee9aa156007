"""Audit service for recording subscription status changes."""

from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from flexflow.models.subscription_audit import AuditReason, SubscriptionAudit
from flexflow.models.user import SubscriptionStatus
from flexflow.repositories.subscription_audit_repository import SubscriptionAuditRepository


def _serialize(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class AuditService:
    """Service for recording audit trail entries."""

    def __init__(self, db: Session):
        self.repo = SubscriptionAuditRepository(db)

    def log_status_change(
        self,
        user_id: str,
        from_status: SubscriptionStatus | str,
        to_status: SubscriptionStatus | str,
        reason: AuditReason,
        metadata: dict[str, Any] | None = None,
    ) -> SubscriptionAudit:
        """Stage one audit record for a status change.

        The record becomes durable with the caller's commit, together with
        the status write it describes.
        """
        return self.repo.create(
            user_id=user_id,
            from_status=SubscriptionStatus(from_status).value,
            to_status=SubscriptionStatus(to_status).value,
            reason=reason.value,
            metadata={k: _serialize(v) for k, v in (metadata or {}).items()},
        )
