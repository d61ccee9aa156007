"""Repository for the append-only SubscriptionAudit table.

Records are only ever inserted; no update or delete is exposed.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from flexflow.models.shared import generate_uuid
from flexflow.models.subscription_audit import SubscriptionAudit


class SubscriptionAuditRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        *,
        user_id: str,
        from_status: str,
        to_status: str,
        reason: str,
        metadata: dict[str, Any] | None = None,
    ) -> SubscriptionAudit:
        """Stage an audit record. Flushes without committing."""
        audit = SubscriptionAudit(
            id=generate_uuid(),
            user_id=user_id,
            from_status=from_status,
            to_status=to_status,
            reason=reason,
            metadata_=metadata,
        )
        self.db.add(audit)
        self.db.flush()
        return audit

    def get_by_user(
        self,
        user_id: str,
        skip: int = 0,
        limit: int = 100,
    ) -> list[SubscriptionAudit]:
        return (
            self.db.query(SubscriptionAudit)
            .filter(SubscriptionAudit.user_id == user_id)
            .order_by(SubscriptionAudit.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count_by_user(self, user_id: str) -> int:
        return (
            self.db.query(SubscriptionAudit)
            .filter(SubscriptionAudit.user_id == user_id)
            .count()
        )
