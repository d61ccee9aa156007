"""Pydantic schemas for SubscriptionAudit."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel


class SubscriptionAuditResponse(BaseModel):
    id: UUID
    user_id: str
    from_status: str
    to_status: str
    reason: str
    metadata_: dict[str, Any] | None

    model_config = {"from_attributes": True}

    created_at: datetime
