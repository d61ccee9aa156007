from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from flexflow.core.auth import authorize_user_access, get_current_user_id
from flexflow.core.database import get_db
from flexflow.core.errors import EntitlementCheckFailed, Unauthenticated
from flexflow.repositories.subscription_audit_repository import SubscriptionAuditRepository
from flexflow.schemas.subscription import SubscriptionStatusResponse
from flexflow.schemas.subscription_audit import SubscriptionAuditResponse
from flexflow.services.access_control import raise_http
from flexflow.services.subscription_service import SubscriptionService

router = APIRouter()


@router.get(
    "/me",
    response_model=SubscriptionStatusResponse,
    summary="Get the caller's subscription status",
    responses={
        401: {"description": "Authentication required"},
        404: {"description": "No subscription record for the caller"},
    },
)
async def get_my_subscription_status(
    request: Request,
    db: Session = Depends(get_db),
) -> SubscriptionStatusResponse:
    """Return the caller's status projection, expiring a lapsed trial first."""
    user_id = get_current_user_id(request)
    if not user_id:
        raise_http(Unauthenticated())

    try:
        status = SubscriptionService(db).get_subscription_status(user_id)
    except EntitlementCheckFailed as e:
        raise_http(e)
    if status is None:
        raise HTTPException(status_code=404, detail="Subscription not found")
    return status


@router.get(
    "/{user_id}/audit_logs",
    response_model=list[SubscriptionAuditResponse],
    summary="Get the subscription audit trail for a user",
    responses={
        401: {"description": "Authentication required"},
        403: {"description": "Audit trail belongs to another user"},
    },
)
async def get_subscription_audit_logs(
    user_id: str,
    request: Request,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=1000),
    db: Session = Depends(get_db),
) -> list[SubscriptionAuditResponse]:
    """Most recent audit records for a user, newest first.

    Readable by the user themselves or by an operator.
    """
    authorize_user_access(request, user_id)
    repo = SubscriptionAuditRepository(db)
    logs = repo.get_by_user(user_id, skip=skip, limit=limit)
    return [SubscriptionAuditResponse.model_validate(log) for log in logs]
