"""Payment confirmation callbacks.

Internal endpoint: the payment processor has already verified the checkout and
the billing integration calls in with the operator key to apply the upgrade.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from flexflow.core.auth import require_operator
from flexflow.core.database import get_db
from flexflow.core.errors import EntitlementError
from flexflow.schemas.subscription import PaymentConfirmation, SubscriptionResponse
from flexflow.services.access_control import raise_http
from flexflow.services.subscription_service import SubscriptionService

router = APIRouter(dependencies=[Depends(require_operator)])


@router.post(
    "/confirmations",
    response_model=SubscriptionResponse,
    summary="Apply a confirmed payment",
    responses={
        401: {"description": "Invalid or missing operator key"},
        404: {"description": "User not found"},
        409: {"description": "Subscription is canceled"},
        500: {"description": "Upgrade could not be persisted"},
    },
)
async def confirm_payment(
    data: PaymentConfirmation,
    db: Session = Depends(get_db),
) -> SubscriptionResponse:
    """Upgrade the paying user to an open-ended premium subscription."""
    service = SubscriptionService(db)
    try:
        user = service.upgrade_to_premium(data.user_id, data.billing_reference)
    except EntitlementError as e:
        raise_http(e)
    return SubscriptionResponse.model_validate(user)
