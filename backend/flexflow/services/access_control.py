"""Request guards that enforce premium feature entitlements.

Usage:
    @router.get("/meal-plans")
    async def meal_plans(user_id: str = Depends(require_feature("meal_plans"))):
        ...

The guard never fails open: if the decision cannot be made the request is
rejected with ``EntitlementCheckFailed``.
"""

import logging
from collections.abc import Callable
from typing import NoReturn

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from flexflow.core.auth import get_current_user_id
from flexflow.core.database import get_db
from flexflow.core.errors import (
    EntitlementCheckFailed,
    EntitlementDenied,
    EntitlementError,
    Unauthenticated,
)
from flexflow.schemas.subscription import FeatureAccessResult
from flexflow.services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)


def raise_http(error: EntitlementError) -> NoReturn:
    raise HTTPException(status_code=error.status_code, detail=error.to_dict()) from error


def evaluate_feature_access(service: SubscriptionService, user_id: str, feature: str) -> None:
    """Raise ``EntitlementDenied`` or ``EntitlementCheckFailed`` unless entitled."""
    try:
        allowed = service.check_feature_access(user_id, feature)
        if allowed:
            return
        status = service.get_subscription_status(user_id)
    except EntitlementCheckFailed as e:
        e.feature = feature
        raise
    except Exception as e:
        logger.exception("Feature access check failed for %s", feature)
        raise EntitlementCheckFailed(user_id, str(e), feature=feature, cause=e) from e

    raise EntitlementDenied(
        user_id,
        feature,
        subscription_status=status.model_dump(mode="json") if status else None,
    )


def require_feature(feature: str) -> Callable[..., str]:
    """Build a dependency that admits only callers entitled to ``feature``.

    Maps ``Unauthenticated`` to 401, ``EntitlementDenied`` to 402 and
    ``EntitlementCheckFailed`` to 500. Returns the entitled user id.
    """

    def guard(request: Request, db: Session = Depends(get_db)) -> str:
        user_id = get_current_user_id(request)
        if not user_id:
            raise_http(Unauthenticated(feature=feature))

        try:
            evaluate_feature_access(SubscriptionService(db), user_id, feature)
        except EntitlementError as e:
            if isinstance(e, EntitlementDenied):
                logger.info("Denied %s to user %s", feature, user_id)
            raise_http(e)
        return user_id

    guard.__required_feature__ = feature  # type: ignore[attr-defined]
    return guard


def check_feature_access_non_blocking(
    user_id: str | None,
    feature: str,
    db: Session,
) -> FeatureAccessResult:
    """Report access and current status without rejecting the request.

    Any failure, including a missing identity, answers ``has_access=False``.
    """
    if not user_id:
        return FeatureAccessResult(feature=feature, has_access=False)

    service = SubscriptionService(db)
    try:
        has_access = service.check_feature_access(user_id, feature)
        status = service.get_subscription_status(user_id)
    except Exception:
        logger.exception("Non-blocking feature access check failed for %s", feature)
        return FeatureAccessResult(feature=feature, has_access=False)

    return FeatureAccessResult(feature=feature, has_access=has_access, subscription_status=status)
