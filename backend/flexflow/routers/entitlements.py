from typing import Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from flexflow.core.auth import get_current_user_id
from flexflow.core.database import get_db
from flexflow.schemas.subscription import FeatureAccessResult
from flexflow.services.access_control import check_feature_access_non_blocking, require_feature

router = APIRouter()


def require_path_feature(
    feature: str,
    request: Request,
    db: Session = Depends(get_db),
) -> str:
    return require_feature(feature)(request, db)


@router.get(
    "/{feature}",
    response_model=FeatureAccessResult,
    summary="Check feature access without blocking",
)
async def check_feature(
    feature: str,
    request: Request,
    db: Session = Depends(get_db),
) -> FeatureAccessResult:
    """Report whether the caller may use ``feature`` along with their status."""
    return check_feature_access_non_blocking(get_current_user_id(request), feature, db)


@router.get(
    "/{feature}/access",
    summary="Require access to a feature",
    responses={
        401: {"description": "Authentication required"},
        402: {"description": "Premium feature access required"},
        500: {"description": "Feature access check failed"},
    },
)
async def require_feature_access(
    feature: str,
    user_id: str = Depends(require_path_feature),
) -> dict[str, Any]:
    return {"feature": feature, "user_id": user_id, "has_access": True}
