import hmac

import jwt
from fastapi import HTTPException, Request

from flexflow.core.config import settings


def decode_access_token(token: str) -> str:
    """Validate an access token and return the user id in its ``sub`` claim."""
    payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    user_id = payload["sub"]
    if not user_id:
        raise ValueError("Token has an empty subject")
    return str(user_id)


OPERATOR_KEY_HEADER = "X-Operator-Key"


def is_operator(request: Request) -> bool:
    """Whether the request carries the configured operator key."""
    expected = settings.OPERATOR_API_KEY
    provided = request.headers.get(OPERATOR_KEY_HEADER)
    if not expected or not provided:
        return False
    return hmac.compare_digest(provided.encode(), expected.encode())


def require_operator(request: Request) -> None:
    """Dependency for internal-only endpoints."""
    if not is_operator(request):
        raise HTTPException(status_code=401, detail="Invalid or missing operator key")


def get_current_user_id(request: Request) -> str | None:
    """Return the authenticated caller's user id, or ``None`` when anonymous.

    An upstream authentication layer may already have placed the identity on
    ``request.state.user_id``; otherwise a ``Bearer`` access token is decoded.
    A token that is present but invalid is rejected rather than treated as
    anonymous.
    """
    user_id = getattr(request.state, "user_id", None)
    if user_id:
        return str(user_id)

    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    if not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header format")

    token = auth_header[7:]
    if not token:
        return None

    try:
        return decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Access token has expired") from None
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid access token") from None


def authorize_user_access(request: Request, user_id: str) -> None:
    """Allow operators, or the authenticated user reading their own records.

    Raises:
        HTTPException: 401 when the caller is anonymous, 403 for another user's records.
    """
    if is_operator(request):
        return
    caller_id = get_current_user_id(request)
    if not caller_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    if caller_id != user_id:
        raise HTTPException(status_code=403, detail="Not allowed to access this user")
