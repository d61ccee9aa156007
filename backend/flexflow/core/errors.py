"""Entitlement error hierarchy.

Provides:
- EntitlementError: base for all entitlement failures
- UserNotFound: no subscription record exists for the identity
- Unauthenticated: no identity available to evaluate
- EntitlementDenied: valid user, feature not currently entitled
- EntitlementCheckFailed: store or transition failed (fail-closed)
- InvalidSubscriptionTransition: requested transition is not allowed from the current status
"""

from typing import Any


class EntitlementError(Exception):
    """Base exception for entitlement-related failures."""

    error_code = "ENTITLEMENT_ERROR"
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error_code, "message": self.message}


class UserNotFound(EntitlementError):
    error_code = "USER_NOT_FOUND"
    status_code = 404

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class Unauthenticated(EntitlementError):
    error_code = "UNAUTHENTICATED"
    status_code = 401

    def __init__(self, message: str = "Authentication required", feature: str | None = None):
        self.feature = feature
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        if self.feature is not None:
            d["feature"] = self.feature
            d["access_denied"] = True
        return d


class EntitlementDenied(EntitlementError):
    """Raised when a known user is not entitled to a feature right now.

    Carries the caller's current status projection so the client can render
    an upgrade prompt without another request.
    """

    error_code = "ENTITLEMENT_DENIED"
    status_code = 402

    def __init__(
        self,
        user_id: str,
        feature: str,
        subscription_status: dict[str, Any] | None = None,
    ):
        self.user_id = user_id
        self.feature = feature
        self.subscription_status = subscription_status
        super().__init__(f"Premium feature access required: {feature}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.error_code,
            "message": self.message,
            "feature": self.feature,
            "access_denied": True,
            "upgrade_required": True,
            "subscription_status": self.subscription_status,
        }


class EntitlementCheckFailed(EntitlementError):
    """Raised when the entitlement decision could not be made (fail-closed)."""

    error_code = "ENTITLEMENT_CHECK_FAILED"
    status_code = 500

    def __init__(
        self,
        user_id: str,
        detail: str,
        feature: str | None = None,
        cause: Exception | None = None,
    ):
        self.user_id = user_id
        self.detail = detail
        self.feature = feature
        self.cause = cause
        super().__init__(f"Entitlement check failed for {user_id}: {detail}")

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"error": self.error_code, "message": "Feature access check failed"}
        if self.feature is not None:
            d["feature"] = self.feature
        return d


class InvalidSubscriptionTransition(EntitlementError):
    error_code = "INVALID_SUBSCRIPTION_TRANSITION"
    status_code = 409

    def __init__(self, user_id: str, from_status: str, to_status: str):
        self.user_id = user_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Cannot transition user {user_id} from {from_status} to {to_status}"
        )
