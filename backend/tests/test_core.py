"""Tests for identity extraction, the error hierarchy, and logging configuration."""

import json
import logging
from unittest.mock import patch

import jwt
import pytest
from fastapi import HTTPException
from starlette.requests import Request

from flexflow.core.auth import (
    authorize_user_access,
    decode_access_token,
    get_current_user_id,
    is_operator,
    require_operator,
)
from flexflow.core.config import settings
from flexflow.core.errors import (
    EntitlementCheckFailed,
    EntitlementDenied,
    EntitlementError,
    InvalidSubscriptionTransition,
    Unauthenticated,
    UserNotFound,
)
from flexflow.core.logging_config import JsonFormatter, configure_logging
from tests.conftest import OPERATOR_KEY


def _request(headers: dict[str, str] | None = None) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw})


class TestGetCurrentUserId:
    def test_anonymous(self):
        assert get_current_user_id(_request()) is None

    def test_request_state_wins(self):
        request = _request({"Authorization": "Bearer garbage"})
        request.state.user_id = "user-7"

        assert get_current_user_id(request) == "user-7"

    def test_bearer_token(self):
        token = jwt.encode({"sub": "user-1"}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

        assert get_current_user_id(_request({"Authorization": f"Bearer {token}"})) == "user-1"

    def test_wrong_scheme(self):
        with pytest.raises(HTTPException) as exc_info:
            get_current_user_id(_request({"Authorization": "Basic abc"}))
        assert exc_info.value.status_code == 401

    def test_wrong_signature(self):
        token = jwt.encode({"sub": "user-1"}, "other-secret", algorithm=settings.JWT_ALGORITHM)

        with pytest.raises(HTTPException) as exc_info:
            get_current_user_id(_request({"Authorization": f"Bearer {token}"}))
        assert exc_info.value.detail == "Invalid access token"

    def test_missing_subject(self):
        token = jwt.encode({"role": "x"}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

        with pytest.raises(KeyError):
            decode_access_token(token)


class TestOperatorAccess:
    def test_matching_key(self):
        assert is_operator(_request({"X-Operator-Key": OPERATOR_KEY})) is True

    def test_wrong_or_missing_key(self):
        assert is_operator(_request({"X-Operator-Key": "guess"})) is False
        assert is_operator(_request()) is False

    def test_unconfigured_key_grants_nothing(self):
        with patch.object(settings, "OPERATOR_API_KEY", ""):
            assert is_operator(_request({"X-Operator-Key": ""})) is False

    def test_require_operator_rejects(self):
        with pytest.raises(HTTPException) as exc_info:
            require_operator(_request())
        assert exc_info.value.status_code == 401

    def test_user_may_read_own_records(self):
        token = jwt.encode({"sub": "user-1"}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

        authorize_user_access(_request({"Authorization": f"Bearer {token}"}), "user-1")

    def test_anonymous_caller_is_unauthenticated(self):
        with pytest.raises(HTTPException) as exc_info:
            authorize_user_access(_request(), "user-1")
        assert exc_info.value.status_code == 401

    def test_other_user_is_forbidden(self):
        request = _request()
        request.state.user_id = "user-2"

        with pytest.raises(HTTPException) as exc_info:
            authorize_user_access(request, "user-1")
        assert exc_info.value.status_code == 403

    def test_operator_may_read_any_user(self):
        authorize_user_access(_request({"X-Operator-Key": OPERATOR_KEY}), "user-1")


class TestErrors:
    def test_status_codes(self):
        assert Unauthenticated().status_code == 401
        assert EntitlementDenied("u", "meal_plans").status_code == 402
        assert UserNotFound("u").status_code == 404
        assert InvalidSubscriptionTransition("u", "canceled", "active").status_code == 409
        assert EntitlementCheckFailed("u", "db down").status_code == 500

    def test_all_share_a_base(self):
        for error in (
            Unauthenticated(),
            EntitlementDenied("u", "f"),
            UserNotFound("u"),
            EntitlementCheckFailed("u", "x"),
        ):
            assert isinstance(error, EntitlementError)

    def test_denied_payload(self):
        error = EntitlementDenied(
            "u", "meal_plans", subscription_status={"subscription_status": "expired"}
        )

        assert error.to_dict() == {
            "error": "ENTITLEMENT_DENIED",
            "message": "Premium feature access required: meal_plans",
            "feature": "meal_plans",
            "access_denied": True,
            "upgrade_required": True,
            "subscription_status": {"subscription_status": "expired"},
        }

    def test_check_failed_hides_cause(self):
        error = EntitlementCheckFailed("u", "password=hunter2", cause=RuntimeError("x"))

        assert "hunter2" not in json.dumps(error.to_dict())

    def test_user_not_found_message(self):
        assert UserNotFound("u-1").to_dict() == {
            "error": "USER_NOT_FOUND",
            "message": "User u-1 not found",
        }


class TestLogging:
    def test_json_formatter(self):
        record = logging.LogRecord(
            "flexflow.test", logging.INFO, __file__, 1, "hello %s", ("x",), None
        )

        payload = json.loads(JsonFormatter().format(record))

        assert payload["level"] == "INFO"
        assert payload["logger"] == "flexflow.test"
        assert payload["message"] == "hello x"

    def test_configure_logging_sets_level(self):
        root = logging.getLogger()
        original_handlers = root.handlers[:]
        original_level = root.level
        try:
            with patch.object(settings, "LOG_LEVEL", "WARNING"), patch.object(
                settings, "LOG_JSON", True
            ):
                configure_logging()
            assert root.level == logging.WARNING
            assert isinstance(root.handlers[-1].formatter, JsonFormatter)
        finally:
            root.handlers = original_handlers
            root.setLevel(original_level)
