"""Subscription service: trial expiry, upgrades, and feature access decisions.

Expiry is detected lazily. Every status or feature query first runs
``check_and_update_trial_status`` so decisions are made against fresh state.
Each status transition and its audit record are committed together.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from flexflow.core.errors import EntitlementCheckFailed, InvalidSubscriptionTransition, UserNotFound
from flexflow.models.shared import as_utc, utc_now
from flexflow.models.subscription_audit import AuditReason
from flexflow.models.user import SubscriptionStatus, User
from flexflow.repositories.user_repository import UserRepository
from flexflow.schemas.subscription import SubscriptionStatusResponse
from flexflow.services.audit_service import AuditService
from flexflow.services.entitlement_policy import (
    SubscriptionState,
    has_feature_access,
    is_trial_expired,
    trial_days_remaining,
)

logger = logging.getLogger(__name__)

UPGRADABLE_STATUSES = (
    SubscriptionStatus.FREE_TRIAL,
    SubscriptionStatus.EXPIRED,
    SubscriptionStatus.ACTIVE,
)


class SubscriptionService:
    """Service for subscription state transitions and entitlement queries."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock
        self.user_repo = UserRepository(db)
        self.audit_service = AuditService(db)

    def _store_failure(
        self, user_id: str, action: str, exc: SQLAlchemyError
    ) -> EntitlementCheckFailed:
        self.db.rollback()
        logger.exception("Store failure while trying to %s for user %s", action, user_id)
        return EntitlementCheckFailed(user_id, f"could not {action}", cause=exc)

    def check_and_update_trial_status(self, user_id: str) -> User | None:
        """Load the user, expiring a lapsed trial on the way.

        Returns None if the user does not exist.
        """
        user, _ = self._refresh_trial_status(user_id)
        return user

    def expire_lapsed_trial(self, user_id: str) -> bool:
        """Expire the user's lapsed trial. True only if this call wrote the transition."""
        _, transitioned = self._refresh_trial_status(user_id)
        return transitioned

    def _refresh_trial_status(self, user_id: str) -> tuple[User | None, bool]:
        transitioned = False
        try:
            user = self.user_repo.get_by_id(user_id)
            if user is None:
                return None, False

            now = self.clock()
            if not is_trial_expired(SubscriptionState.from_user(user), now):
                return user, False

            metadata = {
                "expired_at": now,
                "trial_end_date": as_utc(user.trial_end_date),  # type: ignore[arg-type]
            }
            transitioned = self.user_repo.transition_status(
                user_id,
                from_statuses=[SubscriptionStatus.FREE_TRIAL],
                to_status=SubscriptionStatus.EXPIRED,
            )
            if transitioned:
                self.audit_service.log_status_change(
                    user_id,
                    from_status=SubscriptionStatus.FREE_TRIAL,
                    to_status=SubscriptionStatus.EXPIRED,
                    reason=AuditReason.TRIAL_EXPIRED,
                    metadata=metadata,
                )
            self.db.commit()
            self.db.refresh(user)
        except SQLAlchemyError as e:
            raise self._store_failure(user_id, "update trial status", e) from e

        if transitioned:
            logger.info("Trial expired for user %s", user_id)
        return user, transitioned

    def check_feature_access(self, user_id: str, feature: str) -> bool:
        """Whether the user may use ``feature`` right now. Unknown users are denied."""
        user = self.check_and_update_trial_status(user_id)
        if user is None:
            return False
        return has_feature_access(SubscriptionState.from_user(user), feature, self.clock())

    def get_subscription_status(self, user_id: str) -> SubscriptionStatusResponse | None:
        """Status projection for the user, or None if the user does not exist."""
        user = self.check_and_update_trial_status(user_id)
        if user is None:
            return None

        now = self.clock()
        state = SubscriptionState.from_user(user)
        return SubscriptionStatusResponse(
            subscription_status=state.status,
            trial_start_date=as_utc(user.trial_start_date),  # type: ignore[arg-type]
            trial_end_date=state.trial_end_date,
            trial_expired=(
                state.status == SubscriptionStatus.EXPIRED or is_trial_expired(state, now)
            ),
            trial_days_remaining=trial_days_remaining(state, now),
            subscription_expires_at=as_utc(user.subscription_expires_at),  # type: ignore[arg-type]
            has_active_subscription=state.status == SubscriptionStatus.ACTIVE,
        )

    def upgrade_to_premium(self, user_id: str, billing_reference: str | None = None) -> User:
        """Activate an open-ended paid subscription after confirmed payment.

        Re-upgrading an active user re-persists ``active`` and records another
        audit entry.

        Raises:
            UserNotFound: If the user does not exist.
            InvalidSubscriptionTransition: If the user is canceled.
        """
        try:
            user = self.user_repo.get_by_id(user_id)
            if user is None:
                raise UserNotFound(user_id)

            from_status = SubscriptionStatus(user.subscription_status)
            if from_status not in UPGRADABLE_STATUSES:
                raise InvalidSubscriptionTransition(
                    user_id, from_status.value, SubscriptionStatus.ACTIVE.value
                )

            now = self.clock()
            fields: dict[str, object] = {
                "subscription_start_date": now,
                "subscription_expires_at": None,
            }
            if billing_reference:
                fields["billing_reference"] = billing_reference

            transitioned = self.user_repo.transition_status(
                user_id,
                from_statuses=UPGRADABLE_STATUSES,
                to_status=SubscriptionStatus.ACTIVE,
                fields=fields,
            )
            if not transitioned:
                # Canceled between our read and the conditional update.
                self.db.rollback()
                raise InvalidSubscriptionTransition(
                    user_id, from_status.value, SubscriptionStatus.ACTIVE.value
                )

            self.audit_service.log_status_change(
                user_id,
                from_status=from_status,
                to_status=SubscriptionStatus.ACTIVE,
                reason=AuditReason.UPGRADED_TO_PREMIUM,
                metadata={"upgraded_at": now, "billing_reference": billing_reference},
            )
            self.db.commit()
            self.db.refresh(user)
        except SQLAlchemyError as e:
            raise self._store_failure(user_id, "upgrade to premium", e) from e

        logger.info("User %s upgraded to premium from %s", user_id, from_status.value)
        return user
