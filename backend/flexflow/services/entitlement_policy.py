"""Entitlement policy: pure decisions over a user's subscription state.

Nothing here performs I/O. ``now`` is always supplied by the caller.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from flexflow.models.shared import as_utc
from flexflow.models.user import SubscriptionStatus, User

ONE_DAY = timedelta(days=1)


class PremiumFeature(str, Enum):
    WORKOUT_PLANNER = "workout_planner"
    MILE_TRACKER = "mile_tracker"
    MEAL_PLANS = "meal_plans"
    MEAL_TRACKER = "meal_tracker"
    PROGRESS_PHOTOS = "progress_photos"


@dataclass(frozen=True)
class SubscriptionState:
    status: SubscriptionStatus
    trial_end_date: datetime | None = None

    @classmethod
    def from_user(cls, user: User) -> "SubscriptionState":
        return cls(
            status=SubscriptionStatus(user.subscription_status),
            trial_end_date=as_utc(user.trial_end_date),  # type: ignore[arg-type]
        )


def is_trial_expired(state: SubscriptionState, now: datetime) -> bool:
    """True only while on a free trial whose end date has strictly passed.

    A stale ``trial_end_date`` on any other status is ignored.
    """
    if state.status != SubscriptionStatus.FREE_TRIAL or state.trial_end_date is None:
        return False
    return as_utc(now) > as_utc(state.trial_end_date)  # type: ignore[operator]


def has_feature_access(state: SubscriptionState, feature: str, now: datetime) -> bool:
    """Whether ``feature`` is usable right now.

    Gating is flat: every premium feature follows the same rule, so
    ``feature`` does not influence the result yet.
    """
    if state.status == SubscriptionStatus.ACTIVE:
        return True
    if state.status == SubscriptionStatus.FREE_TRIAL:
        return not is_trial_expired(state, now)
    return False


def trial_days_remaining(state: SubscriptionState, now: datetime) -> int:
    if state.trial_end_date is None:
        return 0
    remaining = as_utc(state.trial_end_date) - as_utc(now)  # type: ignore[operator]
    return max(0, math.ceil(remaining / ONE_DAY))
