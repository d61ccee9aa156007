from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from flexflow.core.config import settings
from flexflow.models.shared import as_utc, utc_now
from flexflow.models.user import SubscriptionStatus, User
from flexflow.schemas.user import UserCreate


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: str) -> User | None:
        return self.db.query(User).filter(User.id == user_id).first()

    def create(self, data: UserCreate) -> User:
        """Create an account on a fresh trial window."""
        trial_start = as_utc(data.trial_start_date) or utc_now()
        trial_days = (
            data.trial_period_days
            if data.trial_period_days is not None
            else settings.TRIAL_PERIOD_DAYS
        )
        user = User(
            id=data.id,
            email=data.email,
            subscription_status=SubscriptionStatus.FREE_TRIAL.value,
            trial_start_date=trial_start,
            trial_end_date=trial_start + timedelta(days=trial_days),
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def get_lapsed_trials(self, now: datetime, limit: int = 500) -> list[User]:
        """Users still marked free_trial whose trial window ended before ``now``."""
        now = as_utc(now)  # type: ignore[assignment]
        return (
            self.db.query(User)
            .filter(
                User.subscription_status == SubscriptionStatus.FREE_TRIAL.value,
                User.trial_end_date.isnot(None),
                User.trial_end_date < now,
            )
            .order_by(User.trial_end_date)
            .limit(limit)
            .all()
        )

    def transition_status(
        self,
        user_id: str,
        from_statuses: Iterable[SubscriptionStatus],
        to_status: SubscriptionStatus,
        fields: dict[str, Any] | None = None,
    ) -> bool:
        """Move a user to ``to_status`` only if it is still in one of ``from_statuses``.

        Only the status and the given ``fields`` are written, with datetimes
        converted to UTC. Flushes without committing; the caller owns the
        transaction. Returns False when no row matched, i.e. the user is
        missing or was already moved by a concurrent writer.
        """
        values: dict[Any, Any] = {User.subscription_status: to_status.value}
        for key, value in (fields or {}).items():
            if isinstance(value, datetime):
                value = as_utc(value)
            values[getattr(User, key)] = value
        matched = (
            self.db.query(User)
            .filter(
                User.id == user_id,
                User.subscription_status.in_([s.value for s in from_statuses]),
            )
            .update(values, synchronize_session=False)
        )
        self.db.flush()
        return bool(matched)
