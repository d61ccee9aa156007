import logging
from typing import Any

from arq import cron

from flexflow.core.database import SessionLocal
from flexflow.core.errors import EntitlementCheckFailed
from flexflow.models.shared import utc_now
from flexflow.repositories.user_repository import UserRepository
from flexflow.services.subscription_service import SubscriptionService
from flexflow.tasks import redis_settings

logger = logging.getLogger(__name__)


async def reconcile_expired_trials_task(ctx: dict[str, Any]) -> int:
    """Background task: expire free trials whose window has lapsed.

    Lazy expiry on each request stays authoritative; this only brings idle
    accounts up to date. Runs hourly.
    """
    db = SessionLocal()
    try:
        service = SubscriptionService(db)
        lapsed = UserRepository(db).get_lapsed_trials(utc_now())
        count = 0

        for user in lapsed:
            user_id = str(user.id)
            try:
                if service.expire_lapsed_trial(user_id):
                    count += 1
            except EntitlementCheckFailed:
                logger.warning("Could not reconcile trial for user %s", user_id)

        if count > 0:
            logger.info("Reconciled %d expired trials", count)
        return count
    finally:
        db.close()


class WorkerSettings:
    functions = [
        reconcile_expired_trials_task,
    ]
    cron_jobs = [
        cron(reconcile_expired_trials_task, minute={0}),  # hourly
    ]
    redis_settings = redis_settings
