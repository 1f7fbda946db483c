"""Background expiry sweep for pending deposits.

One APScheduler interval job, started and stopped from the FastAPI lifespan.
The sweep is idempotent, so overlapping or repeated runs are harmless;
`max_instances=1` just avoids piling them up.
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from config.settings import settings
from src.pay_common.database import background_session
from src.pay_deposit.application.service import DepositService

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler(timezone="UTC")
_service = DepositService()

SWEEP_JOB_ID = "deposit_expiry_sweep"


async def sweep_expired_deposits() -> int:
    """Expire overdue PENDING deposits. Errors are logged; the next tick retries."""
    try:
        async with background_session() as db:
            return await _service.expire_stale(db)
    except Exception:
        logger.exception("Deposit expiry sweep failed")
        return 0


def start_scheduler() -> None:
    scheduler.add_job(
        sweep_expired_deposits,
        trigger=IntervalTrigger(seconds=settings.DEPOSIT_SWEEP_INTERVAL_SECONDS),
        id=SWEEP_JOB_ID,
        name="Expire pending deposits",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    logger.info(
        "Scheduler started: deposit expiry sweep every %ss",
        settings.DEPOSIT_SWEEP_INTERVAL_SECONDS,
    )


def stop_scheduler() -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
