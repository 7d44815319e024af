"""
Background Job Scheduler.

WHAT: Configures and manages APScheduler for background tasks.

WHY: Quotations whose validity has ended must move to EXPIRED even when
nobody opens the quotation list. The periodic sweep does that for every
organization; the list endpoint additionally triggers a sweep for its own
organization.

HOW: AsyncIOScheduler with an in-memory job store. The sweep runs in its
own transaction and never raises: a failure is logged and the next run
tries again.

Example:
    # In main.py startup:
    from bizledger.services.scheduler import start_scheduler, shutdown_scheduler

    @app.on_event("startup")
    async def startup():
        await start_scheduler()
"""

import logging
from datetime import date
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.triggers.interval import IntervalTrigger

from bizledger.core.config import settings
from bizledger.db.session import session_scope
from bizledger.services.quotation_service import QuotationService


logger = logging.getLogger(__name__)

QUOTATION_EXPIRY_JOB_ID = "quotation_expiry_sweep"

# Global scheduler instance
_scheduler: Optional[AsyncIOScheduler] = None


async def expire_quotations(
    org_id: Optional[int] = None,
    today: Optional[date] = None,
    session_factory=None,
) -> int:
    """
    Run the quotation expiry sweep in its own transaction.

    Args:
        org_id: One organization, or None for all
        today: Current date (injected in tests)
        session_factory: Session factory (tests pass their own)

    Returns:
        Number of quotations expired, 0 if the sweep failed
    """
    try:
        async with session_scope(session_factory) as session:
            return await QuotationService(session).expire_sweep(org_id=org_id, today=today)
    except Exception as e:
        logger.error(f"Quotation expiry sweep failed (org={org_id or 'all'}): {e}", exc_info=True)
        return 0


async def start_scheduler() -> None:
    """
    Start the background job scheduler.

    Note: Call this from FastAPI startup event.
    """
    global _scheduler

    if _scheduler is not None and _scheduler.running:
        logger.warning("Scheduler already running")
        return

    _scheduler = AsyncIOScheduler(
        jobstores={"default": MemoryJobStore()},
        executors={"default": AsyncIOExecutor()},
        job_defaults={
            "coalesce": True,  # Combine multiple missed runs into one
            "max_instances": 1,
            "misfire_grace_time": 60,
        },
        timezone="UTC",
    )

    _register_quotation_expiry_job()

    _scheduler.start()
    logger.info(
        "Scheduler started with quotation expiry sweep every "
        f"{settings.QUOTATION_EXPIRY_SWEEP_INTERVAL_SECONDS} seconds"
    )


def _register_quotation_expiry_job() -> None:
    if _scheduler is None:
        logger.error("Cannot register job: scheduler not initialized")
        return

    _scheduler.add_job(
        func=expire_quotations,
        trigger=IntervalTrigger(seconds=settings.QUOTATION_EXPIRY_SWEEP_INTERVAL_SECONDS),
        id=QUOTATION_EXPIRY_JOB_ID,
        name="Quotation Expiry Sweep",
        replace_existing=True,
    )


async def shutdown_scheduler() -> None:
    """
    Shut down the background job scheduler.

    Note: Call this from FastAPI shutdown event.
    """
    global _scheduler

    if _scheduler is None:
        logger.info("Scheduler not running")
        return

    if not _scheduler.running:
        logger.info("Scheduler already stopped")
        _scheduler = None
        return

    logger.info("Shutting down scheduler...")
    _scheduler.shutdown(wait=True)
    _scheduler = None
    logger.info("Scheduler shut down successfully")


def get_scheduler_status() -> dict:
    """
    Get scheduler status information for the health check.

    Returns:
        Dict with scheduler status and job details
    """
    if _scheduler is None:
        return {
            "running": False,
            "jobs": [],
            "message": "Scheduler not initialized",
        }

    jobs = [
        {
            "id": job.id,
            "name": job.name,
            "next_run_time": str(job.next_run_time) if job.next_run_time else None,
            "trigger": str(job.trigger),
        }
        for job in _scheduler.get_jobs()
    ]

    return {
        "running": _scheduler.running,
        "jobs": jobs,
        "message": "Scheduler is running" if _scheduler.running else "Scheduler is paused",
    }
