"""
APScheduler configuration.

Runs the ledger reconciliation check on an interval. Each run opens its
own session through run_with_retry, so a version conflict with a live
request simply re-runs the check.
"""

import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.executors.asyncio import AsyncIOExecutor

from hotel_ledger.config import settings

logger = logging.getLogger(__name__)

# Job stores
jobstores = {
    'default': MemoryJobStore()
}

# Executors
executors = {
    'default': AsyncIOExecutor(),
}

# Job defaults
job_defaults = {
    'coalesce': True,  # Combine multiple pending executions into one
    'max_instances': 1,  # Only one instance of each job at a time
    'misfire_grace_time': 60,  # Allow 60 seconds grace time for misfires
}

# Create scheduler
scheduler = AsyncIOScheduler(
    jobstores=jobstores,
    executors=executors,
    job_defaults=job_defaults,
    timezone='Asia/Kolkata'
)


async def reconcile_ledger_job(session_factory=None, repair: bool = None) -> dict:
    """
    Recompute vendor and invoice aggregates and log any drift.

    Returns the reconciliation report (empty dict if the run failed).
    """
    from hotel_ledger.database import async_session_factory
    from hotel_ledger.services.concurrency import run_with_retry
    from hotel_ledger.services.reconciliation_service import ReconciliationService

    factory = session_factory or async_session_factory
    repair = settings.RECONCILIATION_AUTO_REPAIR if repair is None else repair

    async def operation(session):
        return await ReconciliationService(session).run(repair=repair)

    try:
        report = await run_with_retry(factory, operation)
    except Exception as e:
        logger.error(f"Job 'reconcile_ledger' failed: {e}")
        return {}

    logger.info(
        f"Job 'reconcile_ledger' completed: "
        f"{len(report['vendors'])} vendor and {len(report['invoices'])} invoice drift entries"
    )
    return report


def start_scheduler():
    """Start the background job scheduler."""
    if not settings.RECONCILIATION_ENABLED:
        logger.info("Ledger reconciliation job disabled")
        return

    if not scheduler.running:
        scheduler.add_job(
            reconcile_ledger_job,
            'interval',
            minutes=settings.RECONCILIATION_INTERVAL_MINUTES,
            id='reconcile_ledger',
            name='Reconcile Ledger Aggregates',
            replace_existing=True,
        )

        scheduler.start()
        logger.info("Background job scheduler started")

        for job in scheduler.get_jobs():
            logger.info(f"Scheduled job: {job.name} - Next run: {job.next_run_time}")


def shutdown_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Background job scheduler stopped")

