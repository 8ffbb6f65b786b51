"""
Scheduler Service
Runs the daily budget reset and debt reminder jobs in-process using APScheduler.
The same work is exposed on /api/cron/* for external cron runners.
"""
import logging
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from app.core.config import settings
from app.utils.budget_periods import run_budget_resets
from app.utils.debt_ledger import check_debt_reminders

logger = logging.getLogger(__name__)

DAILY_JOB_ID = "daily_budget_maintenance"

scheduler: Optional[BackgroundScheduler] = None


def daily_maintenance_job():
    """Reset due budgets, then send debt reminders. Each half is isolated."""
    logger.info("Executing daily maintenance job...")
    try:
        result = run_budget_resets()
        logger.info(f"Budget resets: {result['successful']} ok, {result['failed']} failed")
    except Exception as e:
        logger.error(f"Budget reset job failed: {str(e)}", exc_info=True)

    try:
        result = check_debt_reminders()
        logger.info(f"Debt reminders: {result['reminders_sent']} sent")
    except Exception as e:
        logger.error(f"Debt reminder job failed: {str(e)}", exc_info=True)


def start_scheduler():
    """Start the background scheduler with the daily job"""
    global scheduler

    if scheduler is not None:
        logger.warning("Scheduler is already running")
        return

    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        daily_maintenance_job,
        trigger=CronTrigger(hour=settings.SCHEDULER_HOUR, minute=settings.SCHEDULER_MINUTE),
        id=DAILY_JOB_ID,
        name="Daily budget resets and debt reminders",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        f"Scheduler started: daily job at {settings.SCHEDULER_HOUR:02d}:{settings.SCHEDULER_MINUTE:02d} UTC"
    )


def stop_scheduler():
    """Stop the background scheduler"""
    global scheduler

    if scheduler is not None:
        scheduler.shutdown()
        scheduler = None
        logger.info("Scheduler stopped")


def get_scheduler_status():
    """Get current scheduler status"""
    if scheduler is None:
        return {"running": False, "enabled": settings.SCHEDULER_ENABLED, "jobs": []}

    jobs = []
    for job in scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run": str(job.next_run_time) if job.next_run_time else None
        })

    return {
        "running": scheduler.running,
        "enabled": settings.SCHEDULER_ENABLED,
        "jobs": jobs
    }
