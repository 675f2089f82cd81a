"""
SafetyHub Reminders — Scheduler Jobs

In-process alternative to the HTTP cron triggers. Uses its own APScheduler
BackgroundScheduler; each job runs the async routine with asyncio.run on the
scheduler's worker thread.
"""
import asyncio
import logging
from apscheduler.schedulers.background import BackgroundScheduler

from .config import ReminderConfig
from .digest import run_monthly_expiry_alerts
from .engine import run_training_reminders

logger = logging.getLogger(__name__)

_scheduler = None


def get_reminder_scheduler() -> BackgroundScheduler:
    """Get or create the singleton reminder scheduler."""
    global _scheduler
    if _scheduler is None:
        _scheduler = BackgroundScheduler(
            job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": 3600}
        )
    return _scheduler


def init_reminder_scheduler(config: ReminderConfig = None) -> bool:
    """Register and start reminder jobs. Returns False when scheduling is disabled."""
    config = config or ReminderConfig.from_env()
    if not config.scheduler_enabled:
        logger.info("[Reminders] Scheduler disabled (set SAFETYHUB_SCHEDULER=1 to enable)")
        return False

    scheduler = get_reminder_scheduler()
    if scheduler.running:
        return True

    # Daily per-course reminders
    scheduler.add_job(
        _daily_training_reminders,
        "cron",
        hour=7,
        minute=0,
        id="training_reminders_daily",
        replace_existing=True,
    )

    # Monthly digest + manager summary on the 1st
    scheduler.add_job(
        _monthly_expiry_digest,
        "cron",
        day=1,
        hour=8,
        minute=0,
        id="training_expiry_monthly",
        replace_existing=True,
    )

    scheduler.start()
    logger.info("[Reminders] Scheduler started with daily reminder and monthly digest jobs")
    return True


def shutdown_reminder_scheduler():
    if _scheduler is not None and _scheduler.running:
        _scheduler.shutdown(wait=False)


def _daily_training_reminders():
    try:
        summary = asyncio.run(run_training_reminders(ReminderConfig.from_env()))
        logger.info(
            f"[Reminders] Daily run: sent={summary['notificationsSent']} "
            f"records={summary['totalRecords']} errors={len(summary.get('errors', []))}"
        )
    except Exception as e:
        logger.error(f"[Reminders] Daily training reminders failed: {e}")


def _monthly_expiry_digest():
    try:
        summary = asyncio.run(run_monthly_expiry_alerts(ReminderConfig.from_env()))
        logger.info(f"[Reminders] Monthly digest: {summary['message']}")
    except Exception as e:
        logger.error(f"[Reminders] Monthly expiry digest failed: {e}")
