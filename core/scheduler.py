# core/scheduler.py
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from datetime import datetime, timezone
import traceback

from core.config import settings
from core.directories import SupabaseOrganizationDirectory, SupabaseUserDirectory
from core.logging_config import logger
from core.notifications import send_webhook_message
from core.supabase_client import get_supabase_client
from core.trials import format_sweep_summary, process_expired_trials


def run_scheduled_trial_sweep():
    """Expire overdue trials, remind owners, then post the summary."""
    start_time = datetime.now(timezone.utc)
    try:
        logger.info("[SCHEDULER] Starting trial sweep...")

        client = get_supabase_client()
        if not client:
            raise RuntimeError("Supabase not configured")

        summary = process_expired_trials(
            organizations=SupabaseOrganizationDirectory(client),
            users=SupabaseUserDirectory(client),
            now=start_time,
        )

        end_time = datetime.now(timezone.utc)
        send_webhook_message(
            "[Keja] Trial sweep completed ✅\n\n"
            + format_sweep_summary(summary, start_time, end_time)
        )
        return summary

    except Exception as e:
        logger.error(f"[SCHEDULER] ❌ Trial sweep failed: {e}", exc_info=True)
        send_webhook_message(
            f"[Keja] Trial sweep failed ❌\n\nError: {e}\n\nTraceback:\n{traceback.format_exc()}"
        )
        return None


def start_scheduler() -> BackgroundScheduler:
    """
    Initialize the APScheduler background process.
    Runs the trial sweep once a day.
    """
    scheduler = BackgroundScheduler(timezone="UTC")

    scheduler.add_job(
        run_scheduled_trial_sweep,
        trigger=CronTrigger(hour=settings.TRIAL_SWEEP_HOUR_UTC, minute=0),
        id="trial_sweep_job",
        replace_existing=True,
        max_instances=1,
    )

    scheduler.start()
    logger.info(f"⏰ Scheduler started. Trial sweep set for {settings.TRIAL_SWEEP_HOUR_UTC:02d}:00 UTC.")
    return scheduler
