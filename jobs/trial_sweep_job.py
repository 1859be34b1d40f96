# jobs/trial_sweep_job.py

from core.supabase_client import get_supabase_client
from core.scheduler import run_scheduled_trial_sweep


def run():
    """
    CLI entry point for the nightly trial sweep.
    This is what the platform's Cron Job will call.
    """
    # Make sure Supabase is configured (env vars present)
    client = get_supabase_client()
    if not client:
        raise RuntimeError("Supabase not configured")

    summary = run_scheduled_trial_sweep()
    if summary is None:
        raise RuntimeError("Trial sweep failed")
    return summary


if __name__ == "__main__":
    run()
