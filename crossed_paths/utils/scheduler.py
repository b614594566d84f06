import logging

from apscheduler.schedulers.background import BackgroundScheduler

from ..config import CLEANUP_INTERVAL_MINUTES, CLEANUP_BATCH_SIZE
from ..core.crossed_alerts import cleanup_expired_crossed_events
from ..core.history import cleanup_expired_history

logger = logging.getLogger(__name__)


def run_crossed_events_cleanup(db=None):
    try:
        result = cleanup_expired_crossed_events(batch_size=CLEANUP_BATCH_SIZE, db=db)
        logger.info(f"[Scheduler] Crossed events cleanup: {result}")
        return result
    except Exception as e:
        logger.error(f"[✗] Crossed events cleanup failed, retrying next run: {e}")
        return None


def run_history_cleanup(db=None):
    try:
        result = cleanup_expired_history(batch_size=CLEANUP_BATCH_SIZE, db=db)
        logger.info(f"[Scheduler] History cleanup: {result}")
        return result
    except Exception as e:
        logger.error(f"[✗] History cleanup failed, retrying next run: {e}")
        return None


def start_scheduler(interval_minutes=CLEANUP_INTERVAL_MINUTES):
    scheduler = BackgroundScheduler()
    scheduler.add_job(run_crossed_events_cleanup, "interval", minutes=interval_minutes,
                      id="cleanup-expired-crossed-events", max_instances=1, coalesce=True)
    scheduler.add_job(run_history_cleanup, "interval", minutes=interval_minutes,
                      id="cleanup-expired-history", max_instances=1, coalesce=True)
    scheduler.start()
    logger.info(f"[i] Cleanup scheduler started, every {interval_minutes} minutes")
    return scheduler
