"""
APScheduler jobs for background sync.

A daily sync catches anything the dashboard didn't pull on demand. The
scheduler is started from the API lifespan and is handed the app's own
StravaSyncService, so a scheduled run and a user-triggered run share one
single-flight guard and never fetch in parallel.
"""
import logging
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from fitboard.config import get_settings
from fitboard.strava.errors import RateLimitedError, UnauthorizedError

logger = logging.getLogger(__name__)


def build_scheduler(sync_service) -> AsyncIOScheduler:
    """
    Create and configure the APScheduler.

    Args:
        sync_service: The process-wide StravaSyncService.

    Returns:
        Configured AsyncIOScheduler (not yet started).
    """
    settings = get_settings()
    scheduler = AsyncIOScheduler()

    scheduler.add_job(
        _scheduled_sync,
        trigger="cron",
        hour=settings.sync_hour,
        minute=0,
        id="scheduled_sync",
        replace_existing=True,
        kwargs={"sync_service": sync_service},
    )

    return scheduler


async def _scheduled_sync(sync_service) -> None:
    """
    Daily job: sync the most recent activities from Strava.

    Idempotent: safe to run if already synced today. Never raises, so the
    scheduler stays alive; the next run is the retry.
    """
    settings = get_settings()
    logger.info("Scheduled sync starting at %s", datetime.utcnow().isoformat())

    try:
        synced = await sync_service.sync_activities(settings.sync_default_max_count)
        logger.info("Scheduled sync merged %d activities", synced)
    except RateLimitedError as exc:
        logger.warning(
            "Scheduled sync rate limited (usage=%s limit=%s retry_after=%s)",
            exc.usage, exc.limit, exc.retry_after,
        )
    except UnauthorizedError as exc:
        logger.error("Scheduled sync needs re-authentication: %s", exc)
    except Exception as exc:
        logger.error("Scheduled sync failed: %s", exc)
