"""
Backfill script: pull the athlete's full Strava history into the DB.

Usage:
    python -m fitboard backfill                  # everything
    python -m fitboard backfill --max-count 500  # newest 500 only

Pages are fetched newest first through the same StravaSyncService the API
uses. Re-running is safe: activities are upserted by Strava id. If Strava
rate-limits the run, everything merged so far is kept; re-run after the
reported retry window.
"""
import argparse
import asyncio
import logging
import sys

logger = logging.getLogger(__name__)


async def _backfill(max_count: int, force: bool) -> int:
    from fitboard.db.engine import get_engine
    from fitboard.db.store import ActivityStore
    from fitboard.strava.client import StravaClient
    from fitboard.strava.errors import RateLimitedError, SyncError
    from fitboard.strava.sync_service import StravaSyncService

    engine = get_engine()
    store = ActivityStore(engine)
    before = store.count_activities()

    async with StravaClient() as client:
        service = StravaSyncService(client=client, engine=engine)
        try:
            synced = await service.sync_activities(max_count, force_full_sync=force)
        except RateLimitedError as exc:
            logger.error(
                "Rate limited (usage=%s limit=%s). Retry after %ss; %d activities now stored.",
                exc.usage, exc.limit, exc.retry_after, store.count_activities(),
            )
            return 1
        except SyncError as exc:
            logger.error("Backfill failed: %s", exc)
            return 1

    logger.info(
        "Backfill complete. Merged: %d, stored before: %d, stored now: %d",
        synced, before, store.count_activities(),
    )
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Backfill Strava activities")
    parser.add_argument(
        "--max-count",
        type=int,
        default=0,
        help="Most-recent activities to sync; 0 means all (default: 0)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Ignore the freshness check for partial syncs",
    )
    args = parser.parse_args(argv)
    return asyncio.run(_backfill(args.max_count, args.force))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    sys.exit(main())
