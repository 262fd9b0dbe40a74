"""
StravaSyncService — orchestrates fetching activities from Strava and persisting to DB.

Flow for sync_activities(max_count, force_full_sync):
  1. Freshness short-circuit: skip if the newest stored activity is only a
     few minutes old (unless forced or syncing everything)
  2. Create SyncLog (status="running")
  3. Fetch page 1, 2, … sequentially (newest first); normalize and upsert
     every activity of a page before requesting the next one
  4. Stop at max_count merged, an empty/short page, or the first error
  5. Update SyncLog ("success", "rate_limited", "unauthorized", "error")

Failure handling: every upsert commits on its own, so an error on page N
leaves pages 1..N-1 in the store. Typed errors (RateLimitedError,
UnauthorizedError, UpstreamError) are re-raised unchanged; there is no
retry or sleep here, the caller owns backoff and stale-data fallback.

Single-flight: one list sync runs at a time per service instance. A call
that arrives while one is in flight joins it and gets the same result (or
the same exception). The fetch loop runs in its own task, shielded from the
caller, so an abandoned request does not tear down a sync mid-merge.
"""
import asyncio
import logging
import math
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlmodel import Session

from fitboard.config import get_settings
from fitboard.db.store import ActivityStore
from fitboard.models.activity import Activity
from fitboard.models.sync import SyncLog
from fitboard.strava.errors import (
    MalformedActivityError,
    RateLimitedError,
    UnauthorizedError,
    UpstreamError,
)
from fitboard.strava.normalizer import normalize_activity

logger = logging.getLogger(__name__)

PROGRESS_LOG_EVERY = 50


class SyncState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    MERGING = "merging"
    FAILED = "failed"


class StravaSyncService:
    """Orchestrates Strava → DB sync; one instance per process."""

    def __init__(
        self,
        client,
        engine,
        *,
        page_size: Optional[int] = None,
        freshness_minutes: Optional[int] = None,
        page_timeout: Optional[float] = None,
    ):
        """
        Args:
            client: StravaClient instance (or AsyncMock in tests).
            engine: SQLAlchemy engine (SQLModel create_engine result).
            page_size: Activities per page. Defaults to settings.sync_page_size.
            freshness_minutes: Skip window for non-forced syncs.
            page_timeout: Upper bound in seconds on each upstream call.
        """
        settings = get_settings()
        self.client = client
        self.engine = engine
        self.store = ActivityStore(engine)
        self.page_size = page_size or settings.sync_page_size
        self.freshness_minutes = (
            freshness_minutes if freshness_minutes is not None
            else settings.sync_freshness_minutes
        )
        self.page_timeout = page_timeout or settings.sync_request_timeout_seconds

        self.state = SyncState.IDLE
        self._lock = asyncio.Lock()
        self._inflight: Optional[asyncio.Task] = None

    @property
    def in_progress(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def sync_activities(self, max_count: int = 200, force_full_sync: bool = False) -> int:
        """
        Bring the store up to date with the newest `max_count` Strava activities.

        Args:
            max_count: Most-recent activities to ensure are stored; 0 syncs
                everything Strava returns.
            force_full_sync: Bypass the freshness short-circuit.

        Returns:
            Number of activities merged by this run (0 when skipped). A
            caller that joined an in-flight run gets that run's count.

        Raises:
            RateLimitedError, UnauthorizedError, UpstreamError: upstream
                failure; activities merged before it stay in the store.
        """
        if self.in_progress:
            logger.info("Sync already in progress; joining the in-flight run")
            return await asyncio.shield(self._inflight)

        task = asyncio.ensure_future(self._run_sync(max_count, force_full_sync))
        self._inflight = task
        task.add_done_callback(self._on_sync_done)
        return await asyncio.shield(task)

    async def sync_activity(self, activity_id: int) -> Activity:
        """
        Fetch and persist the detailed record (with splits) for one activity.

        Serialized with list syncs so the two never interleave writes.

        Raises:
            Any SyncError from the client, or MalformedActivityError if the
            detail record fails validation (after recording the error log).
        """
        async with self._lock:
            log = self._create_sync_log("activity")
            try:
                raw = await self._bounded(
                    self.client.get_activity(activity_id), f"activity {activity_id}"
                )
                activity = self.store.upsert_activity(normalize_activity(raw))
            except Exception as exc:
                self._finish_sync_log(log, status=_status_for(exc), error_message=str(exc))
                raise
            self._finish_sync_log(log, status="success", items_synced=1)
            return activity

    # ─── Internal helpers ─────────────────────────────────────────────────────

    def _on_sync_done(self, task: asyncio.Task) -> None:
        if self._inflight is task:
            self._inflight = None
        # Mark the exception retrieved; joined callers re-raise it themselves.
        if not task.cancelled():
            task.exception()

    async def _run_sync(self, max_count: int, force_full_sync: bool) -> int:
        async with self._lock:
            if not force_full_sync and max_count != 0 and self._is_fresh():
                logger.info("Activities are recent, skipping sync")
                self._finish_sync_log(self._create_sync_log("activities"), status="skipped")
                return 0

            sync_all = max_count == 0
            logger.info(
                "Starting sync: %s",
                "ALL activities" if sync_all else
                f"up to {max_count} activities (~{math.ceil(max_count / self.page_size)} pages)",
            )

            log = self._create_sync_log("activities")
            synced = 0
            page = 1
            try:
                while sync_all or synced < max_count:
                    self.state = SyncState.FETCHING
                    batch = await self._bounded(
                        self.client.list_activities(page=page, per_page=self.page_size),
                        f"page {page}",
                    )
                    if not batch:
                        break

                    self.state = SyncState.MERGING
                    synced = self._merge_page(batch, synced, None if sync_all else max_count)

                    # A short page means Strava has nothing older
                    if len(batch) < self.page_size:
                        break
                    page += 1

            except Exception as exc:
                self.state = SyncState.FAILED
                logger.error(
                    "Sync failed on page %d after %d activities: %s", page, synced, exc
                )
                self._finish_sync_log(
                    log, status=_status_for(exc), items_synced=synced, error_message=str(exc)
                )
                raise

            self.state = SyncState.IDLE
            logger.info("Sync complete: %d activities synced", synced)
            self._finish_sync_log(log, status="success", items_synced=synced)
            return synced

    def _merge_page(
        self, batch: List[Dict[str, Any]], synced: int, limit: Optional[int]
    ) -> int:
        """
        Upsert one page of raw activities, newest first; returns the running synced count.

        Stops once `limit` activities have been merged. Malformed records are
        skipped and do not count toward the limit.
        """
        for raw in batch:
            if limit is not None and synced >= limit:
                break
            try:
                fields = normalize_activity(raw)
            except MalformedActivityError as exc:
                logger.warning("Skipping malformed activity: %s", exc)
                continue
            self.store.upsert_activity(fields)
            synced += 1
            if synced % PROGRESS_LOG_EVERY == 0:
                logger.info("Synced %d activities...", synced)
        return synced

    async def _bounded(self, call, what: str):
        """Await an upstream call, turning a timeout into UpstreamError."""
        try:
            return await asyncio.wait_for(call, timeout=self.page_timeout)
        except asyncio.TimeoutError as exc:
            raise UpstreamError(
                f"Timed out after {self.page_timeout}s fetching {what}"
            ) from exc

    def _is_fresh(self) -> bool:
        latest = self.store.get_latest_activity_date()
        if latest is None:
            return False
        return datetime.utcnow() - latest < timedelta(minutes=self.freshness_minutes)

    def _create_sync_log(self, sync_type: str) -> SyncLog:
        log = SyncLog(sync_type=sync_type, started_at=datetime.utcnow(), status="running")
        with Session(self.engine) as s:
            s.add(log)
            s.commit()
            s.refresh(log)
        return log

    def _finish_sync_log(
        self,
        log: SyncLog,
        *,
        status: str,
        items_synced: int = 0,
        error_message: Optional[str] = None,
    ) -> None:
        with Session(self.engine) as s:
            db_log = s.get(SyncLog, log.id)
            db_log.status = status
            db_log.finished_at = datetime.utcnow()
            db_log.items_synced = items_synced
            db_log.error_message = error_message
            s.add(db_log)
            s.commit()


def _status_for(exc: Exception) -> str:
    if isinstance(exc, RateLimitedError):
        return "rate_limited"
    if isinstance(exc, UnauthorizedError):
        return "unauthorized"
    return "error"
