"""Activity query routes, with cached-data fallback when a sync fails."""
import logging
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from fitboard.analysis.best_efforts import BestEffortsCache, format_distance, format_time
from fitboard.analysis.streaks import calculate_streaks
from fitboard.api.deps import get_best_efforts_cache, get_store, get_sync_service
from fitboard.api.errors import http_exception_for
from fitboard.config import get_settings
from fitboard.db.store import ActivityStore
from fitboard.models.activity import Activity
from fitboard.strava.errors import RateLimitedError, SyncError, UpstreamError
from fitboard.strava.sync_service import StravaSyncService

logger = logging.getLogger(__name__)

router = APIRouter()


class NeighborsResponse(BaseModel):
    previous: Optional[Activity] = None
    next: Optional[Activity] = None


class BestEffortResponse(BaseModel):
    distance: float
    label: str
    time: float
    formatted_time: str
    pace: float  # s/km
    speed: float  # m/s
    activity_id: int
    activity_name: str
    activity_date: Optional[datetime] = None


class StreaksResponse(BaseModel):
    current: int
    longest: int
    current_start: Optional[date] = None
    longest_start: Optional[date] = None
    longest_end: Optional[date] = None


@router.get("/", response_model=List[Activity])
async def list_activities(
    limit: int = 30,
    offset: int = 0,
    activity_type: Optional[str] = Query(default=None, alias="type"),
    force_sync: bool = False,
    store: ActivityStore = Depends(get_store),
    sync_service: StravaSyncService = Depends(get_sync_service),
):
    """
    List activities newest first, syncing from Strava when the store is
    empty or force_sync is set.

    If that sync is rate limited or fails upstream, stored activities are
    returned instead; the error only surfaces when there is nothing cached.
    """
    activities = store.get_activities(limit, offset, activity_type)

    if not activities or force_sync:
        try:
            await sync_service.sync_activities(
                get_settings().sync_default_max_count, force_full_sync=force_sync
            )
            activities = store.get_activities(limit, offset, activity_type)
        except (RateLimitedError, UpstreamError) as exc:
            if store.count_activities() == 0:
                raise http_exception_for(exc)
            logger.warning("Sync failed, returning cached data: %s", exc)
        except SyncError as exc:
            raise http_exception_for(exc)

    return activities


@router.get("/best-efforts", response_model=List[BestEffortResponse])
def best_efforts(
    activity_type: Optional[str] = Query(default=None, alias="type"),
    store: ActivityStore = Depends(get_store),
    cache: BestEffortsCache = Depends(get_best_efforts_cache),
):
    """Best effort per canonical distance over stored activities (optionally one type)."""
    efforts = cache.get(store.get_all_activities(activity_type))
    return [
        BestEffortResponse(
            distance=effort.distance,
            label=format_distance(effort.distance),
            time=effort.time,
            formatted_time=format_time(effort.time),
            pace=effort.pace,
            speed=effort.speed,
            activity_id=effort.activity_id,
            activity_name=effort.activity_name,
            activity_date=effort.activity_date,
        )
        for effort in efforts.values()
    ]


@router.get("/streaks", response_model=StreaksResponse)
def streaks(
    activity_type: Optional[str] = Query(default=None, alias="type"),
    store: ActivityStore = Depends(get_store),
):
    """Current and longest run of consecutive active days."""
    info = calculate_streaks(store.get_all_activities(activity_type))
    return StreaksResponse(
        current=info.current,
        longest=info.longest,
        current_start=info.current_start,
        longest_start=info.longest_start,
        longest_end=info.longest_end,
    )


@router.get("/{activity_id}", response_model=Activity)
def get_activity(activity_id: int, store: ActivityStore = Depends(get_store)):
    """Fetch a single activity by Strava id."""
    activity = store.get_activity(activity_id)
    if not activity:
        raise HTTPException(status_code=404, detail="Activity not found")
    return activity


@router.get("/{activity_id}/neighbors", response_model=NeighborsResponse)
def get_activity_neighbors(activity_id: int, store: ActivityStore = Depends(get_store)):
    """Previous and next activity by start date."""
    neighbors = store.get_activity_neighbors(activity_id)
    if neighbors is None:
        raise HTTPException(status_code=404, detail="Activity not found")
    return NeighborsResponse(**neighbors)
