"""Sync trigger and status routes."""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session, select

from fitboard.api.deps import get_sync_service
from fitboard.api.errors import http_exception_for
from fitboard.config import get_settings
from fitboard.db.engine import get_session
from fitboard.models.activity import Activity
from fitboard.models.sync import SyncLog
from fitboard.strava.errors import MalformedActivityError, SyncError
from fitboard.strava.sync_service import StravaSyncService

router = APIRouter()


class SyncTriggerRequest(BaseModel):
    max_count: Optional[int] = None  # None → settings.sync_default_max_count
    force: bool = False
    sync_all: bool = False  # overrides max_count; pulls the full history


class SyncTriggerResponse(BaseModel):
    success: bool
    synced: int
    state: str


class SyncStatusResponse(BaseModel):
    status: str
    sync_type: Optional[str]
    started_at: Optional[datetime]
    finished_at: Optional[datetime]
    items_synced: Optional[int]
    error_message: Optional[str]
    in_progress: bool


@router.post("/", response_model=SyncTriggerResponse)
async def trigger_sync(
    request: SyncTriggerRequest,
    sync_service: StravaSyncService = Depends(get_sync_service),
):
    """
    Run an activity sync and wait for it.

    A request that arrives while another sync is running joins that run
    instead of starting a second one.
    """
    if request.sync_all:
        max_count = 0
    elif request.max_count is not None:
        max_count = request.max_count
    else:
        max_count = get_settings().sync_default_max_count

    try:
        synced = await sync_service.sync_activities(max_count, force_full_sync=request.force)
    except SyncError as exc:
        raise http_exception_for(exc)
    return SyncTriggerResponse(success=True, synced=synced, state=sync_service.state.value)


@router.post("/activities/{activity_id}", response_model=Activity)
async def sync_one_activity(
    activity_id: int,
    sync_service: StravaSyncService = Depends(get_sync_service),
):
    """Re-fetch one activity's detail record (adds per-km splits)."""
    try:
        return await sync_service.sync_activity(activity_id)
    except SyncError as exc:
        raise http_exception_for(exc)
    except MalformedActivityError as exc:
        raise HTTPException(
            status_code=502,
            detail={"error": "Malformed Activity", "message": str(exc)},
        )


@router.get("/status", response_model=SyncStatusResponse)
def sync_status(
    session: Session = Depends(get_session),
    sync_service: StravaSyncService = Depends(get_sync_service),
):
    """Return the status of the most recent sync job."""
    log = session.exec(
        select(SyncLog).order_by(SyncLog.started_at.desc(), SyncLog.id.desc())
    ).first()
    if not log:
        return SyncStatusResponse(
            status="never_run",
            sync_type=None,
            started_at=None,
            finished_at=None,
            items_synced=None,
            error_message=None,
            in_progress=sync_service.in_progress,
        )
    return SyncStatusResponse(
        status=log.status,
        sync_type=log.sync_type,
        started_at=log.started_at,
        finished_at=log.finished_at,
        items_synced=log.items_synced,
        error_message=log.error_message,
        in_progress=sync_service.in_progress,
    )
