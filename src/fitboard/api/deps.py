"""FastAPI dependencies for the shared store, sync service and best-efforts cache."""
from fastapi import Request

from fitboard.analysis.best_efforts import BestEffortsCache
from fitboard.db.engine import get_engine
from fitboard.db.store import ActivityStore
from fitboard.strava.sync_service import StravaSyncService


def get_store() -> ActivityStore:
    return ActivityStore(get_engine())


def get_sync_service(request: Request) -> StravaSyncService:
    """The process-wide service created in create_app(); routes must not build their own."""
    return request.app.state.sync_service


def get_best_efforts_cache(request: Request) -> BestEffortsCache:
    return request.app.state.best_efforts_cache
