"""FastAPI application factory."""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlmodel import SQLModel

from fitboard.analysis.best_efforts import BestEffortsCache
from fitboard.api.routes import activities, sync as sync_routes
from fitboard.config import get_settings
from fitboard.db.engine import get_engine
from fitboard.scheduler.jobs import build_scheduler
from fitboard.strava.client import StravaClient
from fitboard.strava.sync_service import StravaSyncService


def create_app() -> FastAPI:
    """Build and return the FastAPI app."""

    settings = get_settings()
    engine = get_engine()
    client = StravaClient()
    sync_service = StravaSyncService(client=client, engine=engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Create tables on startup (idempotent)
        SQLModel.metadata.create_all(engine)
        scheduler = None
        if settings.sync_schedule_enabled:
            scheduler = build_scheduler(app.state.sync_service)
            scheduler.start()
        yield
        if scheduler is not None:
            scheduler.shutdown()
        await client.aclose()

    app = FastAPI(
        title="Fitboard API",
        description="Strava activity sync and best-effort analytics backend",
        version="0.1.0",
        lifespan=lifespan,
    )

    # One service per process: the single-flight guard lives on it
    app.state.sync_service = sync_service
    app.state.best_efforts_cache = BestEffortsCache()

    app.include_router(activities.router, prefix="/activities", tags=["activities"])
    app.include_router(sync_routes.router, prefix="/sync", tags=["sync"])

    return app


# Module-level app instance for uvicorn
app = create_app()
