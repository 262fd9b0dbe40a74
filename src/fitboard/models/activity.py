"""Activity data model: one row per Strava activity."""
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Column
from sqlmodel import Field, SQLModel


class Activity(SQLModel, table=True):
    """
    One row per Strava activity, keyed by the Strava activity id.

    Timestamps are stored naive: start_date is UTC, start_date_local is the
    athlete's wall-clock time in `timezone`.
    """

    id: int = Field(
        sa_column=Column(BigInteger, primary_key=True, autoincrement=False)
    )
    name: str = ""
    activity_type: str = Field(default="Run", index=True)  # Strava "type": Run, Ride, Swim, Walk...

    distance: float = 0.0  # meters
    moving_time: int = 0  # seconds
    elapsed_time: int = 0  # seconds
    total_elevation_gain: float = 0.0  # meters

    start_date: datetime = Field(index=True)
    start_date_local: Optional[datetime] = None
    timezone: Optional[str] = None  # e.g. "(GMT-08:00) America/Los_Angeles"

    # Speed in m/s
    average_speed: float = 0.0
    max_speed: Optional[float] = None

    average_cadence: Optional[float] = None
    average_heartrate: Optional[float] = None
    max_heartrate: Optional[float] = None
    elev_high: Optional[float] = None
    elev_low: Optional[float] = None
    calories: Optional[float] = None

    # Social counters
    achievement_count: int = 0
    kudos_count: int = 0
    comment_count: int = 0
    athlete_count: int = 1

    # Route summary (encoded polyline is stored as-is, never decoded here)
    map_id: Optional[str] = None
    summary_polyline: Optional[str] = None

    # Per-km splits JSON, only present when synced from the detail endpoint
    splits_metric_json: Optional[str] = None

    synced_at: datetime = Field(default_factory=datetime.utcnow)
