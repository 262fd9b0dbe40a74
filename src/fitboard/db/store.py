"""
ActivityStore: keyed CRUD over the Activity table.

All writes go through upsert_activity(), which is idempotent by Strava id:
re-syncing an activity updates the existing row in place and never inserts
a duplicate. Nothing in this module deletes rows.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from fitboard.models.activity import Activity


class ActivityStore:
    """Durable activity storage backed by a SQLModel engine."""

    def __init__(self, engine):
        """
        Args:
            engine: SQLAlchemy engine (SQLModel create_engine result).
        """
        self.engine = engine

    def get_activities(
        self,
        limit: int = 30,
        offset: int = 0,
        activity_type: Optional[str] = None,
    ) -> List[Activity]:
        """List activities newest first, optionally filtered by Strava type.

        An activity_type of None or "All" returns every type.
        """
        with Session(self.engine) as s:
            query = select(Activity)
            if activity_type and activity_type != "All":
                query = query.where(Activity.activity_type == activity_type)
            query = query.order_by(Activity.start_date.desc()).offset(offset).limit(limit)
            return list(s.exec(query).all())

    def get_all_activities(self, activity_type: Optional[str] = None) -> List[Activity]:
        """Every stored activity (optionally of one type), newest first."""
        with Session(self.engine) as s:
            query = select(Activity)
            if activity_type and activity_type != "All":
                query = query.where(Activity.activity_type == activity_type)
            return list(s.exec(query.order_by(Activity.start_date.desc())).all())

    def count_activities(self, activity_type: Optional[str] = None) -> int:
        with Session(self.engine) as s:
            query = select(func.count()).select_from(Activity)
            if activity_type and activity_type != "All":
                query = query.where(Activity.activity_type == activity_type)
            return s.exec(query).one()

    def get_activity(self, activity_id: int) -> Optional[Activity]:
        with Session(self.engine) as s:
            return s.get(Activity, activity_id)

    def get_latest_activity_date(self) -> Optional[datetime]:
        """Start date (UTC) of the most recent stored activity, or None if empty."""
        with Session(self.engine) as s:
            return s.exec(select(func.max(Activity.start_date))).one()

    def upsert_activity(self, fields: Dict[str, Any]) -> Activity:
        """
        Insert or update one activity keyed by fields["id"].

        Args:
            fields: Column values, as produced by normalize_activity().

        Returns:
            The persisted Activity row.
        """
        with Session(self.engine) as s:
            existing = s.get(Activity, fields["id"])
            if existing:
                # Update scalar fields in-place (keeps same id)
                for k, v in fields.items():
                    setattr(existing, k, v)
                existing.synced_at = datetime.utcnow()
                s.add(existing)
                s.commit()
                s.refresh(existing)
                return existing

            activity = Activity(**fields)
            s.add(activity)
            s.commit()
            s.refresh(activity)
            return activity

    def get_activity_neighbors(self, activity_id: int) -> Optional[Dict[str, Optional[Activity]]]:
        """
        Chronological neighbors of an activity, by start date.

        Returns:
            {"previous": Activity | None, "next": Activity | None}, or None
            if the activity itself is not stored.
        """
        with Session(self.engine) as s:
            current = s.get(Activity, activity_id)
            if current is None:
                return None

            previous = s.exec(
                select(Activity)
                .where(Activity.start_date < current.start_date)
                .order_by(Activity.start_date.desc())
            ).first()
            following = s.exec(
                select(Activity)
                .where(Activity.start_date > current.start_date)
                .order_by(Activity.start_date.asc())
            ).first()
            return {"previous": previous, "next": following}
