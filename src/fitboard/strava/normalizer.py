"""
Strava API response normalizer.

Converts raw activity dicts from the Strava API into clean field dicts that
map directly onto Activity columns. No DB access here; callers
(sync_service) handle persistence.

Strava returns the same activity shape from two endpoints:

  GET /athlete/activities        SummaryActivity list items
  GET /activities/{id}           DetailedActivity (adds splits_metric, calories…)

Both carry timestamps as ISO 8601 strings with a trailing "Z", even for
start_date_local (which is wall-clock time, not UTC).
"""
import json
import math
from datetime import datetime
from typing import Any, Dict, Optional

from fitboard.strava.errors import MalformedActivityError


def _parse_strava_datetime(s: Optional[str]) -> Optional[datetime]:
    """Parse "YYYY-MM-DDTHH:MM:SSZ" (fractional seconds tolerated) into a naive datetime."""
    if not s or not isinstance(s, str):
        return None
    base = s.strip().rstrip("Z").split(".")[0]
    try:
        return datetime.strptime(base, "%Y-%m-%dT%H:%M:%S")
    except ValueError:
        return None


def _number(raw: Dict[str, Any], key: str, default: float = 0.0) -> float:
    value = raw.get(key)
    if value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise MalformedActivityError(f"{key}={value!r} is not numeric") from None
    if not math.isfinite(number):
        raise MalformedActivityError(f"{key}={value!r} is not finite")
    return number


def _optional_number(raw: Dict[str, Any], key: str) -> Optional[float]:
    if raw.get(key) is None:
        return None
    return _number(raw, key)


def _count(raw: Dict[str, Any], key: str, default: int = 0) -> int:
    return int(_number(raw, key, default=default))


def normalize_activity(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalize a Strava activity dict into an Activity model field dict.

    Args:
        raw: SummaryActivity or DetailedActivity dict from the Strava API.

    Returns:
        Dict with keys matching Activity model columns.

    Raises:
        MalformedActivityError: missing id, missing/unparseable start_date,
            negative distance / times, non-numeric numeric fields, or a
            non-object map.
    """
    activity_id = raw.get("id")
    if activity_id is None or isinstance(activity_id, bool):
        raise MalformedActivityError("activity has no id")
    try:
        activity_id = int(activity_id)
    except (TypeError, ValueError):
        raise MalformedActivityError(f"activity id {activity_id!r} is not an integer") from None

    start_date = _parse_strava_datetime(raw.get("start_date"))
    if start_date is None:
        raise MalformedActivityError(
            f"activity {activity_id} has no parseable start_date: {raw.get('start_date')!r}"
        )

    distance = _number(raw, "distance")
    moving_time = int(_number(raw, "moving_time"))
    elapsed_time = int(_number(raw, "elapsed_time", default=moving_time))
    if distance < 0 or moving_time < 0 or elapsed_time < 0:
        raise MalformedActivityError(
            f"activity {activity_id} has negative distance or time"
        )

    # sport_type is the newer, finer-grained field; "type" is what the dashboard filters on
    activity_type = raw.get("type") or raw.get("sport_type") or "Workout"

    route = raw.get("map") or {}
    if not isinstance(route, dict):
        raise MalformedActivityError(f"activity {activity_id} has a malformed map: {route!r}")

    fields = {
        "id": activity_id,
        "name": raw.get("name") or "",
        "activity_type": activity_type,
        "distance": distance,
        "moving_time": moving_time,
        "elapsed_time": elapsed_time,
        "total_elevation_gain": _number(raw, "total_elevation_gain"),
        "start_date": start_date,
        "start_date_local": _parse_strava_datetime(raw.get("start_date_local")),
        "timezone": raw.get("timezone"),
        "average_speed": _number(raw, "average_speed"),
        "max_speed": _optional_number(raw, "max_speed"),
        "average_cadence": _optional_number(raw, "average_cadence"),
        "average_heartrate": _optional_number(raw, "average_heartrate"),
        "max_heartrate": _optional_number(raw, "max_heartrate"),
        "elev_high": _optional_number(raw, "elev_high"),
        "elev_low": _optional_number(raw, "elev_low"),
        "achievement_count": _count(raw, "achievement_count"),
        "kudos_count": _count(raw, "kudos_count"),
        "comment_count": _count(raw, "comment_count"),
        "athlete_count": _count(raw, "athlete_count", default=1),
        "map_id": route.get("id"),
        "summary_polyline": route.get("summary_polyline") or None,
    }

    # Detail-only fields: left out entirely for list items so a later
    # page sync does not blank out what a detail sync stored.
    if "calories" in raw:
        fields["calories"] = _optional_number(raw, "calories")
    if raw.get("splits_metric"):
        fields["splits_metric_json"] = json.dumps(raw["splits_metric"])

    return fields
