"""
Best-effort detection: fastest estimated time per canonical distance.

Only whole-activity totals are used. For an activity at least as long as a
target distance, the time to cover the target is extrapolated at the
activity's average moving pace:

    estimated_time = target_distance * (moving_time / distance)

This is a uniform-pace approximation, not a sub-segment search. A 10 km run
with a fast first 5 km is credited with its *average* 5 km time, so an
estimate is never faster than the athlete's true best over that distance.

Per target, the smallest estimated time wins; ties go to the lowest activity
id so the result never depends on input order. Activity type is not
filtered here; callers that only want runs pass only runs.
"""
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, FrozenSet, Iterable, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

HALF_MARATHON_M = 21097.5
MARATHON_M = 42195.0

# Canonical target distances in meters
CANONICAL_DISTANCES: Tuple[float, ...] = (
    400.0,
    1000.0,
    5000.0,
    10000.0,
    HALF_MARATHON_M,
    MARATHON_M,
    50000.0,
    100000.0,
)


@dataclass(frozen=True)
class BestEffort:
    """Fastest known time for one target distance."""
    distance: float                         # target distance, meters
    time: float                             # seconds
    activity_id: int
    activity_name: str = ""
    activity_date: Optional[datetime] = None

    @property
    def pace(self) -> float:
        """Seconds per kilometer."""
        return self.time / self.distance * 1000.0

    @property
    def speed(self) -> float:
        """Meters per second."""
        return self.distance / self.time


def _is_candidate(activity) -> bool:
    distance = getattr(activity, "distance", None)
    moving_time = getattr(activity, "moving_time", None)
    if not distance or not moving_time or distance <= 0 or moving_time <= 0:
        logger.debug(
            "Excluding activity %s from best efforts: distance=%s moving_time=%s",
            getattr(activity, "id", None), distance, moving_time,
        )
        return False
    return True


def detect_best_efforts(
    activities: Iterable,
    distances: Sequence[float] = CANONICAL_DISTANCES,
) -> Dict[float, BestEffort]:
    """
    Compute the best effort for each target distance over a set of activities.

    Args:
        activities: Objects with id, distance (m), moving_time (s) and
            optionally name / start_date_local (Activity rows in practice).
        distances: Target distances in meters.

    Returns:
        Dict keyed by target distance (ascending), containing only targets
        reached by at least one activity. Empty when nothing qualifies.
    """
    # target -> (estimated_time, activity_id, activity)
    best: Dict[float, Tuple[float, int, object]] = {}

    for activity in activities:
        if not _is_candidate(activity):
            continue
        for target in distances:
            if activity.distance < target:
                continue
            candidate = (target * activity.moving_time / activity.distance, activity.id)
            current = best.get(target)
            if current is None or candidate < current[:2]:
                best[target] = (candidate[0], candidate[1], activity)

    return {
        target: BestEffort(
            distance=target,
            time=estimated,
            activity_id=activity_id,
            activity_name=getattr(activity, "name", "") or "",
            activity_date=getattr(activity, "start_date_local", None),
        )
        for target, (estimated, activity_id, activity) in sorted(best.items())
    }


class BestEffortsCache:
    """
    Bounded LRU memo for detect_best_efforts().

    The key is the set of (id, distance, moving_time) triples plus the
    target distances, so a re-synced activity with changed totals misses
    the cache rather than serving a stale record.

    Safe to share across threads.
    """

    def __init__(self, max_entries: int = 16):
        self.max_entries = max_entries
        self._entries: "OrderedDict[Tuple[FrozenSet, Tuple[float, ...]], Dict[float, BestEffort]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(
        self,
        activities: Iterable,
        distances: Sequence[float] = CANONICAL_DISTANCES,
    ) -> Dict[float, BestEffort]:
        activities = list(activities)
        key = (
            frozenset((a.id, a.distance, a.moving_time) for a in activities),
            tuple(distances),
        )
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                self._entries.move_to_end(key)
                return dict(cached)

        # Computed outside the lock; a concurrent miss on the same key just recomputes
        result = detect_best_efforts(activities, distances)
        with self._lock:
            self._entries[key] = result
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
        return dict(result)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


def format_distance(meters: float) -> str:
    """
    Human label for a target distance.

    Examples: 400 → "400m", 5000 → "5.0km", 21097.5 → "Half Marathon",
    50000 → "50km".
    """
    if meters < 1000:
        return f"{meters:g}m"
    if meters < 10000:
        return f"{meters / 1000:.1f}km"
    if meters == HALF_MARATHON_M:
        return "Half Marathon"
    if meters == MARATHON_M:
        return "Marathon"
    return f"{meters / 1000:.0f}km"


def format_time(seconds: float) -> str:
    """Format seconds as "H:MM:SS" (an hour or more) or "M:SS"."""
    total = int(seconds)
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"
