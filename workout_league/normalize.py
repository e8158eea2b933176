import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .events import RawEvent

logger = logging.getLogger(__name__)

METERS_PER = {"km": 1000.0, "mi": 1609.34, "m": 1.0}
DEFAULT_DISTANCE_UNIT = "km"

RUNNING_PACE_S_PER_KM = 480  # faster than 8:00/km
WALKING_PACE_S_PER_KM = 720  # slower than 12:00/km

# largest value the integer columns hold
INT_MAX = 2**31 - 1

class ActivityType(str, Enum):
    RUNNING = "running"
    WALKING = "walking"
    CYCLING = "cycling"
    OTHER = "other"

_KEYWORDS = (
    (("run", "jog"), ActivityType.RUNNING),
    (("walk", "hike"), ActivityType.WALKING),
    (("cycl", "bike"), ActivityType.CYCLING),
)

class ParseError(ValueError):
    def __init__(self, event_id: str, message: str):
        super().__init__(f"{event_id[:16]}: {message}")
        self.event_id = event_id
        self.message = message

@dataclass(frozen=True, slots=True)
class Split:
    km: int
    elapsed_seconds: int

@dataclass(frozen=True, slots=True)
class Workout:
    event_id: str
    author: str
    created_at: int
    activity_type: ActivityType
    distance_meters: float | None = None
    duration_seconds: int | None = None
    calories: int | None = None
    splits: tuple[Split, ...] = ()
    source_app: str | None = None
    team: str | None = None

    @property
    def pace_seconds_per_km(self) -> float | None:
        return pace_seconds_per_km(self.distance_meters, self.duration_seconds)

def pace_seconds_per_km(distance_meters: float | None, duration_seconds: int | None) -> float | None:
    if not distance_meters or not duration_seconds:
        return None
    if distance_meters <= 0 or duration_seconds <= 0:
        return None
    return duration_seconds / (distance_meters / 1000.0)

def format_pace(seconds_per_km: float) -> str:
    total = int(round(seconds_per_km))
    return f"{total // 60}:{total % 60:02d}/km"

def parse_activity(value: str | None) -> ActivityType:
    if not value:
        return ActivityType.OTHER
    v = value.strip().lower()
    try:
        return ActivityType(v)
    except ValueError:
        pass
    for needles, kind in _KEYWORDS:
        if any(n in v for n in needles):
            return kind
    return ActivityType.OTHER

def classify_by_pace(distance_meters: float | None, duration_seconds: int | None) -> ActivityType:
    """Pace heuristic for untyped workouts. The 8-12 min/km band stays ``other``."""
    pace = pace_seconds_per_km(distance_meters, duration_seconds)
    if pace is None:
        return ActivityType.OTHER
    if pace < RUNNING_PACE_S_PER_KM:
        return ActivityType.RUNNING
    if pace > WALKING_PACE_S_PER_KM:
        return ActivityType.WALKING
    return ActivityType.OTHER

def _number(raw: str) -> float | None:
    try:
        n = float(raw)
    except (TypeError, ValueError):
        return None
    if math.isnan(n) or math.isinf(n) or n < 0:
        return None
    return n

def parse_distance(tag: Iterable[str] | None) -> float | None:
    """``["distance", value, unit?]`` to meters."""
    if not tag:
        return None
    parts = list(tag)
    if len(parts) < 2:
        return None
    value = _number(parts[1])
    if value is None:
        return None
    unit = parts[2].strip().lower() if len(parts) > 2 and parts[2].strip() else DEFAULT_DISTANCE_UNIT
    factor = METERS_PER.get(unit)
    if factor is None:
        return None
    meters = value * factor
    return meters if math.isfinite(meters) else None

def parse_duration(value: str | None) -> int | None:
    """``MM:SS`` or ``HH:MM:SS`` to whole seconds; anything else is None."""
    if not value:
        return None
    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        return None
    try:
        nums = [int(p) for p in parts]
    except ValueError:
        return None
    if any(n < 0 for n in nums) or nums[-1] >= 60:
        return None
    if len(nums) == 3:
        h, m, s = nums
        if m >= 60:
            return None
        total = h * 3600 + m * 60 + s
    else:
        m, s = nums
        total = m * 60 + s
    return total if total <= INT_MAX else None

def parse_splits(tags: Iterable[Iterable[str]]) -> tuple[Split, ...]:
    out: dict[int, Split] = {}
    for tag in tags:
        parts = list(tag)
        if len(parts) < 3:
            continue
        try:
            km = int(parts[1])
        except ValueError:
            continue
        elapsed = parse_duration(parts[2])
        if elapsed is None or km < 1:
            continue
        out.setdefault(km, Split(km=km, elapsed_seconds=elapsed))
    return tuple(out[k] for k in sorted(out))

def _int_or_none(raw: str | None) -> int | None:
    if raw is None:
        return None
    n = _number(raw)
    if n is None or n > INT_MAX:
        return None
    return int(n)

def _tag_value(ev: RawEvent, name: str) -> str | None:
    tag = ev.first_tag(name)
    if tag and len(tag) > 1:
        return tag[1]
    return None

def normalize(ev: RawEvent) -> Workout:
    exercise = _tag_value(ev, "exercise")
    activity = parse_activity(exercise)
    distance = parse_distance(ev.first_tag("distance"))
    duration = parse_duration(_tag_value(ev, "duration"))

    if activity is ActivityType.OTHER:
        if distance is None:
            raise ParseError(ev.id, f"no usable activity type ({exercise!r}) or distance")
        activity = classify_by_pace(distance, duration)

    return Workout(
        event_id=ev.id,
        author=ev.pubkey,
        created_at=ev.created_at,
        activity_type=activity,
        distance_meters=distance,
        duration_seconds=duration,
        calories=_int_or_none(_tag_value(ev, "calories")),
        splits=parse_splits(ev.tag_values("split")),
        source_app=_tag_value(ev, "source") or _tag_value(ev, "client"),
        team=_tag_value(ev, "team"),
    )

def normalize_batch(events: Iterable[RawEvent]) -> tuple[list[Workout], list[ParseError]]:
    workouts: list[Workout] = []
    errors: list[ParseError] = []
    for ev in events:
        try:
            workouts.append(normalize(ev))
        except ParseError as e:
            logger.debug("skipping unparsable workout %s", e)
            errors.append(e)
    return workouts, errors

def splits_consistent(workout: Workout, tolerance: float = 0.05) -> bool:
    """Split times are cumulative: they must increase and end within the duration."""
    if not workout.splits:
        return True
    elapsed = [s.elapsed_seconds for s in workout.splits]
    if any(b <= a for a, b in zip(elapsed, elapsed[1:])):
        return False
    if not workout.duration_seconds:
        return True
    return elapsed[-1] <= workout.duration_seconds * (1 + tolerance)
