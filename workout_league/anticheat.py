from dataclasses import dataclass
from typing import Callable, Mapping

from .normalize import Workout, format_pace

SUPERHUMAN_PACE = "superhuman_pace"
TOO_SLOW_PACE = "too_slow_pace"
DISTANCE_EXCEEDS_LIMIT = "distance_exceeds_limit"
DURATION_EXCEEDS_LIMIT = "duration_exceeds_limit"
ZERO_DISTANCE_LONG_DURATION = "zero_distance_long_duration"
DISTANCE_WITHOUT_DURATION = "distance_without_duration"

FORGOT_TO_STOP_S = 1800

@dataclass(frozen=True)
class ActivityLimits:
    min_pace_s_per_km: float | None = None
    max_pace_s_per_km: float | None = None
    max_distance_km: float | None = None
    max_duration_s: float | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, float]) -> "ActivityLimits":
        return cls(**{k: data.get(k) for k in cls.__dataclass_fields__})

@dataclass(frozen=True)
class Verdict:
    accepted: bool
    reason: str | None = None
    detail: str | None = None

ACCEPTED = Verdict(accepted=True)

def _flag(reason: str, detail: str) -> Verdict:
    return Verdict(accepted=False, reason=reason, detail=detail)

Rule = Callable[[Workout, ActivityLimits], Verdict | None]

def check_zero_distance(w: Workout, limits: ActivityLimits) -> Verdict | None:
    if w.distance_meters == 0 and (w.duration_seconds or 0) > FORGOT_TO_STOP_S:
        minutes = round(w.duration_seconds / 60)
        return _flag(ZERO_DISTANCE_LONG_DURATION, f"zero distance with {minutes} min duration")
    return None

def check_zero_duration(w: Workout, limits: ActivityLimits) -> Verdict | None:
    if (w.distance_meters or 0) > 0 and w.duration_seconds == 0:
        return _flag(DISTANCE_WITHOUT_DURATION, f"{w.distance_meters / 1000:.2f} km with 0 duration")
    return None

def check_max_distance(w: Workout, limits: ActivityLimits) -> Verdict | None:
    if limits.max_distance_km is None or w.distance_meters is None:
        return None
    km = w.distance_meters / 1000
    if km > limits.max_distance_km:
        return _flag(
            DISTANCE_EXCEEDS_LIMIT,
            f"{km:.1f} km exceeds max {limits.max_distance_km:g} km for {w.activity_type.value}",
        )
    return None

def check_max_duration(w: Workout, limits: ActivityLimits) -> Verdict | None:
    if limits.max_duration_s is None or w.duration_seconds is None:
        return None
    if w.duration_seconds > limits.max_duration_s:
        return _flag(
            DURATION_EXCEEDS_LIMIT,
            f"{w.duration_seconds / 3600:.1f} h exceeds max {limits.max_duration_s / 3600:g} h for {w.activity_type.value}",
        )
    return None

def check_pace(w: Workout, limits: ActivityLimits) -> Verdict | None:
    pace = w.pace_seconds_per_km
    if pace is None:
        return None
    if limits.min_pace_s_per_km is not None and pace < limits.min_pace_s_per_km:
        return _flag(
            SUPERHUMAN_PACE,
            f"pace {format_pace(pace)} faster than floor {format_pace(limits.min_pace_s_per_km)} for {w.activity_type.value}",
        )
    if limits.max_pace_s_per_km is not None and pace > limits.max_pace_s_per_km:
        return _flag(TOO_SLOW_PACE, f"pace {format_pace(pace)} too slow for {w.activity_type.value}")
    return None

DEFAULT_RULES: tuple[Rule, ...] = (
    check_zero_distance,
    check_zero_duration,
    check_max_distance,
    check_max_duration,
    check_pace,
)

def validate(
    w: Workout,
    limits: Mapping[str, Mapping[str, float]],
    rules: tuple[Rule, ...] = DEFAULT_RULES,
) -> Verdict:
    """Runs ``rules`` in order; the first one returning a ``Verdict`` rejects."""
    # no distance or no duration means no claim to judge
    if w.distance_meters is None or w.duration_seconds is None:
        return ACCEPTED
    activity_limits = ActivityLimits.from_mapping(limits.get(w.activity_type.value, {}))
    for rule in rules:
        verdict = rule(w, activity_limits)
        if verdict is not None:
            return verdict
    return ACCEPTED
