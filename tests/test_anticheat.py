import pytest

from workout_league import anticheat
from workout_league.anticheat import ActivityLimits, Verdict, validate
from workout_league.config import DEFAULT_VALIDATION_LIMITS
from workout_league.normalize import ActivityType, Workout

def _workout(distance, duration, activity=ActivityType.RUNNING):
    return Workout(
        event_id="e" * 64, author="a" * 64, created_at=0, activity_type=activity,
        distance_meters=distance, duration_seconds=duration,
    )

def test_one_minute_per_km_is_superhuman():
    v = validate(_workout(10000, 600), DEFAULT_VALIDATION_LIMITS)
    assert not v.accepted
    assert v.reason == anticheat.SUPERHUMAN_PACE
    assert "1:00/km" in v.detail

def test_five_minutes_per_km_is_accepted():
    assert validate(_workout(10000, 3000), DEFAULT_VALIDATION_LIMITS).accepted

@pytest.mark.parametrize("distance,duration", [(None, 600), (10000, None), (None, None)])
def test_missing_distance_or_duration_passes(distance, duration):
    assert validate(_workout(distance, duration), DEFAULT_VALIDATION_LIMITS).accepted

def test_floor_differs_by_activity():
    # 1:00/km is fine on a bike, not on foot
    assert validate(_workout(10000, 600, ActivityType.CYCLING), DEFAULT_VALIDATION_LIMITS).accepted
    v = validate(_workout(10000, 1500, ActivityType.WALKING), DEFAULT_VALIDATION_LIMITS)
    assert v.reason == anticheat.SUPERHUMAN_PACE

def test_floor_is_a_deployment_parameter():
    strict = {"running": {"min_pace_s_per_km": 150}}
    v = validate(_workout(10000, 1450), strict)
    assert v.reason == anticheat.SUPERHUMAN_PACE
    assert validate(_workout(10000, 1450), DEFAULT_VALIDATION_LIMITS).accepted

def test_too_slow():
    v = validate(_workout(1000, 3600), DEFAULT_VALIDATION_LIMITS)
    assert v.reason == anticheat.TOO_SLOW_PACE

def test_distance_and_duration_caps():
    assert validate(_workout(250_000, 100_000), DEFAULT_VALIDATION_LIMITS).reason == anticheat.DISTANCE_EXCEEDS_LIMIT
    assert validate(_workout(150_000, 180_000), DEFAULT_VALIDATION_LIMITS).reason == anticheat.DURATION_EXCEEDS_LIMIT

def test_zero_distance_with_long_duration():
    v = validate(_workout(0, 3600), DEFAULT_VALIDATION_LIMITS)
    assert v.reason == anticheat.ZERO_DISTANCE_LONG_DURATION
    assert validate(_workout(0, 600), DEFAULT_VALIDATION_LIMITS).accepted

def test_distance_with_zero_duration():
    assert validate(_workout(5000, 0), DEFAULT_VALIDATION_LIMITS).reason == anticheat.DISTANCE_WITHOUT_DURATION

def test_other_has_no_pace_limits():
    assert validate(_workout(10000, 600, ActivityType.OTHER), DEFAULT_VALIDATION_LIMITS).accepted

def test_extra_rules_plug_in():
    def no_marathons(w, limits: ActivityLimits):
        if w.distance_meters > 42_000:
            return Verdict(accepted=False, reason="too_long_for_league")
        return None

    rules = anticheat.DEFAULT_RULES + (no_marathons,)
    v = validate(_workout(43_000, 4 * 3600), DEFAULT_VALIDATION_LIMITS, rules=rules)
    assert v.reason == "too_long_for_league"
