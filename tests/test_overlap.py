import pytest

from conftest import AUTHOR_A, AUTHOR_B
from workout_league.models import WorkoutSubmission
from workout_league.overlap import find_overlap, intervals_overlap, is_known_event

T = 1_767_225_600

@pytest.mark.parametrize("a,b,expected", [
    ((T, 1800), (T + 600, 1800), True),
    ((T + 600, 1800), (T, 1800), True),
    ((T, 1800), (T + 1800, 600), False),   # touching ends do not overlap
    ((T, 1800), (T + 3600, 600), False),
    ((T, None), (T, None), True),
    ((T, None), (T + 1, None), False),
    ((T + 100, None), (T, 1800), True),
    ((T + 1800, 0), (T, 1800), False),
    ((T, 1800), (T + 1799, None), True),
])
def test_intervals_overlap(a, b, expected):
    assert intervals_overlap(a[0], a[1], b[0], b[1]) is expected

def _row(db, event_id, author=AUTHOR_A, created_at=T, duration=1800, flagged=False, source="app"):
    row = WorkoutSubmission(
        event_id=event_id, author=author, activity_type="running",
        distance_meters=5000.0, duration_seconds=duration, created_at=created_at,
        source=source, flagged=flagged,
    )
    db.add(row)
    db.commit()
    return row

def test_known_event_includes_flagged_rows(db_session):
    _row(db_session, "evt-flagged", flagged=True)
    assert is_known_event(db_session, "evt-flagged")
    assert not is_known_event(db_session, "evt-missing")

def test_find_overlap_same_author_only(db_session):
    existing = _row(db_session, "evt-1")
    hit = find_overlap(db_session, AUTHOR_A, T + 600, 1800)
    assert hit is not None and hit.id == existing.id
    assert find_overlap(db_session, AUTHOR_B, T + 600, 1800) is None

def test_find_overlap_ignores_flagged_rows(db_session):
    _row(db_session, "evt-1", flagged=True)
    assert find_overlap(db_session, AUTHOR_A, T + 600, 1800) is None

def test_find_overlap_earlier_long_workout(db_session):
    _row(db_session, "evt-long", created_at=T, duration=6 * 3600)
    assert find_overlap(db_session, AUTHOR_A, T + 5 * 3600, 600) is not None
    assert find_overlap(db_session, AUTHOR_A, T + 7 * 3600, 600) is None

def test_find_overlap_can_exclude_itself(db_session):
    _row(db_session, "evt-1")
    assert find_overlap(db_session, AUTHOR_A, T, 1800, exclude_event_id="evt-1") is None

def test_find_overlap_has_no_lookback_horizon(db_session):
    _row(db_session, "evt-multiday", created_at=T, duration=72 * 3600)
    assert find_overlap(db_session, AUTHOR_A, T + 50 * 3600, 1800) is not None
    assert find_overlap(db_session, AUTHOR_A, T + 72 * 3600, 1800) is None

def test_baseline_rows_are_not_time_intervals(db_session):
    _row(db_session, "baseline-1-a-running", duration=20 * 3600, source="baseline_migration")
    assert find_overlap(db_session, AUTHOR_A, T + 5 * 3600, 1800) is None
    assert find_overlap(db_session, AUTHOR_A, T, None) is None
