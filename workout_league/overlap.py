from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models import WorkoutSubmission

def is_known_event(db: Session, event_id: str) -> bool:
    # flagged rows count too: a rejected event is not re-judged on resubmission
    row = db.execute(
        select(WorkoutSubmission.id).where(WorkoutSubmission.event_id == event_id)
    ).first()
    return row is not None

def intervals_overlap(
    a_start: int, a_duration: int | None, b_start: int, b_duration: int | None
) -> bool:
    """
    Half-open [start, start + duration) intersection.
    A missing or zero duration makes the interval a single instant.
    """
    a_len = a_duration or 0
    b_len = b_duration or 0
    if a_len <= 0 and b_len <= 0:
        return a_start == b_start
    if a_len <= 0:
        return b_start <= a_start < b_start + b_len
    if b_len <= 0:
        return a_start <= b_start < a_start + a_len
    return a_start < b_start + b_len and b_start < a_start + a_len

def find_overlap(
    db: Session,
    author: str,
    created_at: int,
    duration_seconds: int | None,
    exclude_event_id: str | None = None,
) -> WorkoutSubmission | None:
    """
    First non-flagged submission by ``author`` whose interval meets the new one.
    Baseline rows are season aggregates, not timed workouts, and never match.
    """
    end = created_at + max(duration_seconds or 0, 0)
    row_end = WorkoutSubmission.created_at + func.coalesce(WorkoutSubmission.duration_seconds, 0)
    q = (
        select(WorkoutSubmission)
        .where(
            WorkoutSubmission.author == author,
            WorkoutSubmission.flagged.is_(False),
            WorkoutSubmission.source != "baseline_migration",
            WorkoutSubmission.created_at <= end,
            row_end >= created_at,
        )
        .order_by(WorkoutSubmission.id)
    )
    if exclude_event_id is not None:
        q = q.where(WorkoutSubmission.event_id != exclude_event_id)
    for row in db.execute(q).scalars():
        if intervals_overlap(created_at, duration_seconds, row.created_at, row.duration_seconds):
            return row
    return None
