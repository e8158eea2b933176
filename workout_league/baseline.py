import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from .competitions import join_competition
from .models import Competition, WorkoutSubmission
from .schemas import BaselineImport
from .utils_time import now_epoch

logger = logging.getLogger(__name__)

def baseline_prefix(competition_id: int) -> str:
    return f"baseline-{competition_id}-"

def baseline_event_id(competition_id: int, author: str, activity_type: str) -> str:
    return f"{baseline_prefix(competition_id)}{author}-{activity_type}"

def import_baseline(db: Session, competition: Competition, payload: BaselineImport) -> dict:
    """
    One summed ``baseline_migration`` row per author for this competition,
    standing for ``workout_count`` workouts. Re-importing overwrites it.
    """
    activity = competition.activity_type
    stats = {"participants_added": 0, "rows_written": 0, "skipped": 0}

    for author, totals in payload.totals.items():
        if totals.distance_km == 0 and totals.workout_count == 0:
            stats["skipped"] += 1
            continue

        if join_competition(db, competition, author):
            stats["participants_added"] += 1

        event_id = baseline_event_id(competition.id, author, activity)
        row = db.execute(
            select(WorkoutSubmission).where(WorkoutSubmission.event_id == event_id)
        ).scalar_one_or_none()
        if row is None:
            row = WorkoutSubmission(event_id=event_id, author=author, activity_type=activity)

        row.distance_meters = totals.distance_km * 1000
        row.duration_seconds = totals.duration_seconds
        row.calories = None
        row.created_at = payload.timestamp
        row.source = "baseline_migration"
        row.flagged = False
        row.flag_reason = None
        row.raw_event = {
            "type": "baseline_migration",
            "competition": competition.external_id,
            "migrated_at": now_epoch(),
            "workout_count": totals.workout_count,
        }
        db.add(row)
        db.commit()
        stats["rows_written"] += 1

    logger.info(
        "baseline for %s: %d rows, %d new participants",
        competition.external_id, stats["rows_written"], stats["participants_added"],
    )
    return stats
