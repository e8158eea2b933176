import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .anticheat import validate
from .config import settings
from .events import RawEvent
from .models import FlaggedWorkout, WorkoutSubmission
from .normalize import ActivityType, Workout, classify_by_pace, parse_activity
from .overlap import find_overlap, is_known_event
from .schemas import IngestResult, SubmissionRequest

logger = logging.getLogger(__name__)

OVERLAP_DUPLICATE = "overlap_duplicate"

def _duplicate() -> IngestResult:
    return IngestResult(success=True, duplicate=True)

def _classified_workout(req: SubmissionRequest) -> Workout:
    activity = parse_activity(req.activity_type)
    if activity is ActivityType.OTHER:
        activity = classify_by_pace(req.distance_meters, req.duration_seconds)
    return Workout(
        event_id=req.event_id,
        author=req.author,
        created_at=req.created_at,
        activity_type=activity,
        distance_meters=req.distance_meters,
        duration_seconds=req.duration_seconds,
        calories=req.calories,
    )

def _submission_row(req: SubmissionRequest, w: Workout, **extra) -> WorkoutSubmission:
    return WorkoutSubmission(
        event_id=req.event_id,
        author=req.author,
        activity_type=w.activity_type.value,
        distance_meters=req.distance_meters,
        duration_seconds=req.duration_seconds,
        calories=req.calories,
        created_at=req.created_at,
        source=req.source,
        raw_event=req.raw_event,
        **extra,
    )

def ingest(
    db: Session,
    req: SubmissionRequest,
    limits: dict | None = None,
) -> IngestResult:
    """
    Idempotent write path for one workout submission.

    Order: exact duplicate, anti-cheat, time overlap, insert. The unique
    ``event_id`` constraint decides what is already ingested; a lost insert
    race comes back as a duplicate, never as an error.
    """
    limits = settings.VALIDATION_LIMITS if limits is None else limits

    if is_known_event(db, req.event_id):
        logger.info("duplicate event %s", req.event_id[:16])
        return _duplicate()

    w = _classified_workout(req)
    if w.activity_type.value != req.activity_type:
        logger.info("classified %s as %s", req.event_id[:16], w.activity_type.value)

    verdict = validate(w, limits)
    if not verdict.accepted:
        db.add(_submission_row(req, w, flagged=True, flag_reason=verdict.reason))
        db.add(FlaggedWorkout(
            event_id=req.event_id,
            author=req.author,
            activity_type=w.activity_type.value,
            distance_meters=req.distance_meters,
            duration_seconds=req.duration_seconds,
            created_at=req.created_at,
            reason=verdict.reason,
            detail=verdict.detail,
            raw_event=req.raw_event,
        ))
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            return _duplicate()
        logger.info("flagged %s: %s (%s)", req.event_id[:16], verdict.reason, verdict.detail)
        return IngestResult(success=False, flagged=True, reason=verdict.reason, detail=verdict.detail)

    clash = find_overlap(db, req.author, req.created_at, req.duration_seconds)
    if clash is not None:
        logger.info("event %s overlaps %s, ignoring", req.event_id[:16], clash.event_id[:16])
        return _duplicate()

    row = _submission_row(req, w)
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("concurrent insert of %s, treating as duplicate", req.event_id[:16])
        return _duplicate()

    # Two overlapping submissions may both have passed the check above; the
    # lower row id wins and the other is retired as a duplicate.
    earlier = find_overlap(
        db, req.author, req.created_at, req.duration_seconds, exclude_event_id=req.event_id,
    )
    if earlier is not None and earlier.id < row.id:
        row.flagged = True
        row.flag_reason = OVERLAP_DUPLICATE
        db.commit()
        logger.info("event %s lost overlap race to %s", req.event_id[:16], earlier.event_id[:16])
        return _duplicate()

    logger.info(
        "accepted %s (%s, %.2f km)",
        req.event_id[:16], w.activity_type.value, (req.distance_meters or 0) / 1000,
    )
    return IngestResult(success=True)

def request_from_workout(w: Workout, raw: RawEvent | None = None, source: str = "nostr_scan") -> SubmissionRequest:
    return SubmissionRequest(
        event_id=w.event_id,
        author=w.author,
        activity_type=w.activity_type.value,
        distance_meters=w.distance_meters,
        duration_seconds=w.duration_seconds,
        calories=w.calories,
        created_at=w.created_at,
        raw_event=raw.to_dict() if raw is not None else None,
        source=source,
    )

def ingest_workout(
    db: Session,
    w: Workout,
    raw: RawEvent | None = None,
    source: str = "nostr_scan",
    limits: dict | None = None,
) -> IngestResult:
    return ingest(db, request_from_workout(w, raw, source), limits=limits)
