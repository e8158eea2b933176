import logging

from fastapi import FastAPI, Depends, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select
from sqlalchemy.orm import Session

from .config import settings
from .db import engine, get_session
from . import models
from .models import Competition, FlaggedWorkout, WorkoutSubmission
from .submissions import router as submissions_router
from .competitions import CompetitionExists, create_competition, get_competition, join_competition
from .scoring import compute_leaderboard
from .scan import scan_competition
from .baseline import import_baseline
from .schemas import (
    BaselineImport, CompetitionIn, CompetitionOut, JoinRequest, LeaderboardRow,
    ReviewRequest, ReviewStatus,
)
from .security import require_admin
from .overlap import find_overlap

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

models.Base.metadata.create_all(bind=engine)

app = FastAPI(title="Workout League API")
app.include_router(submissions_router)

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

def _competition_or_404(db: Session, external_id: str) -> Competition:
    c = get_competition(db, external_id)
    if not c:
        raise HTTPException(404, "competition not found")
    return c

def _competition_out(c: Competition) -> CompetitionOut:
    return CompetitionOut(
        external_id=c.external_id,
        name=c.name,
        activity_type=c.activity_type,
        scoring_method=c.scoring_method,
        start_at=c.start_at,
        end_at=c.end_at,
    )

@app.get("/health")
async def health():
    return {"status": "ok"}

@app.post("/competitions", response_model=CompetitionOut, status_code=201)
def new_competition(
    data: CompetitionIn,
    _: None = Depends(require_admin),
    db: Session = Depends(get_session),
):
    try:
        c = create_competition(db, data)
    except CompetitionExists:
        raise HTTPException(409, "competition already exists")
    except ValueError as e:
        raise HTTPException(422, str(e))
    logger.info("created competition %s (%s, %s)", c.external_id, c.activity_type, c.scoring_method)
    return _competition_out(c)

@app.get("/competitions/{external_id}", response_model=CompetitionOut)
def competition(external_id: str, db: Session = Depends(get_session)):
    return _competition_out(_competition_or_404(db, external_id))

@app.post("/competitions/{external_id}/participants")
def join(external_id: str, body: JoinRequest, db: Session = Depends(get_session)):
    # author comes pre-validated from the identity provider in front of this service
    c = _competition_or_404(db, external_id)
    created = join_competition(db, c, body.author)
    return {"ok": True, "joined": created}

@app.get("/competitions/{external_id}/leaderboard")
def leaderboard(external_id: str, db: Session = Depends(get_session)):
    c = _competition_or_404(db, external_id)
    rows = [
        LeaderboardRow(rank=e.rank, author=e.author, score=e.score, workout_count=e.workout_count)
        for e in compute_leaderboard(db, c)
    ]
    return {
        "competition": c.external_id,
        "scoring_method": c.scoring_method,
        "rows": rows,
    }

@app.post("/admin/scan/{external_id}")
async def admin_scan(
    external_id: str,
    _: None = Depends(require_admin),
    db: Session = Depends(get_session),
):
    c = _competition_or_404(db, external_id)
    summary = await scan_competition(db, c)
    return {"ok": True, **summary.as_dict()}

@app.post("/admin/baseline/{external_id}")
def admin_baseline(
    external_id: str,
    payload: BaselineImport,
    _: None = Depends(require_admin),
    db: Session = Depends(get_session),
):
    c = _competition_or_404(db, external_id)
    return {"ok": True, **import_baseline(db, c, payload)}

@app.get("/admin/flagged")
def flagged(
    status: ReviewStatus | None = None,
    _: None = Depends(require_admin),
    db: Session = Depends(get_session),
):
    q = select(FlaggedWorkout).order_by(FlaggedWorkout.flagged_at.desc(), FlaggedWorkout.id.desc())
    if status:
        q = q.where(FlaggedWorkout.review_status == status)
    out = []
    for f in db.execute(q).scalars():
        out.append({
            "event_id": f.event_id,
            "author": f.author,
            "activity_type": f.activity_type,
            "distance_meters": f.distance_meters,
            "duration_seconds": f.duration_seconds,
            "created_at": f.created_at,
            "reason": f.reason,
            "detail": f.detail,
            "review_status": f.review_status,
        })
    return out

@app.post("/admin/flagged/{event_id}/review")
def review_flagged(
    event_id: str,
    body: ReviewRequest,
    _: None = Depends(require_admin),
    db: Session = Depends(get_session),
):
    f = db.execute(select(FlaggedWorkout).where(FlaggedWorkout.event_id == event_id)).scalar_one_or_none()
    if not f:
        raise HTTPException(404, "flagged workout not found")
    sub = db.execute(select(WorkoutSubmission).where(WorkoutSubmission.event_id == event_id)).scalar_one_or_none()

    if sub is not None and body.status == "overturned" and find_overlap(
        db, sub.author, sub.created_at, sub.duration_seconds, exclude_event_id=event_id,
    ):
        raise HTTPException(409, "workout overlaps an accepted submission")

    f.review_status = body.status
    if sub is not None:
        # only an overturned flag lets the workout score
        sub.flagged = body.status != "overturned"
        sub.flag_reason = None if body.status == "overturned" else f.reason
        db.add(sub)
    db.add(f)
    db.commit()
    logger.info("review of %s: %s", event_id[:16], body.status)
    return {"ok": True, "event_id": event_id, "review_status": f.review_status}
