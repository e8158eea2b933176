from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .db import get_session
from .ingest import ingest
from .schemas import IngestResult, SubmissionRequest

router = APIRouter(prefix="/workouts")

@router.post("/submit", response_model=IngestResult)
def submit_workout(req: SubmissionRequest, db: Session = Depends(get_session)):
    # Outcomes (accepted, duplicate, flagged) all come back as 200; retries are safe
    return ingest(db, req)
