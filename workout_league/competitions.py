from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .models import Competition, CompetitionParticipant
from .schemas import CompetitionIn
from .utils_time import to_epoch

class CompetitionExists(Exception):
    pass

def get_competition(db: Session, external_id: str) -> Competition | None:
    return db.execute(
        select(Competition).where(Competition.external_id == external_id)
    ).scalar_one_or_none()

def create_competition(db: Session, data: CompetitionIn) -> Competition:
    start_at, end_at = to_epoch(data.start_date), to_epoch(data.end_date)
    if end_at < start_at:
        raise ValueError("end_date must not be before start_date")
    c = Competition(
        external_id=data.external_id,
        name=data.name,
        activity_type=data.activity_type,
        scoring_method=data.scoring_method,
        start_at=start_at,
        end_at=end_at,
    )
    db.add(c)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise CompetitionExists(data.external_id) from e
    db.refresh(c)
    return c

def join_competition(db: Session, competition: Competition, author: str) -> bool:
    """Register ``author``; returns False when already a participant."""
    exists = db.execute(
        select(CompetitionParticipant.id).where(
            CompetitionParticipant.competition_id == competition.id,
            CompetitionParticipant.author == author,
        )
    ).first()
    if exists:
        return False
    db.add(CompetitionParticipant(competition_id=competition.id, author=author))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return False
    return True
