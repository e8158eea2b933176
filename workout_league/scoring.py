from dataclasses import dataclass

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from .baseline import baseline_prefix
from .models import Competition, CompetitionParticipant, WorkoutSubmission

@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    author: str
    score: float
    workout_count: int

def participant_authors(db: Session, competition: Competition) -> list[str]:
    return list(db.execute(
        select(CompetitionParticipant.author)
        .where(CompetitionParticipant.competition_id == competition.id)
    ).scalars())

def compute_leaderboard(db: Session, competition: Competition) -> list[LeaderboardEntry]:
    """
    Rank a competition's participants from non-flagged submissions in its window.

    Participants with nothing qualifying still appear with a zero score.
    Ties rank by ascending author so repeated runs agree.
    """
    authors = participant_authors(db, competition)
    if not authors:
        return []

    qualifying = (
        WorkoutSubmission.flagged.is_(False),
        WorkoutSubmission.author.in_(authors),
        WorkoutSubmission.activity_type == competition.activity_type,
        WorkoutSubmission.created_at >= competition.start_at,
        WorkoutSubmission.created_at <= competition.end_at,
        # another competition's baseline is not ours to count
        or_(
            WorkoutSubmission.source != "baseline_migration",
            WorkoutSubmission.event_id.startswith(baseline_prefix(competition.id)),
        ),
    )

    rows = db.execute(
        select(
            WorkoutSubmission.author,
            func.coalesce(func.sum(WorkoutSubmission.distance_meters), 0.0).label("distance"),
            func.coalesce(func.sum(WorkoutSubmission.duration_seconds), 0).label("duration"),
            func.count(WorkoutSubmission.id).label("n"),
        )
        .where(*qualifying)
        .group_by(WorkoutSubmission.author)
    ).all()

    totals = {a: {"distance": 0.0, "duration": 0, "n": 0} for a in authors}
    for r in rows:
        totals[r.author] = {"distance": float(r.distance), "duration": int(r.duration), "n": int(r.n)}

    # migrated baselines stand for many workouts each
    baselines = db.execute(
        select(WorkoutSubmission)
        .where(*qualifying, WorkoutSubmission.source == "baseline_migration")
    ).scalars()
    for b in baselines:
        totals[b.author]["n"] += b.baseline_count() - 1

    method = competition.scoring_method
    scored = []
    for author, t in totals.items():
        if method == "total_distance":
            score = t["distance"]
        elif method == "total_duration":
            score = t["duration"]
        elif method == "workout_count":
            score = t["n"]
        else:
            raise ValueError(f"unknown scoring method {method!r}")
        scored.append((author, score, t["n"]))

    scored.sort(key=lambda s: (-s[1], s[0]))
    return [
        LeaderboardEntry(rank=i, author=a, score=score, workout_count=n)
        for i, (a, score, n) in enumerate(scored, start=1)
    ]
