# workout_league/models.py
from datetime import datetime, timezone
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import (
    JSON, String, Integer, BigInteger, Boolean, DateTime, Float,
    ForeignKey, UniqueConstraint, Index
)

ACTIVITY_TYPES = ("running", "walking", "cycling", "other")
SCORING_METHODS = ("total_distance", "total_duration", "workout_count")
PROVENANCE = ("app", "nostr_scan", "baseline_migration")
REVIEW_STATUSES = ("pending", "upheld", "overturned")

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class Base(DeclarativeBase):
    pass

class Competition(Base):
    __tablename__ = "competitions"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    external_id: Mapped[str] = mapped_column(String(128), unique=True)
    name: Mapped[str] = mapped_column(String(200), default="")
    activity_type: Mapped[str] = mapped_column(String(32))
    scoring_method: Mapped[str] = mapped_column(String(32), default="total_distance")
    # inclusive window, unix seconds
    start_at: Mapped[int] = mapped_column(BigInteger)
    end_at: Mapped[int] = mapped_column(BigInteger)
    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

class CompetitionParticipant(Base):
    __tablename__ = "competition_participants"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    competition_id: Mapped[int] = mapped_column(ForeignKey("competitions.id"), index=True)
    author: Mapped[str] = mapped_column(String(128))
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        UniqueConstraint("competition_id", "author", name="uq_competition_author"),
    )

class WorkoutSubmission(Base):
    __tablename__ = "workout_submissions"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_id: Mapped[str] = mapped_column(String(128), unique=True)
    author: Mapped[str] = mapped_column(String(128))
    activity_type: Mapped[str] = mapped_column(String(32))

    distance_meters: Mapped[float | None] = mapped_column(Float, nullable=True)
    duration_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    calories: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[int] = mapped_column(BigInteger)

    source: Mapped[str] = mapped_column(String(32), default="app")
    flagged: Mapped[bool] = mapped_column(Boolean, default=False)
    flag_reason: Mapped[str | None] = mapped_column(String(64), nullable=True)
    raw_event: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        Index("idx_submissions_author_created", "author", "created_at"),
        Index("idx_submissions_activity_created", "activity_type", "created_at"),
    )

    def baseline_count(self) -> int:
        """Workouts a row stands for: migrated baselines carry a pre-aggregated count."""
        if self.source == "baseline_migration" and isinstance(self.raw_event, dict):
            try:
                return int(self.raw_event.get("workout_count", 1))
            except (TypeError, ValueError):
                return 1
        return 1

class FlaggedWorkout(Base):
    __tablename__ = "flagged_workouts"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_id: Mapped[str] = mapped_column(String(128), unique=True)
    author: Mapped[str] = mapped_column(String(128), index=True)
    activity_type: Mapped[str] = mapped_column(String(32))
    distance_meters: Mapped[float | None] = mapped_column(Float, nullable=True)
    duration_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[int] = mapped_column(BigInteger)

    reason: Mapped[str] = mapped_column(String(64))
    detail: Mapped[str | None] = mapped_column(String(300), nullable=True)
    raw_event: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    flagged_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    review_status: Mapped[str] = mapped_column(String(16), default="pending")
