from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import AfterValidator, AliasChoices, BaseModel, Field, field_validator

from .events import canonical_pubkey
from .normalize import INT_MAX
from .utils_time import to_epoch

ActivityName = Literal["running", "walking", "cycling", "other"]
Provenance = Literal["app", "nostr_scan", "baseline_migration"]
ScoringMethod = Literal["total_distance", "total_duration", "workout_count"]
ReviewStatus = Literal["pending", "upheld", "overturned"]
# hex or npub in, lowercase hex stored
Pubkey = Annotated[str, AfterValidator(canonical_pubkey)]

class SubmissionRequest(BaseModel):
    event_id: str = Field(min_length=1, max_length=128)
    author: Pubkey = Field(min_length=1, max_length=128, validation_alias=AliasChoices("author", "npub"))
    activity_type: str = "other"
    distance_meters: float | None = Field(default=None, ge=0)
    duration_seconds: int | None = Field(default=None, ge=0, le=INT_MAX)
    calories: int | None = Field(default=None, ge=0, le=INT_MAX)
    created_at: int
    raw_event: dict[str, Any] | None = None
    source: Provenance = "app"

    @field_validator("created_at", mode="before")
    @classmethod
    def _epoch(cls, v: Any) -> int:
        return to_epoch(v)

class IngestResult(BaseModel):
    success: bool
    duplicate: bool = False
    flagged: bool = False
    reason: str | None = None
    detail: str | None = None

class CompetitionIn(BaseModel):
    external_id: str = Field(min_length=1, max_length=128)
    name: str = ""
    activity_type: ActivityName
    scoring_method: ScoringMethod = "total_distance"
    start_date: datetime
    end_date: datetime

class CompetitionOut(BaseModel):
    external_id: str
    name: str
    activity_type: str
    scoring_method: str
    start_at: int
    end_at: int

class JoinRequest(BaseModel):
    author: Pubkey = Field(min_length=1, max_length=128, validation_alias=AliasChoices("author", "npub"))

class LeaderboardRow(BaseModel):
    rank: int
    author: str
    score: float
    workout_count: int

class BaselineTotals(BaseModel):
    distance_km: float = Field(default=0, ge=0)
    duration_seconds: int = Field(default=0, ge=0)
    workout_count: int = Field(default=0, ge=0)

class BaselineImport(BaseModel):
    timestamp: int
    # author -> totals for this competition's activity
    totals: dict[Pubkey, BaselineTotals]

    @field_validator("timestamp", mode="before")
    @classmethod
    def _epoch(cls, v: Any) -> int:
        return to_epoch(v)

class ReviewRequest(BaseModel):
    status: ReviewStatus
