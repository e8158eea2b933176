import logging
from dataclasses import asdict, dataclass, field

from sqlalchemy.orm import Session

from .config import settings
from .ingest import ingest_workout
from .models import Competition
from .normalize import normalize_batch, splits_consistent
from .relays import EventQuery, Fetcher, fetch_events
from .scoring import participant_authors

logger = logging.getLogger(__name__)

@dataclass
class ScanSummary:
    events: int = 0
    parse_errors: int = 0
    submitted: int = 0
    duplicates: int = 0
    flagged: int = 0
    relays_ok: int = 0
    relays_failed: list[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return asdict(self)

async def scan_competition(
    db: Session,
    competition: Competition,
    relay_urls: list[str] | None = None,
    fetcher: Fetcher | None = None,
) -> ScanSummary:
    """
    Pull a competition's workouts from the relays and push them through ingestion.

    Catches workouts published by clients that never called the submission
    endpoint; everything lands with provenance ``nostr_scan``.
    """
    summary = ScanSummary()
    authors = participant_authors(db, competition)
    if not authors:
        logger.info("competition %s has no participants, nothing to scan", competition.external_id)
        return summary

    query = EventQuery(
        kind=settings.WORKOUT_EVENT_KIND,
        authors=tuple(sorted(authors)),
        since=competition.start_at,
        until=competition.end_at,
    )
    result = await fetch_events(
        relay_urls or settings.RELAY_URLS,
        query,
        relay_timeout=settings.RELAY_TIMEOUT_S,
        total_timeout=settings.FETCH_TIMEOUT_S,
        fetcher=fetcher,
    )
    summary.events = len(result.events)
    summary.relays_ok = sum(1 for r in result.relays if r.ok)
    summary.relays_failed = [r.url for r in result.relays if not r.ok]

    raw_by_id = {e.id: e for e in result.events}
    workouts, errors = normalize_batch(result.events)
    summary.parse_errors = len(errors)

    for w in workouts:
        if not splits_consistent(w):
            logger.warning("splits of %s add up past its duration", w.event_id[:16])
        outcome = ingest_workout(db, w, raw_by_id.get(w.event_id), source="nostr_scan")
        if outcome.flagged:
            summary.flagged += 1
        elif outcome.duplicate:
            summary.duplicates += 1
        elif outcome.success:
            summary.submitted += 1

    logger.info(
        "scan %s: %d events, %d new, %d duplicate, %d flagged, %d unparsable",
        competition.external_id, summary.events, summary.submitted,
        summary.duplicates, summary.flagged, summary.parse_errors,
    )
    return summary
