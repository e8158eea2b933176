import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Awaitable, Callable, Iterable

from nostr_sdk import Client, Filter, Kind, PublicKey, RelayUrl, Timestamp
from nostr_sdk import Event as NostrEvent

from .events import RawEvent, merge_events

logger = logging.getLogger(__name__)

# Headroom over the per-relay timeout for connect and teardown
CONNECT_GRACE_S = 2.0

@dataclass(frozen=True)
class EventQuery:
    kind: int
    authors: tuple[str, ...] | None = None
    since: int | None = None
    until: int | None = None

@dataclass
class RelayReport:
    url: str
    events: int = 0
    error: str | None = None
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.timed_out

@dataclass
class FetchResult:
    events: list[RawEvent] = field(default_factory=list)
    relays: list[RelayReport] = field(default_factory=list)

Fetcher = Callable[[str, EventQuery, float], Awaitable[list[RawEvent]]]

def build_filter(query: EventQuery) -> Filter:
    f = Filter().kinds([Kind(query.kind)])
    if query.authors:
        f = f.authors([PublicKey.parse(a) for a in query.authors])
    if query.since is not None:
        f = f.since(Timestamp.from_secs(query.since))
    if query.until is not None:
        f = f.until(Timestamp.from_secs(query.until))
    return f

def from_nostr(evt: NostrEvent) -> RawEvent:
    return RawEvent(
        id=evt.id().to_hex(),
        pubkey=evt.author().to_hex(),
        created_at=evt.created_at().as_secs(),
        kind=evt.kind().as_u16(),
        tags=tuple(tuple(t.as_vec()) for t in evt.tags().to_vec()),
        content=evt.content(),
        sig=evt.signature(),
    )

def verified_events(events: Iterable[NostrEvent], url: str = "") -> list[RawEvent]:
    out = []
    for evt in events:
        if not evt.verify():
            logger.warning("dropping event %s from %s: bad id or signature", evt.id().to_hex()[:16], url)
            continue
        out.append(from_nostr(evt))
    return out

async def fetch_from_relay(url: str, query: EventQuery, timeout: float) -> list[RawEvent]:
    """Stored events from one relay; returns at end-of-stored-events or ``timeout``."""
    client = Client()
    await client.add_relay(RelayUrl.parse(url))
    try:
        await client.connect()
        events = await client.fetch_events(build_filter(query), timedelta(seconds=timeout))
        return verified_events(events.to_vec(), url)
    finally:
        # shutdown errors from the FFI layer must not mask the fetch result
        with contextlib.suppress(Exception):
            await client.shutdown()

async def _collect(url: str, query: EventQuery, timeout: float, fetcher: Fetcher) -> tuple[RelayReport, list[RawEvent]]:
    report = RelayReport(url=url)
    try:
        events = await asyncio.wait_for(fetcher(url, query, timeout), timeout + CONNECT_GRACE_S)
    except TimeoutError:
        report.timed_out = True
        logger.warning("relay %s timed out after %.1fs", url, timeout)
        return report, []
    except Exception as e:  # nostr-sdk FFI errors share no base class beyond Exception
        report.error = f"{type(e).__name__}: {e}"
        logger.warning("relay %s failed: %s", url, report.error)
        return report, []
    events = [e for e in events if e.kind == query.kind]
    report.events = len(events)
    logger.debug("relay %s returned %d events", url, len(events))
    return report, events

async def fetch_events(
    relay_urls: Iterable[str],
    query: EventQuery,
    relay_timeout: float = 15.0,
    total_timeout: float = 30.0,
    fetcher: Fetcher | None = None,
) -> FetchResult:
    """
    Query every relay concurrently and merge what comes back.

    Relays still running at ``total_timeout`` are cancelled and reported as
    timed out. Nothing is retried here.
    """
    fetcher = fetcher or fetch_from_relay
    urls = list(dict.fromkeys(relay_urls))
    if not urls:
        return FetchResult()

    tasks = {
        asyncio.create_task(_collect(url, query, relay_timeout, fetcher)): url
        for url in urls
    }
    done, pending = await asyncio.wait(tasks, timeout=total_timeout)

    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)

    by_url: dict[str, RelayReport] = {}
    batches: list[list[RawEvent]] = []
    for task in done:
        report, events = task.result()
        by_url[report.url] = report
        batches.append(events)
    for task in pending:
        url = tasks[task]
        logger.warning("relay %s still running at overall deadline", url)
        by_url[url] = RelayReport(url=url, timed_out=True)

    merged = merge_events(batches)
    reports = [by_url[u] for u in urls]
    logger.info(
        "fetched %d unique events from %d/%d relays",
        len(merged), sum(1 for r in reports if r.ok), len(reports),
    )
    return FetchResult(events=merged, relays=reports)
