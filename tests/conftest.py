"""
Pytest configuration and fixtures.

Every test gets a fresh in-memory SQLite database; nothing is shared
between tests.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ADMIN_TOKEN", "test-admin")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from workout_league.events import RawEvent
from workout_league.models import Base
from workout_league.schemas import SubmissionRequest
from workout_league.utils_time import to_epoch

JAN_1 = to_epoch("2026-01-01T00:00:00Z")

# x-only public keys of the secp256k1 points 1G..4G
AUTHOR_A = "79be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
AUTHOR_B = "c6047f9441ed7d6d3045406e95c07cd85c778e4b8cef3ca7abac09b95c709ee5"
AUTHOR_C = "f9308a019258c31049344f85f89d5229b531c845836f99b08601f113bce036f9"
OUTSIDER = "e493dbf1c10d80f3581e4904930b1404cc6c13900ee0758474fa94abe8c4cd13"

@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()

@pytest.fixture
def make_request():
    counter = {"n": 0}

    def _make(**overrides) -> SubmissionRequest:
        counter["n"] += 1
        data = dict(
            event_id=f"evt-{counter['n']:04d}",
            author=AUTHOR_A,
            activity_type="running",
            distance_meters=5000.0,
            duration_seconds=1500,
            calories=None,
            created_at=JAN_1 + 3600 * 10,
            raw_event=None,
            source="app",
        )
        data.update(overrides)
        return SubmissionRequest(**data)

    return _make

@pytest.fixture
def make_event():
    counter = {"n": 0}

    def _make(tags, pubkey=AUTHOR_A, created_at=JAN_1 + 3600, kind=1301, event_id=None) -> RawEvent:
        counter["n"] += 1
        return RawEvent(
            id=event_id or f"{counter['n']:064x}",
            pubkey=pubkey,
            created_at=created_at,
            kind=kind,
            tags=tuple(tuple(t) for t in tags),
            content="",
        )

    return _make
