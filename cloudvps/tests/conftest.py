"""
Shared fixtures: in-memory SQLite store, a manually advanced clock,
zero-latency config and a ready engine.
"""
import pytest
from datetime import datetime, timedelta, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cloudvps.config import EngineConfig
from cloudvps.database import init_db
from cloudvps.repositories.kv_repository import PersistentStore, SessionStore
from cloudvps.schemas import LeaseStatus
from cloudvps.services.clock_service import ClockService
from cloudvps.services.engine_service import EngineService


class ManualClock(ClockService):
    """Clock that only moves when told to"""

    def __init__(self, start: datetime):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float = 0, **kwargs) -> None:
        self.current = self.current + timedelta(seconds=seconds, **kwargs)


@pytest.fixture
def clock():
    return ManualClock(datetime(2026, 1, 30, 10, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def config():
    return EngineConfig(latency_min_ms=0, latency_max_ms=0)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return PersistentStore(session_factory)


@pytest.fixture
def session_store():
    return SessionStore()


@pytest.fixture
def engine(config, clock, store, session_store):
    return EngineService(config, clock, store, session_store)


def give_points(engine: EngineService, amount: int) -> None:
    """Set the balance directly for tests that are not about earning"""
    engine.container.state.points_balance = amount
    engine.container.persist()


def start_running_lease(engine: EngineService, seconds: int) -> None:
    """Put the engine into a running lease with the given remaining time"""
    lease = engine.container.state.lease
    lease.status = LeaseStatus.RUNNING
    lease.time_left_seconds = seconds
    lease.last_reconcile_at = engine.clock.now()
    engine.container.persist()
