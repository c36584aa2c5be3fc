"""
Pytest Configuration and Shared Fixtures
========================================

This module provides shared fixtures for all DoseTrack tests.
Fixtures include database sessions, test clients, a fixed clock, and sample data.
"""

import os
import sys
from datetime import datetime, date, timedelta, timezone
from typing import Generator

import pytest

# Keep the app's own engine off the filesystem during tests
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker, Session

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import Base, build_engine
from models import Profile, Medication, MedicationSchedule, InventoryItem
from tools.schedule_types import (
    DailyScheme,
    PrnScheme,
    ProfileSettings,
    ScheduleDefinition,
    InventoryRecord,
)
from services.stores import InMemoryDoseLogStore, InMemoryInventoryStore
from api.deps import get_clock, get_db
from app import app


# Monday 2024-01-15 12:00 UTC
FIXED_NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


class FixedClock:
    """Injectable clock that only moves when told to"""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def set(self, now: datetime) -> datetime:
        self.now = now
        return self.now


# ==================== CLOCK FIXTURES ====================

@pytest.fixture
def clock() -> FixedClock:
    """Fixed clock at Monday 2024-01-15 12:00 UTC"""
    return FixedClock()


@pytest.fixture
def today() -> date:
    return FIXED_NOW.date()


# ==================== DATABASE FIXTURES ====================

@pytest.fixture(scope="function")
def test_engine():
    """Create a test database engine with in-memory SQLite"""
    engine = build_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=engine)

    yield engine

    # Cleanup
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Generator[Session, None, None]:
    """Create a test database session"""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_engine
    )

    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session, clock: FixedClock) -> Generator[TestClient, None, None]:
    """Create a FastAPI test client with database and clock overrides"""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ==================== SAMPLE DATA FIXTURES ====================

@pytest.fixture
def profile_settings() -> ProfileSettings:
    """UTC profile with every routine anchor configured"""
    return ProfileSettings(
        profile_id="1",
        timezone="UTC",
        wake_time="07:00",
        breakfast_time="08:00",
        lunch_time="13:00",
        dinner_time="19:00",
        bed_time="22:30"
    )


@pytest.fixture
def daily_schedule() -> ScheduleDefinition:
    """Twice-daily schedule at 08:00 and 20:00"""
    return ScheduleDefinition(
        id="s1",
        item_id="med-1",
        profile_id="1",
        scheme=DailyScheme(times_per_day=2, times=["08:00", "20:00"]),
        item_name="Metformin"
    )


@pytest.fixture
def prn_schedule() -> ScheduleDefinition:
    """As-needed schedule: at most 3 per day, 4 hours apart"""
    return ScheduleDefinition(
        id="s-prn",
        item_id="med-prn",
        profile_id="1",
        scheme=PrnScheme(max_per_day=3, min_interval_hours=4),
        item_name="Ibuprofen"
    )


@pytest.fixture
def log_store() -> InMemoryDoseLogStore:
    return InMemoryDoseLogStore()


@pytest.fixture
def inventory_store() -> InMemoryInventoryStore:
    return InMemoryInventoryStore([
        InventoryRecord(item_id="med-1", remaining_units=10, low_threshold=5),
        InventoryRecord(item_id="med-prn", remaining_units=20, low_threshold=4),
    ])


# ==================== DATABASE SAMPLE FIXTURES ====================

@pytest.fixture
def test_profile(db_session: Session) -> Profile:
    """Create and return a test profile"""
    profile = Profile(
        name="Alex",
        timezone="UTC",
        wake_time="07:00",
        breakfast_time="08:00",
        lunch_time="13:00",
        dinner_time="19:00",
        bed_time="22:30"
    )
    db_session.add(profile)
    db_session.commit()
    db_session.refresh(profile)
    return profile


@pytest.fixture
def test_medication(db_session: Session, test_profile: Profile) -> Medication:
    """Create a medication with 10 units in stock"""
    medication = Medication(profile_id=test_profile.id, name="Metformin", form="tablet")
    medication.inventory = InventoryItem(remaining_units=10, low_threshold=5)
    db_session.add(medication)
    db_session.commit()
    db_session.refresh(medication)
    return medication


@pytest.fixture
def test_schedule(db_session: Session, test_profile: Profile, test_medication: Medication) -> MedicationSchedule:
    """Twice-daily schedule at 08:00 and 20:00"""
    schedule = MedicationSchedule(
        profile_id=test_profile.id,
        medication_id=test_medication.id,
        scheme={"type": "daily", "timesPerDay": 2, "times": ["08:00", "20:00"]},
        dose_amount=1.0,
        grace_window_minutes=60
    )
    db_session.add(schedule)
    db_session.commit()
    db_session.refresh(schedule)
    return schedule


@pytest.fixture
def test_prn_schedule(db_session: Session, test_profile: Profile) -> MedicationSchedule:
    """As-needed schedule with its own medication"""
    medication = Medication(profile_id=test_profile.id, name="Ibuprofen", form="tablet")
    medication.inventory = InventoryItem(remaining_units=20, low_threshold=4)
    db_session.add(medication)
    db_session.commit()

    schedule = MedicationSchedule(
        profile_id=test_profile.id,
        medication_id=medication.id,
        scheme={"type": "prn", "maxPerDay": 2, "minIntervalHours": 4}
    )
    db_session.add(schedule)
    db_session.commit()
    db_session.refresh(schedule)
    return schedule


# ==================== PYTEST CONFIGURATION ====================

def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "api: mark test as an API test")
    config.addinivalue_line("markers", "database: mark test as requiring database")
