"""Pytest configuration and shared fixtures."""

import datetime as dt

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from restaurant_scheduler.config import SchedulerConfig
from restaurant_scheduler.domain.models import (
    OPEN_DAYS,
    AvailableShift,
    DayAvailability,
    DayStaffing,
    Employee,
    StaffingSlot,
    WeeklyStaffingNeeds,
)
from restaurant_scheduler.domain.tables import Base

# Monday; Tuesday is 2025-12-09 and Sunday 2025-12-14
WEEK_START = dt.date(2025, 12, 8)


def pytest_configure(config):
    """Configure pytest."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (deselect with '-m \"not integration\"')"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


@pytest.fixture
def week_start():
    return WEEK_START


@pytest.fixture
def config():
    """Defaults with rest and solo checks out of the way unless a test opts in."""
    return SchedulerConfig(min_rest_hours=0.0, alone_threshold=0)


@pytest.fixture
def make_employee():
    """Factory for employees who are available for anything Tuesday-Sunday."""

    def _make(emp_id, name=None, **kwargs):
        availability = {
            day: DayAvailability(available=True, shifts=[AvailableShift(type="any")])
            for day in OPEN_DAYS
        }
        availability.update(kwargs.pop("availability", {}))
        return Employee(id=emp_id, name=name or emp_id.title(), availability=availability, **kwargs)

    return _make


@pytest.fixture
def make_staffing():
    """Factory: ``make_staffing(tuesday=[(id, start, end, label), ...])``."""

    def _make(**days):
        return WeeklyStaffingNeeds(
            days={
                day: DayStaffing(slots=[StaffingSlot(*row) for row in rows])
                for day, rows in days.items()
            }
        )

    return _make


@pytest.fixture
def db_session():
    """Create in-memory database session for testing."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
