"""
Pytest configuration and fixtures.

This file is automatically loaded by pytest and provides
shared fixtures for all tests.
"""

from typing import Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from mattrack.db.models import Base, SourceGym, SourceGymRecord
from mattrack.fetchers.base import BaseGymFetcher, FetchedGym, RosterAthlete


@pytest.fixture
def test_engine():
    """
    Create a fresh in-memory SQLite engine for one test.

    Stores commit on every write, so each test gets its own database
    instead of a rolled-back transaction.
    """
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(test_engine):
    """Session on the per-test database."""
    Session = sessionmaker(bind=test_engine, autoflush=False)
    session = Session()
    yield session
    session.close()


def make_record(
    federation: str,
    external_id: str,
    name: str,
    city: Optional[str] = None,
    master_gym_id: Optional[str] = None,
    country_code: Optional[str] = "US",
) -> SourceGymRecord:
    return SourceGymRecord(
        federation=federation,
        external_id=external_id,
        name=name,
        city=city,
        country="United States" if country_code == "US" else None,
        country_code=country_code,
        master_gym_id=master_gym_id,
    )


def add_source_gym(session, record: SourceGymRecord) -> SourceGym:
    """Insert a source gym row matching a record."""
    row = SourceGym(
        federation=record.federation,
        external_id=record.external_id,
        name=record.name,
        city=record.city,
        country=record.country,
        country_code=record.country_code,
        master_gym_id=record.master_gym_id,
    )
    session.add(row)
    session.commit()
    return row


class FakeFetcher(BaseGymFetcher):
    """In-memory fetcher that records how it was called."""

    def __init__(
        self,
        federation: str,
        gyms: Optional[list[FetchedGym]] = None,
        total_count: Optional[int] = None,
        rosters: Optional[dict[tuple[str, str], list[RosterAthlete]]] = None,
        supports_rosters: bool = False,
        supports_total_count: bool = True,
        error: Optional[Exception] = None,
    ):
        self.federation = federation
        self.gyms = gyms or []
        self.total_count = len(self.gyms) if total_count is None else total_count
        self.rosters = rosters or {}
        self.supports_rosters = supports_rosters
        self.supports_total_count = supports_total_count
        self.count_calls = 0
        self.error = error
        self.fetch_all_calls = 0
        self.roster_calls: list[tuple[str, str]] = []

    async def fetch_all_gyms(self, on_progress=None):
        self.fetch_all_calls += 1
        if self.error:
            raise self.error
        if on_progress:
            on_progress(len(self.gyms), self.total_count)
        return list(self.gyms)

    async def fetch_total_count(self):
        self.count_calls += 1
        if self.error:
            raise self.error
        return self.total_count

    async def fetch_roster(self, tournament_id, gym_external_id):
        self.roster_calls.append((tournament_id, gym_external_id))
        key = (tournament_id, gym_external_id)
        if key not in self.rosters:
            raise RuntimeError(f"roster unavailable for {tournament_id}/{gym_external_id}")
        return self.rosters[key]
