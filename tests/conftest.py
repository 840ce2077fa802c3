"""
Shared fixtures: fake clock, mocked HTTP transports, in-memory vehicle store.
"""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fueltrakr.database import models  # noqa: F401  (registers the vehicles table)
from fueltrakr.database.session import Base
from fueltrakr.services.decode_cache import RetentionPolicy, VehicleDecodeCache
from helpers import HONDA_RESULTS, FakeClock, make_response, registry_payload


# ── Fixtures ───────────────────────────────────────────────────────────────────

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def policy() -> RetentionPolicy:
    return RetentionPolicy(not_found=timedelta(minutes=15), transport=timedelta(minutes=5))


@pytest.fixture
def cache(policy: RetentionPolicy, clock: FakeClock) -> VehicleDecodeCache:
    return VehicleDecodeCache(policy=policy, clock=clock)


@pytest.fixture
def registry_session() -> MagicMock:
    """Mocked requests.Session answering the Honda Civic decode."""
    session = MagicMock()
    session.get.return_value = make_response(200, registry_payload(HONDA_RESULTS))
    return session


@pytest.fixture
def proxy_session() -> MagicMock:
    return MagicMock()


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()
