# quickplay/conftest.py
import random
from datetime import datetime, timezone

import pytest

from quickplay.core import metrics
from quickplay.core.config import settings
from quickplay.core.database import create_all_tables, dispose_engine, drop_all_tables
from quickplay.features.notifications import store as activity_store
from quickplay.features.pipeline import build_pipeline, reset_pipeline
from quickplay.features.scoring import store as session_store
from quickplay.features.social import store as profile_store
from quickplay.features.statistics import store as summary_store
from quickplay.features.triggers.bus import TriggerBus


def _reset_singletons():
    session_store.reset_store()
    summary_store.reset_store()
    activity_store.reset_store()
    profile_store.reset_store()
    reset_pipeline()
    metrics.reset_all()
    dispose_engine()


@pytest.fixture(scope="function", autouse=True)
def isolated_state(monkeypatch):
    """
    Every test starts on fresh in-memory stores with header auth enabled.

    Tests that want SQL opt in through the `sqlite_db` fixture.
    """
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("TEST_DATABASE_URL", raising=False)
    monkeypatch.setattr(settings, "DATABASE_URL", None)
    monkeypatch.setattr(settings, "TRIGGER_MODE", "inline")
    monkeypatch.setattr(settings, "ALLOW_HEADER_AUTH", True)
    monkeypatch.setattr(settings, "LEADERBOARD_TIMEZONE", "UTC")
    _reset_singletons()
    yield
    _reset_singletons()


@pytest.fixture
def sqlite_db(monkeypatch):
    """In-memory SQLite shared through StaticPool; tables created fresh per test."""
    monkeypatch.setenv("TEST_DATABASE_URL", "sqlite://")
    dispose_engine()
    create_all_tables()
    yield
    drop_all_tables()
    dispose_engine()


@pytest.fixture
def fixed_now():
    return datetime(2025, 3, 24, 15, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def pipeline(fixed_now):
    """In-memory pipeline with a seeded template picker and a frozen clock."""
    return build_pipeline(
        bus=TriggerBus(mode="inline"),
        sessions=session_store.InMemorySessionStore(),
        summaries=summary_store.InMemorySummaryStore(),
        activities=activity_store.InMemoryActivityStore(),
        profiles=profile_store.InMemoryProfileStore(),
        rng=random.Random(7),
        clock=lambda: fixed_now,
    )
