"""
Database configuration and connection management.

This module provides:
- SQLAlchemy engine and session management
- Connection pooling with sane defaults
- Test database support
- Table definitions for every document family the score pipeline writes
"""
from typing import Callable, Optional, TypeVar
from contextlib import contextmanager
import logging
import os

from sqlalchemy import (
    create_engine,
    MetaData,
    Table,
    Column,
    Integer,
    String,
    DateTime,
    Float,
    JSON,
    Text,
    Index,
    PrimaryKeyConstraint,
    select,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.pool import QueuePool, StaticPool
from sqlalchemy.orm import sessionmaker
from sqlalchemy.sql import func

from quickplay.core.config import settings

logger = logging.getLogger("quickplay.database")

T = TypeVar("T")

# SQLAlchemy metadata for table definitions
metadata = MetaData()

# Connection pooling configuration
POOL_SIZE = 10
MAX_OVERFLOW = 20
POOL_TIMEOUT = 30
POOL_RECYCLE = 3600  # Recycle connections after 1 hour

# Global engine and session factory
_engine = None
_SessionLocal = None


def get_database_url() -> Optional[str]:
    """
    Get the database URL from settings or environment.

    For testing, use TEST_DATABASE_URL if available.
    """
    test_url = os.getenv("TEST_DATABASE_URL")
    if test_url:
        return test_url

    return os.getenv("DATABASE_URL") or settings.DATABASE_URL


def init_engine(database_url: Optional[str] = None):
    """
    Initialize the SQLAlchemy engine.

    Args:
        database_url: Optional override for DATABASE_URL
    """
    global _engine, _SessionLocal

    url = database_url or get_database_url()

    if not url:
        raise ValueError(
            "DATABASE_URL is not configured. "
            "Set DATABASE_URL in environment or .env file."
        )

    if url.startswith("sqlite"):
        # Single shared connection so in-memory databases survive across sessions
        _engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
    else:
        _engine = create_engine(
            url,
            poolclass=QueuePool,
            pool_size=POOL_SIZE,
            max_overflow=MAX_OVERFLOW,
            pool_timeout=POOL_TIMEOUT,
            pool_recycle=POOL_RECYCLE,
            echo=False,  # Set to True for SQL query logging
        )

    _SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=_engine
    )

    return _engine


def get_engine():
    """Get the current SQLAlchemy engine."""
    global _engine
    if _engine is None:
        init_engine()
    return _engine


def get_session_factory():
    """Get the session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        init_engine()
    return _SessionLocal


def dispose_engine() -> None:
    """Drop the cached engine so the next call re-reads the configured URL."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


@contextmanager
def get_db_session():
    """
    Context manager for database sessions.

    Usage:
        with get_db_session() as session:
            session.execute(...)

    Commits when the block exits cleanly, rolls back on any exception.
    """
    SessionLocal = get_session_factory()
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all_tables():
    """
    Create all tables defined in metadata.

    This is idempotent - tables that already exist will not be recreated.
    """
    engine = get_engine()
    metadata.create_all(bind=engine)


def drop_all_tables():
    """
    Drop all tables defined in metadata.

    WARNING: This is destructive! Only use in tests or development.
    """
    engine = get_engine()
    metadata.drop_all(bind=engine)


def check_connection() -> bool:
    """
    Check if database connection is available.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        engine = get_engine()
        with engine.connect() as conn:
            conn.execute(select(1))
        return True
    except (SQLAlchemyError, ValueError) as e:
        logger.warning("Database connection check failed: %s", e)
        return False


def retry_on_insert_race(operation: Callable[[], T]) -> T:
    """
    Run a select-for-update/insert-or-update block, once more if it lost an
    insert race for the same key. The retry sees the row and takes the update path.
    """
    try:
        return operation()
    except IntegrityError:
        logger.info("insert race detected, retrying as update")
        return operation()


def sql_backend_available() -> bool:
    """
    True when a database is configured and reachable; tables are created on the way.

    Stores call this to choose between their SQL and in-memory implementations.
    """
    if not get_database_url():
        return False
    if not check_connection():
        logger.warning("Database unavailable, falling back to in-memory stores")
        return False
    create_all_tables()
    return True


# Raw attempts: /users/{uid}/scores in the document model. Immutable once written.
game_sessions = Table(
    'game_sessions',
    metadata,
    Column('id', String(64), primary_key=True),
    Column('user_id', String(128), nullable=False),
    Column('game_name', String(64), nullable=False),
    Column('played_on', String(32), nullable=True),  # leaderboard date string, None when datePlayed is invalid
    Column('payload', JSON, nullable=False),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Index('idx_game_sessions_user_game', 'user_id', 'game_name'),
    Index('idx_game_sessions_user_game_day', 'user_id', 'game_name', 'played_on'),
)

# Daily leaderboard view: one row per (game, userId_date)
daily_leaderboard = Table(
    'daily_leaderboard',
    metadata,
    Column('game_name', String(64), nullable=False),
    Column('entry_id', String(200), nullable=False),
    Column('user_id', String(128), nullable=False),
    Column('date', String(32), nullable=False),
    Column('payload', JSON, nullable=False),
    Column('updated_at', DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False),
    PrimaryKeyConstraint('game_name', 'entry_id', name='pk_daily_leaderboard'),
    Index('idx_daily_leaderboard_game_date', 'game_name', 'date'),
)

# Best-score view: one row per (game, user)
best_scores = Table(
    'best_scores',
    metadata,
    Column('game_name', String(64), nullable=False),
    Column('user_id', String(128), nullable=False),
    Column('payload', JSON, nullable=False),
    Column('updated_at', DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False),
    PrimaryKeyConstraint('game_name', 'user_id', name='pk_best_scores'),
)

# Authoritative per-(user, game) summary
statistics_summaries = Table(
    'statistics_summaries',
    metadata,
    Column('user_id', String(128), nullable=False),
    Column('game_id', String(64), nullable=False),
    Column('best_score_index', Float, nullable=True),
    Column('daily_best_score_index', Float, nullable=True),
    Column('total_plays', Integer, nullable=True),
    Column('updated_at', DateTime(timezone=True), nullable=True),
    PrimaryKeyConstraint('user_id', 'game_id', name='pk_statistics_summaries'),
)

daily_streaks = Table(
    'daily_streaks',
    metadata,
    Column('user_id', String(128), primary_key=True),
    Column('daily_streak', Integer, nullable=False, default=0),
    Column('last_updated', String(10), nullable=True),  # ISO date of last increment
)

# Activity feed, owned by the triggering user
activity_events = Table(
    'activity_events',
    metadata,
    Column('id', String(64), primary_key=True),
    Column('owner_id', String(128), nullable=False),
    Column('event_type', String(64), nullable=False),
    Column('message', Text, nullable=False),
    Column('recipients', JSON, nullable=False),
    Column('data', JSON, nullable=False),
    Column('from_user', String(128), nullable=False),
    Column('reactions', JSON, nullable=False),
    Column('comments', JSON, nullable=False),
    Column('created_at', DateTime(timezone=True), nullable=False),
    Index('idx_activity_events_owner_created', 'owner_id', 'created_at'),
)

profiles = Table(
    'profiles',
    metadata,
    Column('user_id', String(128), primary_key=True),
    Column('username', String(100), nullable=True),
    Column('theme', String(50), nullable=True),
    Column('friends', JSON, nullable=False),
    Column('friend_requests', JSON, nullable=False),
    Column('blocked', JSON, nullable=False),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
)
