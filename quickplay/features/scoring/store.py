"""
Score history and leaderboard views.

In-memory implementation; store_pg.PostgresSessionStore has the same interface.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from quickplay.models.scores import LeaderboardEntry, ScoreRecord

logger = logging.getLogger("quickplay.scoring.store")


class InMemorySessionStore:
    """
    Raw attempts plus the two denormalized leaderboard views.

    Raw records are append-only; view rows are merge-upserted.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._sessions: List[ScoreRecord] = []
        self._daily: Dict[Tuple[str, str], LeaderboardEntry] = {}
        self._best: Dict[Tuple[str, str], LeaderboardEntry] = {}

    def add_session(self, user_id: str, game_name: str, played_on: Optional[str], payload: Dict[str, Any]) -> str:
        record_id = uuid4().hex
        record = ScoreRecord(
            record_id=record_id,
            user_id=user_id,
            game_name=game_name,
            played_on=played_on,
            payload=dict(payload),
        )
        with self._lock:
            self._sessions.append(record)
        return record_id

    def upsert_daily_entry(self, game_name: str, entry_id: str, user_id: str, date: str, payload: Dict[str, Any]) -> None:
        key = (game_name, entry_id)
        with self._lock:
            existing = self._daily.get(key)
            merged = {**(existing.payload if existing else {}), **payload}
            self._daily[key] = LeaderboardEntry(user_id=user_id, game_name=game_name, payload=merged)

    def upsert_best_entry(self, game_name: str, user_id: str, payload: Dict[str, Any]) -> None:
        key = (game_name, user_id)
        with self._lock:
            existing = self._best.get(key)
            merged = {**(existing.payload if existing else {}), **payload}
            self._best[key] = LeaderboardEntry(user_id=user_id, game_name=game_name, payload=merged)

    def list_sessions(self, user_id: str, game_name: str) -> List[ScoreRecord]:
        with self._lock:
            return [r for r in self._sessions if r.user_id == user_id and r.game_name == game_name]

    def has_session_on(self, user_id: str, game_name: str, date_string: str) -> bool:
        with self._lock:
            return any(
                r.user_id == user_id and r.game_name == game_name and r.played_on == date_string
                for r in self._sessions
            )

    def daily_leaderboard(self, game_name: str, date_string: str) -> List[LeaderboardEntry]:
        with self._lock:
            return [
                entry for (game, _), entry in self._daily.items()
                if game == game_name and entry.payload.get("date") == date_string
            ]

    def best_scores(self, game_name: str) -> List[LeaderboardEntry]:
        with self._lock:
            return [entry for (game, _), entry in self._best.items() if game == game_name]

    def clear(self) -> None:
        """FOR TESTING ONLY."""
        with self._lock:
            self._sessions.clear()
            self._daily.clear()
            self._best.clear()


_store_instance = None


def get_store():
    """
    Get the singleton session store.

    PostgreSQL when DATABASE_URL is configured and reachable, otherwise in-memory.
    """
    global _store_instance
    if _store_instance is None:
        from quickplay.core.database import sql_backend_available

        if sql_backend_available():
            from quickplay.features.scoring.store_pg import PostgresSessionStore

            _store_instance = PostgresSessionStore()
        else:
            _store_instance = InMemorySessionStore()
        logger.info("session store selected: %s", type(_store_instance).__name__)
    return _store_instance


def reset_store():
    """FOR TESTING ONLY - forces re-initialization on next get_store() call."""
    global _store_instance
    _store_instance = None
