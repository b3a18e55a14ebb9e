"""
PostgreSQL-backed score history and leaderboard views.

Maintains identical interface to InMemorySessionStore.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy import and_, delete, insert, select, update

from quickplay.core.database import (
    best_scores,
    daily_leaderboard,
    game_sessions,
    get_db_session,
    retry_on_insert_race,
)
from quickplay.models.scores import LeaderboardEntry, ScoreRecord


def _merge_upsert(table, key: Dict[str, Any], columns: Dict[str, Any], payload: Dict[str, Any]) -> None:
    """Merge `payload` into the row's JSON payload, inserting the row if absent."""
    condition = and_(*[table.c[name] == value for name, value in key.items()])

    def attempt():
        with get_db_session() as session:
            row = session.execute(
                select(table.c.payload).where(condition).with_for_update()
            ).first()
            if row is None:
                session.execute(insert(table).values(**key, **columns, payload=dict(payload)))
            else:
                merged = {**(row.payload or {}), **payload}
                session.execute(update(table).where(condition).values(**columns, payload=merged))

    retry_on_insert_race(attempt)


class PostgresSessionStore:
    def add_session(self, user_id: str, game_name: str, played_on: Optional[str], payload: Dict[str, Any]) -> str:
        record_id = uuid4().hex
        with get_db_session() as session:
            session.execute(
                insert(game_sessions).values(
                    id=record_id,
                    user_id=user_id,
                    game_name=game_name,
                    played_on=played_on,
                    payload=dict(payload),
                    created_at=datetime.now(timezone.utc),
                )
            )
        return record_id

    def upsert_daily_entry(self, game_name: str, entry_id: str, user_id: str, date: str, payload: Dict[str, Any]) -> None:
        _merge_upsert(
            daily_leaderboard,
            {"game_name": game_name, "entry_id": entry_id},
            {"user_id": user_id, "date": date},
            payload,
        )

    def upsert_best_entry(self, game_name: str, user_id: str, payload: Dict[str, Any]) -> None:
        _merge_upsert(best_scores, {"game_name": game_name, "user_id": user_id}, {}, payload)

    def list_sessions(self, user_id: str, game_name: str) -> List[ScoreRecord]:
        with get_db_session() as session:
            rows = session.execute(
                select(game_sessions)
                .where(and_(game_sessions.c.user_id == user_id, game_sessions.c.game_name == game_name))
                .order_by(game_sessions.c.created_at, game_sessions.c.id)
            ).all()
        return [
            ScoreRecord(
                record_id=row.id,
                user_id=row.user_id,
                game_name=row.game_name,
                played_on=row.played_on,
                payload=dict(row.payload or {}),
            )
            for row in rows
        ]

    def has_session_on(self, user_id: str, game_name: str, date_string: str) -> bool:
        with get_db_session() as session:
            row = session.execute(
                select(game_sessions.c.id).where(
                    and_(
                        game_sessions.c.user_id == user_id,
                        game_sessions.c.game_name == game_name,
                        game_sessions.c.played_on == date_string,
                    )
                ).limit(1)
            ).first()
        return row is not None

    def daily_leaderboard(self, game_name: str, date_string: str) -> List[LeaderboardEntry]:
        with get_db_session() as session:
            rows = session.execute(
                select(daily_leaderboard).where(
                    and_(daily_leaderboard.c.game_name == game_name, daily_leaderboard.c.date == date_string)
                )
            ).all()
        return [LeaderboardEntry(user_id=r.user_id, game_name=r.game_name, payload=dict(r.payload or {})) for r in rows]

    def best_scores(self, game_name: str) -> List[LeaderboardEntry]:
        with get_db_session() as session:
            rows = session.execute(select(best_scores).where(best_scores.c.game_name == game_name)).all()
        return [LeaderboardEntry(user_id=r.user_id, game_name=r.game_name, payload=dict(r.payload or {})) for r in rows]

    def clear(self) -> None:
        """FOR TESTING ONLY."""
        with get_db_session() as session:
            session.execute(delete(game_sessions))
            session.execute(delete(daily_leaderboard))
            session.execute(delete(best_scores))
