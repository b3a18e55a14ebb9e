"""
PostgreSQL-backed statistics summaries and daily streaks.

Maintains identical interface to InMemorySummaryStore. Read-modify-write runs
under SELECT ... FOR UPDATE so concurrent sessions serialize on the row.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy import and_, delete, func, insert, select, update

from quickplay.core.database import daily_streaks, get_db_session, retry_on_insert_race, statistics_summaries
from quickplay.features.statistics.store import StreakUpdate, SummaryUpdate
from quickplay.models.statistics import DailyStreak, StatisticsSummary


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _summary_from_row(row) -> StatisticsSummary:
    return StatisticsSummary(
        best_score_index=row.best_score_index,
        daily_best_score_index=row.daily_best_score_index,
        total_plays=row.total_plays,
        updated_at=_aware(row.updated_at),
    )


def _summary_values(summary: StatisticsSummary) -> dict:
    return {
        "best_score_index": summary.best_score_index,
        "daily_best_score_index": summary.daily_best_score_index,
        "total_plays": summary.total_plays,
        "updated_at": summary.updated_at,
    }


class PostgresSummaryStore:
    def get_summary(self, user_id: str, game_id: str) -> Optional[StatisticsSummary]:
        with get_db_session() as session:
            row = session.execute(
                select(statistics_summaries).where(
                    and_(
                        statistics_summaries.c.user_id == user_id,
                        statistics_summaries.c.game_id == game_id,
                    )
                )
            ).first()
        return _summary_from_row(row) if row else None

    def put_summary(self, user_id: str, game_id: str, summary: StatisticsSummary) -> None:
        self.apply_update(user_id, game_id, lambda _current: summary)

    def apply_update(
        self, user_id: str, game_id: str, fn: SummaryUpdate
    ) -> Tuple[Optional[StatisticsSummary], StatisticsSummary]:
        condition = and_(
            statistics_summaries.c.user_id == user_id,
            statistics_summaries.c.game_id == game_id,
        )

        def attempt():
            with get_db_session() as session:
                row = session.execute(
                    select(statistics_summaries).where(condition).with_for_update()
                ).first()
                before = _summary_from_row(row) if row else None
                after = fn(before)
                if row is None:
                    session.execute(
                        insert(statistics_summaries).values(
                            user_id=user_id, game_id=game_id, **_summary_values(after)
                        )
                    )
                else:
                    session.execute(
                        update(statistics_summaries).where(condition).values(**_summary_values(after))
                    )
            return before, after

        return retry_on_insert_race(attempt)

    def reset_daily_bests(self) -> int:
        with get_db_session() as session:
            count = session.execute(select(func.count()).select_from(statistics_summaries)).scalar_one()
            session.execute(update(statistics_summaries).values(daily_best_score_index=0))
        return int(count)

    def get_daily_streak(self, user_id: str) -> Optional[DailyStreak]:
        with get_db_session() as session:
            row = session.execute(
                select(daily_streaks).where(daily_streaks.c.user_id == user_id)
            ).first()
        if row is None:
            return None
        return DailyStreak(daily_streak=row.daily_streak, last_updated=row.last_updated)

    def advance_daily_streak(
        self, user_id: str, fn: StreakUpdate
    ) -> Tuple[Optional[DailyStreak], DailyStreak]:
        condition = daily_streaks.c.user_id == user_id

        def attempt():
            with get_db_session() as session:
                row = session.execute(select(daily_streaks).where(condition).with_for_update()).first()
                before = (
                    DailyStreak(daily_streak=row.daily_streak, last_updated=row.last_updated)
                    if row
                    else None
                )
                after = fn(before)
                values = {"daily_streak": after.daily_streak, "last_updated": after.last_updated}
                if row is None:
                    session.execute(insert(daily_streaks).values(user_id=user_id, **values))
                elif after != before:
                    session.execute(update(daily_streaks).where(condition).values(**values))
            return before, after

        return retry_on_insert_race(attempt)

    def clear(self) -> None:
        """FOR TESTING ONLY."""
        with get_db_session() as session:
            session.execute(delete(statistics_summaries))
            session.execute(delete(daily_streaks))
