"""
Statistics summaries and daily streak records.

In-memory implementation; store_pg.PostgresSummaryStore has the same interface.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Optional, Tuple

from quickplay.models.statistics import DailyStreak, StatisticsSummary

logger = logging.getLogger("quickplay.statistics.store")

SummaryUpdate = Callable[[Optional[StatisticsSummary]], StatisticsSummary]
StreakUpdate = Callable[[Optional[DailyStreak]], DailyStreak]


class InMemorySummaryStore:
    """
    One summary per (user, game), one streak record per user.

    A single lock serializes read-modify-write so concurrent sessions for the
    same user never lose an increment.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._summaries: Dict[Tuple[str, str], StatisticsSummary] = {}
        self._streaks: Dict[str, DailyStreak] = {}

    def get_summary(self, user_id: str, game_id: str) -> Optional[StatisticsSummary]:
        with self._lock:
            return self._summaries.get((user_id, game_id))

    def put_summary(self, user_id: str, game_id: str, summary: StatisticsSummary) -> None:
        with self._lock:
            self._summaries[(user_id, game_id)] = summary

    def apply_update(
        self, user_id: str, game_id: str, fn: SummaryUpdate
    ) -> Tuple[Optional[StatisticsSummary], StatisticsSummary]:
        key = (user_id, game_id)
        with self._lock:
            before = self._summaries.get(key)
            after = fn(before)
            self._summaries[key] = after
        return before, after

    def reset_daily_bests(self) -> int:
        """Zero every daily best. Returns how many summaries were swept."""
        with self._lock:
            for key, summary in self._summaries.items():
                self._summaries[key] = summary.with_daily_reset()
            return len(self._summaries)

    def get_daily_streak(self, user_id: str) -> Optional[DailyStreak]:
        with self._lock:
            return self._streaks.get(user_id)

    def advance_daily_streak(
        self, user_id: str, fn: StreakUpdate
    ) -> Tuple[Optional[DailyStreak], DailyStreak]:
        with self._lock:
            before = self._streaks.get(user_id)
            after = fn(before)
            self._streaks[user_id] = after
        return before, after

    def clear(self) -> None:
        """FOR TESTING ONLY."""
        with self._lock:
            self._summaries.clear()
            self._streaks.clear()


_store_instance = None


def get_store():
    """
    Get the singleton summary store.

    PostgreSQL when DATABASE_URL is configured and reachable, otherwise in-memory.
    """
    global _store_instance
    if _store_instance is None:
        from quickplay.core.database import sql_backend_available

        if sql_backend_available():
            from quickplay.features.statistics.store_pg import PostgresSummaryStore

            _store_instance = PostgresSummaryStore()
        else:
            _store_instance = InMemorySummaryStore()
        logger.info("summary store selected: %s", type(_store_instance).__name__)
    return _store_instance


def reset_store():
    """FOR TESTING ONLY - forces re-initialization on next get_store() call."""
    global _store_instance
    _store_instance = None
