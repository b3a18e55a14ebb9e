from __future__ import annotations

import logging
import random
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Optional

from quickplay.core.metrics import activity_events_total
from quickplay.features.notifications.synthesizer import decide_streak_event
from quickplay.features.scoring.catalog import daily_games
from quickplay.features.scoring.dates import format_day, today as local_today
from quickplay.models.statistics import DailyStreak

logger = logging.getLogger("quickplay.notifications.streaks")


def decide_streak_advance(before: Optional[DailyStreak], completed: bool, today_iso: str) -> DailyStreak:
    """
    First check creates the record (1 when today's dailies are done, else 0).
    Afterwards the streak goes up by one on the first completed check of a day.
    Missed days do not reset it.
    """
    if before is None:
        if completed:
            return DailyStreak(daily_streak=1, last_updated=today_iso)
        return DailyStreak(daily_streak=0, last_updated=None)
    if completed and before.last_updated != today_iso:
        return DailyStreak(daily_streak=before.daily_streak + 1, last_updated=today_iso)
    return before


class DailyStreakTracker:
    """Advances a user's daily streak once both designated daily games are played."""

    def __init__(
        self,
        sessions,
        streaks,
        profiles,
        activities,
        *,
        rng: Optional[random.Random] = None,
        tz_name: Optional[str] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._sessions = sessions
        self._streaks = streaks
        self._profiles = profiles
        self._activities = activities
        self._rng = rng or random.Random()
        self._tz_name = tz_name
        self._clock = clock

    def today(self) -> date:
        return local_today(self._tz_name, self._clock())

    def dailies_completed(self, user_id: str, day: date) -> bool:
        date_string = format_day(day)
        return all(self._sessions.has_session_on(user_id, game_id, date_string) for game_id in daily_games(day))

    def check(self, user_id: str, today: Optional[date] = None) -> DailyStreak:
        day = today or self.today()
        today_iso = day.isoformat()
        completed = self.dailies_completed(user_id, day)

        before, after = self._streaks.advance_daily_streak(
            user_id, lambda current: decide_streak_advance(current, completed, today_iso)
        )
        advanced = after.last_updated == today_iso and (before is None or before.last_updated != today_iso)
        if advanced:
            logger.info(
                "streak.advanced",
                extra={"user_id": user_id, "event_type": "dailyStreak", "count": after.daily_streak},
            )
            try:
                self._emit(user_id, after.daily_streak)
            except Exception:
                self._roll_back(user_id, before, after)
                raise
        return after

    def _roll_back(self, user_id: str, before: Optional[DailyStreak], after: DailyStreak) -> None:
        """Undo an advance whose dailyStreak event was not committed, unless the record moved on since."""
        previous = before or DailyStreak(daily_streak=0, last_updated=None)
        self._streaks.advance_daily_streak(user_id, lambda current: previous if current == after else current)
        logger.warning(
            "streak.rolled_back",
            extra={"user_id": user_id, "event_type": "dailyStreak", "count": previous.daily_streak},
        )

    def on_session_created(self, payload: Dict[str, Any]) -> Optional[DailyStreak]:
        user_id = payload.get("userId")
        if not user_id:
            return None
        day = self.today()
        if payload.get("gameId") not in daily_games(day):
            return None
        return self.check(user_id, day)

    def _emit(self, user_id: str, streak: int) -> None:
        profile = self._profiles.get_profile(user_id)
        username = profile.display_name() if profile else "Someone"
        friends = profile.friends if profile else []
        event = decide_streak_event(
            user_id=user_id,
            username=username,
            friends=friends,
            daily_streak=streak,
            rng=self._rng,
            now=self._clock(),
        )
        self._activities.add_batch([event])
        activity_events_total.inc({"type": "dailyStreak"})
