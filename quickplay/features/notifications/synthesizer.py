"""
Activity notifications derived from a statistics update.

`decide_notifications` is the pure part: given the before/after summaries and
the friends' summaries it returns the events to write. `NotificationSynthesizer`
gathers those inputs, calls it, and commits the result as one batch.

Rules, evaluated independently:
1. All-time best raised: exactly one friend's best now beaten sends a private
   `friendHighScoreBeaten` to that friend; more than one sends a single
   `newHighScore` broadcast to every friend; none sends nothing.
2. Daily best above a friend's daily best: one `friendDailyBestBeaten` per friend.
3. totalPlays reaches a new positive multiple of the milestone stride: one `milestone` broadcast.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError

from quickplay.core.config import settings
from quickplay.core.metrics import activity_events_total
from quickplay.features.scoring.catalog import game_title
from quickplay.features.scoring.formulas import is_number, round_index
from quickplay.features.notifications.templates import render
from quickplay.models.activity import ActivityContent, ActivityEvent
from quickplay.models.statistics import StatisticsSummary

logger = logging.getLogger("quickplay.notifications")


def _broadcast(user_id: str, friends: Sequence[str]) -> List[str]:
    return [user_id] + [friend for friend in friends if friend != user_id]


def _event(user_id: str, event_type: str, recipients: List[str], message: str, data: Dict[str, Any], now: datetime) -> ActivityEvent:
    return ActivityEvent(
        event_id=uuid4().hex,
        owner_id=user_id,
        content=ActivityContent(
            recipients=recipients,
            type=event_type,
            message=message,
            data=data,
            from_user=user_id,
            timestamp=now,
        ),
    )


def decide_notifications(
    *,
    user_id: str,
    game_id: str,
    username: str,
    friends: Sequence[str],
    before: StatisticsSummary,
    after: StatisticsSummary,
    friend_summaries: Mapping[str, Optional[StatisticsSummary]],
    rng: random.Random,
    now: datetime,
    milestone_stride: int = 25,
) -> List[ActivityEvent]:
    """Events to emit for one update. A friend absent from `friend_summaries` never qualifies."""
    events: List[ActivityEvent] = []
    game_name = game_title(game_id)

    new_high = after.best_score_index
    previous_high = before.best_score_index or 0
    if is_number(new_high) and new_high > previous_high:
        qualifying = []
        for friend_id in friends:
            summary = friend_summaries.get(friend_id)
            if summary is not None and is_number(summary.best_score_index) and new_high > summary.best_score_index:
                qualifying.append(friend_id)

        data = {"relatedGame": game_id, "previousHigh": previous_high, "newHigh": new_high}
        if len(qualifying) == 1:
            message = render("friendHighScoreBeaten", rng, username=username, gameName=game_name)
            events.append(_event(user_id, "friendHighScoreBeaten", [user_id, qualifying[0]], message, data, now))
        elif len(qualifying) > 1:
            message = render(
                "newHighScore",
                rng,
                username=username,
                gameName=game_name,
                previousHigh=previous_high,
                newHigh=new_high,
            )
            events.append(_event(user_id, "newHighScore", _broadcast(user_id, friends), message, data, now))

    user_daily = after.daily_best_score_index
    if is_number(user_daily) and user_daily:
        for friend_id in friends:
            summary = friend_summaries.get(friend_id)
            if summary is None or not is_number(summary.daily_best_score_index):
                continue
            friend_daily = summary.daily_best_score_index
            if user_daily <= friend_daily:
                continue
            diff = round_index(user_daily - friend_daily)
            message = render(
                "friendDailyBestBeaten",
                rng,
                username=username,
                gameName=game_name,
                diff=diff,
                friendDaily=friend_daily,
                userDaily=user_daily,
            )
            data = {"relatedGame": game_id, "friendDaily": friend_daily, "userDaily": user_daily, "diff": diff}
            events.append(_event(user_id, "friendDailyBestBeaten", [user_id, friend_id], message, data, now))

    total = after.total_plays
    if (
        isinstance(total, int)
        and total > 0
        and total % milestone_stride == 0
        and total != before.total_plays
    ):
        message = render("milestone", rng, username=username, gameName=game_name, totalPlays=total)
        data = {"relatedGame": game_id, "totalPlays": total}
        events.append(_event(user_id, "milestone", _broadcast(user_id, friends), message, data, now))

    return events


def decide_streak_event(
    *,
    user_id: str,
    username: str,
    friends: Sequence[str],
    daily_streak: int,
    rng: random.Random,
    now: datetime,
) -> ActivityEvent:
    message = render("dailyStreak", rng, username=username, dailyStreak=daily_streak)
    return _event(user_id, "dailyStreak", _broadcast(user_id, friends), message, {"dailyStreak": daily_streak}, now)


class NotificationSynthesizer:
    def __init__(
        self,
        summaries,
        profiles,
        activities,
        *,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        milestone_stride: Optional[int] = None,
    ):
        self._summaries = summaries
        self._profiles = profiles
        self._activities = activities
        self._rng = rng or random.Random()
        self._clock = clock
        self._milestone_stride = milestone_stride or settings.MILESTONE_STRIDE

    def on_statistics_updated(self, payload: Dict[str, Any]) -> List[ActivityEvent]:
        before = StatisticsSummary.from_document(payload.get("before"))
        after = StatisticsSummary.from_document(payload.get("after"))
        if before is None or after is None:
            return []
        return self.handle_statistics_updated(payload["userId"], payload["gameId"], before, after)

    def handle_statistics_updated(
        self,
        user_id: str,
        game_id: str,
        before: StatisticsSummary,
        after: StatisticsSummary,
    ) -> List[ActivityEvent]:
        profile = self._profiles.get_profile(user_id)
        if profile is None:
            logger.error("profile not found, no notifications", extra={"user_id": user_id, "game_id": game_id})
            return []

        friend_summaries = {friend_id: self._friend_summary(friend_id, game_id) for friend_id in profile.friends}
        events = decide_notifications(
            user_id=user_id,
            game_id=game_id,
            username=profile.display_name(),
            friends=profile.friends,
            before=before,
            after=after,
            friend_summaries=friend_summaries,
            rng=self._rng,
            now=self._clock(),
            milestone_stride=self._milestone_stride,
        )
        if not events:
            return []

        self._activities.add_batch(events)
        for event in events:
            activity_events_total.inc({"type": event.content.type})
        logger.info(
            "activity.batch_committed",
            extra={"user_id": user_id, "game_id": game_id, "count": len(events)},
        )
        return events

    def _friend_summary(self, friend_id: str, game_id: str) -> Optional[StatisticsSummary]:
        try:
            return self._summaries.get_summary(friend_id, game_id)
        except SQLAlchemyError:
            logger.warning(
                "friend summary lookup failed, treating as not qualifying",
                exc_info=True,
                extra={"user_id": friend_id, "game_id": game_id},
            )
            return None
