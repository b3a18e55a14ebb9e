from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from quickplay.core.metrics import summaries_updated_total
from quickplay.features.scoring.formulas import is_number
from quickplay.features.triggers.bus import STATISTICS_UPDATED, TriggerBus
from quickplay.models.statistics import StatisticsSummary

logger = logging.getLogger("quickplay.statistics")


def decide_statistics_update(
    before: Optional[StatisticsSummary],
    score_index: float,
    now: datetime,
) -> StatisticsSummary:
    """
    Absent  -> best = daily best = score_index, totalPlays = 1.
    Present -> totalPlays + 1, best and daily best take the max.
    """
    if before is None:
        return StatisticsSummary(
            best_score_index=score_index,
            daily_best_score_index=score_index,
            total_plays=1,
            updated_at=now,
        )

    best = before.best_score_index
    daily = before.daily_best_score_index
    return StatisticsSummary(
        best_score_index=score_index if best is None else max(best, score_index),
        daily_best_score_index=score_index if daily is None else max(daily, score_index),
        total_plays=(before.total_plays or 0) + 1,
        updated_at=now,
    )


class StatisticsAggregator:
    """Keeps the per-(user, game) summary current and chains `statistics.updated`."""

    def __init__(
        self,
        summaries,
        bus: TriggerBus,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._summaries = summaries
        self._bus = bus
        self._clock = clock

    def handle_session_created(self, payload: Dict[str, Any]) -> Optional[StatisticsSummary]:
        user_id = payload.get("userId")
        game_id = payload.get("gameId")
        score_index = payload.get("scoreIndex")
        if not user_id or not game_id or not is_number(score_index):
            logger.warning(
                "statistics.skipped",
                extra={"user_id": user_id, "game_id": game_id, "reason": "no_score_index"},
            )
            return None

        now = self._clock()
        before, after = self._summaries.apply_update(
            user_id,
            game_id,
            lambda current: decide_statistics_update(current, float(score_index), now),
        )

        if before is None:
            summaries_updated_total.inc({"game": game_id, "transition": "created"})
            logger.info("statistics.created", extra={"user_id": user_id, "game_id": game_id})
            return after

        summaries_updated_total.inc({"game": game_id, "transition": "updated"})
        logger.info(
            "statistics.updated",
            extra={"user_id": user_id, "game_id": game_id, "total_plays": after.total_plays},
        )
        # Only updates chain onward; a freshly created summary has nothing to diff against.
        self._bus.publish(
            STATISTICS_UPDATED,
            {
                "userId": user_id,
                "gameId": game_id,
                "before": before.to_document(),
                "after": after.to_document(),
            },
        )
        return after
