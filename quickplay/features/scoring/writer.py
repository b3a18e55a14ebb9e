from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from quickplay.core.errors import UnauthenticatedError, ValidationError
from quickplay.core.metrics import leaderboard_views_skipped_total, scores_written_total
from quickplay.features.scoring.dates import format_date, format_time, parse_date_played
from quickplay.features.scoring.formulas import is_number
from quickplay.features.triggers.bus import SESSION_CREATED, TriggerBus

logger = logging.getLogger("quickplay.scoring")


class ScoreWriter:
    """
    Persists one finished game session.

    1. Always appends the raw record to the user's history.
    2. When `score` is a number and `datePlayed` parses, merge-upserts the
       daily leaderboard row (`userId_date`) and the best-score row (`userId`).
       The best-score row takes the latest session unconditionally.
    Bad score/date input skips step 2 silently; only the raw record is kept.
    """

    def __init__(self, store, bus: TriggerBus, *, tz_name: Optional[str] = None):
        self._store = store
        self._bus = bus
        self._tz_name = tz_name

    def write(self, user_id: Optional[str], session: Dict[str, Any]) -> str:
        if not user_id:
            raise UnauthenticatedError("No authenticated user. Cannot upload score.")
        game_name = session.get("gameName")
        if not isinstance(game_name, str) or not game_name:
            raise ValidationError("gameName is required")

        played_at = parse_date_played(session.get("datePlayed"))
        played_on = format_date(played_at, self._tz_name) if played_at else None

        record_id = self._store.add_session(user_id, game_name, played_on, dict(session))
        scores_written_total.inc({"game": game_name})
        logger.info(
            "score.recorded",
            extra={"user_id": user_id, "game_id": game_name, "record_id": record_id},
        )

        score = session.get("score")
        if is_number(score) and played_at is not None:
            date_string = played_on
            entry = {
                **session,
                "userId": user_id,
                "date": date_string,
                "time": format_time(played_at, self._tz_name),
            }
            self._store.upsert_daily_entry(game_name, f"{user_id}_{date_string}", user_id, date_string, entry)
            self._store.upsert_best_entry(game_name, user_id, entry)
        else:
            leaderboard_views_skipped_total.inc({"game": game_name})
            logger.warning(
                "score.views_skipped",
                extra={
                    "user_id": user_id,
                    "game_id": game_name,
                    "record_id": record_id,
                    "reason": "invalid_date" if played_at is None else "non_numeric_score",
                },
            )

        self._bus.publish(
            SESSION_CREATED,
            {
                "userId": user_id,
                "gameId": game_name,
                "recordId": record_id,
                "scoreIndex": session.get("scoreIndex"),
                "playedOn": played_on,
            },
        )
        return record_id
