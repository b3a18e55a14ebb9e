"""
Per-game upload helpers.

Each helper computes the score index for one game, builds the session payload
the way that game's screen reports it, and hands it to the ScoreWriter.
Reaction times are rounded to whole milliseconds for storage only; the index
is computed from the unrounded value.
"""

from __future__ import annotations

import math
import time
from typing import Any, Dict, Optional

from quickplay.features.scoring.formulas import score_index_for
from quickplay.features.scoring.writer import ScoreWriter


def _round_half_up(value: float) -> int:
    """Halves round up (250.5 -> 251), not to even."""
    return math.floor(value + 0.5)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _reaction_time_payload(
    game_id: str,
    date_played: str,
    average_reaction_time_ms: float,
    total_score: Optional[int],
    timestamp_ms: Optional[int],
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "gameName": game_id,
        "datePlayed": date_played,
        "averageReactionTime": _round_half_up(average_reaction_time_ms),
        "scoreIndex": score_index_for(
            game_id,
            reaction_time_ms=average_reaction_time_ms,
            correct=total_score,
        ),
        "timestamp": timestamp_ms if timestamp_ms is not None else _now_ms(),
    }
    if total_score is not None:
        payload["score"] = total_score
    return payload


def upload_maths_score(
    writer: ScoreWriter,
    user_id: Optional[str],
    date_played: str,
    total_score: int,
    average_reaction_time_ms: float,
    *,
    timestamp_ms: Optional[int] = None,
) -> str:
    payload = _reaction_time_payload("maths", date_played, average_reaction_time_ms, total_score, timestamp_ms)
    return writer.write(user_id, payload)


def upload_stroop_score(
    writer: ScoreWriter,
    user_id: Optional[str],
    date_played: str,
    total_score: int,
    average_reaction_time_ms: float,
    *,
    timestamp_ms: Optional[int] = None,
) -> str:
    payload = _reaction_time_payload("stroop", date_played, average_reaction_time_ms, total_score, timestamp_ms)
    return writer.write(user_id, payload)


def upload_snap_score(
    writer: ScoreWriter,
    user_id: Optional[str],
    date_played: str,
    average_reaction_time_ms: float,
    *,
    timestamp_ms: Optional[int] = None,
) -> str:
    """Snap reports no correct count, so the session carries no `score` and skips the leaderboard views."""
    payload = {
        "gameName": "snap",
        "datePlayed": date_played,
        "averageReactionTime": _round_half_up(average_reaction_time_ms),
        "scoreIndex": score_index_for("snap", reaction_time_ms=average_reaction_time_ms),
        "timestamp": timestamp_ms if timestamp_ms is not None else _now_ms(),
    }
    return writer.write(user_id, payload)


def upload_pairs_score(
    writer: ScoreWriter,
    user_id: Optional[str],
    date_played: str,
    total_turns: int,
    total_time_ms: float,
    *,
    timestamp_ms: Optional[int] = None,
) -> str:
    payload = {
        "gameName": "pairs",
        "datePlayed": date_played,
        "totalTurns": total_turns,
        "totalTimeMs": total_time_ms,
        "scoreIndex": score_index_for("pairs", total_turns=total_turns, total_time_ms=total_time_ms),
        "timestamp": timestamp_ms if timestamp_ms is not None else _now_ms(),
    }
    return writer.write(user_id, payload)

