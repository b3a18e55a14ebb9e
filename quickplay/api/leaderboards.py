from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from quickplay.core.auth import get_current_user_id
from quickplay.features.pipeline import get_pipeline
from quickplay.features.scoring.dates import format_day, today
from quickplay.features.scoring.formulas import is_number
from quickplay.models.scores import LeaderboardEntry

router = APIRouter(prefix="/v1/leaderboards", tags=["leaderboards"])


def _ranked(entries: List[LeaderboardEntry]) -> List[dict]:
    documents = [entry.to_document() for entry in entries]
    documents.sort(key=lambda doc: doc["score"] if is_number(doc.get("score")) else float("-inf"), reverse=True)
    return documents


@router.get("/{game_id}/daily")
def daily_leaderboard(
    game_id: str,
    date: Optional[str] = Query(None, description="M/D/YYYY; defaults to today"),
    _user_id: str = Depends(get_current_user_id),
):
    date_string = date or format_day(today())
    entries = get_pipeline().sessions.daily_leaderboard(game_id, date_string)
    return {"game": game_id, "date": date_string, "entries": _ranked(entries)}


@router.get("/{game_id}/best")
def best_scores(game_id: str, _user_id: str = Depends(get_current_user_id)):
    """Latest session per user (the view is overwritten on every play)."""
    entries = get_pipeline().sessions.best_scores(game_id)
    return {"game": game_id, "entries": _ranked(entries)}
