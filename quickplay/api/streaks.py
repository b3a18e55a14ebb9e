from fastapi import APIRouter, Depends

from quickplay.core.auth import get_current_user_id
from quickplay.features.pipeline import get_pipeline
from quickplay.features.scoring.catalog import daily_games

router = APIRouter(tags=["streaks"])


@router.get("/v1/streaks/daily")
def get_daily_streak(user_id: str = Depends(get_current_user_id)):
    """Re-check today's daily games and return the (possibly advanced) streak."""
    tracker = get_pipeline().streaks
    day = tracker.today()
    streak = tracker.check(user_id, day)
    return {
        **streak.to_document(),
        "dailyGames": list(daily_games(day)),
        "completedToday": tracker.dailies_completed(user_id, day),
    }
