from fastapi import APIRouter, Depends

from quickplay.core.auth import get_current_user_id
from quickplay.features.pipeline import get_pipeline

router = APIRouter(tags=["statistics"])


@router.get("/v1/statistics/{user_id}/{game_id}")
def get_statistics(user_id: str, game_id: str, _viewer_id: str = Depends(get_current_user_id)):
    """Summary for (user, game); empty object when that user never played it."""
    summary = get_pipeline().summaries.get_summary(user_id, game_id)
    return summary.to_document() if summary else {}
