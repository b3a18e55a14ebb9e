"""
Admin job triggers.

All routes require X-Admin-Key header for authentication.
"""
from fastapi import APIRouter, Request

from quickplay.core.auth import require_admin_key
from quickplay.workers.daily_reset import reset_daily_scores

router = APIRouter(prefix="/v1/admin", tags=["admin"])


@router.post("/jobs/daily-reset")
def run_daily_reset(request: Request) -> dict:
    """Run the daily-best sweep now instead of waiting for the schedule."""
    require_admin_key(request)
    return reset_daily_scores()
