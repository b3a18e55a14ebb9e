"""Nightly sweep: zero dailyBestScoreIndex on every statistics summary."""
import logging
import time

from quickplay.core.metrics import daily_reset_runs_total
from quickplay.features.pipeline import get_pipeline

logger = logging.getLogger("quickplay.jobs.daily_reset")


def reset_daily_scores(summaries=None) -> dict:
    """
    Global, idempotent reset. bestScoreIndex and totalPlays are untouched.
    Failures are logged and re-raised; the next scheduled run is the retry.
    """
    store = summaries if summaries is not None else get_pipeline().summaries
    started = time.monotonic()
    logger.info("[daily_reset] starting")
    try:
        count = store.reset_daily_bests()
    except Exception:
        daily_reset_runs_total.inc({"status": "failed"})
        logger.error("[daily_reset] failed", exc_info=True, extra={"event_type": "daily_reset"})
        raise

    elapsed_ms = int((time.monotonic() - started) * 1000)
    daily_reset_runs_total.inc({"status": "ok"})
    logger.info(
        "[daily_reset] finished",
        extra={"event_type": "daily_reset", "count": count, "elapsed_ms": elapsed_ms},
    )
    return {"reset": count, "elapsed_ms": elapsed_ms}


if __name__ == "__main__":
    from quickplay.core.config import settings
    from quickplay.core.logging import configure_logging

    configure_logging(settings.ENV)
    result = reset_daily_scores()
    print(result)
