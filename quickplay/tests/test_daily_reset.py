import logging

import pytest

from quickplay.core.metrics import daily_reset_runs_total
from quickplay.core.scheduler import DAILY_RESET_JOB_ID, DailyResetScheduler
from quickplay.features.pipeline import set_pipeline
from quickplay.models.statistics import StatisticsSummary
from quickplay.workers.daily_reset import reset_daily_scores


def _seed(summaries):
    summaries.put_summary("u1", "snap", StatisticsSummary(best_score_index=80, daily_best_score_index=40, total_plays=9))
    summaries.put_summary("u1", "maths", StatisticsSummary(best_score_index=12, daily_best_score_index=12, total_plays=1))
    summaries.put_summary("u2", "snap", StatisticsSummary(total_plays=3))


def test_reset_zeroes_daily_best_only(pipeline):
    _seed(pipeline.summaries)

    result = reset_daily_scores(pipeline.summaries)

    assert result["reset"] == 3
    snap = pipeline.summaries.get_summary("u1", "snap")
    assert snap.daily_best_score_index == 0
    assert snap.best_score_index == 80
    assert snap.total_plays == 9
    assert pipeline.summaries.get_summary("u2", "snap").daily_best_score_index == 0
    assert daily_reset_runs_total.value({"status": "ok"}) == 1


def test_reset_is_idempotent(pipeline):
    _seed(pipeline.summaries)
    reset_daily_scores(pipeline.summaries)
    first = {key: pipeline.summaries.get_summary(*key) for key in [("u1", "snap"), ("u1", "maths"), ("u2", "snap")]}

    reset_daily_scores(pipeline.summaries)

    for key, summary in first.items():
        assert pipeline.summaries.get_summary(*key) == summary


def test_reset_on_empty_store(pipeline):
    assert reset_daily_scores(pipeline.summaries)["reset"] == 0


def test_reset_defaults_to_pipeline_store(pipeline):
    _seed(pipeline.summaries)
    set_pipeline(pipeline)
    assert reset_daily_scores()["reset"] == 3


def test_session_after_reset_sets_new_daily_best(pipeline):
    _seed(pipeline.summaries)
    reset_daily_scores(pipeline.summaries)
    pipeline.aggregator.handle_session_created({"userId": "u1", "gameId": "snap", "scoreIndex": 5.0})

    summary = pipeline.summaries.get_summary("u1", "snap")
    assert summary.daily_best_score_index == 5.0
    assert summary.best_score_index == 80
    assert summary.total_plays == 10


def test_failed_reset_is_logged_and_reraised(caplog):
    class BrokenStore:
        def reset_daily_bests(self):
            raise RuntimeError("database unavailable")

    with caplog.at_level(logging.ERROR, logger="quickplay.jobs.daily_reset"):
        with pytest.raises(RuntimeError):
            reset_daily_scores(BrokenStore())

    assert daily_reset_runs_total.value({"status": "failed"}) == 1
    assert daily_reset_runs_total.value({"status": "ok"}) == 0
    assert any("failed" in r.getMessage() for r in caplog.records)


def test_scheduler_registers_single_daily_job():
    def first_job():
        return None

    def second_job():
        return None

    scheduler = DailyResetScheduler(cron="0 0 * * *", timezone="UTC")
    scheduler.register(first_job)
    scheduler.register(second_job)

    jobs = scheduler._scheduler.get_jobs()
    assert [j.id for j in jobs] == [DAILY_RESET_JOB_ID]
    assert jobs[0].func is second_job
    assert scheduler.running is False
