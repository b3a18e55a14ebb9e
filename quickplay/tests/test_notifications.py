import random
from datetime import datetime, timezone

import pytest

from quickplay.core.errors import BatchCommitError
from quickplay.core.metrics import activity_events_total
from quickplay.features.notifications.store import InMemoryActivityStore
from quickplay.features.notifications.synthesizer import decide_notifications
from quickplay.features.notifications.templates import FRIEND_HIGH_SCORE_BEATEN, TEMPLATES, render
from quickplay.models.statistics import StatisticsSummary
from quickplay.tests.helpers import make_friends

NOW = datetime(2025, 3, 24, 12, 0, tzinfo=timezone.utc)


def _decide(before, after, friend_summaries, friends=None, seed=1):
    return decide_notifications(
        user_id="u1",
        game_id="maths",
        username="Ada",
        friends=friends if friends is not None else list(friend_summaries),
        before=before,
        after=after,
        friend_summaries=friend_summaries,
        rng=random.Random(seed),
        now=NOW,
    )


def _summary(best=None, daily=None, plays=None):
    return StatisticsSummary(best_score_index=best, daily_best_score_index=daily, total_plays=plays)


def test_two_friends_beaten_is_one_broadcast():
    events = _decide(
        _summary(best=10, plays=3),
        _summary(best=60, plays=4),
        {"f1": _summary(best=20), "f2": _summary(best=59.9)},
    )
    assert [e.content.type for e in events] == ["newHighScore"]
    [event] = events
    assert event.content.recipients == ["u1", "f1", "f2"]
    assert event.content.data == {"relatedGame": "maths", "previousHigh": 10, "newHigh": 60}
    assert event.owner_id == "u1"
    assert event.content.from_user == "u1"
    assert event.content.timestamp == NOW


def test_one_friend_beaten_is_private():
    events = _decide(
        _summary(best=10, plays=3),
        _summary(best=60, plays=4),
        {"f1": _summary(best=20), "f2": _summary(best=80)},
    )
    [event] = events
    assert event.content.type == "friendHighScoreBeaten"
    assert event.content.recipients == ["u1", "f1"]
    assert "Ada" in event.content.message
    assert "Maths Challenge" in event.content.message


def test_no_friend_beaten_emits_nothing():
    assert _decide(_summary(best=10), _summary(best=60), {"f1": _summary(best=90)}) == []


def test_new_high_without_friends_emits_nothing():
    assert _decide(_summary(best=10), _summary(best=60), {}) == []


def test_unchanged_best_does_not_evaluate_friends():
    assert _decide(_summary(best=60), _summary(best=60), {"f1": _summary(best=1)}) == []


def test_missing_friend_summary_does_not_qualify():
    events = _decide(
        _summary(best=10),
        _summary(best=60),
        {"f1": _summary(best=20), "f2": None},
    )
    [event] = events
    assert event.content.type == "friendHighScoreBeaten"
    assert event.content.recipients == ["u1", "f1"]


def test_friend_without_numeric_best_does_not_qualify():
    events = _decide(_summary(best=10), _summary(best=60), {"f1": _summary(plays=4), "f2": _summary(best=5)})
    [event] = events
    assert event.content.recipients == ["u1", "f2"]


def test_daily_best_beaten_is_per_friend():
    events = _decide(
        _summary(best=90, daily=5),
        _summary(best=90, daily=30),
        {"f1": _summary(daily=10), "f2": _summary(daily=25), "f3": _summary(daily=40)},
    )
    assert [e.content.type for e in events] == ["friendDailyBestBeaten", "friendDailyBestBeaten"]
    assert [e.content.recipients for e in events] == [["u1", "f1"], ["u1", "f2"]]
    assert [e.content.data["diff"] for e in events] == [20, 5]
    assert events[0].content.data == {"relatedGame": "maths", "friendDaily": 10, "userDaily": 30, "diff": 20}


def test_daily_diff_is_rounded():
    [event] = _decide(_summary(best=99, daily=1), _summary(best=99, daily=30.3), {"f1": _summary(daily=10.1)})
    assert event.content.data["diff"] == 20.2


def test_zero_daily_best_skips_daily_rule():
    assert _decide(_summary(best=9, daily=0), _summary(best=9, daily=0), {"f1": _summary(daily=-1)}) == []


@pytest.mark.parametrize(
    "before_plays, after_plays, fires",
    [
        (24, 25, True),
        (49, 50, True),
        (25, 25, False),
        (25, 26, False),
        (None, 25, True),
        (0, 0, False),
        (99, 100, True),
    ],
)
def test_milestone_exactness(before_plays, after_plays, fires):
    events = _decide(_summary(plays=before_plays), _summary(plays=after_plays), {"f1": None})
    milestones = [e for e in events if e.content.type == "milestone"]
    assert len(milestones) == (1 if fires else 0)
    if fires:
        assert milestones[0].content.recipients == ["u1", "f1"]
        assert milestones[0].content.data == {"relatedGame": "maths", "totalPlays": after_plays}
        assert str(after_plays) in milestones[0].content.message


def test_rules_combine_in_one_update():
    events = _decide(
        _summary(best=10, daily=10, plays=24),
        _summary(best=50, daily=50, plays=25),
        {"f1": _summary(best=20, daily=20), "f2": _summary(best=30, daily=60)},
    )
    assert sorted(e.content.type for e in events) == ["friendDailyBestBeaten", "milestone", "newHighScore"]


def test_every_event_includes_triggering_user():
    events = _decide(
        _summary(best=10, daily=10, plays=49),
        _summary(best=50, daily=50, plays=50),
        {"f1": _summary(best=20, daily=20), "f2": _summary(best=30, daily=20), "f3": _summary(best=70, daily=1)},
    )
    assert events
    for event in events:
        assert "u1" in event.content.recipients
        if event.content.type in ("friendHighScoreBeaten", "friendDailyBestBeaten"):
            assert len(event.content.recipients) == 2


def test_seeded_randomness_is_reproducible():
    args = (_summary(best=10), _summary(best=60), {"f1": _summary(best=20)})
    first = _decide(*args, seed=42)[0].content.message
    second = _decide(*args, seed=42)[0].content.message
    assert first == second


def test_every_template_formats_cleanly():
    fields = dict(
        username="Ada",
        gameName="Snap",
        previousHigh=1,
        newHigh=2,
        diff=3,
        friendDaily=4,
        userDaily=5,
        totalPlays=25,
        dailyStreak=6,
    )
    for templates in TEMPLATES.values():
        assert templates
        for template in templates:
            message = template.format(**fields)
            assert "{" not in message and "}" not in message
            assert "Ada" in message


def test_render_picks_from_event_templates():
    rng = random.Random(5)
    message = render("friendHighScoreBeaten", rng, username="Ada", gameName="Snap")
    assert message in [t.format(username="Ada", gameName="Snap") for t in FRIEND_HIGH_SCORE_BEATEN]


# ---------------------------------------------------------------------------
# Synthesizer wiring
# ---------------------------------------------------------------------------

def test_synthesizer_commits_batch_to_owner_feed(pipeline):
    make_friends(pipeline.profiles, ("u1", "f1"), ("u1", "f2"))
    pipeline.summaries.put_summary("f1", "snap", _summary(best=20, daily=20))
    pipeline.summaries.put_summary("f2", "snap", _summary(best=30, daily=40))

    events = pipeline.synthesizer.handle_statistics_updated(
        "u1", "snap", _summary(best=10, daily=10, plays=24), _summary(best=35, daily=35, plays=25)
    )

    stored = pipeline.activities.list_owned("u1")
    assert {e.event_id for e in stored} == {e.event_id for e in events}
    assert sorted(e.content.type for e in stored) == ["friendDailyBestBeaten", "milestone", "newHighScore"]
    assert activity_events_total.value({"type": "milestone"}) == 1
    assert pipeline.activities.list_owned("f1") == []


def test_synthesizer_without_profile_writes_nothing(pipeline):
    events = pipeline.synthesizer.handle_statistics_updated(
        "ghost", "snap", _summary(best=1, plays=24), _summary(best=2, plays=25)
    )
    assert events == []
    assert pipeline.activities.list_owned("ghost") == []


def test_failed_batch_leaves_no_events():
    store = InMemoryActivityStore()
    events = _decide(
        _summary(best=10, daily=10, plays=24),
        _summary(best=50, daily=50, plays=25),
        {"f1": _summary(best=20, daily=20), "f2": _summary(best=30, daily=20)},
    )
    assert len(events) >= 2
    events[1].event_id = events[0].event_id

    with pytest.raises(BatchCommitError):
        store.add_batch(events)
    assert store.list_owned("u1") == []


def test_end_to_end_scenario_through_writer(pipeline):
    make_friends(pipeline.profiles, ("u1", "f1"), ("u1", "f2"))
    pipeline.profiles.upsert_profile("u1", username="Ada")
    pipeline.summaries.put_summary("f1", "snap", _summary(best=20))
    pipeline.summaries.put_summary("f2", "snap", _summary(best=30))

    base = {"gameName": "snap", "datePlayed": "2025-03-24T10:00:00Z", "timestamp": 1}
    pipeline.writer.write("u1", {**base, "scoreIndex": 10.0})
    assert pipeline.activities.list_owned("u1") == []

    pipeline.writer.write("u1", {**base, "scoreIndex": 50.0})
    [event] = pipeline.activities.list_owned("u1")
    assert event.content.type == "newHighScore"
    assert event.content.recipients == ["u1", "f1", "f2"]
    assert "Ada" in event.content.message
