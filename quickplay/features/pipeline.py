"""
Wires the score pipeline together.

    ScoreWriter --session.created--> StatisticsAggregator --statistics.updated--> NotificationSynthesizer
    ScoreWriter --session.created--> DailyStreakTracker

API routes, the RQ worker and the daily reset job all reach the stores and
services through `get_pipeline()`.
"""

from __future__ import annotations

import random
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from quickplay.features.notifications import store as activity_store
from quickplay.features.notifications.streaks import DailyStreakTracker
from quickplay.features.notifications.synthesizer import NotificationSynthesizer
from quickplay.features.scoring import store as session_store
from quickplay.features.scoring.writer import ScoreWriter
from quickplay.features.social import store as profile_store
from quickplay.features.social.feed import ActivityFeed
from quickplay.features.social.friends import FriendshipService
from quickplay.features.statistics import store as summary_store
from quickplay.features.statistics.aggregator import StatisticsAggregator
from quickplay.features.triggers.bus import SESSION_CREATED, STATISTICS_UPDATED, TriggerBus, build_bus


@dataclass
class Pipeline:
    bus: TriggerBus
    sessions: object
    summaries: object
    activities: object
    profiles: object
    writer: ScoreWriter
    aggregator: StatisticsAggregator
    synthesizer: NotificationSynthesizer
    streaks: DailyStreakTracker
    friendships: FriendshipService
    feed: ActivityFeed


def build_pipeline(
    *,
    bus: Optional[TriggerBus] = None,
    sessions=None,
    summaries=None,
    activities=None,
    profiles=None,
    rng: Optional[random.Random] = None,
    clock: Optional[Callable[[], datetime]] = None,
    tz_name: Optional[str] = None,
) -> Pipeline:
    bus = bus or build_bus()
    sessions = sessions or session_store.get_store()
    summaries = summaries or summary_store.get_store()
    activities = activities or activity_store.get_store()
    profiles = profiles or profile_store.get_store()
    rng = rng or random.Random()
    clock_kwargs = {"clock": clock} if clock else {}

    writer = ScoreWriter(sessions, bus, tz_name=tz_name)
    aggregator = StatisticsAggregator(summaries, bus, **clock_kwargs)
    synthesizer = NotificationSynthesizer(summaries, profiles, activities, rng=rng, **clock_kwargs)
    streaks = DailyStreakTracker(sessions, summaries, profiles, activities, rng=rng, tz_name=tz_name, **clock_kwargs)

    bus.subscribe(SESSION_CREATED, aggregator.handle_session_created)
    bus.subscribe(SESSION_CREATED, streaks.on_session_created)
    bus.subscribe(STATISTICS_UPDATED, synthesizer.on_statistics_updated)

    return Pipeline(
        bus=bus,
        sessions=sessions,
        summaries=summaries,
        activities=activities,
        profiles=profiles,
        writer=writer,
        aggregator=aggregator,
        synthesizer=synthesizer,
        streaks=streaks,
        friendships=FriendshipService(profiles),
        feed=ActivityFeed(activities, profiles, **clock_kwargs),
    )


_pipeline: Optional[Pipeline] = None
_pipeline_lock = threading.Lock()


def get_pipeline() -> Pipeline:
    global _pipeline
    with _pipeline_lock:
        if _pipeline is None:
            _pipeline = build_pipeline()
        return _pipeline


def set_pipeline(pipeline: Optional[Pipeline]) -> None:
    """FOR TESTING ONLY - install a pipeline built with fakes."""
    global _pipeline
    with _pipeline_lock:
        _pipeline = pipeline


def reset_pipeline() -> None:
    """FOR TESTING ONLY - forces re-initialization on next get_pipeline() call."""
    set_pipeline(None)
