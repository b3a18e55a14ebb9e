"""
Reactive trigger chaining for the score pipeline.

A write publishes a topic with a JSON-serialisable payload; subscribers react
to it the way document triggers react to a write. In "inline" mode handlers
run in-process right after the write and their failures are logged, never
returned to the writer. In "queue" mode the payload is enqueued on RQ and a
worker runs `dispatch_trigger`, where failures propagate so RQ records them.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional

from quickplay.core.config import settings
from quickplay.core.logging import log_event
from quickplay.core.metrics import trigger_failures_total

logger = logging.getLogger("quickplay.triggers")

SESSION_CREATED = "session.created"
STATISTICS_UPDATED = "statistics.updated"

Handler = Callable[[Dict[str, Any]], None]


class TriggerBus:
    def __init__(self, mode: str = "inline", queue=None):
        self._handlers: Dict[str, List[Handler]] = defaultdict(list)
        self._lock = threading.Lock()
        self._mode = mode
        self._queue = queue

    @property
    def mode(self) -> str:
        return self._mode

    def subscribe(self, topic: str, handler: Handler) -> None:
        with self._lock:
            if handler not in self._handlers[topic]:
                self._handlers[topic].append(handler)

    def handlers(self, topic: str) -> List[Handler]:
        with self._lock:
            return list(self._handlers.get(topic, []))

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()

    def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        if self._mode == "queue":
            job = self._get_queue().enqueue(dispatch_trigger, topic, payload, job_timeout="2m")
            log_event(
                "info",
                "trigger enqueued",
                user_id=payload.get("userId"),
                game_id=payload.get("gameId"),
                event_type=topic,
                job_id=getattr(job, "id", None),
            )
            return
        self.dispatch(topic, payload)

    def dispatch(self, topic: str, payload: Dict[str, Any], *, raise_errors: bool = False) -> int:
        """Run every handler for `topic`. Returns how many completed."""
        completed = 0
        for handler in self.handlers(topic):
            try:
                handler(payload)
                completed += 1
            except Exception:
                trigger_failures_total.inc({"topic": topic})
                logger.error(
                    "trigger handler failed",
                    exc_info=True,
                    extra={
                        "event_type": topic,
                        "user_id": payload.get("userId"),
                        "game_id": payload.get("gameId"),
                    },
                )
                if raise_errors:
                    raise
        return completed

    def _get_queue(self):
        if self._queue is None:
            from redis import Redis
            from rq import Queue

            self._queue = Queue(settings.TRIGGER_QUEUE_NAME, connection=Redis.from_url(settings.REDIS_URL))
        return self._queue


def dispatch_trigger(topic: str, payload: Dict[str, Any]) -> int:
    """RQ entry point: make sure the pipeline is wired in this process, then run handlers."""
    from quickplay.features.pipeline import get_pipeline

    pipeline = get_pipeline()
    return pipeline.bus.dispatch(topic, payload, raise_errors=True)


def build_bus(mode: Optional[str] = None, queue=None) -> TriggerBus:
    selected = (mode or settings.TRIGGER_MODE or "inline").lower()
    if selected not in ("inline", "queue"):
        logger.warning("unknown TRIGGER_MODE %r, using inline", selected)
        selected = "inline"
    return TriggerBus(mode=selected, queue=queue)
