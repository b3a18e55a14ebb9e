"""
Activity feed storage.

In-memory implementation; store_pg.PostgresActivityStore has the same interface.
Events are grouped by owner, the way each user owns an activity feed.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional, Sequence

from quickplay.core.errors import BatchCommitError
from quickplay.models.activity import ActivityEvent

logger = logging.getLogger("quickplay.notifications.store")


class InMemoryActivityStore:
    def __init__(self):
        self._lock = threading.Lock()
        self._events: Dict[str, Dict[str, ActivityEvent]] = {}

    def add_batch(self, events: Sequence[ActivityEvent]) -> None:
        """All events become visible together or none do."""
        with self._lock:
            seen = set()
            for event in events:
                key = (event.owner_id, event.event_id)
                if key in seen or event.event_id in self._events.get(event.owner_id, {}):
                    raise BatchCommitError(f"Duplicate activity id {event.event_id}")
                seen.add(key)
            for event in events:
                self._events.setdefault(event.owner_id, {})[event.event_id] = event

    def get(self, owner_id: str, event_id: str) -> Optional[ActivityEvent]:
        with self._lock:
            return self._events.get(owner_id, {}).get(event_id)

    def list_owned(self, owner_id: str) -> List[ActivityEvent]:
        """Newest first."""
        with self._lock:
            events = list(self._events.get(owner_id, {}).values())
        return sorted(events, key=lambda event: event.content.timestamp, reverse=True)

    def append_reaction(self, owner_id: str, event_id: str, reaction: Dict[str, Any]) -> Optional[ActivityEvent]:
        return self._append(owner_id, event_id, "reactions", reaction)

    def append_comment(self, owner_id: str, event_id: str, comment: Dict[str, Any]) -> Optional[ActivityEvent]:
        return self._append(owner_id, event_id, "comments", comment)

    def _append(self, owner_id: str, event_id: str, field_name: str, item: Dict[str, Any]) -> Optional[ActivityEvent]:
        with self._lock:
            event = self._events.get(owner_id, {}).get(event_id)
            if event is None:
                return None
            getattr(event, field_name).append(dict(item))
            return event

    def clear(self) -> None:
        """FOR TESTING ONLY."""
        with self._lock:
            self._events.clear()


_store_instance = None


def get_store():
    """
    Get the singleton activity store.

    PostgreSQL when DATABASE_URL is configured and reachable, otherwise in-memory.
    """
    global _store_instance
    if _store_instance is None:
        from quickplay.core.database import sql_backend_available

        if sql_backend_available():
            from quickplay.features.notifications.store_pg import PostgresActivityStore

            _store_instance = PostgresActivityStore()
        else:
            _store_instance = InMemoryActivityStore()
        logger.info("activity store selected: %s", type(_store_instance).__name__)
    return _store_instance


def reset_store():
    """FOR TESTING ONLY - forces re-initialization on next get_store() call."""
    global _store_instance
    _store_instance = None
