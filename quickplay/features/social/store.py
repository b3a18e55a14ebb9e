"""
Profile storage.

In-memory implementation; store_pg.PostgresProfileStore has the same interface.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Callable, Dict, Optional, Tuple

from quickplay.core.errors import NotFoundError
from quickplay.models.profile import Profile

logger = logging.getLogger("quickplay.social.store")

PairUpdate = Callable[[Profile, Profile], None]


def _copy(profile: Profile) -> Profile:
    return replace(
        profile,
        friends=list(profile.friends),
        friend_requests=list(profile.friend_requests),
        blocked=list(profile.blocked),
    )


class InMemoryProfileStore:
    def __init__(self):
        self._lock = threading.Lock()
        self._profiles: Dict[str, Profile] = {}

    def get_profile(self, user_id: str) -> Optional[Profile]:
        with self._lock:
            profile = self._profiles.get(user_id)
            return _copy(profile) if profile else None

    def upsert_profile(self, user_id: str, *, username: Optional[str] = None, theme: Optional[str] = None) -> Profile:
        """Create the profile if needed; only the given fields are changed."""
        with self._lock:
            profile = self._profiles.get(user_id) or Profile(user_id=user_id)
            if username is not None:
                profile = replace(profile, username=username)
            if theme is not None:
                profile = replace(profile, theme=theme)
            self._profiles[user_id] = profile
            return _copy(profile)

    def update_pair(self, first_id: str, second_id: str, fn: PairUpdate) -> Tuple[Profile, Profile]:
        """
        Apply `fn` to copies of both profiles and store both, as one step.
        `fn` mutates its arguments; raising inside it leaves both untouched.
        """
        with self._lock:
            first = self._profiles.get(first_id)
            second = self._profiles.get(second_id)
            for user_id, profile in ((first_id, first), (second_id, second)):
                if profile is None:
                    raise NotFoundError(f"Profile {user_id} not found")
            first, second = _copy(first), _copy(second)
            fn(first, second)
            self._profiles[first_id] = first
            self._profiles[second_id] = second
            return _copy(first), _copy(second)

    def clear(self) -> None:
        """FOR TESTING ONLY."""
        with self._lock:
            self._profiles.clear()


_store_instance = None


def get_store():
    """
    Get the singleton profile store.

    PostgreSQL when DATABASE_URL is configured and reachable, otherwise in-memory.
    """
    global _store_instance
    if _store_instance is None:
        from quickplay.core.database import sql_backend_available

        if sql_backend_available():
            from quickplay.features.social.store_pg import PostgresProfileStore

            _store_instance = PostgresProfileStore()
        else:
            _store_instance = InMemoryProfileStore()
        logger.info("profile store selected: %s", type(_store_instance).__name__)
    return _store_instance


def reset_store():
    """FOR TESTING ONLY - forces re-initialization on next get_store() call."""
    global _store_instance
    _store_instance = None
