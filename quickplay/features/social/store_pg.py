"""
PostgreSQL-backed profiles.

Maintains identical interface to InMemoryProfileStore. `update_pair` locks
both rows in user-id order so two opposite updates cannot deadlock.
"""

from __future__ import annotations

from typing import Optional, Tuple

from sqlalchemy import delete, insert, select, update

from quickplay.core.database import get_db_session, profiles, retry_on_insert_race
from quickplay.core.errors import NotFoundError
from quickplay.features.social.store import PairUpdate
from quickplay.models.profile import Profile


def _profile_from_row(row) -> Profile:
    return Profile(
        user_id=row.user_id,
        username=row.username,
        theme=row.theme,
        friends=list(row.friends or []),
        friend_requests=list(row.friend_requests or []),
        blocked=list(row.blocked or []),
    )


def _graph_values(profile: Profile) -> dict:
    return {
        "friends": list(profile.friends),
        "friend_requests": list(profile.friend_requests),
        "blocked": list(profile.blocked),
    }


class PostgresProfileStore:
    def get_profile(self, user_id: str) -> Optional[Profile]:
        with get_db_session() as session:
            row = session.execute(select(profiles).where(profiles.c.user_id == user_id)).first()
        return _profile_from_row(row) if row else None

    def upsert_profile(self, user_id: str, *, username: Optional[str] = None, theme: Optional[str] = None) -> Profile:
        changes = {}
        if username is not None:
            changes["username"] = username
        if theme is not None:
            changes["theme"] = theme

        def attempt():
            with get_db_session() as session:
                row = session.execute(
                    select(profiles).where(profiles.c.user_id == user_id).with_for_update()
                ).first()
                if row is None:
                    session.execute(
                        insert(profiles).values(
                            user_id=user_id, **changes, **_graph_values(Profile(user_id=user_id))
                        )
                    )
                elif changes:
                    session.execute(update(profiles).where(profiles.c.user_id == user_id).values(**changes))
                row = session.execute(select(profiles).where(profiles.c.user_id == user_id)).first()
            return _profile_from_row(row)

        return retry_on_insert_race(attempt)

    def update_pair(self, first_id: str, second_id: str, fn: PairUpdate) -> Tuple[Profile, Profile]:
        with get_db_session() as session:
            loaded = {}
            for user_id in sorted({first_id, second_id}):
                row = session.execute(
                    select(profiles).where(profiles.c.user_id == user_id).with_for_update()
                ).first()
                if row is None:
                    raise NotFoundError(f"Profile {user_id} not found")
                loaded[user_id] = _profile_from_row(row)
            first, second = loaded[first_id], loaded[second_id]
            fn(first, second)
            for profile in (first, second):
                session.execute(
                    update(profiles).where(profiles.c.user_id == profile.user_id).values(**_graph_values(profile))
                )
        return first, second

    def clear(self) -> None:
        """FOR TESTING ONLY."""
        with get_db_session() as session:
            session.execute(delete(profiles))
