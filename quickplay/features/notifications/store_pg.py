"""
PostgreSQL-backed activity feed.

Maintains identical interface to InMemoryActivityStore.
"""

from __future__ import annotations

from datetime import timezone
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import and_, delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from quickplay.core.database import activity_events, get_db_session
from quickplay.core.errors import BatchCommitError
from quickplay.models.activity import ActivityContent, ActivityEvent


def _event_from_row(row) -> ActivityEvent:
    created_at = row.created_at
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return ActivityEvent(
        event_id=row.id,
        owner_id=row.owner_id,
        content=ActivityContent(
            recipients=list(row.recipients or []),
            type=row.event_type,
            message=row.message,
            data=dict(row.data or {}),
            from_user=row.from_user,
            timestamp=created_at,
        ),
        reactions=list(row.reactions or []),
        comments=list(row.comments or []),
    )


class PostgresActivityStore:
    def add_batch(self, events: Sequence[ActivityEvent]) -> None:
        rows = [
            {
                "id": event.event_id,
                "owner_id": event.owner_id,
                "event_type": event.content.type,
                "message": event.content.message,
                "recipients": list(event.content.recipients),
                "data": dict(event.content.data),
                "from_user": event.content.from_user,
                "reactions": list(event.reactions),
                "comments": list(event.comments),
                "created_at": event.content.timestamp,
            }
            for event in events
        ]
        if not rows:
            return
        try:
            with get_db_session() as session:
                session.execute(insert(activity_events), rows)
        except SQLAlchemyError as exc:
            raise BatchCommitError(f"Activity batch of {len(rows)} failed to commit") from exc

    def get(self, owner_id: str, event_id: str) -> Optional[ActivityEvent]:
        with get_db_session() as session:
            row = session.execute(
                select(activity_events).where(
                    and_(activity_events.c.owner_id == owner_id, activity_events.c.id == event_id)
                )
            ).first()
        return _event_from_row(row) if row else None

    def list_owned(self, owner_id: str) -> List[ActivityEvent]:
        with get_db_session() as session:
            rows = session.execute(
                select(activity_events)
                .where(activity_events.c.owner_id == owner_id)
                .order_by(activity_events.c.created_at.desc())
            ).all()
        return [_event_from_row(row) for row in rows]

    def append_reaction(self, owner_id: str, event_id: str, reaction: Dict[str, Any]) -> Optional[ActivityEvent]:
        return self._append(owner_id, event_id, "reactions", reaction)

    def append_comment(self, owner_id: str, event_id: str, comment: Dict[str, Any]) -> Optional[ActivityEvent]:
        return self._append(owner_id, event_id, "comments", comment)

    def _append(self, owner_id: str, event_id: str, column: str, item: Dict[str, Any]) -> Optional[ActivityEvent]:
        condition = and_(activity_events.c.owner_id == owner_id, activity_events.c.id == event_id)
        with get_db_session() as session:
            row = session.execute(select(activity_events).where(condition).with_for_update()).first()
            if row is None:
                return None
            updated = list(getattr(row, column) or []) + [dict(item)]
            session.execute(update(activity_events).where(condition).values({column: updated}))
            event = _event_from_row(row)
        getattr(event, column)[:] = updated
        return event

    def clear(self) -> None:
        """FOR TESTING ONLY."""
        with get_db_session() as session:
            session.execute(delete(activity_events))
