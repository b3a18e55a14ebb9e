from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, List, Optional

from quickplay.core.errors import NotFoundError, PermissionError, ValidationError
from quickplay.models.activity import ActivityEvent


class ActivityFeed:
    """Reads feeds and handles reactions/comments on activity events."""

    def __init__(
        self,
        activities,
        profiles,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._activities = activities
        self._profiles = profiles
        self._clock = clock

    def for_viewer(self, viewer_id: str, limit: Optional[int] = None) -> List[ActivityEvent]:
        """Events owned by the viewer or their friends that list the viewer as a recipient, newest first."""
        profile = self._profiles.get_profile(viewer_id)
        owners = [viewer_id] + (profile.friends if profile else [])

        visible: List[ActivityEvent] = []
        for owner_id in dict.fromkeys(owners):
            visible.extend(event for event in self._activities.list_owned(owner_id) if event.visible_to(viewer_id))
        visible.sort(key=lambda event: event.content.timestamp, reverse=True)
        return visible[:limit] if limit else visible

    def react(self, viewer_id: str, owner_id: str, event_id: str, emoji: str) -> ActivityEvent:
        if not emoji:
            raise ValidationError("emoji is required")
        self._require_recipient(viewer_id, owner_id, event_id)
        reaction = {"userId": viewer_id, "emoji": emoji, "timestamp": self._clock().isoformat()}
        return self._activities.append_reaction(owner_id, event_id, reaction)

    def comment(self, viewer_id: str, owner_id: str, event_id: str, text: str) -> ActivityEvent:
        if not text or not text.strip():
            raise ValidationError("Comment text is required")
        self._require_recipient(viewer_id, owner_id, event_id)
        comment = {"userId": viewer_id, "text": text.strip(), "timestamp": self._clock().isoformat()}
        return self._activities.append_comment(owner_id, event_id, comment)

    def _require_recipient(self, viewer_id: str, owner_id: str, event_id: str) -> ActivityEvent:
        event = self._activities.get(owner_id, event_id)
        if event is None:
            raise NotFoundError("Activity not found")
        if not event.visible_to(viewer_id):
            raise PermissionError("Only recipients can interact with this activity")
        return event
