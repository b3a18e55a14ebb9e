from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Literal

ActivityType = Literal[
    "newHighScore",
    "friendHighScoreBeaten",
    "friendDailyBestBeaten",
    "milestone",
    "dailyStreak",
]


@dataclass(frozen=True)
class ActivityContent:
    """Rendered notification; never re-rendered after creation."""

    recipients: List[str]
    type: ActivityType
    message: str
    data: Dict[str, Any]
    from_user: str
    timestamp: datetime


@dataclass
class ActivityEvent:
    """
    Activity feed entry stored under the triggering user's feed.
    Only reactions and comments change after creation, and only by appending.
    """

    event_id: str
    owner_id: str
    content: ActivityContent
    reactions: List[Dict[str, Any]] = field(default_factory=list)
    comments: List[Dict[str, Any]] = field(default_factory=list)

    def visible_to(self, user_id: str) -> bool:
        return user_id in self.content.recipients

    def to_document(self) -> Dict[str, Any]:
        return {
            "id": self.event_id,
            "ownerId": self.owner_id,
            "content": {
                "recipients": list(self.content.recipients),
                "type": self.content.type,
                "message": self.content.message,
                "data": dict(self.content.data),
                "fromUser": self.content.from_user,
                "timestamp": self.content.timestamp.isoformat(),
            },
            "reactions": list(self.reactions),
            "comments": list(self.comments),
        }
