from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

Relation = Literal["none", "friend", "requested", "blocked"]


@dataclass
class Profile:
    """
    Social profile. `friends` is mutual; `friend_requests` holds incoming
    requests; `blocked` is one-directional (who this user has blocked).
    """

    user_id: str
    username: Optional[str] = None
    theme: Optional[str] = None
    friends: List[str] = field(default_factory=list)
    friend_requests: List[str] = field(default_factory=list)
    blocked: List[str] = field(default_factory=list)

    def relation_to(self, other_id: str) -> Relation:
        if other_id in self.friends:
            return "friend"
        if other_id in self.friend_requests:
            return "requested"
        if other_id in self.blocked:
            return "blocked"
        return "none"

    def display_name(self) -> str:
        return self.username or "Someone"

    def to_document(self) -> Dict[str, Any]:
        return {
            "uid": self.user_id,
            "username": self.username,
            "theme": self.theme,
            "friends": {
                "friends": list(self.friends),
                "friendRequests": list(self.friend_requests),
                "blocked": list(self.blocked),
            },
        }
