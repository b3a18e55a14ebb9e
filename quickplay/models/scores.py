from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional

ScoreFamily = Literal["reaction_time", "snap", "pairs"]


@dataclass(frozen=True)
class GameInfo:
    game_id: str
    title: str
    family: ScoreFamily


@dataclass(frozen=True)
class ScoreRecord:
    """Raw attempt as stored in a user's personal history. Never mutated."""

    record_id: str
    user_id: str
    game_name: str
    played_on: Optional[str]
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_document(self) -> Dict[str, Any]:
        return {"id": self.record_id, **self.payload}


@dataclass(frozen=True)
class LeaderboardEntry:
    """Daily or best-score view row; `payload` mirrors the session plus userId/date/time."""

    user_id: str
    game_name: str
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_document(self) -> Dict[str, Any]:
        return dict(self.payload)
