from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class StatisticsSummary:
    """
    Per-(user, game) aggregate. Every field is optional because documents
    written by older clients may be partial; absent means "never recorded".
    """

    best_score_index: Optional[float] = None
    daily_best_score_index: Optional[float] = None
    total_plays: Optional[int] = None
    updated_at: Optional[datetime] = None

    def with_daily_reset(self) -> "StatisticsSummary":
        return replace(self, daily_best_score_index=0)

    def to_document(self) -> Dict[str, Any]:
        doc: Dict[str, Any] = {}
        if self.best_score_index is not None:
            doc["bestScoreIndex"] = self.best_score_index
        if self.daily_best_score_index is not None:
            doc["dailyBestScoreIndex"] = self.daily_best_score_index
        if self.total_plays is not None:
            doc["totalPlays"] = self.total_plays
        if self.updated_at is not None:
            doc["updatedAt"] = self.updated_at.isoformat()
        return doc

    @classmethod
    def from_document(cls, doc: Optional[Dict[str, Any]]) -> Optional["StatisticsSummary"]:
        if doc is None:
            return None
        updated_at = doc.get("updatedAt")
        if isinstance(updated_at, str):
            updated_at = datetime.fromisoformat(updated_at)
        return cls(
            best_score_index=doc.get("bestScoreIndex"),
            daily_best_score_index=doc.get("dailyBestScoreIndex"),
            total_plays=doc.get("totalPlays"),
            updated_at=updated_at,
        )


@dataclass(frozen=True)
class DailyStreak:
    daily_streak: int = 0
    last_updated: Optional[str] = None  # ISO date (YYYY-MM-DD)

    def to_document(self) -> Dict[str, Any]:
        return {"dailyStreak": self.daily_streak, "lastUpdated": self.last_updated}
