from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from quickplay.core.auth import get_current_user_id, get_optional_user_id
from quickplay.core.errors import NotFoundError, ValidationError
from quickplay.features.pipeline import get_pipeline
from quickplay.features.scoring.catalog import get_game
from quickplay.features.scoring.uploads import (
    upload_maths_score,
    upload_pairs_score,
    upload_snap_score,
    upload_stroop_score,
)

router = APIRouter(tags=["scores"])


class SessionInput(BaseModel):
    """A finished session as a game screen reports it. Unknown fields are kept."""

    model_config = ConfigDict(extra="allow")

    gameName: str = Field(..., min_length=1)
    datePlayed: Optional[str] = None
    timeTaken: Optional[float] = None
    timestamp: Optional[int] = None
    score: Any = None
    scoreIndex: Optional[float] = None
    accuracy: Optional[float] = None
    averageReactionTime: Optional[float] = None


class UploadRequest(BaseModel):
    datePlayed: str = Field(..., min_length=1)
    totalScore: Optional[int] = Field(None, ge=0)
    averageReactionTimeMs: Optional[float] = None
    totalTurns: Optional[int] = Field(None, ge=0)
    totalTimeMs: Optional[float] = None
    timestamp: Optional[int] = None


def _require(value, name: str):
    if value is None:
        raise ValidationError(f"{name} is required for this game")
    return value


@router.post("/v1/scores", status_code=201)
def create_score(body: SessionInput, user_id: Optional[str] = Depends(get_optional_user_id)):
    """Persist a raw session. Bad score/date input still records the session."""
    record_id = get_pipeline().writer.write(user_id, body.model_dump(exclude_none=True))
    return {"id": record_id}


@router.post("/v1/scores/{game_id}", status_code=201)
def upload_score(game_id: str, body: UploadRequest, user_id: Optional[str] = Depends(get_optional_user_id)):
    if get_game(game_id) is None:
        raise NotFoundError(f"Unknown game: {game_id}")

    writer = get_pipeline().writer
    if game_id == "snap":
        record_id = upload_snap_score(
            writer,
            user_id,
            body.datePlayed,
            _require(body.averageReactionTimeMs, "averageReactionTimeMs"),
            timestamp_ms=body.timestamp,
        )
    elif game_id == "pairs":
        record_id = upload_pairs_score(
            writer,
            user_id,
            body.datePlayed,
            _require(body.totalTurns, "totalTurns"),
            _require(body.totalTimeMs, "totalTimeMs"),
            timestamp_ms=body.timestamp,
        )
    else:
        upload = upload_maths_score if game_id == "maths" else upload_stroop_score
        record_id = upload(
            writer,
            user_id,
            body.datePlayed,
            _require(body.totalScore, "totalScore"),
            _require(body.averageReactionTimeMs, "averageReactionTimeMs"),
            timestamp_ms=body.timestamp,
        )
    return {"id": record_id}


@router.get("/v1/scores/me/{game_id}")
def my_scores(game_id: str, user_id: str = Depends(get_current_user_id)):
    records = get_pipeline().sessions.list_sessions(user_id, game_id)
    return {"game": game_id, "scores": [record.to_document() for record in records]}
