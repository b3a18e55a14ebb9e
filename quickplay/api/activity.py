from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from quickplay.core.auth import get_current_user_id
from quickplay.features.pipeline import get_pipeline

router = APIRouter(prefix="/v1/activity", tags=["activity"])


class ReactionRequest(BaseModel):
    emoji: str = Field(..., min_length=1, max_length=16)


class CommentRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=500)


@router.get("/feed")
def get_feed(
    limit: Optional[int] = Query(None, ge=1, le=200),
    user_id: str = Depends(get_current_user_id),
):
    events = get_pipeline().feed.for_viewer(user_id, limit=limit)
    return {"events": [event.to_document() for event in events]}


@router.post("/{owner_id}/{event_id}/reactions", status_code=201)
def add_reaction(owner_id: str, event_id: str, body: ReactionRequest, user_id: str = Depends(get_current_user_id)):
    event = get_pipeline().feed.react(user_id, owner_id, event_id, body.emoji)
    return event.to_document()


@router.post("/{owner_id}/{event_id}/comments", status_code=201)
def add_comment(owner_id: str, event_id: str, body: CommentRequest, user_id: str = Depends(get_current_user_id)):
    event = get_pipeline().feed.comment(user_id, owner_id, event_id, body.text)
    return event.to_document()
