from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from quickplay.core.auth import get_current_user_id
from quickplay.core.errors import NotFoundError
from quickplay.features.pipeline import get_pipeline

router = APIRouter(tags=["social"])


class ProfileUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=1, max_length=100)
    theme: Optional[str] = Field(None, min_length=1, max_length=50)


class TargetRequest(BaseModel):
    targetId: str = Field(..., min_length=1)


@router.put("/v1/profile")
def update_profile(body: ProfileUpdate, user_id: str = Depends(get_current_user_id)):
    profile = get_pipeline().profiles.upsert_profile(user_id, username=body.username, theme=body.theme)
    return profile.to_document()


@router.get("/v1/profile/{profile_id}")
def get_profile(profile_id: str, user_id: str = Depends(get_current_user_id)):
    """Own profile includes the friends graph; other profiles only show public fields."""
    profile = get_pipeline().profiles.get_profile(profile_id)
    if profile is None:
        raise NotFoundError("Profile not found")
    if profile_id == user_id:
        return profile.to_document()
    return {"uid": profile.user_id, "username": profile.username, "theme": profile.theme}


@router.get("/v1/friends")
def list_friends(user_id: str = Depends(get_current_user_id)):
    profile = get_pipeline().profiles.get_profile(user_id)
    if profile is None:
        raise NotFoundError("Profile not found")
    return profile.to_document()["friends"]


@router.post("/v1/friends/requests", status_code=201)
def send_friend_request(body: TargetRequest, user_id: str = Depends(get_current_user_id)):
    get_pipeline().friendships.send_request(user_id, body.targetId)
    return {"ok": True}


@router.post("/v1/friends/requests/{requester_id}/accept")
def accept_friend_request(requester_id: str, user_id: str = Depends(get_current_user_id)):
    profile = get_pipeline().friendships.accept_request(user_id, requester_id)
    return profile.to_document()["friends"]


@router.post("/v1/friends/requests/{requester_id}/reject")
def reject_friend_request(requester_id: str, user_id: str = Depends(get_current_user_id)):
    profile = get_pipeline().friendships.reject_request(user_id, requester_id)
    return profile.to_document()["friends"]


@router.delete("/v1/friends/requests/{target_id}")
def cancel_friend_request(target_id: str, user_id: str = Depends(get_current_user_id)):
    get_pipeline().friendships.cancel_request(user_id, target_id)
    return {"ok": True}


@router.delete("/v1/friends/{friend_id}")
def remove_friend(friend_id: str, user_id: str = Depends(get_current_user_id)):
    profile = get_pipeline().friendships.remove_friend(user_id, friend_id)
    return profile.to_document()["friends"]


@router.post("/v1/friends/blocks", status_code=201)
def block_user(body: TargetRequest, user_id: str = Depends(get_current_user_id)):
    profile = get_pipeline().friendships.block_user(user_id, body.targetId)
    return profile.to_document()["friends"]


@router.delete("/v1/friends/blocks/{target_id}")
def unblock_user(target_id: str, user_id: str = Depends(get_current_user_id)):
    profile = get_pipeline().friendships.unblock_user(user_id, target_id)
    return profile.to_document()["friends"]
