"""
Friendship graph mutations.

Each operation rewrites both profiles in one `update_pair` step so that
`friends` stays mutual and a counterpart sits in at most one of
friends / friend_requests / blocked at a time. `friend_requests` holds
incoming requests; `blocked` lists whom the owner has blocked.
"""

from __future__ import annotations

import logging

from quickplay.core.errors import ConflictError, NotFoundError, PermissionError, ValidationError
from quickplay.models.profile import Profile

logger = logging.getLogger("quickplay.social.friends")


def _discard(items, value) -> None:
    while value in items:
        items.remove(value)


def _add(items, value) -> None:
    if value not in items:
        items.append(value)


class FriendshipService:
    def __init__(self, profiles):
        self._profiles = profiles

    def send_request(self, sender_id: str, target_id: str) -> Profile:
        self._check_distinct(sender_id, target_id)

        def apply(sender: Profile, target: Profile) -> None:
            if sender_id in target.blocked:
                raise PermissionError("You cannot send a request to this user")
            if target_id in sender.blocked:
                raise ConflictError("Unblock this user before sending a request")
            if target_id in sender.friends:
                raise ConflictError("Already friends")
            if sender_id in target.friend_requests:
                raise ConflictError("Friend request already sent")
            if target_id in sender.friend_requests:
                raise ConflictError("This user already sent you a request; accept it instead")
            _add(target.friend_requests, sender_id)

        sender, _ = self._profiles.update_pair(sender_id, target_id, apply)
        logger.info("friend.request_sent", extra={"user_id": sender_id, "event_type": "friend_request"})
        return sender

    def accept_request(self, user_id: str, requester_id: str) -> Profile:
        self._check_distinct(user_id, requester_id)

        def apply(user: Profile, requester: Profile) -> None:
            if requester_id not in user.friend_requests:
                raise NotFoundError("No pending request from this user")
            _discard(user.friend_requests, requester_id)
            _discard(requester.friend_requests, user_id)
            _add(user.friends, requester_id)
            _add(requester.friends, user_id)

        user, _ = self._profiles.update_pair(user_id, requester_id, apply)
        logger.info("friend.request_accepted", extra={"user_id": user_id, "event_type": "friend_accept"})
        return user

    def reject_request(self, user_id: str, requester_id: str) -> Profile:
        self._check_distinct(user_id, requester_id)

        def apply(user: Profile, _requester: Profile) -> None:
            if requester_id not in user.friend_requests:
                raise NotFoundError("No pending request from this user")
            _discard(user.friend_requests, requester_id)

        user, _ = self._profiles.update_pair(user_id, requester_id, apply)
        return user

    def cancel_request(self, sender_id: str, target_id: str) -> Profile:
        self._check_distinct(sender_id, target_id)

        def apply(_sender: Profile, target: Profile) -> None:
            if sender_id not in target.friend_requests:
                raise NotFoundError("No pending request to this user")
            _discard(target.friend_requests, sender_id)

        sender, _ = self._profiles.update_pair(sender_id, target_id, apply)
        return sender

    def remove_friend(self, user_id: str, friend_id: str) -> Profile:
        self._check_distinct(user_id, friend_id)

        def apply(user: Profile, friend: Profile) -> None:
            if friend_id not in user.friends:
                raise NotFoundError("Not friends with this user")
            _discard(user.friends, friend_id)
            _discard(friend.friends, user_id)

        user, _ = self._profiles.update_pair(user_id, friend_id, apply)
        logger.info("friend.removed", extra={"user_id": user_id, "event_type": "friend_remove"})
        return user

    def block_user(self, user_id: str, target_id: str) -> Profile:
        """Drops any friendship or pending request in either direction, then blocks."""
        self._check_distinct(user_id, target_id)

        def apply(user: Profile, target: Profile) -> None:
            if target_id in user.blocked:
                raise ConflictError("User already blocked")
            _discard(user.friends, target_id)
            _discard(target.friends, user_id)
            _discard(user.friend_requests, target_id)
            _discard(target.friend_requests, user_id)
            _add(user.blocked, target_id)

        user, _ = self._profiles.update_pair(user_id, target_id, apply)
        logger.info("friend.blocked", extra={"user_id": user_id, "event_type": "friend_block"})
        return user

    def unblock_user(self, user_id: str, target_id: str) -> Profile:
        self._check_distinct(user_id, target_id)

        def apply(user: Profile, _target: Profile) -> None:
            if target_id not in user.blocked:
                raise NotFoundError("User is not blocked")
            _discard(user.blocked, target_id)

        user, _ = self._profiles.update_pair(user_id, target_id, apply)
        return user

    @staticmethod
    def _check_distinct(user_id: str, other_id: str) -> None:
        if user_id == other_id:
            raise ValidationError("Cannot perform this action on yourself")
