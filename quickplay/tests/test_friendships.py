import pytest

from quickplay.core.errors import ConflictError, NotFoundError, PermissionError, ValidationError
from quickplay.features.social.friends import FriendshipService
from quickplay.features.social.store import InMemoryProfileStore


@pytest.fixture
def profiles():
    store = InMemoryProfileStore()
    for user_id in ("alice", "bob", "carol"):
        store.upsert_profile(user_id, username=user_id.title())
    return store


@pytest.fixture
def service(profiles):
    return FriendshipService(profiles)


def _friends(profiles, user_id):
    return profiles.get_profile(user_id).friends


def test_request_then_accept_is_mutual(service, profiles):
    service.send_request("alice", "bob")
    assert profiles.get_profile("bob").friend_requests == ["alice"]
    assert profiles.get_profile("alice").relation_to("bob") == "none"

    bob = service.accept_request("bob", "alice")

    assert bob.friends == ["alice"]
    assert _friends(profiles, "alice") == ["bob"]
    assert profiles.get_profile("bob").friend_requests == []


def test_reject_and_cancel_leave_no_friendship(service, profiles):
    service.send_request("alice", "bob")
    service.reject_request("bob", "alice")
    assert profiles.get_profile("bob").friend_requests == []

    service.send_request("alice", "bob")
    service.cancel_request("alice", "bob")
    assert profiles.get_profile("bob").friend_requests == []
    assert _friends(profiles, "alice") == []


def test_remove_friend_is_mutual(service, profiles):
    service.send_request("alice", "bob")
    service.accept_request("bob", "alice")

    service.remove_friend("alice", "bob")

    assert _friends(profiles, "alice") == []
    assert _friends(profiles, "bob") == []


@pytest.mark.parametrize(
    "setup, error",
    [
        (lambda s: s.send_request("alice", "bob"), ConflictError),
        (lambda s: s.send_request("bob", "alice"), ConflictError),
        (lambda s: (s.send_request("alice", "bob"), s.accept_request("bob", "alice")), ConflictError),
        (lambda s: s.block_user("alice", "bob"), ConflictError),
        (lambda s: s.block_user("bob", "alice"), PermissionError),
    ],
)
def test_send_request_rejections(service, profiles, setup, error):
    setup(service)
    snapshot = (profiles.get_profile("alice"), profiles.get_profile("bob"))

    with pytest.raises(error):
        service.send_request("alice", "bob")

    assert (profiles.get_profile("alice"), profiles.get_profile("bob")) == snapshot


def test_self_request_is_invalid(service):
    with pytest.raises(ValidationError):
        service.send_request("alice", "alice")


def test_unknown_profile_is_not_found(service):
    with pytest.raises(NotFoundError):
        service.send_request("alice", "nobody")


def test_accept_without_request_is_not_found(service):
    with pytest.raises(NotFoundError):
        service.accept_request("bob", "alice")


def test_block_removes_friendship_and_requests(service, profiles):
    service.send_request("alice", "bob")
    service.accept_request("bob", "alice")
    service.send_request("carol", "alice")

    alice = service.block_user("alice", "bob")
    service.block_user("alice", "carol")

    assert alice.blocked == ["bob"]
    assert _friends(profiles, "alice") == []
    assert _friends(profiles, "bob") == []
    assert profiles.get_profile("alice").friend_requests == []
    assert profiles.get_profile("alice").relation_to("carol") == "blocked"
    assert profiles.get_profile("bob").blocked == []


def test_unblock_allows_new_request(service, profiles):
    service.block_user("bob", "alice")
    service.unblock_user("bob", "alice")

    service.send_request("alice", "bob")

    assert profiles.get_profile("bob").friend_requests == ["alice"]


def test_unblock_unknown_is_not_found(service):
    with pytest.raises(NotFoundError):
        service.unblock_user("alice", "bob")


def test_returned_profiles_are_copies(profiles):
    snapshot = profiles.get_profile("alice")
    snapshot.friends.append("mallory")
    assert _friends(profiles, "alice") == []
