"""Shared setup helpers for the test suite."""


def make_friends(profiles, *pairs):
    """Seed mutual friendships directly, bypassing the request flow."""
    for first, second in pairs:
        for user_id in (first, second):
            if profiles.get_profile(user_id) is None:
                profiles.upsert_profile(user_id, username=user_id.title())

        def link(a, b):
            if b.user_id not in a.friends:
                a.friends.append(b.user_id)
            if a.user_id not in b.friends:
                b.friends.append(a.user_id)

        profiles.update_pair(first, second, link)
