import pytest

from crates_api.errors import RegistryAuthorizationError, RegistryNotFoundError
from crates_api.service.follows import FollowService


@pytest.fixture
def alice(make_user, publisher, body):
    user = make_user("alice")
    publisher.publish(body("foo"), actor_id=user.id)
    return user


def test_follow_and_unfollow(alice):
    follows = FollowService()

    assert follows.following("foo", actor_id=alice.id) is False
    follows.follow("FOO", actor_id=alice.id)
    follows.follow("foo", actor_id=alice.id)
    assert follows.following("foo", actor_id=alice.id) is True

    follows.unfollow("foo", actor_id=alice.id)
    assert follows.following("foo", actor_id=alice.id) is False
    follows.unfollow("foo", actor_id=alice.id)


def test_follows_are_per_user(alice, make_user):
    bob = make_user("bob")
    follows = FollowService()

    follows.follow("foo", actor_id=alice.id)

    assert follows.following("foo", actor_id=bob.id) is False


def test_follow_requires_login(alice):
    with pytest.raises(RegistryAuthorizationError, match="must be logged in"):
        FollowService().follow("foo", actor_id=None)


def test_follow_unknown_crate(alice):
    with pytest.raises(RegistryNotFoundError, match="crate `bar` does not exist"):
        FollowService().follow("bar", actor_id=alice.id)
