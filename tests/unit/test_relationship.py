import uuid

import pytest

from friendgraph.domain.friendship.exceptions import IdentityNotFound, InvalidArgument, RequestNotFound
from friendgraph.domain.friendship.models import PrivacyLevel, PrivacySettings, Relationship


@pytest.mark.asyncio
async def test_strangers_are_not_friends(engine, make_friends):
    await make_friends(("alice", "bob"), ("carol", "dave"))
    assert await engine.get_relationship("alice", "carol") is Relationship.NOT_FRIENDS
    assert not await engine.is_friend("alice", "carol")
    assert not await engine.is_friend_of_friends("alice", "carol")


@pytest.mark.asyncio
async def test_direct_friends(engine, make_friends):
    await make_friends(("alice", "bob"))
    assert await engine.get_relationship("alice", "bob") is Relationship.FRIENDS
    assert await engine.get_relationship("bob", "alice") is Relationship.FRIENDS
    assert await engine.is_friend("bob", "alice")


@pytest.mark.asyncio
async def test_friends_with_mutual_friend_still_classified_as_friends(engine, make_friends):
    await make_friends(("alice", "bob"), ("alice", "carol"), ("bob", "carol"))
    assert await engine.get_relationship("alice", "bob") is Relationship.FRIENDS
    assert not await engine.is_friend_of_friends("alice", "bob")


@pytest.mark.asyncio
async def test_shared_friend_means_friends_of_friends(engine, make_friends):
    await make_friends(("alice", "bob"), ("bob", "carol"))
    assert await engine.get_relationship("alice", "carol") is Relationship.FRIENDS_OF_FRIENDS
    assert await engine.is_friend_of_friends("carol", "alice")
    assert not await engine.is_friend("alice", "carol")


@pytest.mark.asyncio
async def test_classification_rejects_same_identity_and_unknown(engine):
    with pytest.raises(InvalidArgument):
        await engine.get_relationship("alice", "alice")
    with pytest.raises(IdentityNotFound):
        await engine.get_relationship("alice", "mallory")


@pytest.mark.asyncio
async def test_mutual_friends_in_first_identity_order(engine, make_friends):
    await make_friends(
        ("alice", "dave"),
        ("alice", "bob"),
        ("alice", "carol"),
        ("erin", "carol"),
        ("erin", "dave"),
    )
    assert await engine.get_mutual_friends("alice", "erin") == ["dave", "carol"]
    assert await engine.get_mutual_friends("bob", "erin") == []


@pytest.mark.asyncio
async def test_get_friendship_edge_only_returns_accepted(engine):
    await engine.send_request("alice", "bob@example.com")
    assert await engine.get_friendship_edge("alice", "bob") is None
    accepted = await engine.accept_request("alice", "bob")
    edge = await engine.get_friendship_edge("bob", "alice")
    assert edge is not None and edge.id == accepted.id


@pytest.mark.asyncio
async def test_requester_and_requested_roles(engine):
    edge = await engine.send_request("alice", "bob@example.com")
    assert await engine.is_requester_of(edge.id, "alice")
    assert not await engine.is_requester_of(str(edge.id), "bob")
    assert await engine.is_requested_of(edge.id, "bob")
    assert not await engine.is_requested_of(edge.id, "alice")


@pytest.mark.asyncio
async def test_role_checks_on_unknown_edge(engine):
    with pytest.raises(RequestNotFound) as exc_info:
        await engine.is_requester_of(uuid.uuid4(), "alice")
    assert exc_info.value.reason == "invalid_edge"
    with pytest.raises(InvalidArgument):
        await engine.is_requested_of("not-a-uuid", "alice")


@pytest.mark.asyncio
async def test_permissions_follow_relationship(engine, identities, make_friends):
    identities.set_privacy(
        "carol",
        PrivacySettings(
            profile=PrivacyLevel.FRIENDS_OF_FRIENDS,
            search=PrivacyLevel.FRIENDS,
            chat_requests=PrivacyLevel.NOBODY,
        ),
    )
    await make_friends(("alice", "bob"), ("bob", "carol"))

    fof = await engine.get_permissions("alice", "carol")
    assert fof.relationship is Relationship.FRIENDS_OF_FRIENDS
    assert fof.profile
    assert not fof.search
    assert not fof.chat_requests
    assert fof.friend_requests

    friend = await engine.get_permissions("bob", "carol")
    assert friend.relationship is Relationship.FRIENDS
    assert friend.search
    assert not friend.friend_requests

    stranger = await engine.get_permissions("dave", "carol")
    assert stranger.relationship is Relationship.NOT_FRIENDS
    assert not stranger.profile
