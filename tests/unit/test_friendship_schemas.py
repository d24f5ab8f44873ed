from friendgraph.domain.friendship.models import (
    FriendRequest,
    FriendshipStatus,
    PrivacyDecision,
    Relationship,
    RequestBuckets,
)
from friendgraph.domain.friendship.schemas import FriendRequestSummary, PermissionsSummary, RequestsOverview


def test_requests_overview_serializes_edges():
    sent = FriendRequest(requester="alice", requested="bob")
    received = FriendRequest(requester="carol", requested="alice", status=FriendshipStatus.PENDING)
    overview = RequestsOverview.from_buckets(RequestBuckets(sent=[sent], received=[received]))
    data = overview.model_dump(mode="json")
    assert data["sent"][0]["requested"] == "bob"
    assert data["sent"][0]["status"] == "pending"
    assert data["received"][0]["requester"] == "carol"
    assert data["received"][0]["date_accepted"] is None


def test_summary_keeps_accepted_date():
    edge = FriendRequest(requester="alice", requested="bob", status=FriendshipStatus.ACCEPTED)
    edge.date_accepted = edge.date_sent
    summary = FriendRequestSummary.from_edge(edge)
    assert summary.status == "accepted"
    assert summary.date_accepted == edge.date_sent


def test_permissions_summary_uses_relationship_name():
    decision = PrivacyDecision(
        relationship=Relationship.FRIENDS_OF_FRIENDS,
        profile=True,
        search=False,
        chat_requests=True,
        friend_requests=True,
    )
    summary = PermissionsSummary.from_decision(decision)
    assert summary.relationship == "friends_of_friends"
    assert not summary.search
