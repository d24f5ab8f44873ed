"""Pydantic schemas for friend requests and relationship answers."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel

from friendgraph.domain.friendship.models import FriendRequest, PrivacyDecision, RequestBuckets


class FriendRequestSummary(BaseModel):
	id: UUID
	requester: str
	requested: str
	status: Literal["pending", "accepted"]
	date_sent: datetime
	date_accepted: Optional[datetime] = None

	@classmethod
	def from_edge(cls, edge: FriendRequest) -> "FriendRequestSummary":
		return cls(
			id=edge.id,
			requester=edge.requester,
			requested=edge.requested,
			status=edge.status.value,
			date_sent=edge.date_sent,
			date_accepted=edge.date_accepted,
		)


class RequestsOverview(BaseModel):
	sent: list[FriendRequestSummary]
	received: list[FriendRequestSummary]

	@classmethod
	def from_buckets(cls, buckets: RequestBuckets) -> "RequestsOverview":
		return cls(
			sent=[FriendRequestSummary.from_edge(edge) for edge in buckets.sent],
			received=[FriendRequestSummary.from_edge(edge) for edge in buckets.received],
		)


class PermissionsSummary(BaseModel):
	relationship: Literal["not_friends", "friends_of_friends", "friends"]
	profile: bool
	search: bool
	chat_requests: bool
	friend_requests: bool

	@classmethod
	def from_decision(cls, decision: PrivacyDecision) -> "PermissionsSummary":
		return cls(
			relationship=decision.relationship.name.lower(),
			profile=decision.profile,
			search=decision.search,
			chat_requests=decision.chat_requests,
			friend_requests=decision.friend_requests,
		)


class FriendEventPayload(BaseModel):
	event: Literal["sent", "accepted", "denied"]
	edge_id: UUID
	requester: str
	requested: str
