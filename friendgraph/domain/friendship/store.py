"""Relationship store contract and the in-memory implementation."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Optional, Protocol, Sequence
from uuid import UUID

from friendgraph.domain.friendship.exceptions import RequestConflict, RequestNotFound
from friendgraph.domain.friendship.models import (
	EdgeRole,
	FriendRequest,
	FriendshipStatus,
	IdentityRef,
)
from friendgraph.domain.friendship.policy import guard_not_self


class RelationshipStore(Protocol):
	"""Persistence of directed friend-request edges.

	Every transition is one atomic conditional write: a store never lets two
	active edges relate the same unordered pair, and never lets one pending
	edge be accepted twice.
	"""

	async def create_request(self, requester: IdentityRef, requested: IdentityRef) -> FriendRequest:
		...

	async def find_edge(
		self,
		a: IdentityRef,
		b: IdentityRef,
		status: Optional[FriendshipStatus] = None,
	) -> Optional[FriendRequest]:
		...

	async def find_pending(self, role: EdgeRole, identity: IdentityRef) -> Sequence[FriendRequest]:
		...

	async def accept(self, requester: IdentityRef, requested: IdentityRef) -> FriendRequest:
		...

	async def deny(self, requester: IdentityRef, requested: IdentityRef) -> FriendRequest:
		"""Delete the pending edge and return it as it was before deletion."""
		...

	async def friends_of(self, identity: IdentityRef) -> Sequence[IdentityRef]:
		...

	async def get(self, edge_id: UUID) -> Optional[FriendRequest]:
		...


class InMemoryRelationshipStore(RelationshipStore):
	"""Store keeping edges in insertion order, for tests and local development."""

	def __init__(self) -> None:
		self._edges: dict[UUID, FriendRequest] = {}
		self._lock = asyncio.Lock()

	def _find(
		self,
		a: IdentityRef,
		b: IdentityRef,
		status: Optional[FriendshipStatus] = None,
	) -> Optional[FriendRequest]:
		for edge in self._edges.values():
			if edge.relates(a, b) and (status is None or edge.status is status):
				return edge
		return None

	def _find_directed_pending(self, requester: IdentityRef, requested: IdentityRef) -> Optional[FriendRequest]:
		for edge in self._edges.values():
			if edge.requester == requester and edge.requested == requested and edge.is_pending:
				return edge
		return None

	async def create_request(self, requester: IdentityRef, requested: IdentityRef) -> FriendRequest:
		guard_not_self(requester, requested)
		async with self._lock:
			if self._find(requester, requested) is not None:
				raise RequestConflict()
			edge = FriendRequest(requester=requester, requested=requested)
			self._edges[edge.id] = edge
		return _copy(edge)

	async def find_edge(
		self,
		a: IdentityRef,
		b: IdentityRef,
		status: Optional[FriendshipStatus] = None,
	) -> Optional[FriendRequest]:
		edge = self._find(a, b, status)
		return _copy(edge) if edge else None

	async def find_pending(self, role: EdgeRole, identity: IdentityRef) -> Sequence[FriendRequest]:
		attr = EdgeRole(role).value
		return [_copy(edge) for edge in self._edges.values() if edge.is_pending and getattr(edge, attr) == identity]

	async def accept(self, requester: IdentityRef, requested: IdentityRef) -> FriendRequest:
		async with self._lock:
			edge = self._find_directed_pending(requester, requested)
			if edge is None:
				raise RequestNotFound()
			edge.status = FriendshipStatus.ACCEPTED
			edge.date_accepted = datetime.now(timezone.utc)
		return _copy(edge)

	async def deny(self, requester: IdentityRef, requested: IdentityRef) -> FriendRequest:
		async with self._lock:
			edge = self._find_directed_pending(requester, requested)
			if edge is None:
				raise RequestNotFound()
			del self._edges[edge.id]
		return _copy(edge)

	async def friends_of(self, identity: IdentityRef) -> Sequence[IdentityRef]:
		return [edge.other(identity) for edge in self._edges.values() if edge.is_accepted and edge.involves(identity)]

	async def get(self, edge_id: UUID) -> Optional[FriendRequest]:
		edge = self._edges.get(edge_id)
		return _copy(edge) if edge else None


def _copy(edge: FriendRequest) -> FriendRequest:
	return FriendRequest(
		id=edge.id,
		requester=edge.requester,
		requested=edge.requested,
		status=edge.status,
		date_sent=edge.date_sent,
		date_accepted=edge.date_accepted,
	)
