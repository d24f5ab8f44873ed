"""Friendship engine: request state machine, friend sets and two-hop traversal."""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from typing import Any, Awaitable, Callable, Iterable, List, Optional, TypeVar
from uuid import UUID

from friendgraph.domain.friendship import audit, policy
from friendgraph.domain.friendship.exceptions import (
	AlreadyFriends,
	DuplicatePendingRequest,
	FriendshipError,
	IdentityNotFound,
	InvalidArgument,
	RequestNotFound,
	RequestNotPermitted,
	StoreUnavailable,
)
from friendgraph.domain.friendship.identity import IdentityStore
from friendgraph.domain.friendship.models import (
	EdgeRole,
	FriendRequest,
	FriendshipStatus,
	IdentityRef,
	PrivacyDecision,
	Relationship,
	RequestBuckets,
)
from friendgraph.domain.friendship.store import RelationshipStore
from friendgraph.obs import logging as obs_logging
from friendgraph.obs import metrics as obs_metrics
from friendgraph.settings import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")
F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def _dedupe(ids: Iterable[IdentityRef]) -> List[IdentityRef]:
	return list(dict.fromkeys(ids))


def _logged(operation: str, *, identity_arg: Optional[int] = 0) -> Callable[[F], F]:
	"""Bind ``operation`` and the acting identity to log lines emitted while the call runs."""

	def decorator(func: F) -> F:
		@functools.wraps(func)
		async def wrapper(self: "FriendshipEngine", *args: Any, **kwargs: Any) -> Any:
			identity_id = args[identity_arg] if identity_arg is not None and len(args) > identity_arg else None
			tokens = obs_logging.bind_context(
				identity_id=identity_id if isinstance(identity_id, str) else None,
				operation=operation,
			)
			try:
				return await func(self, *args, **kwargs)
			finally:
				obs_logging.reset_context(tokens)

		return wrapper  # type: ignore[return-value]

	return decorator


class FriendshipEngine:
	"""Answers friendship questions over a relationship store and an identity store.

	Every public operation either returns a value or raises one
	:class:`FriendshipError` subclass. Failures raised by either store that are
	not already friendship errors surface as :class:`StoreUnavailable`, tagged
	with the operation that was running. The engine never retries.
	"""

	def __init__(
		self,
		relationships: RelationshipStore,
		identities: IdentityStore,
		*,
		fanout_limit: Optional[int] = None,
	) -> None:
		limit = settings.fof_fanout_limit if fanout_limit is None else fanout_limit
		if limit < 1:
			raise ValueError("fanout_limit must be at least 1")
		self._relationships = relationships
		self._identities = identities
		self._fanout_limit = limit

	@property
	def fanout_limit(self) -> int:
		return self._fanout_limit

	async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
		try:
			return await awaitable
		except FriendshipError as exc:
			raise exc.with_operation(operation)
		except Exception as exc:
			obs_metrics.inc_store_error(operation)
			logger.warning("Store failure during %s: %s", operation, exc)
			raise StoreUnavailable(operation, exc) from exc

	async def _ensure_exist(self, operation: str, *identities: IdentityRef) -> None:
		if not await self._call(operation, self._identities.exists_all(identities)):
			raise IdentityNotFound(operation=operation)

	async def _friends(self, operation: str, identity: IdentityRef) -> List[IdentityRef]:
		return list(await self._call(operation, self._relationships.friends_of(identity)))

	# --- request state machine ---

	@_logged("send_request")
	async def send_request(self, requester_id: IdentityRef, requested_handle: str) -> Optional[FriendRequest]:
		"""Create a pending request from ``requester_id`` to the identity behind ``requested_handle``.

		Returns ``None`` when the handle resolves to nobody.
		"""
		operation = "send_request"
		requester_id = policy.guard_identity(requester_id)
		requested_handle = policy.guard_identity(requested_handle)
		await self._ensure_exist(operation, requester_id)

		requested_id = await self._call(operation, self._identities.resolve_by_handle(requested_handle))
		if requested_id is None:
			logger.debug("No identity for handle, request from %s not sent", requester_id)
			return None

		try:
			policy.guard_not_self(requester_id, requested_id)
		except FriendshipError as exc:
			audit.inc_send_reject(exc.reason)
			raise exc.with_operation(operation)

		existing = await self._call(operation, self._relationships.find_edge(requester_id, requested_id))
		if existing is not None:
			error: FriendshipError = (
				DuplicatePendingRequest(operation=operation)
				if existing.status is FriendshipStatus.PENDING
				else AlreadyFriends(operation=operation)
			)
			audit.inc_send_reject(error.reason)
			raise error

		privacy = await self._call(operation, self._identities.get_privacy_settings(requested_id))
		if not policy.can_receive_friend_request(privacy):
			audit.inc_send_reject(RequestNotPermitted.reason)
			logger.info("Friend request from %s blocked by privacy settings of %s", requester_id, requested_id)
			raise RequestNotPermitted(operation=operation)

		try:
			edge = await self._call(operation, self._relationships.create_request(requester_id, requested_id))
		except FriendshipError as exc:
			audit.inc_send_reject(exc.reason)
			raise

		audit.inc_request_sent()
		await audit.log_friend_event("sent", edge)
		logger.info("Friend request %s sent from %s to %s", edge.id, requester_id, requested_id)
		return edge

	@_logged("accept_request", identity_arg=1)
	async def accept_request(self, requester_id: IdentityRef, requested_id: IdentityRef) -> FriendRequest:
		operation = "accept_request"
		requester_id = policy.guard_identity(requester_id)
		requested_id = policy.guard_identity(requested_id)
		edge = await self._call(operation, self._relationships.accept(requester_id, requested_id))
		audit.inc_request_accepted()
		await audit.log_friend_event("accepted", edge)
		logger.info("Friend request %s accepted by %s", edge.id, requested_id)
		return edge

	@_logged("deny_request", identity_arg=1)
	async def deny_request(self, requester_id: IdentityRef, requested_id: IdentityRef) -> None:
		operation = "deny_request"
		requester_id = policy.guard_identity(requester_id)
		requested_id = policy.guard_identity(requested_id)
		edge = await self._call(operation, self._relationships.deny(requester_id, requested_id))
		audit.inc_request_denied()
		await audit.log_friend_event("denied", edge)
		logger.info("Friend request from %s denied by %s", requester_id, requested_id)

	@_logged("get_sent_requests")
	async def get_sent_requests(self, identity_id: IdentityRef) -> List[FriendRequest]:
		identity_id = policy.guard_identity(identity_id)
		return list(
			await self._call("get_sent_requests", self._relationships.find_pending(EdgeRole.REQUESTER, identity_id))
		)

	@_logged("get_received_requests")
	async def get_received_requests(self, identity_id: IdentityRef) -> List[FriendRequest]:
		identity_id = policy.guard_identity(identity_id)
		return list(
			await self._call("get_received_requests", self._relationships.find_pending(EdgeRole.REQUESTED, identity_id))
		)

	@_logged("get_requests")
	async def get_requests(self, identity_id: IdentityRef) -> RequestBuckets:
		sent = await self.get_sent_requests(identity_id)
		received = await self.get_received_requests(identity_id)
		return RequestBuckets(sent=sent, received=received)

	# --- friend sets ---

	@_logged("get_friends")
	async def get_friends(self, identity_id: IdentityRef) -> List[IdentityRef]:
		identity_id = policy.guard_identity(identity_id)
		return await self._friends("get_friends", identity_id)

	@_logged("get_friends_of_friends")
	async def get_friends_of_friends(self, identity_id: IdentityRef) -> List[IdentityRef]:
		"""Identities exactly two hops away, excluding ``identity_id`` and its direct friends.

		Per-friend lookups run concurrently, at most ``fanout_limit`` at a time.
		The first failing lookup cancels the rest and is raised; no partial
		result is ever returned.
		"""
		operation = "get_friends_of_friends"
		identity_id = policy.guard_identity(identity_id)
		await self._ensure_exist(operation, identity_id)

		friends = _dedupe(await self._friends(operation, identity_id))
		if not friends:
			return []

		started = time.perf_counter()
		semaphore = asyncio.Semaphore(self._fanout_limit)

		async def _lookup(friend_id: IdentityRef) -> List[IdentityRef]:
			async with semaphore:
				return await self._friends(operation, friend_id)

		tasks = [asyncio.ensure_future(_lookup(friend_id)) for friend_id in friends]
		try:
			results = await asyncio.gather(*tasks)
		except BaseException:
			for task in tasks:
				task.cancel()
			await asyncio.gather(*tasks, return_exceptions=True)
			raise

		excluded = set(friends)
		excluded.add(identity_id)
		found: List[IdentityRef] = []
		seen: set[IdentityRef] = set()
		for friend_ids in results:
			for candidate in friend_ids:
				if candidate in excluded or candidate in seen:
					continue
				seen.add(candidate)
				found.append(candidate)

		obs_metrics.observe_fof(len(friends), time.perf_counter() - started)
		logger.debug("Friends-of-friends for %s: %d friends, %d results", identity_id, len(friends), len(found))
		return found

	# --- relationship queries ---

	async def _check_pair(self, operation: str, a: IdentityRef, b: IdentityRef) -> tuple[IdentityRef, IdentityRef]:
		a = policy.guard_identity(a)
		b = policy.guard_identity(b)
		if a == b:
			raise InvalidArgument("same_identity", operation=operation)
		await self._ensure_exist(operation, a, b)
		return a, b

	@staticmethod
	def _first_mutual(a_friends: List[IdentityRef], b_friends: List[IdentityRef]) -> Optional[IdentityRef]:
		for candidate in a_friends:
			for other in b_friends:
				if candidate == other:
					return candidate
		return None

	async def _classify(self, operation: str, a: IdentityRef, b: IdentityRef) -> Relationship:
		a_friends = await self._friends(operation, a)
		if b in a_friends:
			return Relationship.FRIENDS
		if not a_friends:
			return Relationship.NOT_FRIENDS
		b_friends = await self._friends(operation, b)
		if self._first_mutual(a_friends, b_friends) is not None:
			return Relationship.FRIENDS_OF_FRIENDS
		return Relationship.NOT_FRIENDS

	@_logged("get_relationship")
	async def get_relationship(self, a: IdentityRef, b: IdentityRef) -> Relationship:
		"""Classify how ``b`` relates to ``a``.

		An identity is not classified against itself: ``a == b`` raises
		:class:`InvalidArgument` with reason ``same_identity``.
		"""
		operation = "get_relationship"
		a, b = await self._check_pair(operation, a, b)
		return await self._classify(operation, a, b)

	@_logged("is_friend")
	async def is_friend(self, a: IdentityRef, b: IdentityRef) -> bool:
		a = policy.guard_identity(a)
		b = policy.guard_identity(b)
		return b in await self._friends("is_friend", a)

	@_logged("is_friend_of_friends")
	async def is_friend_of_friends(self, a: IdentityRef, b: IdentityRef) -> bool:
		"""True when ``a`` and ``b`` share a friend without being friends themselves."""
		operation = "is_friend_of_friends"
		a, b = await self._check_pair(operation, a, b)
		return await self._classify(operation, a, b) is Relationship.FRIENDS_OF_FRIENDS

	@_logged("get_mutual_friends")
	async def get_mutual_friends(self, a: IdentityRef, b: IdentityRef) -> List[IdentityRef]:
		operation = "get_mutual_friends"
		a, b = await self._check_pair(operation, a, b)
		a_friends = _dedupe(await self._friends(operation, a))
		if not a_friends:
			return []
		b_friends = set(await self._friends(operation, b))
		return [friend_id for friend_id in a_friends if friend_id in b_friends]

	@_logged("get_permissions")
	async def get_permissions(self, viewer_id: IdentityRef, target_id: IdentityRef) -> PrivacyDecision:
		"""Evaluate ``target_id``'s privacy settings for ``viewer_id``."""
		operation = "get_permissions"
		viewer_id, target_id = await self._check_pair(operation, viewer_id, target_id)
		relationship = await self._classify(operation, viewer_id, target_id)
		privacy = await self._call(operation, self._identities.get_privacy_settings(target_id))
		return policy.evaluate(privacy, relationship)

	# --- edge inspection ---

	@_logged("get_friendship_edge")
	async def get_friendship_edge(self, a: IdentityRef, b: IdentityRef) -> Optional[FriendRequest]:
		a = policy.guard_identity(a)
		b = policy.guard_identity(b)
		return await self._call(
			"get_friendship_edge",
			self._relationships.find_edge(a, b, FriendshipStatus.ACCEPTED),
		)

	async def _load_edge(self, operation: str, edge_id: Any) -> FriendRequest:
		try:
			key = edge_id if isinstance(edge_id, UUID) else UUID(str(edge_id))
		except ValueError as exc:
			raise InvalidArgument("malformed_edge_id", operation=operation) from exc
		edge = await self._call(operation, self._relationships.get(key))
		if edge is None:
			raise RequestNotFound("invalid_edge", operation=operation)
		return edge

	@_logged("is_requester_of", identity_arg=1)
	async def is_requester_of(self, edge_id: UUID | str, identity_id: IdentityRef) -> bool:
		edge = await self._load_edge("is_requester_of", edge_id)
		return edge.requester == policy.guard_identity(identity_id)

	@_logged("is_requested_of", identity_arg=1)
	async def is_requested_of(self, edge_id: UUID | str, identity_id: IdentityRef) -> bool:
		edge = await self._load_edge("is_requested_of", edge_id)
		return edge.requested == policy.guard_identity(identity_id)
