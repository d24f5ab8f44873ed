"""Audit helpers for friend requests & friendships."""

from __future__ import annotations

import logging

from redis.exceptions import RedisError

from friendgraph.domain.friendship.models import FriendRequest
from friendgraph.domain.friendship.schemas import FriendEventPayload
from friendgraph.infra.redis import redis_client
from friendgraph.obs import metrics as obs_metrics
from friendgraph.settings import settings

logger = logging.getLogger(__name__)

FRIEND_EVENTS_STREAM = "x:friendships.events"


async def log_friend_event(event: str, edge: FriendRequest) -> None:
	if not settings.audit_enabled:
		return
	payload = FriendEventPayload(event=event, edge_id=edge.id, requester=edge.requester, requested=edge.requested)
	try:
		await redis_client.xadd_capped(FRIEND_EVENTS_STREAM, payload.model_dump(mode="json"))
	except (RedisError, OSError):
		logger.warning("Failed to append %s event for edge %s", event, edge.id, exc_info=True)


def inc_request_sent() -> None:
	obs_metrics.inc_request_sent()


def inc_request_accepted() -> None:
	obs_metrics.inc_request_accepted()


def inc_request_denied() -> None:
	obs_metrics.inc_request_denied()


def inc_send_reject(reason: str) -> None:
	obs_metrics.inc_request_reject(reason)
