"""Policy helpers and guard checks for friend requests."""

from __future__ import annotations

from typing import Any

from friendgraph.domain.friendship.exceptions import MalformedIdentity, SelfRequestError
from friendgraph.domain.friendship.models import (
	IdentityRef,
	PrivacyDecision,
	PrivacyLevel,
	PrivacySettings,
	Relationship,
)


def can_receive_friend_request(settings: PrivacySettings) -> bool:
	return settings.friend_requests != PrivacyLevel.NOBODY


def allows(level: PrivacyLevel, relationship: Relationship) -> bool:
	"""Return True when an audience ``level`` admits a viewer at ``relationship``."""
	if level == PrivacyLevel.ANYBODY:
		return True
	if level == PrivacyLevel.FRIENDS_OF_FRIENDS:
		return relationship >= Relationship.FRIENDS_OF_FRIENDS
	if level == PrivacyLevel.FRIENDS:
		return relationship == Relationship.FRIENDS
	return False


def evaluate(settings: PrivacySettings, relationship: Relationship) -> PrivacyDecision:
	return PrivacyDecision(
		relationship=relationship,
		profile=allows(settings.profile, relationship),
		search=allows(settings.search, relationship),
		chat_requests=allows(settings.chat_requests, relationship),
		# Friends cannot request each other again.
		friend_requests=relationship != Relationship.FRIENDS and can_receive_friend_request(settings),
	)


def guard_identity(value: Any) -> IdentityRef:
	if not isinstance(value, str) or not value.strip():
		raise MalformedIdentity()
	return value


def guard_not_self(requester_id: IdentityRef, requested_id: IdentityRef) -> None:
	if requester_id == requested_id:
		raise SelfRequestError()
