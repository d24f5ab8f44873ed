"""Domain models for friend requests and relationships."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Any, Mapping, Optional
from uuid import UUID, uuid4

IdentityRef = str


class FriendshipStatus(str, Enum):
	"""States an edge can hold while it exists. Denied requests are deleted."""

	PENDING = "pending"
	ACCEPTED = "accepted"


class EdgeRole(str, Enum):
	"""Which side of an edge an identity sits on."""

	REQUESTER = "requester"
	REQUESTED = "requested"


class Relationship(IntEnum):
	"""Relationship classification, ordered by strength."""

	NOT_FRIENDS = 0
	FRIENDS_OF_FRIENDS = 1
	FRIENDS = 2


class PrivacyLevel(IntEnum):
	"""Audience scale for a privacy dimension, from fully open to fully closed."""

	ANYBODY = 0
	FRIENDS_OF_FRIENDS = 1
	FRIENDS = 2
	NOBODY = 3


PRIVACY_DIMENSIONS = ("profile", "search", "chat_requests", "friend_requests")


def _now() -> datetime:
	return datetime.now(timezone.utc)


@dataclass(slots=True)
class FriendRequest:
	"""Directed friend-request edge between two identities."""

	requester: IdentityRef
	requested: IdentityRef
	status: FriendshipStatus = FriendshipStatus.PENDING
	date_sent: datetime = field(default_factory=_now)
	date_accepted: Optional[datetime] = None
	id: UUID = field(default_factory=uuid4)

	@classmethod
	def from_record(cls, record: Mapping[str, Any]) -> "FriendRequest":
		return cls(
			id=UUID(str(record["id"])),
			requester=str(record["requester_id"]),
			requested=str(record["requested_id"]),
			status=FriendshipStatus(record["status"]),
			date_sent=record["date_sent"],
			date_accepted=record.get("date_accepted"),
		)

	@property
	def is_pending(self) -> bool:
		return self.status is FriendshipStatus.PENDING

	@property
	def is_accepted(self) -> bool:
		return self.status is FriendshipStatus.ACCEPTED

	def involves(self, identity: IdentityRef) -> bool:
		return identity == self.requester or identity == self.requested

	def relates(self, a: IdentityRef, b: IdentityRef) -> bool:
		"""True when the edge joins ``a`` and ``b`` in either direction."""
		return (self.requester == a and self.requested == b) or (self.requester == b and self.requested == a)

	def other(self, identity: IdentityRef) -> IdentityRef:
		"""Return the side of the edge that is not ``identity``."""
		return self.requested if identity == self.requester else self.requester


@dataclass(slots=True, frozen=True)
class PrivacySettings:
	"""Per-identity visibility preferences, one level per dimension."""

	profile: PrivacyLevel = PrivacyLevel.ANYBODY
	search: PrivacyLevel = PrivacyLevel.ANYBODY
	chat_requests: PrivacyLevel = PrivacyLevel.ANYBODY
	friend_requests: PrivacyLevel = PrivacyLevel.ANYBODY

	@classmethod
	def from_mapping(cls, value: Optional[Mapping[str, Any]], *, default: int = PrivacyLevel.ANYBODY) -> "PrivacySettings":
		"""Build settings from stored values, filling unset dimensions with ``default``.

		Accepts both snake_case keys and the camelCase ``chatRequests`` /
		``friendRequests`` spellings. Raises ``ValueError`` for values outside
		the privacy scale.
		"""
		value = value or {}
		levels: dict[str, PrivacyLevel] = {}
		for name in PRIVACY_DIMENSIONS:
			camel = name.split("_")[0] + "".join(part.title() for part in name.split("_")[1:])
			raw = value.get(name, value.get(camel))
			levels[name] = PrivacyLevel(int(raw if raw is not None else default))
		return cls(**levels)


@dataclass(slots=True, frozen=True)
class PrivacyDecision:
	"""What a viewer may do with a target identity, one flag per dimension."""

	relationship: Relationship
	profile: bool
	search: bool
	chat_requests: bool
	friend_requests: bool


@dataclass(slots=True)
class RequestBuckets:
	"""Pending requests involving one identity, split by direction."""

	sent: list[FriendRequest] = field(default_factory=list)
	received: list[FriendRequest] = field(default_factory=list)
