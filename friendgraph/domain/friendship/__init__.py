"""Friendship domain exports."""

from . import audit, policy  # noqa: F401
from .exceptions import (  # noqa: F401
	AlreadyFriends,
	DuplicatePendingRequest,
	FriendshipError,
	IdentityNotFound,
	InvalidArgument,
	MalformedIdentity,
	NotFound,
	RequestConflict,
	RequestNotFound,
	RequestNotPermitted,
	SelfRequestError,
	StoreUnavailable,
)
from .identity import IdentityRecord, IdentityStore, InMemoryIdentityStore  # noqa: F401
from .models import (  # noqa: F401
	EdgeRole,
	FriendRequest,
	FriendshipStatus,
	PrivacyDecision,
	PrivacyLevel,
	PrivacySettings,
	Relationship,
	RequestBuckets,
)
from .service import FriendshipEngine  # noqa: F401
from .store import InMemoryRelationshipStore, RelationshipStore  # noqa: F401
