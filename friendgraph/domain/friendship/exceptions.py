"""Domain-level exceptions for friend requests & friendships."""

from __future__ import annotations

from typing import Optional


class FriendshipError(Exception):
	"""Base class for friendship engine failures.

	``reason`` is a short machine-readable code; ``operation`` names the
	transition or query that was running when the failure happened.
	"""

	reason: str = "unknown"
	operation: Optional[str] = None

	def __init__(self, reason: str | None = None, *, operation: str | None = None) -> None:
		super().__init__(reason or self.reason)
		if reason:
			self.reason = reason
		if operation:
			self.operation = operation

	def with_operation(self, operation: str) -> "FriendshipError":
		if self.operation is None:
			self.operation = operation
		return self


class NotFound(FriendshipError):
	reason = "not_found"


class RequestNotFound(NotFound):
	reason = "request_missing"

	def __str__(self) -> str:
		return "request does not exist"


class IdentityNotFound(NotFound):
	reason = "identity_missing"


class RequestConflict(FriendshipError):
	reason = "conflict"


class DuplicatePendingRequest(RequestConflict):
	reason = "already_pending"


class AlreadyFriends(RequestConflict):
	reason = "already_friends"


class RequestNotPermitted(FriendshipError):
	reason = "not_permitted"


class InvalidArgument(FriendshipError):
	reason = "invalid_argument"


class SelfRequestError(InvalidArgument):
	reason = "self_request"


class MalformedIdentity(InvalidArgument):
	reason = "malformed_id"


class StoreUnavailable(FriendshipError):
	"""Raised when a backing store fails; the original error is chained as ``__cause__``."""

	reason = "store_unavailable"

	def __init__(self, operation: str, cause: BaseException | None = None) -> None:
		detail = f"{operation}: {type(cause).__name__}" if cause is not None else operation
		super().__init__(self.reason, operation=operation)
		self.args = (detail,)
		self.cause = cause
