"""PostgreSQL-backed relationship and identity stores."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Optional, Sequence
from uuid import UUID, uuid4

import asyncpg

from friendgraph.domain.friendship.exceptions import (
	IdentityNotFound,
	InvalidArgument,
	RequestConflict,
	RequestNotFound,
	SelfRequestError,
)
from friendgraph.domain.friendship.identity import IdentityStore
from friendgraph.domain.friendship.models import (
	EdgeRole,
	FriendRequest,
	FriendshipStatus,
	IdentityRef,
	PrivacySettings,
)
from friendgraph.domain.friendship.policy import guard_not_self
from friendgraph.domain.friendship.store import RelationshipStore
from friendgraph.settings import settings

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"

_EDGE_COLUMNS = "id, requester_id, requested_id, status, date_sent, date_accepted"

_ROLE_COLUMNS = {
	EdgeRole.REQUESTER: "requester_id",
	EdgeRole.REQUESTED: "requested_id",
}


def _row_to_edge(row: asyncpg.Record) -> FriendRequest:
	return FriendRequest.from_record(dict(row))


class PostgresRelationshipStore(RelationshipStore):
	"""Stores friend-request edges in the ``friend_requests`` table."""

	def __init__(self, pool: asyncpg.Pool) -> None:
		self._pool = pool

	async def ensure_schema(self) -> None:
		for path in sorted(MIGRATIONS_DIR.glob("*.sql")):
			await self._pool.execute(path.read_text())

	async def create_request(self, requester: IdentityRef, requested: IdentityRef) -> FriendRequest:
		guard_not_self(requester, requested)
		try:
			row = await self._pool.fetchrow(
				f"""
				INSERT INTO friend_requests (id, requester_id, requested_id, status)
				VALUES ($1, $2, $3, 'pending')
				RETURNING {_EDGE_COLUMNS}
				""",
				uuid4(),
				requester,
				requested,
			)
		except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
			raise RequestConflict() from exc
		except asyncpg.CheckViolationError as exc:  # type: ignore[attr-defined]
			raise SelfRequestError() from exc
		if row is None:  # pragma: no cover
			raise RuntimeError("Failed to insert friend request")
		return _row_to_edge(row)

	async def find_edge(
		self,
		a: IdentityRef,
		b: IdentityRef,
		status: Optional[FriendshipStatus] = None,
	) -> Optional[FriendRequest]:
		row = await self._pool.fetchrow(
			f"""
			SELECT {_EDGE_COLUMNS}
			FROM friend_requests
			WHERE ((requester_id = $1 AND requested_id = $2) OR (requester_id = $2 AND requested_id = $1))
			  AND ($3::text IS NULL OR status = $3::text)
			LIMIT 1
			""",
			a,
			b,
			status.value if status else None,
		)
		return _row_to_edge(row) if row else None

	async def find_pending(self, role: EdgeRole, identity: IdentityRef) -> Sequence[FriendRequest]:
		column = _ROLE_COLUMNS[EdgeRole(role)]
		rows = await self._pool.fetch(
			f"""
			SELECT {_EDGE_COLUMNS}
			FROM friend_requests
			WHERE {column} = $1 AND status = 'pending'
			ORDER BY date_sent, id
			""",
			identity,
		)
		return [_row_to_edge(row) for row in rows]

	async def accept(self, requester: IdentityRef, requested: IdentityRef) -> FriendRequest:
		row = await self._pool.fetchrow(
			f"""
			UPDATE friend_requests
			SET status = 'accepted', date_accepted = NOW()
			WHERE requester_id = $1 AND requested_id = $2 AND status = 'pending'
			RETURNING {_EDGE_COLUMNS}
			""",
			requester,
			requested,
		)
		if row is None:
			raise RequestNotFound()
		return _row_to_edge(row)

	async def deny(self, requester: IdentityRef, requested: IdentityRef) -> FriendRequest:
		row = await self._pool.fetchrow(
			f"""
			DELETE FROM friend_requests
			WHERE requester_id = $1 AND requested_id = $2 AND status = 'pending'
			RETURNING {_EDGE_COLUMNS}
			""",
			requester,
			requested,
		)
		if row is None:
			raise RequestNotFound()
		return _row_to_edge(row)

	async def friends_of(self, identity: IdentityRef) -> Sequence[IdentityRef]:
		rows = await self._pool.fetch(
			"""
			SELECT CASE WHEN requester_id = $1 THEN requested_id ELSE requester_id END AS friend_id
			FROM friend_requests
			WHERE (requester_id = $1 OR requested_id = $1) AND status = 'accepted'
			ORDER BY date_sent, id
			""",
			identity,
		)
		return [str(row["friend_id"]) for row in rows]

	async def get(self, edge_id: UUID) -> Optional[FriendRequest]:
		row = await self._pool.fetchrow(
			f"SELECT {_EDGE_COLUMNS} FROM friend_requests WHERE id = $1",
			edge_id,
		)
		return _row_to_edge(row) if row else None


def _coerce_privacy(value: object) -> PrivacySettings:
	try:
		if isinstance(value, str):
			value = json.loads(value)
		return PrivacySettings.from_mapping(value if isinstance(value, dict) else None, default=settings.privacy_default)
	except (ValueError, TypeError) as exc:
		raise InvalidArgument("invalid_privacy") from exc


class PostgresIdentityStore(IdentityStore):
	"""Reads identities from the host application's ``users`` table."""

	def __init__(self, pool: asyncpg.Pool) -> None:
		self._pool = pool

	async def resolve_by_handle(self, handle: str) -> Optional[IdentityRef]:
		value = await self._pool.fetchval(
			"SELECT id::text FROM users WHERE lower(handle) = lower($1) AND deleted_at IS NULL",
			handle,
		)
		return str(value) if value is not None else None

	async def get_privacy_settings(self, identity: IdentityRef) -> PrivacySettings:
		row = await self._pool.fetchrow(
			"SELECT privacy FROM users WHERE id::text = $1 AND deleted_at IS NULL",
			identity,
		)
		if not row:
			raise IdentityNotFound()
		return _coerce_privacy(row["privacy"])

	async def exists_all(self, identities: Iterable[IdentityRef]) -> bool:
		unique_ids = list({str(identity) for identity in identities})
		if not unique_ids:
			return True
		rows = await self._pool.fetch(
			"SELECT id::text AS id FROM users WHERE id::text = ANY($1::text[]) AND deleted_at IS NULL",
			unique_ids,
		)
		found = {str(row["id"]) for row in rows}
		return len(found) == len(unique_ids)
