"""Wiring helpers that assemble a friendship engine from its stores."""

from __future__ import annotations

from typing import Optional

import asyncpg

from friendgraph import obs
from friendgraph.domain.friendship.identity import IdentityStore, InMemoryIdentityStore
from friendgraph.domain.friendship.service import FriendshipEngine
from friendgraph.domain.friendship.store import InMemoryRelationshipStore
from friendgraph.infra import postgres
from friendgraph.infra.friendship_repo import PostgresIdentityStore, PostgresRelationshipStore


async def create_postgres_engine(
	*,
	pool: Optional[asyncpg.Pool] = None,
	identities: Optional[IdentityStore] = None,
	apply_schema: bool = False,
	fanout_limit: Optional[int] = None,
) -> FriendshipEngine:
	"""Build an engine over PostgreSQL, using the shared pool unless one is given."""
	obs.init()
	pool = pool or await postgres.get_pool()
	relationships = PostgresRelationshipStore(pool)
	if apply_schema:
		await relationships.ensure_schema()
	return FriendshipEngine(
		relationships,
		identities or PostgresIdentityStore(pool),
		fanout_limit=fanout_limit,
	)


def create_memory_engine(
	identities: Optional[InMemoryIdentityStore] = None,
	*,
	fanout_limit: Optional[int] = None,
) -> FriendshipEngine:
	return FriendshipEngine(
		InMemoryRelationshipStore(),
		identities or InMemoryIdentityStore(),
		fanout_limit=fanout_limit,
	)
