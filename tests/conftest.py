import sys
from pathlib import Path

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis

# Ensure the package is importable when tests run from a plain checkout
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
	sys.path.insert(0, str(PROJECT_ROOT))

from friendgraph.domain.friendship import FriendshipEngine, InMemoryIdentityStore, InMemoryRelationshipStore
from friendgraph.domain.friendship.models import FriendshipStatus
from friendgraph.settings import settings


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from friendgraph.infra.redis import redis_client, set_redis_client
	original = redis_client.client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture(autouse=True)
def force_test_settings():
	original_env = settings.environment
	original_audit = settings.audit_enabled
	settings.environment = "dev"
	settings.audit_enabled = True
	try:
		yield
	finally:
		settings.environment = original_env
		settings.audit_enabled = original_audit


@pytest.fixture
def identities():
	store = InMemoryIdentityStore()
	for name in ("alice", "bob", "carol", "dave", "erin", "frank"):
		store.register(name, handle=f"{name}@example.com")
	return store


@pytest.fixture
def relationships():
	return InMemoryRelationshipStore()


@pytest.fixture
def engine(relationships, identities):
	return FriendshipEngine(relationships, identities, fanout_limit=4)


async def befriend(engine: FriendshipEngine, requester: str, requested: str) -> None:
	"""Send and accept a request so the two identities become friends."""
	edge = await engine.send_request(requester, f"{requested}@example.com")
	assert edge is not None and edge.status is FriendshipStatus.PENDING
	await engine.accept_request(requester, requested)


@pytest.fixture
def make_friends(engine):
	async def _make(*pairs: tuple[str, str]) -> None:
		for requester, requested in pairs:
			await befriend(engine, requester, requested)

	return _make
