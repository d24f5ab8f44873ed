"""Identity store contract consumed by the friendship engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol

from friendgraph.domain.friendship.exceptions import IdentityNotFound
from friendgraph.domain.friendship.models import IdentityRef, PrivacySettings
from friendgraph.settings import settings


class IdentityStore(Protocol):
	async def resolve_by_handle(self, handle: str) -> Optional[IdentityRef]:
		...

	async def get_privacy_settings(self, identity: IdentityRef) -> PrivacySettings:
		...

	async def exists_all(self, identities: Iterable[IdentityRef]) -> bool:
		...


def default_privacy() -> PrivacySettings:
	"""Privacy for an identity that never chose its own, at the configured default level."""
	return PrivacySettings.from_mapping(None, default=settings.privacy_default)


@dataclass(slots=True)
class IdentityRecord:
	id: IdentityRef
	handle: str
	privacy: PrivacySettings = field(default_factory=default_privacy)


class InMemoryIdentityStore(IdentityStore):
	"""Identity lookups backed by a dict; handles are matched case-insensitively."""

	def __init__(self, records: Iterable[IdentityRecord] = ()) -> None:
		self._by_id: dict[IdentityRef, IdentityRecord] = {}
		self._by_handle: dict[str, IdentityRef] = {}
		for record in records:
			self.add(record)

	def add(self, record: IdentityRecord) -> IdentityRecord:
		self._by_id[record.id] = record
		self._by_handle[record.handle.lower()] = record.id
		return record

	def register(self, identity: IdentityRef, handle: Optional[str] = None, privacy: Optional[PrivacySettings] = None) -> IdentityRecord:
		return self.add(IdentityRecord(id=identity, handle=handle or identity, privacy=privacy or default_privacy()))

	def set_privacy(self, identity: IdentityRef, privacy: PrivacySettings) -> None:
		record = self._by_id.get(identity)
		if record is None:
			raise IdentityNotFound()
		record.privacy = privacy

	async def resolve_by_handle(self, handle: str) -> Optional[IdentityRef]:
		return self._by_handle.get(handle.lower())

	async def get_privacy_settings(self, identity: IdentityRef) -> PrivacySettings:
		record = self._by_id.get(identity)
		if record is None:
			raise IdentityNotFound()
		return record.privacy

	async def exists_all(self, identities: Iterable[IdentityRef]) -> bool:
		return all(identity in self._by_id for identity in identities)
