"""Shared pytest fixtures for resource-hub tests."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from resource_hub.catalog.models import Resource, ResourceMetadata, SearchHit
from resource_hub.config import Config

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_config():
    """Create a Config instance for testing (short debounce)."""
    return Config(
        meili_url="http://localhost:7700",
        api_key="test-key",
        index_uid="resources",
        login_user="admin",
        login_password="admin",
        debounce_ms=20,
    )


@pytest.fixture
def make_resource():
    """Factory fixture for Resource records.

    ``age`` is in minutes before BASE_TIME, so higher ages sort later by date.
    """

    def _make(
        resource_id: str,
        name: str | None = None,
        tags: list[str] | None = None,
        rating: int = 5,
        file_size: float = 1.0,
        age: int = 0,
        **metadata,
    ) -> Resource:
        created = BASE_TIME - timedelta(minutes=age)
        return Resource(
            id=resource_id,
            name=name or f"Resource {resource_id}",
            metadata=ResourceMetadata(
                tags=tags or [],
                rating=rating,
                file_size=file_size,
                **metadata,
            ),
            created_at=created,
            updated_at=created,
        )

    return _make


class FakeIndexGateway:
    """In-memory stand-in for RemoteIndexGateway.

    ``documents`` is the index content. ``hits`` maps a query to the hits
    it returns. Set ``gate`` to an ``asyncio.Event`` to hold every remote
    call until the test releases it. With ``lagging`` set, upserts are
    acknowledged but only reach ``documents`` on ``flush_index()``.
    """

    def __init__(self):
        self.documents: dict[str, Resource] = {}
        self.hits: dict[str, list[SearchHit]] = {}
        self.calls: list[tuple] = []
        self.fail_upsert = False
        self.fail_bootstrap = False
        self.available = True
        self.lagging = False
        self.queued: dict[str, Resource] = {}
        self.gate: asyncio.Event | None = None

    async def _hold(self):
        if self.gate is not None:
            await self.gate.wait()

    def seed(self, *records: Resource) -> None:
        for record in records:
            self.documents[record.id] = record

    async def health(self) -> bool:
        return self.available

    async def ensure_index_ready(self) -> bool:
        self.calls.append(("ensure_index_ready",))
        return not self.fail_bootstrap

    async def fetch_all(self, limit: int) -> list[Resource]:
        self.calls.append(("fetch_all", limit))
        await self._hold()
        return list(self.documents.values())[:limit]

    async def upsert(self, records) -> bool:
        ids = [r.id for r in records]
        self.calls.append(("upsert", ids))
        if not records:
            return True
        await self._hold()
        if self.fail_upsert:
            return False
        target = self.queued if self.lagging else self.documents
        for record in records:
            target[record.id] = record
        return True

    def flush_index(self) -> None:
        self.documents.update(self.queued)
        self.queued.clear()

    async def remove(self, resource_id: str) -> None:
        self.calls.append(("remove", resource_id))
        await self._hold()
        self.documents.pop(resource_id, None)

    async def remove_batch(self, resource_ids) -> None:
        self.calls.append(("remove_batch", list(resource_ids)))
        if not resource_ids:
            return
        await self._hold()
        for resource_id in resource_ids:
            self.documents.pop(resource_id, None)

    async def search(self, query: str, limit: int) -> list[SearchHit]:
        self.calls.append(("search", query))
        if not query.strip():
            return []
        await self._hold()
        return self.hits.get(query, [])[:limit]

    def calls_named(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]


@pytest.fixture
def fake_gateway():
    """In-memory index gateway."""
    return FakeIndexGateway()
