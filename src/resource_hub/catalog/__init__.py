"""Catalog synchronization and merge engine.

Keeps a local, optimistically updated view of resource records in step
with an eventually consistent Meilisearch index, and merges full-text
search results with the local tag filter and sort order.

Modules:

- ``models``      -- ``Resource``, ``ResourceMetadata``, ``ResourceDraft``,
  ``SearchHit``, ``SortKey``, ``MutationState``.
- ``store``       -- ``RecordStore`` and ``SelectionSet``.
- ``gateway``     -- ``RemoteIndexGateway``: failure-tolerant index access.
- ``reconciler``  -- ``MutationReconciler``: optimistic writes.
- ``query``       -- ``QueryEngine``: debounced search / full-catalog mode.
- ``projection``  -- ``project()``: tag filter plus stable sort.
- ``snapshot``    -- ``SnapshotStore``: JSON snapshot of the store.
- ``session``     -- ``CatalogSession``: explicit context object.
- ``reporter``    -- text and JSON renderings.

Usage example
-------------
::

    from resource_hub.catalog import CatalogSession, RemoteIndexGateway
    from resource_hub.core.client import MeiliClient

    session = CatalogSession(config, RemoteIndexGateway(MeiliClient(config)))
    await session.login("admin", "admin")
    session.create(ResourceDraft(name="demo", metadata=ResourceMetadata(tags=["x"])))
    print(format_resource_list(session.view()))
"""

from .gateway import RemoteIndexGateway
from .models import (
    MutationState,
    Resource,
    ResourceDraft,
    ResourceMetadata,
    SearchHit,
    SortKey,
)
from .projection import project
from .query import QueryEngine
from .reconciler import MutationReconciler
from .reporter import format_resource_list, resource_to_json
from .session import CatalogSession
from .snapshot import SnapshotStore
from .store import RecordStore, SelectionSet

__all__ = [
    "CatalogSession",
    "MutationReconciler",
    "MutationState",
    "QueryEngine",
    "RecordStore",
    "RemoteIndexGateway",
    "Resource",
    "ResourceDraft",
    "ResourceMetadata",
    "SearchHit",
    "SelectionSet",
    "SnapshotStore",
    "SortKey",
    "format_resource_list",
    "project",
    "resource_to_json",
]
