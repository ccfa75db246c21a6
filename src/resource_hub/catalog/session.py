"""Catalog session: the explicit context object owning all catalog state.

A ``CatalogSession`` wires the record store, selection, reconciler and
query engine together and holds the view state (tag filter, sort key).
Nothing is reachable before ``login()`` succeeds.

Lifecycle:

* ``login()`` checks credentials, then ``start()`` makes sure the index
  exists and seeds the store from the snapshot (republishing it to the
  index) or, without a snapshot, from a remote full load.
* Every local mutation and every full load rewrites the snapshot.
* ``logout()`` cancels the pending debounce and clears the in-memory
  store, selection, tag filter and query. The snapshot file is kept.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from ..config import Config
from .auth import check_credentials
from .gateway import RemoteIndexGateway
from .models import Resource, ResourceDraft, SortKey
from .projection import available_sort_keys, project
from .query import QueryEngine
from .reconciler import MutationReconciler
from .snapshot import SnapshotStore
from .store import RecordStore, SelectionSet

logger = logging.getLogger(__name__)


class CatalogSession:
    """One user's view of the catalog.

    Args:
        config: Runtime configuration (credentials, limits, debounce).
        gateway: Remote index gateway.
        snapshot: Optional snapshot persistence.
    """

    def __init__(
        self,
        config: Config,
        gateway: RemoteIndexGateway,
        snapshot: SnapshotStore | None = None,
    ) -> None:
        self.config = config
        self.gateway = gateway
        self.snapshot = snapshot
        self.authenticated = False

        self.store = RecordStore()
        self.selection = SelectionSet(self.store)
        self.reconciler = MutationReconciler(
            self.store,
            self.selection,
            gateway,
            on_change=self._persist,
        )
        self.query = QueryEngine(
            self.store,
            gateway,
            overlay=self.reconciler.overlay_pending,
            on_reload=self._after_reload,
            debounce_delay=config.debounce_seconds,
            search_limit=config.search_limit,
            fetch_limit=config.fetch_limit,
        )
        self.selected_tags: list[str] = []
        self.sort_key = SortKey.DATE

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def login(self, username: str, password: str) -> bool:
        """Open the session if the credentials match the configured ones."""
        if not check_credentials(
            username,
            password,
            self.config.login_user,
            self.config.login_password,
        ):
            logger.warning("Rejected login for user %r", username)
            return False
        if self.authenticated:
            return True
        self.authenticated = True
        logger.info("User %r logged in", username)
        await self.start()
        return True

    async def start(self) -> None:
        """Bootstrap the index and seed the record store."""
        if not await self.gateway.ensure_index_ready():
            logger.warning("Index not ready; continuing with local state")

        records = self.snapshot.load() if self.snapshot else None
        if records is None:
            await self.query.reload()
            return

        self.store.replace_all(records)
        self.query.mark_loaded()
        logger.info("Loaded %d record(s) from snapshot", len(self.store))
        if len(self.store) and not await self.gateway.upsert(
            self.store.get_all()
        ):
            logger.warning("Republishing the snapshot to the index failed")

    def logout(self) -> None:
        """Close the session and drop all in-memory catalog state."""
        self.authenticated = False
        self.query.reset()
        self.reconciler.reset()
        self.selection.clear()
        self.store.clear()
        self.selected_tags = []
        self.sort_key = SortKey.DATE
        logger.info("Session closed")

    async def close(self) -> None:
        """Wait for outstanding remote work, then log out."""
        await self.query.settle()
        await self.reconciler.drain()
        if self.authenticated:
            self.logout()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def view(self) -> list[Resource]:
        """The list the user sees: current record set, filtered and sorted."""
        return project(
            self.query.results(),
            self.selected_tags,
            self.sort_key,
            self.query.has_active_query,
            self.query.scores(),
        )

    def available_tags(self) -> list[str]:
        return self.store.all_tags()

    def sort_options(self) -> list[SortKey]:
        return available_sort_keys(self.query.has_active_query)

    def set_query(self, text: str) -> None:
        """Keystroke entry point (debounced)."""
        self.query.set_query(text)

    async def search(self, text: str) -> list[Resource]:
        """Run *text* immediately and return the resulting view."""
        await self.query.search_now(text)
        return self.view()

    async def reload(self) -> int:
        """Force a full load from the index; returns the store size."""
        await self.query.reload()
        return len(self.store)

    def toggle_tag(self, tag: str) -> list[str]:
        if tag in self.selected_tags:
            self.selected_tags = [t for t in self.selected_tags if t != tag]
        else:
            self.selected_tags = [*self.selected_tags, tag]
        return self.selected_tags

    def set_tags(self, tags: Iterable[str]) -> None:
        self.selected_tags = list(dict.fromkeys(tags))

    def set_sort(self, key: SortKey | str) -> SortKey:
        self.sort_key = SortKey(key)
        return self.sort_key

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, draft: ResourceDraft) -> Resource:
        return self.reconciler.create(draft)

    def edit(self, resource_id: str, draft: ResourceDraft) -> Resource:
        return self.reconciler.edit(resource_id, draft)

    def delete(self, resource_id: str, confirmed: bool) -> bool:
        return self.reconciler.delete(resource_id, confirmed)

    def delete_selected(self, confirmed: bool) -> list[str]:
        return self.reconciler.delete_batch(confirmed)

    def select(self, resource_ids: Iterable[str]) -> list[str]:
        """Add ids to the selection; unknown ids are ignored."""
        for resource_id in resource_ids:
            self.selection.add(resource_id)
        return self.selection.ids()

    def deselect(self, resource_ids: Iterable[str]) -> list[str]:
        for resource_id in resource_ids:
            self.selection.discard(resource_id)
        return self.selection.ids()

    def toggle_select(self, resource_id: str) -> bool:
        return self.selection.toggle(resource_id)

    def clear_selection(self) -> None:
        self.selection.clear()

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def status(self) -> dict[str, Any]:
        return {
            "authenticated": self.authenticated,
            "records": len(self.store),
            "selected": self.selection.ids(),
            "query": self.query.query,
            "tags": list(self.selected_tags),
            "sort": self.sort_key.value,
            "pending": self.reconciler.pending_ids,
            "orphaned": self.reconciler.orphaned_ids,
            "in_flight": self.reconciler.in_flight,
        }

    def _after_reload(self) -> None:
        dropped = self.selection.prune()
        if dropped:
            logger.info("Dropped %d selected id(s) missing after reload", dropped)
        self._persist()

    def _persist(self) -> None:
        if self.snapshot is None or not self.authenticated:
            return
        try:
            self.snapshot.save(self.store.get_all())
        except OSError as exc:
            logger.error("Failed to write snapshot: %s", exc)
