"""Query/merge engine.

Two modes, chosen by whether the trimmed query is empty:

* **Full catalog** -- the visible set is the whole record store. The first
  time this mode is entered without a prior full load, ``reload()`` pulls
  every document from the index.
* **Search** -- the index returns ranked ``SearchHit`` pointers which are
  resolved against the record store by id. Hits with no local record are
  dropped.

Keystrokes go through ``set_query()``, which debounces: the refresh runs
only after a quiet period, and a trigger still waiting is superseded by
the next one. A refresh already dispatched is not cancelled; instead each
refresh takes a sequence number and its response is discarded unless it
is still the latest one issued.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..core.async_utils import Debouncer
from .gateway import RemoteIndexGateway
from .models import Resource, SearchHit
from .store import RecordStore

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.3


class QueryEngine:
    """Serve the record set the view projection works on.

    Args:
        store: Shared record store.
        gateway: Remote index gateway.
        overlay: Merges a remote full load with local in-flight state
            before it replaces the store (see
            ``MutationReconciler.overlay_pending``).
        on_reload: Called after a full load replaced the store.
        debounce_delay: Quiet period in seconds.
        search_limit: Hits requested per search.
        fetch_limit: Documents requested per full load.
    """

    def __init__(
        self,
        store: RecordStore,
        gateway: RemoteIndexGateway,
        overlay: Callable[[list[Resource]], list[Resource]] | None = None,
        on_reload: Callable[[], None] | None = None,
        debounce_delay: float = DEFAULT_DEBOUNCE_SECONDS,
        search_limit: int = 200,
        fetch_limit: int = 1000,
    ) -> None:
        self.store = store
        self.gateway = gateway
        self.overlay = overlay
        self.on_reload = on_reload
        self.search_limit = search_limit
        self.fetch_limit = fetch_limit
        self.debouncer = Debouncer(debounce_delay)

        self.query = ""
        self.loaded = False
        self._hits: list[SearchHit] | None = None
        self._search_seq = 0
        self._load_seq = 0

    @property
    def has_active_query(self) -> bool:
        return bool(self.query.strip())

    @property
    def hits(self) -> list[SearchHit] | None:
        """Hits of the last applied search, ``None`` in full-catalog mode."""
        return self._hits

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def set_query(self, text: str) -> None:
        """Record a keystroke; the refresh fires after the quiet period."""
        self.query = text
        self.debouncer.trigger(self.refresh)

    async def search_now(self, text: str) -> bool:
        """Set the query and refresh immediately, skipping the debounce."""
        self.debouncer.cancel()
        self.query = text
        return await self.refresh()

    async def settle(self) -> None:
        """Wait for any debounced refresh that is still scheduled or running."""
        await self.debouncer.wait()

    def reset(self) -> None:
        """Drop the query and any scheduled refresh (session teardown)."""
        self.debouncer.cancel()
        self.query = ""
        self._hits = None
        self.loaded = False
        self._search_seq += 1
        self._load_seq += 1

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    async def refresh(self) -> bool:
        """Bring the visible set in line with the current query.

        Returns:
            ``False`` if the response was discarded as stale.
        """
        self._search_seq += 1
        ticket = self._search_seq
        query = self.query.strip()

        if not query:
            self._hits = None
            if not self.loaded:
                return await self.reload()
            return True

        hits = await self.gateway.search(query, self.search_limit)
        if ticket != self._search_seq:
            logger.debug("Discarding stale results for %r", query)
            return False
        self._hits = hits
        logger.debug("Search %r returned %d hit(s)", query, len(hits))
        return True

    async def reload(self) -> bool:
        """Pull every document from the index and replace the store."""
        self._load_seq += 1
        ticket = self._load_seq
        records = await self.gateway.fetch_all(self.fetch_limit)
        if ticket != self._load_seq:
            logger.debug("Discarding stale full load")
            return False
        if not records and len(self.store):
            # A failed fetch also yields nothing; keep what we have.
            logger.warning(
                "Full load returned no documents; keeping %d local record(s)",
                len(self.store),
            )
            self.loaded = True
            return True

        if self.overlay is not None:
            records = self.overlay(records)
        self.store.replace_all(records)
        self.loaded = True
        logger.info("Full load applied: %d record(s)", len(self.store))
        if self.on_reload is not None:
            self.on_reload()
        return True

    def mark_loaded(self) -> None:
        """Treat the current store content as the baseline full load."""
        self.loaded = True

    # ------------------------------------------------------------------
    # Merge
    # ------------------------------------------------------------------

    def results(self) -> list[Resource]:
        """Records backing the view, in index rank order while searching."""
        if self._hits is None or not self.has_active_query:
            return self.store.get_all()

        resolved: list[Resource] = []
        for hit in self._hits:
            record = self.store.get(hit.id)
            if record is None:
                logger.debug("Dropping hit %s with no local record", hit.id)
                continue
            resolved.append(record)
        return resolved

    def scores(self) -> dict[str, float]:
        """Relevance score per id for the current search (empty otherwise)."""
        if self._hits is None or not self.has_active_query:
            return {}
        return {hit.id: hit.relevance_score for hit in self._hits}
