"""Async, failure-tolerant facade over the Meilisearch index.

``RemoteIndexGateway`` runs the blocking ``MeiliClient`` calls in worker
threads (bounded by the shared request semaphore) and never lets an
exception reach the caller:

* transport errors, non-2xx statuses and malformed bodies become ``[]``
  (reads), ``False`` (upsert / bootstrap) or a logged no-op (deletes);
* empty batch input is a no-op that performs no I/O.

The local optimistic view stays available whatever the index does.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pydantic import ValidationError

from ..core.async_utils import run_sync_limited
from ..core.client import IndexAlreadyExists, MeiliClient
from .models import Resource, SearchHit

logger = logging.getLogger(__name__)


class RemoteIndexGateway:
    """The four remote catalog operations plus bootstrap and full scan.

    Args:
        client: Blocking HTTP client bound to one index.
        ranking_rules: Optional ranking rules applied on bootstrap.
    """

    def __init__(
        self,
        client: MeiliClient,
        ranking_rules: list[str] | None = None,
    ) -> None:
        self.client = client
        self.ranking_rules = ranking_rules

    async def health(self) -> bool:
        try:
            return await run_sync_limited(self.client.health)
        except Exception as exc:
            logger.warning("Index health check failed: %s", exc)
            return False

    async def ensure_index_ready(self) -> bool:
        """Create the index if needed and (re)apply its settings.

        An index that already exists counts as success.
        """
        try:
            await run_sync_limited(self.client.create_index)
            logger.info("Created index '%s'", self.client.index_uid)
        except IndexAlreadyExists:
            logger.debug("Index '%s' already exists", self.client.index_uid)
        except Exception as exc:
            logger.warning(
                "Index bootstrap failed for '%s': %s",
                self.client.index_uid,
                exc,
            )
            return False

        try:
            await run_sync_limited(
                self.client.update_settings, self.ranking_rules
            )
        except Exception as exc:
            logger.warning("Applying index settings failed: %s", exc)
            return False
        return True

    async def fetch_all(self, limit: int) -> list[Resource]:
        """Best-effort full scan; ``[]`` on any failure.

        Documents that do not validate as a ``Resource`` are dropped.
        """
        try:
            documents = await run_sync_limited(
                self.client.get_documents, limit
            )
        except Exception as exc:
            logger.error("Unable to pull documents from index: %s", exc)
            return []

        records: list[Resource] = []
        for document in documents:
            try:
                records.append(Resource.model_validate(document))
            except ValidationError as exc:
                doc_id = (
                    document.get("id") if isinstance(document, dict) else None
                )
                logger.warning(
                    "Skipping malformed document %r: %s",
                    doc_id,
                    exc.errors()[0]["msg"] if exc.errors() else exc,
                )
        return records

    async def upsert(self, records: Sequence[Resource]) -> bool:
        """Write *records* in one batch. Empty input succeeds without I/O."""
        if not records:
            return True
        documents = [record.to_document() for record in records]
        try:
            await run_sync_limited(self.client.add_documents, documents)
        except Exception as exc:
            logger.error(
                "Upserting %d document(s) failed: %s", len(documents), exc
            )
            return False
        return True

    async def remove(self, resource_id: str) -> None:
        """Fire-and-forget single delete; failures are only logged."""
        try:
            await run_sync_limited(self.client.delete_document, resource_id)
        except Exception as exc:
            logger.error("Deleting document %s failed: %s", resource_id, exc)

    async def remove_batch(self, resource_ids: Sequence[str]) -> None:
        """Fire-and-forget batch delete; failures are only logged."""
        if not resource_ids:
            return
        try:
            await run_sync_limited(
                self.client.delete_documents, list(resource_ids)
            )
        except Exception as exc:
            logger.error(
                "Batch delete of %d document(s) failed: %s",
                len(resource_ids),
                exc,
            )

    async def search(self, query: str, limit: int) -> list[SearchHit]:
        """Ranked hits for *query*; ``[]`` for a blank query or any failure."""
        if not query.strip():
            return []
        try:
            raw_hits = await run_sync_limited(
                self.client.search, query, limit
            )
        except Exception as exc:
            logger.error("Search for %r failed: %s", query, exc)
            return []

        hits: list[SearchHit] = []
        for raw in raw_hits:
            if not isinstance(raw, dict) or raw.get("id") is None:
                logger.debug("Ignoring hit without id: %r", raw)
                continue
            score = raw.get("_rankingScore")
            try:
                hits.append(
                    SearchHit(
                        id=str(raw["id"]),
                        relevance_score=1.0 if score is None else score,
                    )
                )
            except ValidationError:
                logger.debug("Ignoring hit with bad score: %r", raw)
        return hits
