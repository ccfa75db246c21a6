"""Optimistic mutation reconciler.

Every create, edit and delete is applied to the ``RecordStore``
synchronously, so it is visible immediately, and then propagated to the
index in a background asyncio task:

1. Apply locally (state ``pending``), prune the selection, notify
   ``on_change`` (the session persists its snapshot there).
2. Schedule the remote call without awaiting it.
3. When an upsert returns, mark the id ``committed`` or ``orphaned``.
   An orphaned record stays visible; nothing is rolled back or retried,
   a later full reload settles it. The index accepts a document before
   it is searchable, so a committed record is kept across full reloads
   until a load returns it.

Local applies happen in call order. Remote calls may finish in any order;
a late answer for an older mutation never overwrites the state of a newer
one for the same id (per-id generation counter). Deletes are
fire-and-forget and their outcome is ignored.

All mutating methods must be called from a running event loop.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import string
from collections.abc import Callable, Coroutine
from datetime import datetime
from typing import Any

from .gateway import RemoteIndexGateway
from .models import (
    MutationState,
    Resource,
    ResourceDraft,
    ResourceMetadata,
    utc_now,
)
from .store import RecordStore, SelectionSet

logger = logging.getLogger(__name__)

DEFAULT_RESOURCE_NAME = "Untitled resource"

_ID_ALPHABET = string.ascii_lowercase + string.digits
_ID_LENGTH = 9


def new_resource_id() -> str:
    """Random 9-character lowercase base-36 id."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH))


class MutationReconciler:
    """Apply local mutations and propagate them to the index.

    Args:
        store: The record store this reconciler owns writes to.
        selection: Selection set pruned after every mutation.
        gateway: Remote index gateway.
        on_change: Called with no arguments after each local apply.
        clock: Source of timestamps.
        id_factory: Source of new resource ids.
    """

    def __init__(
        self,
        store: RecordStore,
        selection: SelectionSet,
        gateway: RemoteIndexGateway,
        on_change: Callable[[], None] | None = None,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_resource_id,
    ) -> None:
        self.store = store
        self.selection = selection
        self.gateway = gateway
        self.on_change = on_change
        self._clock = clock
        self._id_factory = id_factory

        self._states: dict[str, MutationState] = {}
        self._generations: dict[str, int] = {}
        self._pending_deletes: dict[str, int] = {}
        self._tasks: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # State queries
    # ------------------------------------------------------------------

    def state_of(self, resource_id: str) -> MutationState | None:
        return self._states.get(resource_id)

    @property
    def pending_ids(self) -> list[str]:
        return self._ids_in(MutationState.PENDING)

    @property
    def orphaned_ids(self) -> list[str]:
        """Ids whose last upsert failed; shown locally, missing remotely."""
        return self._ids_in(MutationState.ORPHANED)

    @property
    def in_flight(self) -> int:
        """Number of remote calls not yet finished."""
        return len(self._tasks)

    def _ids_in(self, state: MutationState) -> list[str]:
        return sorted(rid for rid, st in self._states.items() if st == state)

    # ------------------------------------------------------------------
    # Create / edit
    # ------------------------------------------------------------------

    def create(self, draft: ResourceDraft) -> Resource:
        """Create a new resource from *draft* and publish it."""
        resource_id = self._id_factory()
        while resource_id in self.store:
            resource_id = self._id_factory()

        now = self._clock()
        record = Resource(
            id=resource_id,
            name=(draft.name or "").strip() or DEFAULT_RESOURCE_NAME,
            image=draft.image,
            metadata=draft.metadata or ResourceMetadata(),
            created_at=now,
            updated_at=now,
        )
        self._apply_upsert(record)
        logger.info("Created resource %s (%s)", record.id, record.name)
        return record

    def edit(self, resource_id: str, draft: ResourceDraft) -> Resource:
        """Merge *draft* into an existing resource and publish it.

        Raises:
            ValueError: If *resource_id* is not in the store.
        """
        current = self.store.get(resource_id)
        if current is None:
            raise ValueError(f"Resource {resource_id} not found")

        changes: dict[str, Any] = {"updated_at": self._clock()}
        if draft.name is not None and draft.name.strip():
            changes["name"] = draft.name.strip()
        if draft.image is not None:
            changes["image"] = draft.image or None
        if draft.metadata is not None:
            changes["metadata"] = draft.metadata

        record = current.model_copy(update=changes)
        self._apply_upsert(record)
        logger.info("Edited resource %s", record.id)
        return record

    def _apply_upsert(self, record: Resource) -> None:
        self.store.upsert_local(record)
        generation = self._bump(record.id)
        self._states[record.id] = MutationState.PENDING
        self._after_local_change()
        self._schedule(self._push(record, generation))

    async def _push(self, record: Resource, generation: int) -> None:
        ok = await self.gateway.upsert([record])
        if self._generations.get(record.id) != generation:
            logger.debug(
                "Upsert of %s superseded by a newer mutation", record.id
            )
            return
        if ok:
            self._states[record.id] = MutationState.COMMITTED
        else:
            self._states[record.id] = MutationState.ORPHANED
            logger.warning(
                "Resource %s kept locally but not indexed (orphaned)",
                record.id,
            )

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete(self, resource_id: str, confirmed: bool) -> bool:
        """Delete one resource once the user has confirmed.

        Returns:
            ``True`` if a record was removed. Unconfirmed requests and
            unknown ids are no-ops.
        """
        if not confirmed:
            logger.debug("Delete of %s not confirmed", resource_id)
            return False
        removed = self.store.remove_local(resource_id)
        self.selection.discard(resource_id)
        if not removed:
            return False

        self._forget(resource_id)
        self._after_local_change()
        self._schedule_remove([resource_id])
        logger.info("Deleted resource %s", resource_id)
        return True

    def delete_batch(self, confirmed: bool) -> list[str]:
        """Delete every selected resource once the user has confirmed.

        The selection is cleared before the remote call is issued.

        Returns:
            The ids that were removed.
        """
        if not confirmed:
            logger.debug("Batch delete not confirmed")
            return []
        resource_ids = self.selection.ids()
        self.selection.clear()
        if not resource_ids:
            return []

        self.store.remove_local_batch(resource_ids)
        for resource_id in resource_ids:
            self._forget(resource_id)
        self._after_local_change()
        self._schedule_remove(resource_ids)
        logger.info("Batch deleted %d resource(s)", len(resource_ids))
        return resource_ids

    def _schedule_remove(self, resource_ids: list[str]) -> None:
        # Registered before the task starts so a concurrent reload sees it.
        for resource_id in resource_ids:
            self._pending_deletes[resource_id] = (
                self._pending_deletes.get(resource_id, 0) + 1
            )
        self._schedule(self._remove(resource_ids))

    async def _remove(self, resource_ids: list[str]) -> None:
        try:
            if len(resource_ids) == 1:
                await self.gateway.remove(resource_ids[0])
            else:
                await self.gateway.remove_batch(resource_ids)
        finally:
            for resource_id in resource_ids:
                remaining = self._pending_deletes.get(resource_id, 1) - 1
                if remaining > 0:
                    self._pending_deletes[resource_id] = remaining
                else:
                    self._pending_deletes.pop(resource_id, None)

    # ------------------------------------------------------------------
    # Reload support
    # ------------------------------------------------------------------

    def overlay_pending(self, remote: list[Resource]) -> list[Resource]:
        """Merge a remote full load with local changes the index lacks.

        * a pending upsert wins over the remote copy of the same id, and
          is put at the front if the index does not have it yet;
        * a committed upsert the index has not caught up with (absent
          from the load, or present with an older ``updatedAt``) is kept
          the same way and stays ``committed``;
        * ids with an in-flight delete are left out;
        * every other state is forgotten, the remote copy being
          authoritative once it reflects the last accepted write.
        """
        pending = {
            rid: record
            for rid in self.pending_ids
            if (record := self.store.get(rid)) is not None
        }
        unindexed = {
            rid: record
            for rid in self._ids_in(MutationState.COMMITTED)
            if (record := self.store.get(rid)) is not None
        }
        behind: set[str] = set()
        merged: list[Resource] = []
        for record in remote:
            if record.id in self._pending_deletes:
                continue
            if record.id in pending:
                merged.append(pending.pop(record.id))
                continue
            local = unindexed.pop(record.id, None)
            if local is not None and record.updated_at < local.updated_at:
                behind.add(record.id)
                merged.append(local)
            else:
                merged.append(record)

        fresh = [
            r
            for r in self.store.get_all()
            if r.id in pending or r.id in unindexed
        ]
        behind.update(unindexed)
        if behind:
            logger.debug(
                "Keeping %d committed record(s) not yet indexed", len(behind)
            )
        self._states = {
            rid: st
            for rid, st in self._states.items()
            if st == MutationState.PENDING or rid in behind
        }
        return fresh + merged

    # ------------------------------------------------------------------
    # Task bookkeeping
    # ------------------------------------------------------------------

    async def drain(self) -> None:
        """Wait for every outstanding remote call to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def reset(self) -> None:
        """Forget all mutation states (session teardown).

        Remote calls already issued keep running.
        """
        self._states.clear()
        self._generations.clear()

    def _schedule(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "Remote propagation task failed",
                exc_info=task.exception(),
            )

    def _bump(self, resource_id: str) -> int:
        generation = self._generations.get(resource_id, 0) + 1
        self._generations[resource_id] = generation
        return generation

    def _forget(self, resource_id: str) -> None:
        self._states.pop(resource_id, None)
        self._bump(resource_id)

    def _after_local_change(self) -> None:
        self.selection.prune()
        if self.on_change is not None:
            self.on_change()
