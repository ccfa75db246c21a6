"""In-memory record store and the batch selection set.

``RecordStore`` is the client's current belief about catalog state: an
ordered collection holding at most one record per id. All operations are
synchronous and touch nothing but the store itself.

``SelectionSet`` holds ids marked for a batch operation and never refers
to an id the store does not hold.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from .models import Resource

logger = logging.getLogger(__name__)


class RecordStore:
    """Ordered collection of resources keyed by id."""

    def __init__(self, records: Iterable[Resource] = ()) -> None:
        self._order: list[str] = []
        self._records: dict[str, Resource] = {}
        if records:
            self.replace_all(records)

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, resource_id: object) -> bool:
        return resource_id in self._records

    def get_all(self) -> list[Resource]:
        """Return the records in store order (a fresh list)."""
        return [self._records[rid] for rid in self._order]

    def get(self, resource_id: str) -> Resource | None:
        return self._records.get(resource_id)

    def ids(self) -> set[str]:
        return set(self._records)

    def replace_all(self, records: Iterable[Resource]) -> None:
        """Replace the whole content, keeping the first copy of a repeated id."""
        order: list[str] = []
        by_id: dict[str, Resource] = {}
        duplicates: list[str] = []
        for record in records:
            if record.id in by_id:
                duplicates.append(record.id)
                continue
            by_id[record.id] = record
            order.append(record.id)
        if duplicates:
            logger.warning(
                "Dropped %d duplicate record(s): %s",
                len(duplicates),
                ", ".join(duplicates),
            )
        self._order = order
        self._records = by_id

    def upsert_local(self, record: Resource) -> bool:
        """Insert *record* at the front, or replace the existing one in place.

        Returns:
            ``True`` if the record was new.
        """
        if record.id in self._records:
            self._records[record.id] = record
            return False
        self._records[record.id] = record
        self._order.insert(0, record.id)
        return True

    def remove_local(self, resource_id: str) -> bool:
        """Remove one record. Returns ``False`` if the id was absent."""
        if self._records.pop(resource_id, None) is None:
            return False
        self._order.remove(resource_id)
        return True

    def remove_local_batch(self, resource_ids: Iterable[str]) -> int:
        """Remove every listed id that is present; returns how many went."""
        doomed = {rid for rid in resource_ids if rid in self._records}
        if not doomed:
            return 0
        for rid in doomed:
            del self._records[rid]
        self._order = [rid for rid in self._order if rid not in doomed]
        return len(doomed)

    def all_tags(self) -> list[str]:
        """Sorted union of the tags of every record."""
        tags: set[str] = set()
        for record in self._records.values():
            tags.update(record.metadata.tags)
        return sorted(tags)

    def clear(self) -> None:
        self._order = []
        self._records = {}


class SelectionSet:
    """Ids selected for a batch operation, always a subset of the store."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store
        self._ids: set[str] = set()

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, resource_id: object) -> bool:
        return resource_id in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._ids))

    def ids(self) -> list[str]:
        return sorted(self._ids)

    def add(self, resource_id: str) -> bool:
        """Select *resource_id*; ids the store does not hold are ignored."""
        if resource_id not in self._store:
            return False
        self._ids.add(resource_id)
        return True

    def toggle(self, resource_id: str) -> bool:
        """Flip selection of *resource_id*. Returns the new membership."""
        if resource_id in self._ids:
            self._ids.discard(resource_id)
            return False
        return self.add(resource_id)

    def discard(self, resource_id: str) -> None:
        self._ids.discard(resource_id)

    def clear(self) -> None:
        self._ids = set()

    def prune(self) -> int:
        """Drop ids no longer held by the store; returns how many went."""
        stale = self._ids - self._store.ids()
        self._ids -= stale
        return len(stale)
