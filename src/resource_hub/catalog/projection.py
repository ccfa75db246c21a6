"""View projection: tag filter plus sort over the current record set.

Pure functions; the record store is never touched. Python's sort is
stable, so ties keep their input order and sorting twice is a no-op.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from .models import Resource, SortKey


def filter_by_tags(
    records: Iterable[Resource], selected_tags: Iterable[str]
) -> list[Resource]:
    """Keep records carrying *every* selected tag (empty selection keeps all)."""
    wanted = set(selected_tags)
    if not wanted:
        return list(records)
    return [r for r in records if wanted.issubset(r.metadata.tags)]


def available_sort_keys(has_active_query: bool) -> list[SortKey]:
    """Sort keys worth offering; relevance only makes sense while searching."""
    keys = [SortKey.DATE, SortKey.RATING, SortKey.SIZE]
    if has_active_query:
        keys.append(SortKey.RELEVANCE)
    return keys


def project(
    records: Sequence[Resource],
    selected_tags: Iterable[str] = (),
    sort_key: SortKey | str = SortKey.DATE,
    has_active_query: bool = False,
    scores: Mapping[str, float] | None = None,
) -> list[Resource]:
    """Derive the displayed sequence.

    Args:
        records: Record set currently held by the query engine.
        selected_tags: Tags that must all be present (logical AND).
        sort_key: ``date``, ``rating``, ``size`` or ``relevance``.
        has_active_query: Whether a search query is active.
        scores: Relevance score per id, used by ``relevance``.

    Returns:
        A new list; *records* is left untouched.
    """
    key = SortKey(sort_key)
    visible = filter_by_tags(records, selected_tags)

    match key:
        case SortKey.DATE:
            visible.sort(key=lambda r: r.created_at, reverse=True)
        case SortKey.RATING:
            visible.sort(key=lambda r: r.metadata.rating, reverse=True)
        case SortKey.SIZE:
            visible.sort(key=lambda r: r.metadata.file_size, reverse=True)
        case SortKey.RELEVANCE:
            if has_active_query and scores:
                visible.sort(
                    key=lambda r: scores.get(r.id, 0.0), reverse=True
                )
    return visible
