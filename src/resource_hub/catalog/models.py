"""Pydantic models for the resource catalog.

Defines the data contracts shared by every catalog module:

- ``ResourceMetadata``: Descriptive fields of a resource.
- ``Resource``: One catalog record, identified by ``id``.
- ``ResourceDraft``: User-supplied fields for a create or edit.
- ``SearchHit``: Ranked pointer into the record store.
- ``SortKey``: Orderings offered by the view projection.
- ``MutationState``: Sync state of the last local mutation of an id.

Wire names are camelCase (``createdAt``, ``fileSize``) to match the
documents stored in the index; Python attributes are snake_case.
All models are frozen (immutable); edits go through ``model_copy``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from ..validators import MAX_RATING, MIN_RATING, normalize_tags

_WIRE_CONFIG = {
    "frozen": True,
    "alias_generator": to_camel,
    "populate_by_name": True,
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SortKey(str, Enum):
    """Orderings for the visible resource list (all descending)."""

    DATE = "date"
    RATING = "rating"
    SIZE = "size"
    RELEVANCE = "relevance"


class MutationState(str, Enum):
    """Where a local mutation stands relative to the remote index."""

    PENDING = "pending"
    COMMITTED = "committed"
    ORPHANED = "orphaned"


class ResourceMetadata(BaseModel):
    """Descriptive fields of a resource.

    Attributes:
        description: Free text.
        source: Where the resource came from.
        file_size: Size in megabytes.
        category: Category label.
        rating: Integer score from 1 to 10.
        tags: Distinct tags, blanks removed.
    """

    description: str = ""
    source: str = ""
    file_size: float = Field(default=0.0, ge=0)
    category: str = "General"
    rating: int = Field(default=5, ge=MIN_RATING, le=MAX_RATING)
    tags: list[str] = Field(default_factory=list)

    model_config = _WIRE_CONFIG

    @field_validator("tags", mode="before")
    @classmethod
    def _clean_tags(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        return normalize_tags(value)


class Resource(BaseModel):
    """One catalog record.

    Attributes:
        id: Opaque client-generated identifier, immutable.
        name: Display name.
        image: Optional image as a data URL / base64 text.
        metadata: Descriptive fields.
        created_at: Set once when the resource is created.
        updated_at: Refreshed on every accepted local edit.
    """

    id: str = Field(min_length=1)
    name: str
    image: str | None = None
    metadata: ResourceMetadata = Field(default_factory=ResourceMetadata)
    created_at: datetime
    updated_at: datetime

    model_config = _WIRE_CONFIG

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Naive and aware timestamps must stay comparable when sorting.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def tags(self) -> list[str]:
        return self.metadata.tags

    def to_document(self) -> dict[str, Any]:
        """Serialize to the JSON document stored in the index."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ResourceDraft(BaseModel):
    """Fields supplied by the user for a create or an edit.

    ``None`` means "keep the current value" on edit and "use the
    default" on create.
    """

    name: str | None = None
    image: str | None = None
    metadata: ResourceMetadata | None = None

    model_config = {"frozen": True}


class SearchHit(BaseModel):
    """Ranked pointer into the record store; never a source of content.

    Attributes:
        id: Resource id.
        relevance_score: Ranking score between 0.0 and 1.0.
    """

    id: str
    relevance_score: float = Field(default=1.0, ge=0.0, le=1.0)

    model_config = {"frozen": True}
